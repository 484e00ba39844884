"""
Excel export of the day's orders
"""
import logging
from datetime import datetime, time, timedelta
from io import BytesIO

from django.utils import timezone
from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from .models import Order

logger = logging.getLogger(__name__)


XLSX_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

ORDER_COLUMNS = [
    ('Order ID', 20),
    ('User Email', 30),
    ('Items Ordered', 50),
    ('Amount (₹)', 15),
    ('Date', 15),
    ('Time', 15),
    ('Status', 25),
]


def export_filename(day):
    return f"canteen-orders-{day.isoformat()}.xlsx"


def orders_for_day(day):
    """Orders placed on a local calendar day, oldest first"""
    tz = timezone.get_current_timezone()
    start = timezone.make_aware(datetime.combine(day, time.min), tz)
    end = timezone.make_aware(datetime.combine(day + timedelta(days=1), time.min), tz)
    return (
        Order.objects.filter(placed_at__gte=start, placed_at__lt=end)
        .prefetch_related('order_items')
        .order_by('placed_at')
    )


def order_row(order):
    placed = timezone.localtime(order.placed_at)
    return [
        order.external_id or str(order.pk),
        order.customer_ref,
        order.items_summary,
        float(order.total_amount),
        placed.strftime('%d/%m/%Y'),
        placed.strftime('%H:%M'),
        order.status,
    ]


def build_orders_workbook(orders):
    """Workbook with one 'Orders' sheet"""
    wb = Workbook()
    ws = wb.active
    ws.title = 'Orders'

    ws.append([title for title, _ in ORDER_COLUMNS])
    for cell in ws[1]:
        cell.font = Font(bold=True)

    for order in orders:
        ws.append(order_row(order))

    for index, (_, width) in enumerate(ORDER_COLUMNS, start=1):
        ws.column_dimensions[get_column_letter(index)].width = width

    return wb


def render_orders_xlsx(orders):
    """Serialise the orders workbook to bytes"""
    buffer = BytesIO()
    build_orders_workbook(orders).save(buffer)
    return buffer.getvalue()


def export_day(day):
    """
    Returns:
        tuple: (filename, xlsx bytes, number of orders)
    """
    orders = list(orders_for_day(day))
    content = render_orders_xlsx(orders)
    logger.info("Exported %d orders for %s", len(orders), day.isoformat())
    return export_filename(day), content, len(orders)
