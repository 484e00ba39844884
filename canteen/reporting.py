"""
Dashboard numbers: order filtering, status counters and the monthly earnings roll-up
"""
from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.utils import timezone

from .models import OrderStatus


def month_key(dt):
    """YYYY-MM of a datetime in local time"""
    if timezone.is_aware(dt):
        dt = timezone.localtime(dt)
    return f"{dt.year}-{dt.month:02d}"


def previous_month(value):
    year, month = (int(part) for part in value.split('-'))
    if month == 1:
        return f"{year - 1}-12"
    return f"{year}-{month - 1:02d}"


def parse_month(value):
    """Return the YYYY-MM string if valid, else None"""
    try:
        year, month = (int(part) for part in str(value).split('-'))
    except (TypeError, ValueError):
        return None
    if not 1 <= month <= 12 or year < 1:
        return None
    return f"{year}-{month:02d}"


def month_options(today=None, count=None):
    """Selectable months as (value, label), newest first"""
    if today is None:
        today = timezone.localdate()
    if count is None:
        count = getattr(settings, 'CANTEEN_MONTH_OPTIONS', 6)

    options = []
    value = f"{today.year}-{today.month:02d}"
    for _ in range(count):
        year, month = (int(part) for part in value.split('-'))
        options.append((value, date(year, month, 1).strftime('%B %Y')))
        value = previous_month(value)
    return options


def monthly_totals(orders):
    """Sum amounts and count orders per month, every status included"""
    totals = {}
    for order in orders:
        key = month_key(order.placed_at)
        bucket = totals.setdefault(key, {'amount': Decimal('0.00'), 'orders': 0})
        bucket['amount'] += order.total_amount or Decimal('0')
        bucket['orders'] += 1
    return totals


def monthly_earnings(orders, months):
    """
    Earnings per month with the change against the previous calendar month.

    Args:
        orders: iterable of Order
        months: month keys (YYYY-MM) to report on

    Returns:
        dict: {month: {'amount': Decimal, 'orders': int, 'change': Decimal}}
        change is a percentage rounded to 2 places, 0 when the previous
        month earned nothing.
    """
    totals = monthly_totals(orders)
    empty = {'amount': Decimal('0.00'), 'orders': 0}

    earnings = {}
    for month in months:
        current = totals.get(month, empty)
        previous = totals.get(previous_month(month), empty)
        change = Decimal('0')
        if previous['amount'] > 0:
            change = (current['amount'] - previous['amount']) / previous['amount'] * 100
        earnings[month] = {
            'amount': current['amount'],
            'orders': current['orders'],
            'change': change.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP),
        }
    return earnings


def status_counts(orders):
    counts = {
        'preparing': 0,
        'ready': 0,
        'delivered': 0,
    }
    for order in orders:
        if order.status == OrderStatus.PREPARING:
            counts['preparing'] += 1
        elif order.status == OrderStatus.READY:
            counts['ready'] += 1
        elif order.status == OrderStatus.DELIVERED:
            counts['delivered'] += 1
    return counts


def order_matches_search(order, search):
    if not search:
        return True
    needle = search.lower()
    haystack = [
        str(order.pk),
        order.external_id.lower(),
        str(order.order_number or ''),
        order.customer_ref.lower(),
    ]
    if any(needle in value for value in haystack):
        return True
    return any(needle in line.name.lower() for line in order.order_items.all())


def filter_orders(orders, search='', month=None, category='all'):
    """
    Apply the dashboard filters.

    Args:
        orders: iterable of Order (prefetch order_items for speed)
        search: matched against order id (local or imported), token number,
            customer and item names
        month: YYYY-MM or None for every month
        category: 'all' or a category id

    Returns:
        list of Order in the input order
    """
    category = str(category or 'all')
    result = []
    for order in orders:
        if month and month_key(order.placed_at) != month:
            continue
        if category != 'all' and not any(str(line.category_id) == category for line in order.order_items.all()):
            continue
        if not order_matches_search(order, search):
            continue
        result.append(order)
    return result
