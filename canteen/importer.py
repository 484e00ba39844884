"""
Load a JSON export of the mobile app's document collections.

Expected top-level keys (all optional): categories, items, users, orders,
payments. Each is a list of documents carrying their original "id".
Records are upserted on external_id, so the same export can be loaded twice.
"""
import logging
from datetime import datetime, timezone as dt_timezone
from decimal import Decimal, InvalidOperation

from django.db import transaction
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from .catalog import resolve_category
from .models import Category, Item, Order, OrderItem, OrderStatus, Payment, Student
from .status import UnknownOrderStatus, normalize_status

logger = logging.getLogger(__name__)


EPOCH = datetime(1970, 1, 1, tzinfo=dt_timezone.utc)
FALLBACK_CATEGORY = 'Uncategorised'


class SnapshotError(ValueError):
    pass


def parse_timestamp(value, default=EPOCH):
    """
    Accept the shapes timestamps take in exports:
    ISO strings, epoch milliseconds, or {"seconds", "nanoseconds"} maps.
    """
    if value in (None, ''):
        return default
    if isinstance(value, dict):
        seconds = value.get('seconds', value.get('_seconds'))
        if seconds is None:
            return default
        nanos = value.get('nanoseconds', value.get('_nanoseconds', 0)) or 0
        return datetime.fromtimestamp(int(seconds) + int(nanos) / 1e9, tz=dt_timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=dt_timezone.utc)

    try:
        parsed = parse_datetime(str(value))
    except ValueError:
        parsed = None
    if parsed is None:
        raise SnapshotError(f"Unreadable timestamp: {value!r}")
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def to_decimal(value):
    try:
        return Decimal(str(value)) if value not in (None, '') else Decimal('0')
    except InvalidOperation:
        raise SnapshotError(f"Not a number: {value!r}")


def to_int(value):
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        raise SnapshotError(f"Not an integer: {value!r}")


def read_status(value, record_id):
    try:
        return normalize_status(value)
    except UnknownOrderStatus:
        logger.warning("Order %s has unknown status %r, using Preparing", record_id, value)
        return OrderStatus.PREPARING


def _category_for(category_id, category_name):
    category = resolve_category(category_id, category_name)
    if category is None:
        name = category_name or FALLBACK_CATEGORY
        category = Category.objects.create(name=name, external_id=category_id or '')
        logger.info("Created category %r while importing items", name)
    return category


def import_categories(documents):
    count = 0
    for doc in documents:
        Category.objects.update_or_create(
            external_id=str(doc['id']),
            defaults={'name': doc.get('name') or FALLBACK_CATEGORY},
        )
        count += 1
    return count


def import_items(documents):
    count = 0
    for doc in documents:
        category = _category_for(str(doc.get('categoryId') or ''), doc.get('categoryName') or doc.get('category') or '')
        item = Item.objects.filter(external_id=str(doc['id'])).first() or Item(external_id=str(doc['id']))
        item.name = doc.get('name') or ''
        item.description = doc.get('description') or ''
        item.price = to_decimal(doc.get('price'))
        item.category = category
        item.image_url = doc.get('imageUrl') or ''
        item.quantity = max(0, to_int(doc.get('quantity', doc.get('qty', 0))))
        if doc.get('isAvailable') is False:
            item.quantity = 0
        item.default_order_status = read_status(doc.get('defaultOrderStatus') or OrderStatus.PREPARING, doc['id'])
        if item.default_order_status == OrderStatus.DELIVERED:
            item.default_order_status = OrderStatus.PREPARING
        item.save()
        count += 1
    return count


def import_users(documents):
    count = 0
    for doc in documents:
        Student.objects.update_or_create(
            external_id=str(doc['id']),
            defaults={
                'name': doc.get('name') or '',
                'email': (doc.get('email') or '').strip().lower(),
                'roll_no': doc.get('rollNo') or '',
            },
        )
        count += 1
    return count


def _order_lines(order, lines):
    items_by_id = {item.external_id: item for item in Item.objects.exclude(external_id='')}
    order.order_items.all().delete()
    for line in lines:
        item = items_by_id.get(str(line.get('id') or ''))
        category = None
        if line.get('categoryId'):
            category = resolve_category(str(line['categoryId']), line.get('categoryName') or '')
        elif item is not None:
            category = item.category
        OrderItem.objects.create(
            order=order,
            item=item,
            category=category,
            name=line.get('name') or '',
            price=to_decimal(line.get('price')),
            qty=max(0, to_int(line.get('qty'))),
        )


def _has_order_number(doc):
    return doc.get('orderNumber') not in (None, '')


def import_orders(documents):
    """
    Orders carrying a token number go first, so the numbers handed out to
    the rest continue after every imported token.
    """
    count = 0
    ordered = [doc for doc in documents if _has_order_number(doc)]
    ordered += [doc for doc in documents if not _has_order_number(doc)]
    for doc in ordered:
        slot = doc.get('collectionTimeSlot') or {}
        block_until = doc.get('blockUntil')

        order = Order.objects.filter(external_id=str(doc['id'])).first() or Order(external_id=str(doc['id']))
        order.customer_ref = doc.get('userId') or ''
        order.total_amount = to_decimal(doc.get('totalAmount'))
        order.status = read_status(doc.get('status'), doc['id'])
        order.placed_at = parse_timestamp(doc.get('timestamp'))
        order.razorpay_order_id = doc.get('razorpayOrderId') or ''
        order.slot_label = slot.get('displayText') or ''
        order.slot_start = slot.get('startTime') or ''
        order.slot_end = slot.get('endTime') or ''
        order.block_until = parse_timestamp(block_until) if block_until else None
        if _has_order_number(doc):
            order.order_number = to_int(doc['orderNumber'])

        # Loading a snapshot is not a status change
        order._skip_notifications = True
        order.save()
        items = doc.get('items')
        _order_lines(order, items if isinstance(items, list) else [])
        count += 1
    return count


def import_payments(documents):
    count = 0
    for doc in documents:
        external_id = str(doc.get('id') or doc.get('razorpay_payment_id') or '')
        if not external_id:
            raise SnapshotError("Payment without id or razorpay_payment_id")
        Payment.objects.update_or_create(
            external_id=external_id,
            defaults={
                'amount': to_decimal(doc.get('amount')),
                'method': doc.get('method') or '',
                'status': doc.get('status') or '',
                'paid_at': parse_timestamp(doc.get('timestamp'), default=None),
                'customer_ref': doc.get('userId') or '',
                'razorpay_order_id': doc.get('razorpay_order_id') or '',
                'razorpay_payment_id': doc.get('razorpay_payment_id') or '',
                'verified': bool(doc.get('verified')),
            },
        )
        count += 1
    return count


IMPORTERS = [
    ('categories', import_categories),
    ('items', import_items),
    ('users', import_users),
    ('orders', import_orders),
    ('payments', import_payments),
]


def import_snapshot(data):
    """
    Import every collection found in the snapshot in one transaction.

    Returns:
        dict: {collection: number of documents imported}
    """
    if not isinstance(data, dict):
        raise SnapshotError("Snapshot must be a JSON object keyed by collection name")

    counts = {}
    with transaction.atomic():
        for name, importer in IMPORTERS:
            documents = data.get(name) or []
            if not isinstance(documents, list):
                raise SnapshotError(f'"{name}" must be a list')
            for doc in documents:
                if not isinstance(doc, dict) or (name != 'payments' and not doc.get('id')):
                    raise SnapshotError(f'Every "{name}" document needs an "id"')
            counts[name] = importer(documents)

    logger.info("Snapshot imported: %s", counts)
    return counts
