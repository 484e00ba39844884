"""
Order status handling
The mobile app has written several spellings of the same three states over time;
everything is folded into OrderStatus here before it reaches the database.
"""
import logging

from .models import OrderStatus

logger = logging.getLogger(__name__)


STATUS_ALIASES = {
    'preparing': OrderStatus.PREPARING,
    'preparing the order': OrderStatus.PREPARING,
    'ready': OrderStatus.READY,
    'collect your order': OrderStatus.READY,
    'delivered': OrderStatus.DELIVERED,
    'order delivered': OrderStatus.DELIVERED,
}

ALLOWED_TRANSITIONS = {
    OrderStatus.PREPARING: {OrderStatus.READY, OrderStatus.DELIVERED},
    OrderStatus.READY: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
}


class UnknownOrderStatus(ValueError):
    pass


class InvalidStatusTransition(ValueError):
    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move an order from {current} to {requested}")


def normalize_status(value):
    """Map any known spelling to its OrderStatus"""
    key = ' '.join(str(value or '').split()).lower()
    try:
        return STATUS_ALIASES[key]
    except KeyError:
        raise UnknownOrderStatus(f"Unknown order status: {value!r}")


def next_status(status):
    """Natural next step for the action button, None once delivered"""
    status = normalize_status(status)
    if status == OrderStatus.PREPARING:
        return OrderStatus.READY
    if status == OrderStatus.READY:
        return OrderStatus.DELIVERED
    return None


def can_transition(current, requested):
    return normalize_status(requested) in ALLOWED_TRANSITIONS[normalize_status(current)]


def transition(order, new_status):
    """
    Move an order to a new status and save it.

    Setting the status the order already has is a no-op and returns False.
    Backwards moves raise InvalidStatusTransition. The status-change signal
    handlers take care of notifications.
    """
    current = normalize_status(order.status)
    requested = normalize_status(new_status)

    if current == requested:
        return False
    if requested not in ALLOWED_TRANSITIONS[current]:
        raise InvalidStatusTransition(current, requested)

    order.status = requested
    order.save(update_fields=['status', 'updated_at'])
    logger.info("Order #%s moved from %s to %s", order.order_number, current, requested)
    return True
