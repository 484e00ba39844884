"""
Email utilities for sending notifications via Resend
"""
import logging

import resend
from django.conf import settings
from django.utils import timezone
from django.utils.html import escape

from .models import OrderStatus
from .security import validate_email

logger = logging.getLogger(__name__)


DEFAULT_FROM_EMAIL = "Canteen Orders <orders@canteen.local>"


def get_resend_client():
    """Get Resend client instance, None when no API key is configured"""
    api_key = getattr(settings, 'RESEND_API_KEY', '')
    if not api_key:
        return None
    resend.api_key = api_key
    return resend


def build_ready_email(order):
    items_html = "".join(
        f"<li>{line.qty}x {escape(line.name)}</li>" for line in order.order_items.all()
    )
    slot = f"<p><strong>Collection slot:</strong> {escape(order.slot_label)}</p>" if order.slot_label else ""
    return {
        'subject': f"Order #{order.order_number} is ready - collect your order",
        'html': f"""
        <h2>Your order is ready</h2>
        <p>Show token <strong>#{order.order_number}</strong> at the counter.</p>
        {slot}
        <ul>{items_html}</ul>
        <p><strong>Total:</strong> ₹{order.total_amount}</p>
        <p style="color:#666">Sent {timezone.localtime().strftime('%d/%m/%Y %H:%M')}</p>
        """,
    }


def send_order_status_update(order, old_status, new_status):
    """
    Email the student when their order becomes ready for collection

    Args:
        order: Order instance
        old_status: Previous status
        new_status: New status

    Returns:
        bool: True if an email went out
    """
    if new_status != OrderStatus.READY:
        return False

    is_email, recipient = validate_email(order.customer_ref)
    if not is_email:
        return False

    client = get_resend_client()
    if client is None:
        logger.warning("RESEND_API_KEY not configured. Email for order #%s not sent.", order.order_number)
        return False

    content = build_ready_email(order)
    params = {
        "from": getattr(settings, 'CANTEEN_FROM_EMAIL', DEFAULT_FROM_EMAIL),
        "to": [recipient],
        "subject": content['subject'],
        "html": content['html'],
    }
    try:
        email = client.Emails.send(params)
    except Exception:
        logger.exception("Error sending status email for order #%s", order.order_number)
        return False

    logger.info("Status email for order #%s sent to %s (%s -> %s): %s", order.order_number, recipient, old_status, new_status, email)
    return True
