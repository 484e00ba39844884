"""
Utility functions for sending push notifications to staff devices
"""
import json
import logging

from pywebpush import webpush, WebPushException
from django.conf import settings

from .models import OrderStatus, PushSubscription

logger = logging.getLogger(__name__)


def send_push_notification_to_all(title, body, url='/', icon='/static/favicons/icon-192.png'):
    """
    Send push notification to all subscribed staff devices

    Args:
        title: Notification title
        body: Notification body text
        url: URL to open when notification is clicked
        icon: Icon URL for the notification

    Returns:
        dict: {'success_count': int, 'error_count': int, 'errors': list}
    """
    vapid_private_key = getattr(settings, 'VAPID_PRIVATE_KEY', None)
    vapid_public_key = getattr(settings, 'VAPID_PUBLIC_KEY', None)
    vapid_claims = getattr(settings, 'VAPID_CLAIMS', {})

    if not vapid_private_key or not vapid_public_key:
        return {
            'success_count': 0,
            'error_count': 0,
            'errors': ['VAPID keys not configured']
        }

    success_count = 0
    error_count = 0
    errors = []

    notification_payload = json.dumps({
        'title': title,
        'body': body,
        'icon': icon,
        'badge': icon,
        'url': url,
        'tag': 'canteen-order',
        'data': {'url': url}
    })

    for subscription in PushSubscription.objects.all():
        try:
            webpush(
                subscription_info={
                    'endpoint': subscription.endpoint,
                    'keys': subscription.keys
                },
                data=notification_payload,
                vapid_private_key=vapid_private_key,
                vapid_claims=dict(vapid_claims)
            )
            success_count += 1
        except WebPushException as e:
            # Gone or unknown endpoints will never succeed again
            if e.response is not None and e.response.status_code in (404, 410):
                subscription.delete()
            error_count += 1
            errors.append(f"Subscription {subscription.id}: {e}")

    if error_count:
        logger.warning("Push delivery failed for %d of %d subscriptions", error_count, success_count + error_count)

    return {
        'success_count': success_count,
        'error_count': error_count,
        'errors': errors
    }


def send_order_notification(order):
    """
    Send push notification when an order changes status

    Args:
        order: Order instance
    """
    status_messages = {
        OrderStatus.READY: f'Order #{order.order_number} is ready for collection',
        OrderStatus.DELIVERED: f'Order #{order.order_number} has been delivered',
    }

    message = status_messages.get(order.status)
    if not message:
        return None
    return send_push_notification_to_all(
        title='Canteen Orders',
        body=message,
        url='/admin/dashboard/',
    )
