"""
Signals for catalog and order bookkeeping
Keep item copies of category names current and notify on order status changes
"""
import logging

from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver

from .models import Category, Item, Order

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Category)
def sync_item_category_names(sender, instance, created, **kwargs):
    """Rewrite the denormalised name on every item of a renamed category"""
    if created:
        return
    updated = Item.objects.filter(category=instance).exclude(category_name=instance.name).update(category_name=instance.name)
    if updated:
        logger.info("Updated category name on %d items of %r", updated, instance.name)


@receiver(pre_save, sender=Order)
def remember_previous_status(sender, instance, **kwargs):
    instance._previous_status = None
    if instance.pk:
        instance._previous_status = Order.objects.filter(pk=instance.pk).values_list('status', flat=True).first()


@receiver(post_save, sender=Order)
def notify_status_change(sender, instance, created, raw=False, **kwargs):
    """Push and email updates when an existing order changes status"""
    previous = getattr(instance, '_previous_status', None)
    if created or raw or previous is None or previous == instance.status:
        return
    if getattr(instance, '_skip_notifications', False):
        return

    from .push_utils import send_order_notification
    from .email_utils import send_order_status_update

    try:
        send_order_notification(instance)
    except Exception:
        logger.exception("Push notification failed for order #%s", instance.order_number)
    try:
        send_order_status_update(instance, previous, instance.status)
    except Exception:
        logger.exception("Status email failed for order #%s", instance.order_number)
