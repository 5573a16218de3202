"""
Celery tasks for stock notifications.
"""

import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.utils import timezone

from apps.core.models import Outlet

from .models import Notification
from .services import create_notification, low_stock_recipients

logger = logging.getLogger(__name__)


@shared_task
def send_low_stock_alerts(organization_id, outlet_id, item_id, item_name, on_ground):
    """
    Fan a low-stock event out to the organization's admins and the outlet's managers.

    Returns the number of notifications created.
    """
    outlet = Outlet.objects.filter(id=outlet_id, organization_id=organization_id).first()
    if outlet is None:
        logger.warning(f"Low stock alert for unknown outlet {outlet_id}")
        return 0

    created = 0
    for user in low_stock_recipients(organization_id, outlet_id):
        create_notification(
            user=user,
            title="Low Stock Alert",
            message=f"{item_name} is down to {on_ground} at {outlet.name}.",
            notification_type=Notification.LOW_STOCK,
            action_url="/stocks",
        )
        created += 1

    logger.info(f"Sent {created} low stock alerts for item {item_id} at outlet {outlet_id}")
    return created


@shared_task
def cleanup_old_notifications():
    """Delete read notifications older than NOTIFICATION_RETENTION_DAYS."""
    cutoff = timezone.now() - timedelta(days=settings.NOTIFICATION_RETENTION_DAYS)
    deleted, _ = Notification.objects.filter(is_read=True, created_at__lt=cutoff).delete()
    logger.info(f"Deleted {deleted} old notifications")
    return deleted
