"""
Notification services for creating and managing in-app notifications.
"""

import logging
from typing import List, Optional

from django.contrib.auth import get_user_model
from django.utils import timezone

from .models import Notification

User = get_user_model()
logger = logging.getLogger(__name__)


def create_notification(
    user: User,
    title: str,
    message: str,
    notification_type: str = Notification.LOW_STOCK,
    action_url: str = "",
) -> Notification:
    """
    Create a new notification for a user.

    Example:
        >>> create_notification(
        ...     user=manager,
        ...     title="Low Stock Alert",
        ...     message="Prawn is down to 8 kg at Main Branch",
        ...     notification_type=Notification.LOW_STOCK,
        ...     action_url="/manager/pos",
        ... )
    """
    notification = Notification.objects.create(
        user=user,
        title=title,
        message=message,
        notification_type=notification_type,
        action_url=action_url,
    )

    logger.info(
        f"Created notification '{title}' for user {user.username} " f"(type: {notification_type})"
    )

    return notification


def get_user_notifications(
    user: User,
    unread_only: bool = False,
    notification_type: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[Notification]:
    """Get notifications for a user with optional filtering."""
    queryset = user.notifications.all()

    if unread_only:
        queryset = queryset.filter(is_read=False)

    if notification_type:
        queryset = queryset.filter(notification_type=notification_type)

    if limit:
        queryset = queryset[:limit]

    return list(queryset)


def get_unread_count(user: User) -> int:
    return user.notifications.filter(is_read=False).count()


def mark_notifications_as_read(user: User, notification_ids: Optional[List[int]] = None) -> int:
    """
    Mark notifications as read for a user.

    If notification_ids is None, marks all unread notifications as read.
    """
    queryset = user.notifications.filter(is_read=False)

    if notification_ids:
        queryset = queryset.filter(id__in=notification_ids)

    count = queryset.update(is_read=True, read_at=timezone.now())

    logger.info(f"Marked {count} notifications as read for user {user.username}")

    return count


def low_stock_recipients(organization_id, outlet_id):
    """Admins of the organization and managers of the outlet."""
    admins = User.objects.filter(organization_id=organization_id, role=User.ADMIN)
    managers = User.objects.filter(
        organization_id=organization_id, role=User.MANAGER, outlet_id=outlet_id
    )
    return list(admins) + list(managers)
