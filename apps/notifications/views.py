"""
Views for the notification system.

- Notification list with unread/type filters
- Unread count
- Mark as read (single, selected or all)
- Realtime event feed polled by terminals
"""

import logging

from django.shortcuts import get_object_or_404

from rest_framework import permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from apps.core.context import get_operator
from apps.core.permissions import HasOrganizationAccess

from .broadcast import events_since
from .models import Notification
from .serializers import MarkReadSerializer, NotificationSerializer
from .services import get_unread_count, get_user_notifications, mark_notifications_as_read

logger = logging.getLogger(__name__)


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated, HasOrganizationAccess])
def notification_list(request):
    """Current user's notifications, newest first."""
    notifications = get_user_notifications(
        user=request.user,
        unread_only=request.query_params.get("unread_only") == "true",
        notification_type=request.query_params.get("type"),
        limit=100,
    )
    return Response(
        {
            "results": NotificationSerializer(notifications, many=True).data,
            "unread_count": get_unread_count(request.user),
        }
    )


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated, HasOrganizationAccess])
def unread_count(request):
    return Response({"unread_count": get_unread_count(request.user)})


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasOrganizationAccess])
def mark_as_read(request):
    """
    Mark notifications as read.
    Accepts either specific notification IDs or marks all as read.
    """
    serializer = MarkReadSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    count = mark_notifications_as_read(
        request.user, serializer.validated_data.get("notification_ids") or None
    )
    return Response({"marked": count, "unread_count": get_unread_count(request.user)})


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, HasOrganizationAccess])
def mark_single_as_read(request, notification_id):
    notification = get_object_or_404(Notification, id=notification_id, user=request.user)
    notification.mark_as_read()
    return Response(NotificationSerializer(notification).data, status=status.HTTP_200_OK)


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated, HasOrganizationAccess])
def realtime_events(request):
    """
    Poll the organization's advisory event feed.

    ?after=<seq> returns only newer events. Any returned event means
    "refetch"; when the client's cursor is older than the oldest retained
    event, ``stale`` tells it to refetch everything.
    """
    operator = get_operator(request)
    try:
        after = int(request.query_params.get("after", 0))
    except ValueError:
        return Response(
            {"error": "after must be an integer"}, status=status.HTTP_400_BAD_REQUEST
        )

    events, latest = events_since(operator.organization_id, after=after)
    oldest = events[0]["seq"] if events else latest + 1
    return Response(
        {
            "events": events,
            "latest": latest,
            "stale": after > 0 and oldest > after + 1,
        }
    )
