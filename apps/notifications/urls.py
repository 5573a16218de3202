"""
URL patterns for the notifications app.
"""

from django.urls import path

from . import views

app_name = "notifications"

urlpatterns = [
    path("api/notifications/", views.notification_list, name="list"),
    path("api/notifications/count/", views.unread_count, name="count"),
    path("api/notifications/mark-read/", views.mark_as_read, name="mark_read"),
    path(
        "api/notifications/<int:notification_id>/mark-read/",
        views.mark_single_as_read,
        name="mark_single_read",
    ),
    path("api/realtime/events/", views.realtime_events, name="realtime_events"),
]
