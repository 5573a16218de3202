"""
Tests for notifications and the realtime event feed.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from unittest.mock import patch

from django.utils import timezone

import pytest

from apps.notifications import broadcast
from apps.notifications.models import Notification
from apps.notifications.services import create_notification, low_stock_recipients
from apps.notifications.tasks import cleanup_old_notifications, send_low_stock_alerts


class TestEventFeed:
    def test_sequence_numbers_increase_per_organization(self):
        first = broadcast.append_event("org-a", broadcast.LEDGER_CHANGED, {"table": "daily_stocks"})
        second = broadcast.append_event("org-a", broadcast.STOCK_AVAILABLE)
        other = broadcast.append_event("org-b", broadcast.LEDGER_CHANGED)

        assert (first["seq"], second["seq"], other["seq"]) == (1, 2, 1)
        assert second["payload"] == {}

    def test_events_since_filters_by_cursor(self):
        for _ in range(3):
            broadcast.append_event("org-a", broadcast.LEDGER_CHANGED)

        events, latest = broadcast.events_since("org-a", after=1)

        assert [event["seq"] for event in events] == [2, 3]
        assert latest == 3

    def test_feed_keeps_only_the_newest_events(self, settings):
        settings.REALTIME_EVENT_LIMIT = 2
        for _ in range(4):
            broadcast.append_event("org-a", broadcast.LEDGER_CHANGED)

        events, latest = broadcast.events_since("org-a")

        assert [event["seq"] for event in events] == [3, 4]
        assert latest == 4

    def test_concurrent_publishers_keep_every_event(self):
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda _: broadcast.append_event("org-a", broadcast.LEDGER_CHANGED), range(40)))

        events, latest = broadcast.events_since("org-a")

        assert sorted(event["seq"] for event in events) == list(range(1, 41))
        assert latest == 40

    def test_expired_events_are_dropped(self):
        broadcast.append_event("org-a", broadcast.STOCK_AVAILABLE)
        later = timezone.now() + timedelta(minutes=10)

        with patch("apps.notifications.broadcast.timezone.now", return_value=later):
            events, latest = broadcast.events_since("org-a")

        assert events == []
        assert latest == 1

    def test_publish_stock_low_fires_signal(self):
        received = []

        def receiver(sender, **kwargs):
            received.append(kwargs)

        broadcast.stock_low.connect(receiver, dispatch_uid="test-stock-low")
        try:
            with patch("apps.notifications.tasks.send_low_stock_alerts.delay"):
                event = broadcast.publish_stock_low("org-a", "outlet-1", "item-1", "Prawn Fry", 4)
        finally:
            broadcast.stock_low.disconnect(dispatch_uid="test-stock-low")

        assert event["type"] == broadcast.STOCK_LOW
        assert event["payload"]["on_ground"] == "4"
        assert received[0]["item_name"] == "Prawn Fry"


@pytest.mark.django_db
class TestRealtimeEndpoint:
    def test_returns_events_for_own_organization(self, manager_client, organization, other_organization):
        broadcast.publish_ledger_changed(organization.id, "master_stocks")
        broadcast.publish_ledger_changed(other_organization.id, "daily_stocks")

        response = manager_client.get("/api/realtime/events/")

        assert response.status_code == 200
        body = response.json()
        assert [event["payload"]["table"] for event in body["events"]] == ["master_stocks"]
        assert body["latest"] == 1
        assert body["stale"] is False

    def test_cursor_older_than_feed_is_stale(self, manager_client, organization, settings):
        settings.REALTIME_EVENT_LIMIT = 2
        for _ in range(5):
            broadcast.append_event(organization.id, broadcast.LEDGER_CHANGED)

        body = manager_client.get("/api/realtime/events/", {"after": 1}).json()

        assert [event["seq"] for event in body["events"]] == [4, 5]
        assert body["stale"] is True

    def test_up_to_date_cursor(self, manager_client, organization):
        broadcast.append_event(organization.id, broadcast.LEDGER_CHANGED)

        body = manager_client.get("/api/realtime/events/", {"after": 1}).json()

        assert body == {"events": [], "latest": 1, "stale": False}

    def test_non_integer_cursor(self, manager_client):
        response = manager_client.get("/api/realtime/events/", {"after": "soon"})

        assert response.status_code == 400

    def test_requires_authentication(self, api_client):
        response = api_client.get("/api/realtime/events/")

        assert response.status_code == 401


@pytest.mark.django_db
class TestNotificationEndpoints:
    def test_list_and_count(self, manager_client, manager_user, admin_user):
        create_notification(manager_user, "Low Stock Alert", "Prawn Fry is down to 4", Notification.LOW_STOCK)
        create_notification(manager_user, "Welcome", "Hello")
        create_notification(admin_user, "Not yours", "Hidden")

        body = manager_client.get("/api/notifications/").json()
        assert {row["title"] for row in body["results"]} == {"Low Stock Alert", "Welcome"}
        assert body["unread_count"] == 2

        body = manager_client.get("/api/notifications/", {"type": Notification.LOW_STOCK}).json()
        assert {row["notification_type"] for row in body["results"]} == {Notification.LOW_STOCK}
        assert manager_client.get("/api/notifications/", {"type": "INFO"}).json()["results"] == []

        assert manager_client.get("/api/notifications/count/").json() == {"unread_count": 2}

    def test_mark_selected_as_read(self, manager_client, manager_user):
        first = create_notification(manager_user, "One", "1")
        create_notification(manager_user, "Two", "2")

        response = manager_client.post(
            "/api/notifications/mark-read/", {"notification_ids": [first.id]}, format="json"
        )

        assert response.json() == {"marked": 1, "unread_count": 1}
        body = manager_client.get("/api/notifications/", {"unread_only": "true"}).json()
        assert [row["title"] for row in body["results"]] == ["Two"]

    def test_mark_all_as_read(self, manager_client, manager_user):
        create_notification(manager_user, "One", "1")
        create_notification(manager_user, "Two", "2")

        response = manager_client.post("/api/notifications/mark-read/", {}, format="json")

        assert response.json() == {"marked": 2, "unread_count": 0}

    def test_mark_single_as_read(self, manager_client, manager_user, admin_user):
        own = create_notification(manager_user, "Mine", "1")
        foreign = create_notification(admin_user, "Theirs", "2")

        response = manager_client.post(f"/api/notifications/{own.id}/mark-read/")
        assert response.status_code == 200
        assert response.json()["is_read"] is True

        response = manager_client.post(f"/api/notifications/{foreign.id}/mark-read/")
        assert response.status_code == 404


@pytest.mark.django_db
class TestNotificationTasks:
    def test_recipients_are_admins_and_outlet_managers(
        self, organization, outlet, admin_user, manager_user, second_manager, staff_user
    ):
        recipients = low_stock_recipients(organization.id, outlet.id)

        assert set(recipients) == {admin_user, manager_user}

    def test_send_low_stock_alerts(self, organization, outlet, admin_user, manager_user):
        created = send_low_stock_alerts(str(organization.id), str(outlet.id), "item-1", "Prawn Fry", "4")

        assert created == 2
        notification = Notification.objects.get(user=manager_user)
        assert notification.notification_type == Notification.LOW_STOCK
        assert notification.message == "Prawn Fry is down to 4 at Main Branch."

    def test_unknown_outlet_sends_nothing(self, organization, other_organization, admin_user):
        from apps.core.models import Outlet

        foreign = Outlet.objects.create(organization=other_organization, name="Elsewhere")

        assert send_low_stock_alerts(str(organization.id), str(foreign.id), "item-1", "Prawn Fry", "4") == 0
        assert not Notification.objects.exists()

    def test_cleanup_removes_old_read_notifications(self, manager_user):
        old_read = create_notification(manager_user, "Old read", "1")
        old_unread = create_notification(manager_user, "Old unread", "2")
        recent_read = create_notification(manager_user, "Recent read", "3")
        Notification.objects.filter(id__in=[old_read.id, recent_read.id]).update(is_read=True)
        Notification.objects.filter(id__in=[old_read.id, old_unread.id]).update(
            created_at=timezone.now() - timedelta(days=45)
        )

        assert cleanup_old_notifications.delay().get() == 1
        assert set(Notification.objects.values_list("title", flat=True)) == {"Old unread", "Recent read"}

    def test_low_stock_is_the_only_notification_type(self, manager_user):
        notification = create_notification(manager_user, "Low Stock Alert", "Prawn Fry is down to 4")

        assert notification.notification_type == Notification.LOW_STOCK
        assert [value for value, _ in Notification.NOTIFICATION_TYPES] == [Notification.LOW_STOCK]
