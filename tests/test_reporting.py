"""
Tests for dashboard metrics and period reports.
"""

from datetime import date, datetime, time, timedelta
from decimal import Decimal

from django.utils import timezone

import pytest
from rest_framework.exceptions import PermissionDenied, ValidationError

from apps.core.context import OperatorContext
from apps.inventory.services import distribute_stock
from apps.reporting import services
from apps.sales.models import SaleLineItem, SaleTransaction


def local_moment(day, hour, minute):
    return timezone.make_aware(datetime.combine(day, time(hour, minute)))


def make_sale(outlet, lines, payment_method, created_at):
    """Record a settled sale directly, bypassing the cart."""
    total = sum((Decimal(qty) * Decimal(price) for _, qty, price in lines), Decimal("0.00"))
    sale = SaleTransaction.objects.create(
        organization=outlet.organization,
        outlet=outlet,
        total_amount=total,
        payment_method=payment_method,
        paid_at=created_at,
        created_at=created_at,
    )
    for item, qty, price in lines:
        SaleLineItem.objects.create(
            transaction=sale, item=item, quantity=Decimal(qty), unit_price=Decimal(price)
        )
    return sale


@pytest.fixture
def trading_day(admin_context, outlet, second_outlet, prawn, chicken, stock_outlet, today):
    """
    Main Branch: prawn 40 sent, chicken 10 sent; Beach Road: prawn 30 sent.

    Sales: 5 prawn (cash, 09:15) and 2 chicken (UPI, 13:40) at Main Branch,
    3 prawn (card, 13:05) at Beach Road.
    """
    stock_outlet(prawn, outlet, master=100, sent=40, price=Decimal("500"))
    distribute_stock(admin_context, second_outlet, {prawn.id: Decimal("30")}, day=today)
    stock_outlet(chicken, outlet, master=20, sent=10)

    make_sale(outlet, [(prawn, 5, "500")], "cash", local_moment(today, 9, 15))
    make_sale(outlet, [(chicken, 2, "180")], "UPI", local_moment(today, 13, 40))
    make_sale(second_outlet, [(prawn, 3, "500")], "card", local_moment(today, 13, 5))
    return today


class TestDateRanges:
    WEDNESDAY = date(2024, 5, 15)

    @pytest.mark.parametrize(
        "date_range,expected",
        [
            ("today", (date(2024, 5, 15), date(2024, 5, 15))),
            ("yesterday", (date(2024, 5, 14), date(2024, 5, 14))),
            ("this_week", (date(2024, 5, 13), date(2024, 5, 15))),
            ("last_week", (date(2024, 5, 6), date(2024, 5, 12))),
            ("this_month", (date(2024, 5, 1), date(2024, 5, 15))),
            ("last_month", (date(2024, 4, 1), date(2024, 4, 30))),
        ],
    )
    def test_named_ranges(self, date_range, expected):
        assert services.resolve_date_range(date_range, today=self.WEDNESDAY) == expected

    def test_last_month_crosses_year(self):
        assert services.resolve_date_range("last_month", today=date(2024, 1, 9)) == (
            date(2023, 12, 1),
            date(2023, 12, 31),
        )

    def test_custom_range(self):
        start, end = date(2024, 3, 1), date(2024, 3, 10)

        assert services.resolve_date_range("custom", start, end) == (start, end)

    def test_custom_range_needs_ordered_dates(self):
        with pytest.raises(ValidationError):
            services.resolve_date_range("custom", date(2024, 3, 10), date(2024, 3, 1))
        with pytest.raises(ValidationError):
            services.resolve_date_range("custom", date(2024, 3, 10), None)

    def test_custom_range_is_capped(self):
        start = date(2024, 1, 1)
        last_allowed = start + timedelta(days=services.MAX_CUSTOM_RANGE_DAYS - 1)

        assert services.resolve_date_range("custom", start, last_allowed) == (start, last_allowed)
        with pytest.raises(ValidationError):
            services.resolve_date_range("custom", start, last_allowed + timedelta(days=1))

    def test_unknown_range(self):
        with pytest.raises(ValidationError):
            services.resolve_date_range("fortnight")


@pytest.mark.django_db
class TestDashboard:
    def test_admin_sees_every_outlet(self, admin_context, prawn, chicken, trading_day):
        metrics = services.build_dashboard_metrics(admin_context, trading_day)

        assert metrics["revenue"] == Decimal("4360.00")
        assert metrics["transaction_count"] == 3
        assert metrics["average_order_value"] == Decimal("1453.33")
        assert metrics["payment_totals"] == {
            "cash": Decimal("2500.00"),
            "card": Decimal("1500.00"),
            "upi": Decimal("360.00"),
        }
        assert [(row["outlet"], row["revenue"]) for row in metrics["outlet_performance"]] == [
            ("Main Branch", Decimal("2860.00")),
            ("Beach Road", Decimal("1500.00")),
        ]
        assert [(row["time"], row["amount"]) for row in metrics["hourly"]] == [
            ("09:00", Decimal("2500.00")),
            ("13:00", Decimal("1860.00")),
        ]
        assert metrics["distributed_total"] == Decimal("80")
        assert metrics["live_stock"] == Decimal("70")

        stats = {row["name"]: row for row in metrics["item_stats"]}
        assert set(stats) == {"Prawn Fry", "Chicken Curry"}
        assert (stats["Prawn Fry"]["sent"], stats["Prawn Fry"]["sold"]) == (Decimal("70"), Decimal("8"))
        assert stats["Prawn Fry"]["remaining"] == Decimal("62")
        assert stats["Chicken Curry"]["remaining"] == Decimal("8")

    def test_manager_sees_own_outlet(self, manager_context, trading_day):
        metrics = services.build_dashboard_metrics(manager_context, trading_day)

        assert metrics["revenue"] == Decimal("2860.00")
        assert metrics["transaction_count"] == 2
        assert metrics["payment_totals"]["card"] == Decimal("0.00")
        assert [row["outlet"] for row in metrics["outlet_performance"]] == ["Main Branch"]
        assert metrics["distributed_total"] == Decimal("50")
        assert metrics["live_stock"] == Decimal("43")
        stats = {row["name"]: row for row in metrics["item_stats"]}
        assert stats["Prawn Fry"]["sent"] == Decimal("40")
        assert stats["Prawn Fry"]["remaining"] == Decimal("35")

    def test_empty_day(self, admin_context, today):
        metrics = services.build_dashboard_metrics(admin_context, today)

        assert metrics["revenue"] == Decimal("0.00")
        assert metrics["average_order_value"] == Decimal("0.00")
        assert metrics["hourly"] == []
        assert metrics["item_stats"] == []

    def test_cached_metrics_refresh_after_sale(self, admin_context, outlet, chicken, stock_outlet, today):
        stock_outlet(chicken, outlet, master=20, sent=10)
        assert services.dashboard_metrics(admin_context, today)["transaction_count"] == 0

        make_sale(outlet, [(chicken, 1, "180")], "cash", timezone.now())

        assert services.dashboard_metrics(admin_context, today)["transaction_count"] == 1

    def test_dashboard_endpoint_for_staff(self, staff_client, trading_day):
        response = staff_client.get("/api/dashboard/", {"date": trading_day.isoformat()})

        assert response.status_code == 200
        body = response.json()
        assert body["transaction_count"] == 2
        assert body["payment_totals"]["upi"] == 360


@pytest.mark.django_db
class TestReports:
    def test_sales_report(self, admin_context, trading_day):
        report = services.build_report(admin_context, services.SALES)

        data = report["data"]
        assert report["outlets"] == "all"
        assert data["total_revenue"] == Decimal("4360.00")
        assert data["items_sold"] == Decimal("10")
        assert data["per_day"] == [
            {"date": trading_day.isoformat(), "revenue": Decimal("4360.00"), "transactions": 3}
        ]
        assert [(row["name"], row["quantity"]) for row in data["top_items"]] == [
            ("Prawn Fry", Decimal("8")),
            ("Chicken Curry", Decimal("2")),
        ]

    def test_inventory_report(self, admin_context, trading_day):
        rows = services.build_report(admin_context, services.INVENTORY)["data"]["rows"]

        by_name = {row["name"]: row for row in rows}
        assert set(by_name) == {"Prawn Fry", "Chicken Curry"}
        prawn = by_name["Prawn Fry"]
        assert (prawn["master_total"], prawn["distributed"], prawn["sold"]) == (
            Decimal("100"),
            Decimal("70"),
            Decimal("8"),
        )
        assert prawn["remaining_in_master"] == Decimal("30")

    def test_financial_report(self, admin_context, trading_day):
        data = services.build_report(admin_context, services.FINANCIAL)["data"]

        assert data["gross_revenue"] == Decimal("4360.00")
        assert data["payment_totals"]["upi"] == Decimal("360.00")
        assert data["average_order_value"] == Decimal("1453.33")

    def test_operations_report(self, admin_context, trading_day):
        data = services.build_report(admin_context, services.OPERATIONS)["data"]

        assert [(row["outlet"], row["transactions"]) for row in data["per_outlet"]] == [
            ("Main Branch", 2),
            ("Beach Road", 1),
        ]
        assert data["busiest_hours"] == [
            {"time": "13:00", "transactions": 2},
            {"time": "09:00", "transactions": 1},
        ]
        assert data["average_items_per_transaction"] == Decimal("3.33")

    def test_yesterday_is_empty(self, admin_context, trading_day):
        data = services.build_report(admin_context, services.SALES, date_range=services.YESTERDAY)["data"]

        assert data["transaction_count"] == 0
        assert data["top_items"] == []

    def test_admin_outlet_filter(self, admin_context, second_outlet, trading_day):
        report = services.build_report(admin_context, services.FINANCIAL, outlet_ids=[second_outlet.id])

        assert report["outlets"] == [str(second_outlet.id)]
        assert report["data"]["gross_revenue"] == Decimal("1500.00")

    def test_manager_is_pinned_to_own_outlet(self, manager_context, outlet, second_outlet, trading_day):
        report = services.build_report(manager_context, services.FINANCIAL, outlet_ids=[second_outlet.id])

        assert report["outlets"] == [str(outlet.id)]
        assert report["data"]["gross_revenue"] == Decimal("2860.00")

    def test_foreign_outlet_is_refused(self, admin_context, other_organization):
        from apps.core.models import Outlet

        foreign = Outlet.objects.create(organization=other_organization, name="Elsewhere")

        with pytest.raises(PermissionDenied):
            services.build_report(admin_context, services.SALES, outlet_ids=[foreign.id])

    def test_staff_cannot_view_reports(self, staff_user):
        with pytest.raises(PermissionDenied):
            services.build_report(OperatorContext.from_user(staff_user), services.SALES)

    def test_report_endpoint(self, admin_client, outlet, second_outlet, trading_day):
        response = admin_client.get(
            "/api/reports/",
            {
                "report_type": "operations",
                "date_range": "custom",
                "start": (trading_day - timedelta(days=1)).isoformat(),
                "end": trading_day.isoformat(),
                "outlets": f"{outlet.id},{second_outlet.id}",
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["report_type"] == "operations"
        assert len(body["data"]["per_outlet"]) == 2

    def test_report_endpoint_rejects_open_custom_range(self, admin_client):
        response = admin_client.get("/api/reports/", {"date_range": "custom"})

        assert response.status_code == 400

    def test_report_endpoint_rejects_overlong_custom_range(self, admin_client):
        response = admin_client.get(
            "/api/reports/",
            {"date_range": "custom", "start": "2020-01-01", "end": "2024-12-31"},
        )

        assert response.status_code == 400
