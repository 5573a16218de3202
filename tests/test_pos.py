"""
Tests for the POS cart, settlement and terminal status.
"""

from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.db import DatabaseError
from django.utils import timezone

import pytest
from rest_framework.exceptions import PermissionDenied, ValidationError

from apps.core.exceptions import CartStateError, OutOfStock, SettlementError, TerminalLocked
from apps.inventory.services import distribute_stock
from apps.inventory.snapshot import load_ledger
from apps.notifications.broadcast import STOCK_LOW, events_since
from apps.notifications.models import Notification
from apps.sales import services
from apps.sales.models import Cart, SaleLineItem, SaleTransaction
from apps.sales.tasks import recover_stale_settlements


def add_times(context, item, count):
    for _ in range(count):
        services.add_to_cart(context, item)


def cart_lines(context):
    cart = Cart.objects.get(outlet=context.outlet, cashier=context.user)
    return cart, {line.item_id: line.quantity for line in cart.lines.all()}


@pytest.mark.django_db
class TestCart:
    def test_terminal_without_distribution_is_locked(self, manager_context, chicken, tea):
        with pytest.raises(TerminalLocked):
            services.add_to_cart(manager_context, chicken)
        with pytest.raises(TerminalLocked):
            services.add_to_cart(manager_context, tea)

    def test_lock_is_per_outlet(self, manager_context, second_outlet, chicken, stock_outlet):
        stock_outlet(chicken, second_outlet, master=10, sent=5)

        with pytest.raises(TerminalLocked):
            services.add_to_cart(manager_context, chicken)

    def test_first_add_starts_building(self, manager_context, outlet, chicken, stock_outlet):
        stock_outlet(chicken, outlet, master=10, sent=5)

        services.add_to_cart(manager_context, chicken)
        services.add_to_cart(manager_context, chicken)

        cart, lines = cart_lines(manager_context)
        assert cart.state == Cart.BUILDING
        assert lines == {chicken.id: Decimal("2")}

    def test_add_blocks_when_cart_holds_all_on_ground(self, manager_context, outlet, chicken, stock_outlet):
        stock_outlet(chicken, outlet, master=10, sent=2)
        add_times(manager_context, chicken, 2)

        with pytest.raises(OutOfStock):
            services.add_to_cart(manager_context, chicken)

        _, lines = cart_lines(manager_context)
        assert lines[chicken.id] == Decimal("2")

    def test_item_without_master_or_distribution_is_out_of_stock(
        self, manager_context, outlet, chicken, prawn, stock_outlet
    ):
        stock_outlet(chicken, outlet, master=10, sent=2)

        with pytest.raises(OutOfStock):
            services.add_to_cart(manager_context, prawn)

    def test_continuous_supply_is_never_blocked(self, manager_context, outlet, chicken, tea, stock_outlet):
        stock_outlet(chicken, outlet, master=10, sent=1)

        add_times(manager_context, tea, 50)

        _, lines = cart_lines(manager_context)
        assert lines[tea.id] == Decimal("50")

    def test_remove_decrements_then_drops_line(self, manager_context, outlet, chicken, tea, stock_outlet):
        stock_outlet(chicken, outlet, master=10, sent=5)
        add_times(manager_context, chicken, 2)
        services.add_to_cart(manager_context, tea)

        services.remove_from_cart(manager_context, chicken)
        _, lines = cart_lines(manager_context)
        assert lines == {chicken.id: Decimal("1"), tea.id: Decimal("1")}

        services.remove_from_cart(manager_context, chicken)
        cart, lines = cart_lines(manager_context)
        assert lines == {tea.id: Decimal("1")}
        assert cart.state == Cart.BUILDING

        services.remove_from_cart(manager_context, tea)
        cart, lines = cart_lines(manager_context)
        assert lines == {}
        assert cart.state == Cart.IDLE

    def test_remove_item_not_in_cart(self, manager_context, outlet, chicken, tea, stock_outlet):
        stock_outlet(chicken, outlet, master=10, sent=5)
        services.add_to_cart(manager_context, chicken)

        with pytest.raises(CartStateError):
            services.remove_from_cart(manager_context, tea)

    def test_clear_empties_cart(self, manager_context, outlet, chicken, stock_outlet):
        stock_outlet(chicken, outlet, master=10, sent=5)
        add_times(manager_context, chicken, 3)

        services.clear_cart(manager_context)

        cart, lines = cart_lines(manager_context)
        assert lines == {}
        assert cart.state == Cart.IDLE

    def test_inactive_item_cannot_be_added(self, manager_context, outlet, chicken, tea, stock_outlet):
        stock_outlet(chicken, outlet, master=10, sent=5)
        tea.is_active = False
        tea.save()

        with pytest.raises(ValidationError):
            services.add_to_cart(manager_context, tea)

    def test_staff_cannot_use_pos(self, staff_user, outlet, chicken, stock_outlet):
        from apps.core.context import OperatorContext

        stock_outlet(chicken, outlet, master=10, sent=5)

        with pytest.raises(PermissionDenied):
            services.add_to_cart(OperatorContext.from_user(staff_user), chicken)

    def test_carts_are_per_cashier(
        self, manager_context, organization, outlet, chicken, stock_outlet, django_user_model
    ):
        from apps.core.context import OperatorContext

        stock_outlet(chicken, outlet, master=10, sent=3)
        colleague = django_user_model.objects.create_user(
            username="anil@salt.internal",
            password="testpass123",
            organization=organization,
            outlet=outlet,
            role="manager",
        )
        other = OperatorContext.from_user(colleague)

        add_times(manager_context, chicken, 2)
        services.add_to_cart(other, chicken)

        # Neither cart has settled, so both still see three on ground
        assert cart_lines(manager_context)[1] == {chicken.id: Decimal("2")}
        assert cart_lines(other)[1] == {chicken.id: Decimal("1")}


@pytest.mark.django_db
class TestSettlement:
    def test_settlement_records_sale_and_reduces_on_ground(
        self, manager_context, organization, outlet, prawn, stock_outlet, today
    ):
        stock_outlet(prawn, outlet, master=100, sent=40, price=Decimal("500"))
        add_times(manager_context, prawn, 15)

        sale = services.settle_cart(manager_context, "cash")

        assert sale.total_amount == Decimal("7500.00")
        assert sale.payment_method == SaleTransaction.CASH
        assert sale.is_paid is True
        assert sale.paid_at is not None
        (line,) = sale.items.all()
        assert line.quantity == Decimal("15")
        assert line.unit_price == Decimal("500.00")
        assert line.subtotal == Decimal("7500.00")

        ledger = load_ledger(organization, today)
        assert ledger.sold(prawn.id, outlet.id) == Decimal("15")
        assert ledger.live(prawn.id, outlet.id) == Decimal("25")

        cart, lines = cart_lines(manager_context)
        assert cart.state == Cart.IDLE
        assert lines == {}

    def test_second_sale_is_blocked_unit_by_unit(self, manager_context, outlet, prawn, stock_outlet):
        stock_outlet(prawn, outlet, master=100, sent=40)
        add_times(manager_context, prawn, 15)
        services.settle_cart(manager_context, "card")

        add_times(manager_context, prawn, 25)
        with pytest.raises(OutOfStock):
            services.add_to_cart(manager_context, prawn)

        _, lines = cart_lines(manager_context)
        assert lines[prawn.id] == Decimal("25")

    def test_unit_price_falls_back_to_menu_price(self, manager_context, outlet, chicken, tea, stock_outlet):
        stock_outlet(chicken, outlet, master=10, sent=5)
        add_times(manager_context, chicken, 2)
        add_times(manager_context, tea, 3)

        sale = services.settle_cart(manager_context, "upi")

        prices = {line.item_id: line.unit_price for line in sale.items.all()}
        assert prices == {chicken.id: Decimal("180.00"), tea.id: Decimal("20.00")}
        assert sale.total_amount == Decimal("420.00")

    def test_payment_method_is_case_insensitive(self, manager_context, outlet, chicken, stock_outlet):
        stock_outlet(chicken, outlet, master=10, sent=5)
        services.add_to_cart(manager_context, chicken)

        sale = services.settle_cart(manager_context, " UPI ")

        assert sale.payment_method == "upi"

    def test_unknown_payment_method_is_rejected(self, manager_context, outlet, chicken, stock_outlet):
        stock_outlet(chicken, outlet, master=10, sent=5)
        services.add_to_cart(manager_context, chicken)

        with pytest.raises(ValidationError):
            services.settle_cart(manager_context, "cheque")

        assert not SaleTransaction.objects.exists()

    def test_empty_cart_cannot_settle(self, manager_context, outlet, chicken, stock_outlet):
        stock_outlet(chicken, outlet, master=10, sent=5)

        with pytest.raises(CartStateError):
            services.settle_cart(manager_context, "cash")

    def test_settlement_revalidates_on_ground(
        self, manager_context, admin_context, outlet, chicken, stock_outlet, today
    ):
        stock_outlet(chicken, outlet, master=10, sent=3)
        add_times(manager_context, chicken, 3)
        distribute_stock(admin_context, outlet, {chicken.id: Decimal("-2")}, day=today)

        with pytest.raises(OutOfStock):
            services.settle_cart(manager_context, "cash")

        cart, lines = cart_lines(manager_context)
        assert cart.state == Cart.BUILDING
        assert lines == {chicken.id: Decimal("3")}
        assert not SaleTransaction.objects.exists()

    def test_write_failure_keeps_cart(self, manager_context, outlet, chicken, tea, stock_outlet):
        stock_outlet(chicken, outlet, master=10, sent=5)
        add_times(manager_context, chicken, 2)
        services.add_to_cart(manager_context, tea)

        with mock.patch.object(
            SaleTransaction.objects, "create", side_effect=DatabaseError("connection reset")
        ):
            with pytest.raises(SettlementError):
                services.settle_cart(manager_context, "cash")

        cart, lines = cart_lines(manager_context)
        assert cart.state == Cart.BUILDING
        assert cart.last_error == "Failed to save the sale. Please retry."
        assert lines == {chicken.id: Decimal("2"), tea.id: Decimal("1")}
        assert not SaleTransaction.objects.exists()
        assert not SaleLineItem.objects.exists()

        # Retry succeeds once the database is back
        sale = services.settle_cart(manager_context, "cash")
        assert sale.total_amount == Decimal("380.00")
        assert Cart.objects.get(pk=cart.pk).last_error == ""

    def test_low_stock_after_sale_is_broadcast(
        self,
        manager_context,
        admin_user,
        manager_user,
        organization,
        outlet,
        chicken,
        stock_outlet,
        django_capture_on_commit_callbacks,
    ):
        stock_outlet(chicken, outlet, master=20, sent=12)
        add_times(manager_context, chicken, 3)

        with django_capture_on_commit_callbacks(execute=True):
            services.settle_cart(manager_context, "cash")

        events, _ = events_since(organization.id)
        low = [event for event in events if event["type"] == STOCK_LOW]
        assert len(low) == 1
        assert low[0]["payload"]["item_id"] == str(chicken.id)
        assert Decimal(low[0]["payload"]["on_ground"]) == Decimal("9")

        notified = set(
            Notification.objects.filter(notification_type=Notification.LOW_STOCK).values_list(
                "user_id", flat=True
            )
        )
        assert notified == {admin_user.id, manager_user.id}

    def test_no_low_stock_event_above_threshold(
        self, manager_context, organization, outlet, chicken, stock_outlet, django_capture_on_commit_callbacks
    ):
        stock_outlet(chicken, outlet, master=40, sent=40)
        services.add_to_cart(manager_context, chicken)

        with django_capture_on_commit_callbacks(execute=True):
            services.settle_cart(manager_context, "cash")

        events, _ = events_since(organization.id)
        assert STOCK_LOW not in [event["type"] for event in events]
        assert not Notification.objects.exists()

    def test_sale_lines_are_immutable(self, manager_context, outlet, chicken, stock_outlet):
        stock_outlet(chicken, outlet, master=10, sent=5)
        services.add_to_cart(manager_context, chicken)
        sale = services.settle_cart(manager_context, "cash")

        line = sale.items.get()
        line.quantity = Decimal("4")
        with pytest.raises(ValueError):
            line.save()


@pytest.mark.django_db
class TestStaleSettlements:
    def test_stuck_cart_is_returned_to_building(self, manager_context, outlet, chicken, stock_outlet):
        stock_outlet(chicken, outlet, master=10, sent=5)
        services.add_to_cart(manager_context, chicken)
        cart, _ = cart_lines(manager_context)
        cart.begin_settlement()
        cart.save()
        Cart.objects.filter(pk=cart.pk).update(updated_at=timezone.now() - timedelta(minutes=30))

        recovered = recover_stale_settlements.delay().get()

        cart, lines = cart_lines(manager_context)
        assert recovered == 1
        assert cart.state == Cart.BUILDING
        assert cart.last_error == "Settlement was interrupted. Please retry."
        assert lines == {chicken.id: Decimal("1")}

    def test_recent_settlement_is_left_alone(self, manager_context, outlet, chicken, stock_outlet):
        stock_outlet(chicken, outlet, master=10, sent=5)
        services.add_to_cart(manager_context, chicken)
        cart, _ = cart_lines(manager_context)
        cart.begin_settlement()
        cart.save()

        assert recover_stale_settlements() == 0
        assert Cart.objects.get(pk=cart.pk).state == Cart.SETTLING

    def test_settling_cart_rejects_adds(self, manager_context, outlet, chicken, stock_outlet):
        stock_outlet(chicken, outlet, master=10, sent=5)
        services.add_to_cart(manager_context, chicken)
        cart, _ = cart_lines(manager_context)
        cart.begin_settlement()
        cart.save()

        with pytest.raises(CartStateError):
            services.add_to_cart(manager_context, chicken)


@pytest.mark.django_db
class TestTerminalStatus:
    def test_locked_terminal(self, manager_context, chicken):
        status = services.terminal_status(manager_context)

        assert status["locked"] is True
        assert status["outlet"]["name"] == "Main Branch"
        assert status["cart"]["state"] == Cart.IDLE

    def test_on_ground_and_availability(self, manager_context, outlet, chicken, prawn, tea, stock_outlet):
        stock_outlet(chicken, outlet, master=10, sent=2, price=Decimal("200"))
        add_times(manager_context, chicken, 2)
        services.add_to_cart(manager_context, tea)

        status = services.terminal_status(manager_context)

        items = {item["name"]: item for item in status["items"]}
        assert status["locked"] is False
        assert items["Chicken Curry"]["on_ground"] == Decimal("2")
        assert items["Chicken Curry"]["available"] is False
        assert items["Chicken Curry"]["price"] == Decimal("200.00")
        assert items["Prawn Fry"]["on_ground"] == Decimal("0")
        assert items["Masala Tea"]["on_ground"] is None
        assert items["Masala Tea"]["available"] is True
        assert status["cart"]["total"] == Decimal("420.00")
        assert status["cart"]["item_count"] == Decimal("3")


@pytest.mark.django_db
class TestPosAPI:
    def test_add_to_locked_terminal_returns_conflict(self, manager_client, chicken):
        response = manager_client.post("/api/pos/cart/add/", {"item": str(chicken.id)}, format="json")

        assert response.status_code == 409
        assert response.json()["code"] == "terminal_locked"

    def test_out_of_stock_returns_bad_request(self, manager_client, outlet, chicken, stock_outlet):
        stock_outlet(chicken, outlet, master=10, sent=1)
        manager_client.post("/api/pos/cart/add/", {"item": str(chicken.id)}, format="json")

        response = manager_client.post("/api/pos/cart/add/", {"item": str(chicken.id)}, format="json")

        assert response.status_code == 400
        assert response.json()["code"] == "out_of_stock"

    def test_add_and_settle(self, manager_client, outlet, chicken, stock_outlet):
        stock_outlet(chicken, outlet, master=10, sent=5)

        response = manager_client.post("/api/pos/cart/add/", {"item": str(chicken.id)}, format="json")
        assert response.status_code == 200
        assert response.json()["state"] == Cart.BUILDING

        response = manager_client.post(
            "/api/pos/cart/settle/", {"payment_method": "Cash"}, format="json"
        )
        assert response.status_code == 201
        body = response.json()
        assert body["payment_method"] == "cash"
        assert body["total_amount"] == "180.00"
        assert body["items"][0]["item_name"] == "Chicken Curry"

    def test_settlement_failure_returns_service_unavailable(
        self, manager_client, outlet, chicken, stock_outlet
    ):
        stock_outlet(chicken, outlet, master=10, sent=5)
        manager_client.post("/api/pos/cart/add/", {"item": str(chicken.id)}, format="json")

        with mock.patch.object(SaleTransaction.objects, "create", side_effect=DatabaseError("boom")):
            response = manager_client.post(
                "/api/pos/cart/settle/", {"payment_method": "card"}, format="json"
            )

        assert response.status_code == 503
        assert response.json()["code"] == "settlement_failed"

        status = manager_client.get("/api/pos/terminal/").json()
        assert status["cart"]["state"] == Cart.BUILDING
        assert len(status["cart"]["lines"]) == 1

    def test_staff_cannot_reach_terminal(self, staff_client):
        response = staff_client.get("/api/pos/terminal/")

        assert response.status_code == 403

    def test_admin_without_outlet_cannot_sell(self, admin_client):
        response = admin_client.get("/api/pos/terminal/")

        assert response.status_code == 403


@pytest.mark.django_db
class TestTransactionHistory:
    @pytest.fixture
    def sales(
        self,
        admin_context,
        manager_context,
        second_manager_context,
        outlet,
        second_outlet,
        chicken,
        stock_outlet,
        today,
    ):
        stock_outlet(chicken, outlet, master=20, sent=10)
        distribute_stock(admin_context, second_outlet, {chicken.id: Decimal("5")}, day=today)

        add_times(manager_context, chicken, 2)
        cash = services.settle_cart(manager_context, "cash")
        add_times(manager_context, chicken, 1)
        upi = services.settle_cart(manager_context, "upi")
        add_times(second_manager_context, chicken, 1)
        card = services.settle_cart(second_manager_context, "card")
        return {"cash": cash, "upi": upi, "card": card}

    def test_admin_sees_every_outlet(self, admin_client, sales):
        body = admin_client.get("/api/transactions/").json()

        assert body["count"] == 3
        assert {row["payment_method"] for row in body["results"]} == {"cash", "upi", "card"}

    def test_manager_sees_own_outlet(self, manager_client, sales):
        body = manager_client.get("/api/transactions/", {"outlet": "all"}).json()

        assert {row["id"] for row in body["results"]} == {str(sales["cash"].id), str(sales["upi"].id)}
        assert {row["outlet_name"] for row in body["results"]} == {"Main Branch"}

    def test_filter_and_sort(self, admin_client, sales):
        body = admin_client.get("/api/transactions/", {"payment_method": "UPI"}).json()
        assert [row["id"] for row in body["results"]] == [str(sales["upi"].id)]

        body = admin_client.get("/api/transactions/", {"sort": "total_amount", "order": "asc"}).json()
        assert [row["total_amount"] for row in body["results"]][-1] == "360.00"

    def test_detail_lists_line_items(self, manager_client, sales):
        response = manager_client.get(f"/api/transactions/{sales['cash'].id}/")

        assert response.status_code == 200
        body = response.json()
        assert body["cashier_name"] == "Ravi Manager"
        assert [(row["item_name"], row["quantity"], row["subtotal"]) for row in body["items"]] == [
            ("Chicken Curry", "2.00", "360.00")
        ]

    def test_manager_cannot_open_other_outlet_sale(self, manager_client, sales):
        response = manager_client.get(f"/api/transactions/{sales['card'].id}/")

        assert response.status_code == 404

    def test_staff_cannot_list(self, staff_client):
        response = staff_client.get("/api/transactions/")

        assert response.status_code == 403

    @pytest.mark.parametrize(
        "params", [{"outlet": "abc"}, {"sort": "cashier"}, {"order": "sideways"}]
    )
    def test_malformed_filters_are_rejected(self, admin_client, params):
        response = admin_client.get("/api/transactions/", params)

        assert response.status_code == 400

    def test_outlet_filter(self, admin_client, second_outlet, sales):
        body = admin_client.get("/api/transactions/", {"outlet": str(second_outlet.id)}).json()

        assert [row["id"] for row in body["results"]] == [str(sales["card"].id)]
