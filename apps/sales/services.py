"""
Point-of-sale cart and settlement.

Every cart operation re-reads the day's ledgers for the cashier's outlet and
gates the change on the reconciled on-ground figure:

- a terminal whose outlet has no distribution rows today is locked
- a stock-tracked item can be added while on-ground minus in-cart is positive
- settlement re-validates every tracked line, then writes the transaction
  and its lines in one database transaction
"""

import logging
from decimal import Decimal

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from apps.core import roles
from apps.core.exceptions import CartStateError, OutOfStock, SettlementError, TerminalLocked
from apps.inventory.models import MenuItem
from apps.inventory.reconciliation import ZERO
from apps.inventory.snapshot import load_ledger, local_today, quantity_value

from .models import Cart, SaleLineItem, SaleTransaction

logger = logging.getLogger(__name__)

LOCKED_MESSAGE = "Terminal locked. No stock has been distributed to this outlet today."


def _low_stock_threshold():
    return Decimal(str(getattr(settings, "STOCK_LOW_THRESHOLD", 10)))


def unit_price(item, ledger):
    """Day's master price for tracked items that have one, else the menu price."""
    if item.requires_daily_stock:
        master = ledger.master_row(item.id)
        if master is not None and master.daily_price is not None:
            return master.daily_price
    return item.price


def get_cart(context, for_update=False):
    """The cashier's cart at their outlet, created idle on first use."""
    context.require(roles.USE_POS)
    outlet = context.require_outlet()
    queryset = Cart.objects.select_for_update() if for_update else Cart.objects
    cart, _ = queryset.get_or_create(outlet=outlet, cashier=context.user)
    return cart


def _get_item(context, item):
    if not isinstance(item, MenuItem):
        item = MenuItem.objects.filter(organization=context.organization, id=item).first()
    if item is None or item.organization_id != context.organization_id:
        raise ValidationError({"item": "Menu item not found."})
    if not item.is_active:
        raise ValidationError({"item": f"{item.name} is not available."})
    return item


def add_to_cart(context, item, day=None):
    """
    Add one unit of ``item`` to the cashier's cart.

    Raises:
        TerminalLocked: the outlet has no distribution rows for the day
        OutOfStock: no on-ground quantity is left beyond what the cart holds
        CartStateError: a settlement is in progress
    """
    context.require(roles.USE_POS)
    outlet = context.require_outlet()
    item = _get_item(context, item)
    ledger = load_ledger(context.organization, day or local_today())

    if ledger.is_outlet_locked(outlet.id):
        raise TerminalLocked(LOCKED_MESSAGE, outlet_id=str(outlet.id))

    with transaction.atomic():
        cart = get_cart(context, for_update=True)
        if cart.state == Cart.SETTLING:
            raise CartStateError("A settlement is already in progress.")

        if item.requires_daily_stock:
            on_ground = ledger.live(item.id, outlet.id)
            if on_ground - cart.quantity_of(item.id) <= ZERO:
                raise OutOfStock(
                    f"{item.name} is out of stock.",
                    item_id=str(item.id),
                    on_ground=str(on_ground),
                )

        cart.add(item)
        cart.save()

    return cart


def remove_from_cart(context, item):
    """Remove one unit of ``item``; the line disappears when it reaches zero."""
    item = _get_item(context, item)
    with transaction.atomic():
        cart = get_cart(context, for_update=True)
        if cart.state != Cart.BUILDING or not cart.lines.filter(item=item).exists():
            raise CartStateError(f"{item.name} is not in the cart.")
        cart.remove(item)
        cart.save()
    return cart


def clear_cart(context):
    with transaction.atomic():
        cart = get_cart(context, for_update=True)
        if cart.state == Cart.SETTLING:
            raise CartStateError("A settlement is already in progress.")
        cart.clear()
        cart.save()
    return cart


def _validate_lines(lines, ledger, outlet):
    for line in lines:
        if not line.item.requires_daily_stock:
            continue
        on_ground = ledger.live(line.item_id, outlet.id)
        if line.quantity > on_ground:
            raise OutOfStock(
                f"Only {quantity_value(on_ground)} {line.item.name} left on ground.",
                item_id=str(line.item_id),
                on_ground=str(on_ground),
                requested=str(line.quantity),
            )


def _write_sale(context, outlet, lines, ledger, payment_method):
    now = timezone.now()
    priced = [(line, unit_price(line.item, ledger)) for line in lines]
    total = sum((price * line.quantity for line, price in priced), Decimal("0.00"))

    sale = SaleTransaction.objects.create(
        organization=context.organization,
        outlet=outlet,
        total_amount=total.quantize(Decimal("0.01")),
        payment_method=payment_method,
        is_paid=True,
        paid_at=now,
        created_by=context.user,
        created_at=now,
    )
    for line, price in priced:
        SaleLineItem.objects.create(
            transaction=sale,
            item=line.item,
            quantity=line.quantity,
            unit_price=price,
        )
    return sale


def _announce_low_stock(context, outlet, lines, ledger):
    from apps.notifications.broadcast import publish_stock_low

    threshold = _low_stock_threshold()
    organization_id = context.organization_id
    for line in lines:
        if not line.item.requires_daily_stock:
            continue
        remaining = ledger.live(line.item_id, outlet.id) - line.quantity
        remaining = remaining if remaining > ZERO else ZERO
        if remaining <= threshold:
            transaction.on_commit(
                lambda item=line.item, remaining=remaining: publish_stock_low(
                    organization_id, outlet.id, item.id, item.name, remaining
                )
            )


def settle_cart(context, payment_method, day=None):
    """
    Turn the cart into a SaleTransaction.

    Args:
        context: OperatorContext of the cashier
        payment_method: one of SaleTransaction.PAYMENT_METHOD_CHOICES
        day: business day the ledgers are read for, defaults to today

    Returns:
        The created SaleTransaction. The cart is emptied and idle again.

    Raises:
        OutOfStock: a tracked line exceeds the fresh on-ground figure;
            nothing is written and the cart keeps building
        SettlementError: the database failed the write; the cart keeps its
            lines and returns to building so the cashier can retry
    """
    context.require(roles.USE_POS)
    outlet = context.require_outlet()

    payment_method = (payment_method or "").strip().lower()
    if payment_method not in dict(SaleTransaction.PAYMENT_METHOD_CHOICES):
        raise ValidationError({"payment_method": f"Unknown payment method '{payment_method}'."})

    with transaction.atomic():
        cart = get_cart(context, for_update=True)
        lines = list(cart.lines.select_related("item"))
        if cart.state != Cart.BUILDING or not lines:
            raise CartStateError("Cart is empty.")

        ledger = load_ledger(context.organization, day or local_today())
        if ledger.is_outlet_locked(outlet.id):
            raise TerminalLocked(LOCKED_MESSAGE, outlet_id=str(outlet.id))
        _validate_lines(lines, ledger, outlet)

        cart.begin_settlement()
        cart.save()

    try:
        with transaction.atomic():
            sale = _write_sale(context, outlet, lines, ledger, payment_method)
            cart.succeed()
            cart.save()
            _announce_low_stock(context, outlet, lines, ledger)
    except DatabaseError:
        logger.error(
            "Settlement failed",
            extra={"cart_id": str(cart.id), "outlet_id": str(outlet.id)},
            exc_info=True,
        )
        # Lines were restored by the rollback; reload to get the settling state back.
        cart = Cart.objects.get(pk=cart.pk)
        cart.fail("Failed to save the sale. Please retry.")
        cart.save()
        raise SettlementError("Failed to save the sale. Please retry.", cart_id=str(cart.id))

    logger.info(
        "Sale settled",
        extra={
            "transaction_id": str(sale.id),
            "outlet_id": str(outlet.id),
            "total": str(sale.total_amount),
            "payment_method": payment_method,
        },
    )
    return sale


def terminal_status(context, day=None):
    """
    Everything the POS screen needs: lock flag, cart and sellable items.

    ``on_ground`` is None for continuous-supply items.
    """
    outlet = context.require_outlet()
    cart = get_cart(context)
    day = day or local_today()
    ledger = load_ledger(context.organization, day)

    lines = []
    total = Decimal("0.00")
    for line in cart.lines.select_related("item"):
        price = unit_price(line.item, ledger)
        subtotal = (price * line.quantity).quantize(Decimal("0.01"))
        total += subtotal
        lines.append(
            {
                "item_id": str(line.item_id),
                "name": line.item.name,
                "quantity": line.quantity,
                "unit_price": price,
                "subtotal": subtotal,
            }
        )

    items = []
    for item in MenuItem.objects.filter(organization=context.organization, is_active=True).order_by(
        "category", "name"
    ):
        on_ground = ledger.live(item.id, outlet.id)
        items.append(
            {
                "id": str(item.id),
                "name": item.name,
                "name_local": item.name_local,
                "category": item.category,
                "unit": item.unit,
                "price": unit_price(item, ledger),
                "requires_daily_stock": item.requires_daily_stock,
                "on_ground": quantity_value(on_ground),
                "available": on_ground - cart.quantity_of(item.id) > ZERO,
            }
        )

    return {
        "date": day.isoformat(),
        "outlet": {"id": str(outlet.id), "name": outlet.name},
        "locked": ledger.is_outlet_locked(outlet.id),
        "cart": {
            "state": cart.state,
            "last_error": cart.last_error,
            "lines": lines,
            "total": total,
            "item_count": sum((line["quantity"] for line in lines), Decimal("0")),
        },
        "items": items,
    }
