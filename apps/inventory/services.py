"""
Stock write paths.

- Master stock: absolute per-day totals, upserted or deleted
- Distribution: signed deltas appended to the outlet ledger

Each item is validated and written on its own; one rejected item never
blocks the rest of the batch.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List

from django.db import DatabaseError, transaction

from apps.core import roles
from apps.core.exceptions import StockValidationError

from .models import DistributionEntry, MasterStockEntry, MenuItem
from .reconciliation import ZERO, DistributionRow, ItemFact, MasterRow, StockLedger
from .snapshot import local_today

logger = logging.getLogger(__name__)


def format_quantity(value):
    """Render 30.00 as "30" and 2.50 as "2.5"."""
    value = Decimal(value)
    if value == value.to_integral():
        return f"{value.quantize(Decimal('1')):f}"
    return f"{value.normalize():f}"


def over_allocation_message(max_adjustment):
    return f"Not enough master stock! Max adjustment: {format_quantity(max_adjustment)}"


NO_MASTER_MESSAGE = "No master stock is set for this item and day."


@dataclass
class DistributionResult:
    written: List[DistributionEntry] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)
    failures: Dict[str, str] = field(default_factory=dict)


@dataclass
class MasterStockResult:
    saved: List[MasterStockEntry] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)
    failures: Dict[str, str] = field(default_factory=dict)


def _menu_items(context, item_ids):
    items = MenuItem.objects.filter(
        organization=context.organization, id__in=[str(item_id) for item_id in item_ids]
    )
    return {str(item.id): item for item in items}


def item_ledger(organization, item, day, master=None):
    """
    Ledger restricted to one item's master and distribution rows.

    Sales do not affect the master pool, so they are left out.
    """
    distributions = DistributionEntry.objects.filter(
        organization=organization, item=item, stock_date=day
    ).values("outlet_id", "quantity")
    return StockLedger(
        items=[ItemFact(item_id=item.id, requires_daily_stock=item.requires_daily_stock)],
        masters=(
            [MasterRow(item_id=item.id, total_quantity=master.total_quantity)] if master else []
        ),
        distributions=[
            DistributionRow(outlet_id=row["outlet_id"], item_id=item.id, quantity=row["quantity"])
            for row in distributions
        ],
    )


def _append_distribution(context, outlet, item, day, delta):
    """
    Validate one item against the master pool and append its row.

    The master row is locked while validating so two admins distributing
    the same item serialize on it.
    """
    with transaction.atomic():
        master = (
            MasterStockEntry.objects.select_for_update()
            .filter(organization=context.organization, item=item, stock_date=day)
            .first()
        )
        ledger = item_ledger(context.organization, item, day, master)
        if ledger.is_tracked(item.id) and not ledger.has_master(item.id):
            raise StockValidationError(NO_MASTER_MESSAGE, item_id=str(item.id))
        if not ledger.can_distribute(item.id, delta):
            max_adjustment = ledger.max_adjustment(item.id)
            raise StockValidationError(
                over_allocation_message(max_adjustment),
                item_id=str(item.id),
                max_adjustment=format_quantity(max_adjustment),
            )

        return DistributionEntry.objects.create(
            organization=context.organization,
            outlet=outlet,
            item=item,
            stock_date=day,
            quantity=delta,
            unit=(master.unit if master else "") or item.unit,
            created_by=context.user,
        )


def distribute_stock(context, outlet, deltas, day=None):
    """
    Append signed stock adjustments for one outlet.

    Args:
        context: OperatorContext of the admin
        outlet: Outlet receiving the stock
        deltas: mapping of item id -> signed adjustment
        day: business day, defaults to today

    Returns:
        DistributionResult with written rows, skipped zero deltas, rejected
        items (errors) and items the database failed to store (failures).
    """
    from apps.notifications.broadcast import publish_stock_available

    context.require(roles.MANAGE_STOCK)
    if outlet.organization_id != context.organization_id:
        raise StockValidationError("Outlet belongs to another organization.")

    day = day or local_today()
    items = _menu_items(context, deltas.keys())
    result = DistributionResult()

    for raw_item_id, delta in deltas.items():
        item_id = str(raw_item_id)
        delta = Decimal(delta)
        if delta == ZERO:
            result.skipped.append(item_id)
            continue

        item = items.get(item_id)
        if item is None:
            result.errors[item_id] = "Menu item not found."
            continue

        try:
            entry = _append_distribution(context, outlet, item, day, delta)
        except StockValidationError as exc:
            logger.info(
                "Distribution rejected",
                extra={"item_id": item_id, "outlet_id": str(outlet.id), "delta": str(delta)},
            )
            result.errors[item_id] = exc.message
            continue
        except DatabaseError:
            logger.error(
                "Failed to write distribution",
                extra={"item_id": item_id, "outlet_id": str(outlet.id)},
                exc_info=True,
            )
            result.failures[item_id] = "Failed to save distribution. Please retry."
            continue

        result.written.append(entry)

    if result.written:
        logger.info(
            "Stock distributed",
            extra={
                "outlet_id": str(outlet.id),
                "day": day.isoformat(),
                "rows": len(result.written),
            },
        )
        organization_id = context.organization_id
        outlet_id = outlet.id
        transaction.on_commit(lambda: publish_stock_available(organization_id, outlet_id))

    return result


def _resolve_daily_price(item, price):
    if price is not None:
        return Decimal(price)
    if item.base_price is not None:
        return item.base_price
    return Decimal("0.00")


def save_master_stock(context, entries, day=None):
    """
    Set absolute master totals for a day.

    Args:
        context: OperatorContext of the admin
        entries: mapping of item id -> (quantity, daily_price or None)
        day: business day, defaults to today

    A positive quantity upserts the (organization, item, day) row; zero
    deletes it; negative quantities are rejected.
    """
    context.require(roles.MANAGE_STOCK)

    day = day or local_today()
    items = _menu_items(context, entries.keys())
    result = MasterStockResult()

    for raw_item_id, (quantity, price) in entries.items():
        item_id = str(raw_item_id)
        quantity = Decimal(quantity)
        item = items.get(item_id)

        if item is None:
            result.errors[item_id] = "Menu item not found."
            continue
        if not item.requires_daily_stock:
            result.errors[item_id] = f"{item.name} is continuous supply and has no master stock."
            continue
        if quantity < ZERO:
            result.errors[item_id] = "Quantity cannot be negative."
            continue

        entry = None
        try:
            with transaction.atomic():
                if quantity == ZERO:
                    MasterStockEntry.objects.filter(
                        organization=context.organization, item=item, stock_date=day
                    ).delete()
                else:
                    entry, _ = MasterStockEntry.objects.update_or_create(
                        organization=context.organization,
                        item=item,
                        stock_date=day,
                        defaults={
                            "total_quantity": quantity,
                            "daily_price": _resolve_daily_price(item, price),
                            "unit": item.unit,
                            "created_by": context.user,
                        },
                    )
        except DatabaseError:
            logger.error("Failed to save master stock", extra={"item_id": item_id}, exc_info=True)
            result.failures[item_id] = "Failed to save master stock. Please retry."
            continue

        if entry is None:
            result.deleted.append(item_id)
            continue

        ledger = item_ledger(context.organization, item, day, entry)
        if ledger.max_adjustment(item.id) < ZERO:
            logger.warning(
                "Master total below distributed quantity",
                extra={"item_id": item_id, "day": day.isoformat()},
            )
        result.saved.append(entry)

    logger.info(
        "Master stock saved",
        extra={"day": day.isoformat(), "saved": len(result.saved), "deleted": len(result.deleted)},
    )
    return result
