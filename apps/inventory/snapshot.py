"""
Loading the day's ledgers from the database into a StockLedger.

Every screen re-derives its numbers from a fresh snapshot; a read failure
is logged and produces an empty ledger instead of an error.
"""

import logging
from datetime import datetime, time, timedelta

from django.conf import settings
from django.core.cache import cache
from django.db import DatabaseError
from django.db.models import Q
from django.utils import timezone

from apps.core.cache_utils import get_org_cache_key

from .models import DistributionEntry, MasterStockEntry, MenuItem
from .reconciliation import (
    DayWindow,
    DistributionRow,
    ItemFact,
    MasterRow,
    SaleRow,
    StockLedger,
)

logger = logging.getLogger(__name__)

MASTER_MODE = "master"
DISTRIBUTION_MODE = "distribution"
MODES = (MASTER_MODE, DISTRIBUTION_MODE)


def local_today():
    return timezone.localdate()


def day_window(day):
    """Local midnight to next local midnight, as aware datetimes."""
    tz = timezone.get_current_timezone()
    start = timezone.make_aware(datetime.combine(day, time.min), tz)
    end = timezone.make_aware(datetime.combine(day + timedelta(days=1), time.min), tz)
    return DayWindow(start=start, end=end)


def load_ledger(organization, day=None):
    """
    Fetch menu items, master rows, distributions and sales for one day.

    Returns an empty ledger when the database cannot be read.
    """
    from apps.sales.models import SaleLineItem

    day = day or local_today()
    window = day_window(day)
    org_id = getattr(organization, "id", organization)

    try:
        items = [
            ItemFact(item_id=row["id"], requires_daily_stock=row["requires_daily_stock"])
            for row in MenuItem.objects.filter(organization_id=org_id).values(
                "id", "requires_daily_stock"
            )
        ]
        masters = [
            MasterRow(
                item_id=row["item_id"],
                total_quantity=row["total_quantity"],
                daily_price=row["daily_price"],
            )
            for row in MasterStockEntry.objects.filter(
                organization_id=org_id, stock_date=day
            ).values("item_id", "total_quantity", "daily_price")
        ]
        distributions = [
            DistributionRow(
                outlet_id=row["outlet_id"], item_id=row["item_id"], quantity=row["quantity"]
            )
            for row in DistributionEntry.objects.filter(
                organization_id=org_id, stock_date=day
            ).values("outlet_id", "item_id", "quantity")
        ]
        sales = [
            SaleRow(
                outlet_id=row["transaction__outlet_id"],
                item_id=row["item_id"],
                quantity=row["quantity"],
                created_at=row["transaction__created_at"],
            )
            for row in SaleLineItem.objects.filter(
                transaction__organization_id=org_id,
                transaction__created_at__gte=window.start,
                transaction__created_at__lt=window.end,
            ).values("transaction__outlet_id", "item_id", "quantity", "transaction__created_at")
        ]
    except DatabaseError:
        logger.error(
            "Failed to load stock ledgers",
            extra={"organization_id": str(org_id), "day": day.isoformat()},
            exc_info=True,
        )
        return StockLedger.empty(window=window)

    return StockLedger(
        items=items, masters=masters, distributions=distributions, sales=sales, window=window
    )


def quantity_value(value):
    """JSON-safe quantity: unlimited supply is reported as None."""
    if value is None or value.is_infinite():
        return None
    return value


def stock_items(organization, ledger, mode=DISTRIBUTION_MODE, search=None):
    """
    Menu items shown on the stock hub.

    Master mode lists stock-tracked items. Distribution mode lists items that
    have a master entry for the day plus every continuous-supply item.
    """
    queryset = MenuItem.objects.filter(organization=organization, is_active=True)
    if mode == MASTER_MODE:
        queryset = queryset.filter(requires_daily_stock=True)
    else:
        queryset = queryset.filter(
            Q(id__in=ledger.master_item_ids()) | Q(requires_daily_stock=False)
        )
    if search:
        queryset = queryset.filter(Q(name__icontains=search) | Q(category__icontains=search))
    return queryset.order_by("category", "name")


def _item_row(item, ledger, outlet_id=None):
    master = ledger.master_row(item.id)
    row = {
        "id": str(item.id),
        "name": item.name,
        "name_local": item.name_local,
        "category": item.category,
        "unit": item.unit,
        "base_price": item.base_price,
        "requires_daily_stock": item.requires_daily_stock,
        "master_quantity": master.total_quantity if master else None,
        "daily_price": master.daily_price if master else None,
        "distributed": ledger.distributed(item.id),
        "sold": ledger.sold(item.id),
        "live": quantity_value(ledger.live(item.id)),
        "remaining_in_master": ledger.remaining_in_master(item.id),
        "max_adjustment": ledger.max_adjustment(item.id),
    }
    if outlet_id is not None:
        row["outlet"] = {
            "distributed": ledger.distributed(item.id, outlet_id),
            "sold": ledger.sold(item.id, outlet_id),
            "live": quantity_value(ledger.live(item.id, outlet_id)),
            "remaining_for_outlet": ledger.remaining_for_outlet(item.id, outlet_id),
        }
    return row


def build_stock_overview(organization, day=None, mode=DISTRIBUTION_MODE, outlet_id=None, search=None):
    """Items, metrics and breakdown for the stock hub."""
    from apps.core.models import Outlet

    day = day or local_today()
    ledger = load_ledger(organization, day)
    items = list(stock_items(organization, ledger, mode=mode, search=search))
    names = {item.id: item.name for item in items}
    outlets = list(Outlet.objects.filter(organization=organization).values("id", "name"))
    outlet_names = {outlet["id"]: outlet["name"] for outlet in outlets}

    breakdown = []
    for entry in ledger.breakdown():
        breakdown.append(
            {
                "item_id": str(entry.item_id),
                "item_name": names.get(entry.item_id),
                "total_master": entry.total_master,
                "total_distributed": entry.total_distributed,
                "remaining_in_master": entry.remaining_in_master,
                "outlets": [
                    {
                        "outlet_id": str(share.outlet_id),
                        "outlet_name": outlet_names.get(share.outlet_id),
                        "distributed": share.distributed,
                        "sold": share.sold,
                        "live": quantity_value(share.live),
                    }
                    for share in entry.outlets
                ],
            }
        )

    return {
        "date": day.isoformat(),
        "mode": mode,
        "items": [_item_row(item, ledger, outlet_id) for item in items],
        "breakdown": breakdown,
        "outlets": [
            {
                "id": str(outlet["id"]),
                "name": outlet["name"],
                "completion": ledger.outlet_completion(outlet["id"]),
                "locked": ledger.is_outlet_locked(outlet["id"]),
            }
            for outlet in outlets
        ],
    }


def get_stock_overview(organization, day=None, mode=DISTRIBUTION_MODE, outlet_id=None, search=None):
    """
    Cached stock overview.

    The cache entry is dropped by the ledger signal handlers, so a hit is
    always consistent with the last committed write.
    """
    day = day or local_today()
    cache_key = get_org_cache_key(
        organization.id,
        "stock",
        day.isoformat(),
        mode=mode,
        outlet=outlet_id or "",
        search=search or "",
    )
    overview = cache.get(cache_key)
    if overview is None:
        overview = build_stock_overview(
            organization, day=day, mode=mode, outlet_id=outlet_id, search=search
        )
        cache.set(cache_key, overview, getattr(settings, "STOCK_CACHE_TIMEOUT", 60))
    return overview
