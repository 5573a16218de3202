"""
Reporting services for the restaurant POS.

- Dashboard metrics for one business day
- Period reports: sales, inventory, financial and operations

Sales figures come from the transactions table; stock figures are folded
from the ledgers through the same StockLedger the stock hub uses.
"""

import logging
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from django.conf import settings
from django.core.cache import cache
from django.db.models import Count, Sum
from django.db.models.functions import Lower
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied, ValidationError

from apps.core import roles
from apps.core.cache_utils import get_org_cache_key
from apps.core.models import Outlet
from apps.inventory.models import MenuItem
from apps.inventory.reconciliation import ZERO, ItemMetrics
from apps.inventory.snapshot import day_window, load_ledger, local_today, quantity_value
from apps.sales.models import SaleLineItem, SaleTransaction

logger = logging.getLogger(__name__)

SALES = "sales"
INVENTORY = "inventory"
FINANCIAL = "financial"
OPERATIONS = "operations"
REPORT_TYPES = (SALES, INVENTORY, FINANCIAL, OPERATIONS)

TODAY = "today"
YESTERDAY = "yesterday"
THIS_WEEK = "this_week"
LAST_WEEK = "last_week"
THIS_MONTH = "this_month"
LAST_MONTH = "last_month"
CUSTOM = "custom"
DATE_RANGES = (TODAY, YESTERDAY, THIS_WEEK, LAST_WEEK, THIS_MONTH, LAST_MONTH, CUSTOM)

# Longest custom range a report may cover, in days inclusive
MAX_CUSTOM_RANGE_DAYS = 366

TOP_ITEMS_LIMIT = 10
BUSIEST_HOURS_LIMIT = 5


def resolve_date_range(
    date_range: str,
    start: Optional[date] = None,
    end: Optional[date] = None,
    today: Optional[date] = None,
) -> Tuple[date, date]:
    """
    Turn a named range into inclusive (start, end) dates.

    Weeks start on Monday.
    """
    today = today or local_today()

    if date_range == TODAY:
        return today, today
    if date_range == YESTERDAY:
        yesterday = today - timedelta(days=1)
        return yesterday, yesterday
    if date_range == THIS_WEEK:
        return today - timedelta(days=today.weekday()), today
    if date_range == LAST_WEEK:
        monday = today - timedelta(days=today.weekday() + 7)
        return monday, monday + timedelta(days=6)
    if date_range == THIS_MONTH:
        return today.replace(day=1), today
    if date_range == LAST_MONTH:
        last_day = today.replace(day=1) - timedelta(days=1)
        return last_day.replace(day=1), last_day
    if date_range == CUSTOM:
        if start is None or end is None:
            raise ValidationError({"date_range": "Custom ranges need both a start and an end date."})
        if start > end:
            raise ValidationError({"start": "Start date must not be after end date."})
        if (end - start).days + 1 > MAX_CUSTOM_RANGE_DAYS:
            raise ValidationError(
                {"date_range": f"Custom ranges cannot exceed {MAX_CUSTOM_RANGE_DAYS} days."}
            )
        return start, end

    raise ValidationError({"date_range": f"Unknown date range '{date_range}'."})


def resolve_outlets(context, requested=None):
    """
    Outlet ids a report may cover, or None for the whole organization.

    Admins may ask for several outlets or "all"; everyone else is pinned to
    their own outlet.
    """
    if requested in (None, "", "all") or requested == ["all"]:
        requested = None
    if requested is not None and context.is_organization_wide():
        known = set(
            Outlet.objects.filter(
                organization=context.organization, id__in=[str(outlet_id) for outlet_id in requested]
            ).values_list("id", flat=True)
        )
        if len(known) != len(set(str(outlet_id) for outlet_id in requested)):
            raise PermissionDenied("Access denied. Outlet belongs to another organization.")
        requested = sorted(known, key=str)
    return context.visible_outlet_ids(requested)


def _period_bounds(start, end):
    return day_window(start).start, day_window(end).end


def _transactions(context, start, end, outlet_ids):
    lower, upper = _period_bounds(start, end)
    queryset = SaleTransaction.objects.filter(
        organization=context.organization, created_at__gte=lower, created_at__lt=upper
    )
    if outlet_ids is not None:
        queryset = queryset.filter(outlet_id__in=outlet_ids)
    return queryset


def _line_items(context, start, end, outlet_ids):
    lower, upper = _period_bounds(start, end)
    queryset = SaleLineItem.objects.filter(
        transaction__organization=context.organization,
        transaction__created_at__gte=lower,
        transaction__created_at__lt=upper,
    )
    if outlet_ids is not None:
        queryset = queryset.filter(transaction__outlet_id__in=outlet_ids)
    return queryset


def _money(value):
    return (value or Decimal("0.00")).quantize(Decimal("0.01"))


def payment_totals(transactions) -> Dict[str, Decimal]:
    """
    Revenue per payment method, one key per known method.

    Methods are compared case-insensitively so "UPI" and "upi" land together.
    """
    totals = {method: Decimal("0.00") for method, _ in SaleTransaction.PAYMENT_METHOD_CHOICES}
    rows = (
        transactions.annotate(method=Lower("payment_method"))
        .values("method")
        .annotate(amount=Sum("total_amount"))
    )
    for row in rows:
        totals[row["method"]] = totals.get(row["method"], Decimal("0.00")) + _money(row["amount"])
    return totals


def hourly_series(transactions) -> List[Dict[str, Any]]:
    """Revenue per local hour as sorted "HH:00" buckets."""
    buckets = defaultdict(lambda: Decimal("0.00"))
    for created_at, amount in transactions.values_list("created_at", "total_amount"):
        buckets[timezone.localtime(created_at).strftime("%H:00")] += amount
    return [{"time": hour, "amount": buckets[hour]} for hour in sorted(buckets)]


def _ledger_totals(ledger, outlet_ids):
    if outlet_ids is None:
        return ledger.total_distributed(), ledger.total_live()
    distributed = sum((ledger.total_distributed(outlet_id) for outlet_id in outlet_ids), ZERO)
    live = sum((ledger.total_live(outlet_id) for outlet_id in outlet_ids), ZERO)
    return distributed, live


def _item_stats(ledger, outlet_ids, names):
    """Sent, sold and remaining per item, summed over the visible outlets."""
    if outlet_ids is None:
        stats = ledger.item_stats()
    else:
        combined = {}
        for outlet_id in outlet_ids:
            for item_id, metrics in ledger.item_stats(outlet_id):
                previous = combined.get(item_id)
                if previous is not None:
                    metrics = ItemMetrics(
                        sent=previous.sent + metrics.sent,
                        sold=previous.sold + metrics.sold,
                        live=previous.live + metrics.live,
                    )
                combined[item_id] = metrics
        stats = sorted(combined.items(), key=lambda pair: str(pair[0]))

    return [
        {
            "item_id": str(item_id),
            "name": names.get(item_id),
            "sent": metrics.sent,
            "sold": metrics.sold,
            "remaining": quantity_value(metrics.live),
        }
        for item_id, metrics in stats
    ]


def build_dashboard_metrics(context, day=None):
    """
    Metrics for the dashboard of one business day.

    Managers and staff only see their own outlet.
    """
    day = day or local_today()
    outlet_ids = context.visible_outlet_ids()
    transactions = _transactions(context, day, day, outlet_ids)

    summary = transactions.aggregate(revenue=Sum("total_amount"), count=Count("id"))
    revenue = _money(summary["revenue"])
    count = summary["count"] or 0

    outlet_performance = [
        {
            "outlet_id": str(row["outlet_id"]),
            "outlet": row["outlet__name"] or "Unknown",
            "revenue": _money(row["revenue"]),
            "transactions": row["count"],
        }
        for row in transactions.values("outlet_id", "outlet__name")
        .annotate(revenue=Sum("total_amount"), count=Count("id"))
        .order_by("-revenue")
    ]

    ledger = load_ledger(context.organization, day)
    distributed_total, live_total = _ledger_totals(ledger, outlet_ids)
    names = dict(
        MenuItem.objects.filter(organization=context.organization).values_list("id", "name")
    )

    return {
        "date": day.isoformat(),
        "revenue": revenue,
        "transaction_count": count,
        "average_order_value": _money(revenue / count) if count else Decimal("0.00"),
        "payment_totals": payment_totals(transactions),
        "outlet_performance": outlet_performance,
        "hourly": hourly_series(transactions),
        "live_stock": live_total,
        "distributed_total": distributed_total,
        "item_stats": _item_stats(ledger, outlet_ids, names),
    }


def dashboard_metrics(context, day=None):
    """Cached dashboard metrics; ledger writes drop the cache entry."""
    context.require(roles.VIEW_DASHBOARD)
    day = day or local_today()
    outlet_ids = context.visible_outlet_ids()
    cache_key = get_org_cache_key(
        context.organization_id,
        "dashboard",
        day.isoformat(),
        outlets=",".join(str(outlet_id) for outlet_id in outlet_ids) if outlet_ids is not None else "all",
    )
    metrics = cache.get(cache_key)
    if metrics is None:
        metrics = build_dashboard_metrics(context, day)
        cache.set(cache_key, metrics, getattr(settings, "STOCK_CACHE_TIMEOUT", 60))
    return metrics


class ReportBuilder:
    """
    Build period reports for one operator.
    """

    def __init__(self, context, start: date, end: date, outlet_ids=None):
        self.context = context
        self.start = start
        self.end = end
        self.outlet_ids = outlet_ids

    def build(self, report_type: str) -> Dict[str, Any]:
        report_methods = {
            SALES: self._sales_report,
            INVENTORY: self._inventory_report,
            FINANCIAL: self._financial_report,
            OPERATIONS: self._operations_report,
        }
        if report_type not in report_methods:
            raise ValidationError({"report_type": f"Unknown report type '{report_type}'."})

        data = report_methods[report_type]()
        return {
            "report_type": report_type,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "outlets": [str(outlet_id) for outlet_id in self.outlet_ids]
            if self.outlet_ids is not None
            else "all",
            "data": data,
        }

    def _days(self):
        day = self.start
        while day <= self.end:
            yield day
            day += timedelta(days=1)

    def _transactions(self):
        return _transactions(self.context, self.start, self.end, self.outlet_ids)

    def _line_items(self):
        return _line_items(self.context, self.start, self.end, self.outlet_ids)

    def _sales_report(self) -> Dict[str, Any]:
        transactions = self._transactions()
        summary = transactions.aggregate(revenue=Sum("total_amount"), count=Count("id"))

        per_day = defaultdict(lambda: {"revenue": Decimal("0.00"), "transactions": 0})
        for created_at, amount in transactions.values_list("created_at", "total_amount"):
            bucket = per_day[timezone.localdate(created_at).isoformat()]
            bucket["revenue"] += amount
            bucket["transactions"] += 1

        top_items = [
            {
                "item_id": str(row["item_id"]),
                "name": row["item__name"],
                "quantity": row["quantity"],
                "revenue": _money(row["revenue"]),
            }
            for row in self._line_items()
            .values("item_id", "item__name")
            .annotate(quantity=Sum("quantity"), revenue=Sum("subtotal"))
            .order_by("-quantity", "item__name")[:TOP_ITEMS_LIMIT]
        ]

        return {
            "total_revenue": _money(summary["revenue"]),
            "transaction_count": summary["count"] or 0,
            "items_sold": self._line_items().aggregate(total=Sum("quantity"))["total"] or ZERO,
            "per_day": [{"date": key, **per_day[key]} for key in sorted(per_day)],
            "top_items": top_items,
        }

    def _inventory_report(self) -> Dict[str, Any]:
        names = dict(
            MenuItem.objects.filter(organization=self.context.organization).values_list(
                "id", "name"
            )
        )
        rows = []
        for day in self._days():
            ledger = load_ledger(self.context.organization, day)
            for item_id in ledger.item_ids():
                if not ledger.is_tracked(item_id):
                    continue
                if self.outlet_ids is None:
                    distributed = ledger.distributed(item_id)
                    sold = ledger.sold(item_id)
                else:
                    distributed = sum(
                        (ledger.distributed(item_id, outlet_id) for outlet_id in self.outlet_ids),
                        ZERO,
                    )
                    sold = sum(
                        (ledger.sold(item_id, outlet_id) for outlet_id in self.outlet_ids), ZERO
                    )
                master_total = ledger.master_total(item_id)
                if not (master_total or distributed or sold):
                    continue
                rows.append(
                    {
                        "date": day.isoformat(),
                        "item_id": str(item_id),
                        "name": names.get(item_id),
                        "master_total": master_total,
                        "distributed": distributed,
                        "sold": sold,
                        "remaining_in_master": ledger.remaining_in_master(item_id),
                    }
                )
        return {"rows": rows}

    def _financial_report(self) -> Dict[str, Any]:
        transactions = self._transactions()
        summary = transactions.aggregate(revenue=Sum("total_amount"), count=Count("id"))
        revenue = _money(summary["revenue"])
        count = summary["count"] or 0
        return {
            "gross_revenue": revenue,
            "transaction_count": count,
            "payment_totals": payment_totals(transactions),
            "average_order_value": _money(revenue / count) if count else Decimal("0.00"),
        }

    def _operations_report(self) -> Dict[str, Any]:
        transactions = self._transactions()
        per_outlet = [
            {
                "outlet_id": str(row["outlet_id"]),
                "outlet": row["outlet__name"],
                "transactions": row["count"],
                "revenue": _money(row["revenue"]),
            }
            for row in transactions.values("outlet_id", "outlet__name")
            .annotate(count=Count("id"), revenue=Sum("total_amount"))
            .order_by("-count", "outlet__name")
        ]

        hours = defaultdict(int)
        for created_at in transactions.values_list("created_at", flat=True):
            hours[timezone.localtime(created_at).strftime("%H:00")] += 1
        busiest = sorted(hours.items(), key=lambda pair: (-pair[1], pair[0]))[:BUSIEST_HOURS_LIMIT]

        count = sum(hours.values())
        items = self._line_items().aggregate(total=Sum("quantity"))["total"] or ZERO
        return {
            "per_outlet": per_outlet,
            "busiest_hours": [{"time": hour, "transactions": total} for hour, total in busiest],
            "average_items_per_transaction": (
                (items / count).quantize(Decimal("0.01")) if count else Decimal("0.00")
            ),
        }


def build_report(context, report_type, date_range=TODAY, start=None, end=None, outlet_ids=None):
    """
    Build a period report.

    Args:
        context: OperatorContext with view_reports
        report_type: sales, inventory, financial or operations
        date_range: one of DATE_RANGES
        start, end: inclusive dates for the custom range
        outlet_ids: list of outlet ids or "all" (admins only)
    """
    context.require(roles.VIEW_REPORTS)
    start, end = resolve_date_range(date_range, start, end)
    outlets = resolve_outlets(context, outlet_ids)

    report = ReportBuilder(context, start, end, outlets).build(report_type)
    logger.info(
        "Report built",
        extra={
            "report_type": report_type,
            "organization_id": str(context.organization_id),
            "start": start.isoformat(),
            "end": end.isoformat(),
        },
    )
    return report
