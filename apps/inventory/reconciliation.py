"""
Stock reconciliation over the three daily ledgers.

Given the rows of one organization and one business day

- master stock totals (MasterRow)
- distribution adjustments to outlets (DistributionRow)
- sold quantities from POS line items (SaleRow)

a StockLedger answers, for any item and optionally one outlet, how much was
distributed, how much was sold, how much is still on the ground and how
much is left in the master pool.

The module has no database access and keeps no state beyond the rows it was
built from. Building a ledger twice from the same rows, in any order, gives
identical answers. Absent data counts as zero; nothing here raises.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, Hashable, Iterable, Optional, Tuple

ZERO = Decimal("0")
UNLIMITED = Decimal("Infinity")


@dataclass(frozen=True)
class ItemFact:
    item_id: Hashable
    requires_daily_stock: bool = True


@dataclass(frozen=True)
class MasterRow:
    item_id: Hashable
    total_quantity: Decimal
    daily_price: Optional[Decimal] = None


@dataclass(frozen=True)
class DistributionRow:
    outlet_id: Hashable
    item_id: Hashable
    quantity: Decimal


@dataclass(frozen=True)
class SaleRow:
    outlet_id: Hashable
    item_id: Hashable
    quantity: Decimal
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class DayWindow:
    """Half-open interval [start, end) of the local business day."""

    start: datetime
    end: datetime

    def contains(self, moment):
        if moment is None:
            return False
        return self.start <= moment < self.end


@dataclass(frozen=True)
class ItemMetrics:
    sent: Decimal
    sold: Decimal
    live: Decimal


@dataclass(frozen=True)
class OutletShare:
    outlet_id: Hashable
    distributed: Decimal
    sold: Decimal
    live: Decimal


@dataclass(frozen=True)
class MasterBreakdown:
    item_id: Hashable
    total_master: Decimal
    total_distributed: Decimal
    remaining_in_master: Decimal
    outlets: Tuple[OutletShare, ...] = field(default_factory=tuple)


def _floor(value):
    return value if value > ZERO else ZERO


def _sort_key(value):
    return str(value)


class StockLedger:
    """
    Read-only fold of master, distribution and sales rows for one day.

    Items missing from ``items`` are treated as stock-tracked, so they get
    zero availability rather than unlimited supply.
    """

    def __init__(
        self,
        items: Iterable[ItemFact] = (),
        masters: Iterable[MasterRow] = (),
        distributions: Iterable[DistributionRow] = (),
        sales: Iterable[SaleRow] = (),
        window: Optional[DayWindow] = None,
    ):
        self.window = window
        self._tracked: Dict[Hashable, bool] = {
            fact.item_id: bool(fact.requires_daily_stock) for fact in items
        }

        self._masters: Dict[Hashable, MasterRow] = {}
        for row in masters:
            self._masters[row.item_id] = row

        self._distributed = defaultdict(lambda: ZERO)
        self._distributed_total = defaultdict(lambda: ZERO)
        self._outlets_with_rows = set()
        for row in distributions:
            self._distributed[(row.item_id, row.outlet_id)] += row.quantity
            self._distributed_total[row.item_id] += row.quantity
            self._outlets_with_rows.add(row.outlet_id)

        self._sold = defaultdict(lambda: ZERO)
        self._sold_total = defaultdict(lambda: ZERO)
        for row in sales:
            if window is not None and not window.contains(row.created_at):
                continue
            self._sold[(row.item_id, row.outlet_id)] += row.quantity
            self._sold_total[row.item_id] += row.quantity

    @classmethod
    def empty(cls, window=None):
        return cls(window=window)

    # Facts

    def is_tracked(self, item_id):
        return self._tracked.get(item_id, True)

    def has_master(self, item_id):
        return item_id in self._masters

    def master_row(self, item_id):
        return self._masters.get(item_id)

    def master_total(self, item_id):
        row = self._masters.get(item_id)
        return row.total_quantity if row is not None else ZERO

    def master_item_ids(self):
        return sorted(self._masters, key=_sort_key)

    def item_ids(self):
        """Every item that appears in any ledger or in the item facts."""
        ids = set(self._tracked) | set(self._masters)
        ids.update(item_id for item_id, _ in self._distributed)
        ids.update(item_id for item_id, _ in self._sold)
        return sorted(ids, key=_sort_key)

    def outlet_ids(self):
        ids = {outlet_id for _, outlet_id in self._distributed}
        ids.update(outlet_id for _, outlet_id in self._sold)
        return sorted(ids, key=_sort_key)

    # Per item figures

    def distributed(self, item_id, outlet_id=None):
        """Net quantity sent to one outlet, or to all outlets when outlet_id is None."""
        if outlet_id is None:
            return self._distributed_total.get(item_id, ZERO)
        return self._distributed.get((item_id, outlet_id), ZERO)

    def sold(self, item_id, outlet_id=None):
        """Quantity sold inside the day window."""
        if outlet_id is None:
            return self._sold_total.get(item_id, ZERO)
        return self._sold.get((item_id, outlet_id), ZERO)

    def live(self, item_id, outlet_id=None):
        """
        On-ground quantity, never negative.

        Continuous-supply items are unlimited.
        """
        if not self.is_tracked(item_id):
            return UNLIMITED
        return _floor(self.distributed(item_id, outlet_id) - self.sold(item_id, outlet_id))

    def remaining_in_master(self, item_id):
        return _floor(self.master_total(item_id) - self.distributed(item_id))

    def max_adjustment(self, item_id):
        """Largest delta the master pool still allows; may be zero or negative."""
        return self.master_total(item_id) - self.distributed(item_id)

    def remaining_for_outlet(self, item_id, outlet_id):
        """Master total minus what every other outlet already holds."""
        others = self.distributed(item_id) - self.distributed(item_id, outlet_id)
        return _floor(self.master_total(item_id) - others)

    def can_distribute(self, item_id, delta):
        """
        Whether appending ``delta`` keeps the item within its master total.

        Continuous-supply items are never limited. A tracked item without a
        master row for the day cannot be distributed in either direction.
        """
        if not self.is_tracked(item_id):
            return True
        if not self.has_master(item_id):
            return False
        return self.distributed(item_id) + delta <= self.master_total(item_id)

    def global_metrics(self, item_id):
        return ItemMetrics(
            sent=self.distributed(item_id),
            sold=self.sold(item_id),
            live=self.live(item_id),
        )

    # Aggregates

    def breakdown(self):
        """Per master item: totals plus each outlet that received stock."""
        result = []
        for item_id in self.master_item_ids():
            shares = []
            for outlet_id in self.outlet_ids():
                distributed = self.distributed(item_id, outlet_id)
                if distributed > ZERO:
                    shares.append(
                        OutletShare(
                            outlet_id=outlet_id,
                            distributed=distributed,
                            sold=self.sold(item_id, outlet_id),
                            live=self.live(item_id, outlet_id),
                        )
                    )
            result.append(
                MasterBreakdown(
                    item_id=item_id,
                    total_master=self.master_total(item_id),
                    total_distributed=self.distributed(item_id),
                    remaining_in_master=self.remaining_in_master(item_id),
                    outlets=tuple(shares),
                )
            )
        return result

    def outlet_completion(self, outlet_id):
        """Number of items with a positive net distribution to the outlet."""
        return sum(
            1
            for (item_id, candidate), quantity in self._distributed.items()
            if candidate == outlet_id and quantity > ZERO
        )

    def is_outlet_locked(self, outlet_id):
        """An outlet with no distribution rows today cannot sell."""
        return outlet_id not in self._outlets_with_rows

    def total_distributed(self, outlet_id=None):
        return sum(
            (
                self.distributed(item_id, outlet_id)
                for item_id in self.item_ids()
                if self.is_tracked(item_id)
            ),
            ZERO,
        )

    def total_live(self, outlet_id=None):
        """
        Sum of on-ground quantities of tracked items.

        Flooring happens per outlet so one oversold outlet does not hide
        stock sitting at another.
        """
        total = ZERO
        outlets = [outlet_id] if outlet_id is not None else self.outlet_ids()
        for item_id in self.item_ids():
            if not self.is_tracked(item_id):
                continue
            for candidate in outlets:
                total += self.live(item_id, candidate)
        return total

    def item_stats(self, outlet_id=None):
        """(item_id, ItemMetrics) for items that were sent or sold."""
        stats = []
        for item_id in self.item_ids():
            sent = self.distributed(item_id, outlet_id)
            sold = self.sold(item_id, outlet_id)
            if sent > ZERO or sold > ZERO:
                stats.append(
                    (item_id, ItemMetrics(sent=sent, sold=sold, live=self.live(item_id, outlet_id)))
                )
        return stats
