"""
Ephemeral broadcast channel for cross-terminal advisory events.

Three event kinds exist:
- stock_available: an admin pushed stock to an outlet
- stock_low: a sale left an item at or below the low-stock threshold
- ledger_changed: any ledger row was written or deleted

Each publish fires a Django signal for in-process receivers and stores
the event in the realtime cache under its own sequence number, so
concurrent publishers never overwrite each other. Terminals poll the
newest REALTIME_EVENT_LIMIT sequence numbers. Events are triggers to
refetch; they carry no authoritative data and expire after
REALTIME_EVENT_TTL seconds.
"""

import logging
from datetime import timedelta

from django.conf import settings
from django.core.cache import caches
from django.dispatch import Signal
from django.utils import timezone
from django.utils.dateparse import parse_datetime

logger = logging.getLogger(__name__)

STOCK_AVAILABLE = "stock_available"
STOCK_LOW = "stock_low"
LEDGER_CHANGED = "ledger_changed"

# Sent with organization_id and outlet_id.
stock_available = Signal()
# Sent with organization_id, outlet_id, item_id, item_name and on_ground.
stock_low = Signal()
# Sent with organization_id and table.
ledger_changed = Signal()


def _feed_cache():
    return caches[getattr(settings, "REALTIME_CACHE_ALIAS", "default")]


def _event_key(organization_id, seq):
    return f"realtime:org:{organization_id}:event:{seq}"


def _sequence_key(organization_id):
    return f"realtime:org:{organization_id}:seq"


def _next_sequence(cache, organization_id):
    key = _sequence_key(organization_id)
    cache.add(key, 0, timeout=None)
    try:
        return cache.incr(key)
    except ValueError:
        # Evicted between add and incr
        cache.set(key, 1, timeout=None)
        return 1


def append_event(organization_id, event_type, payload=None):
    """Append an advisory event to the organization's feed and return it."""
    cache = _feed_cache()
    ttl = getattr(settings, "REALTIME_EVENT_TTL", 300)

    event = {
        "seq": _next_sequence(cache, organization_id),
        "type": event_type,
        "payload": payload or {},
        "at": timezone.now().isoformat(),
    }
    cache.set(_event_key(organization_id, event["seq"]), event, ttl)
    return event


def events_since(organization_id, after=0):
    """
    Events newer than ``after`` that have not expired.

    Returns (events, latest_seq). latest_seq lets a client that missed
    expired events know it must refetch everything.
    """
    cache = _feed_cache()
    limit = getattr(settings, "REALTIME_EVENT_LIMIT", 100)
    ttl = getattr(settings, "REALTIME_EVENT_TTL", 300)
    cutoff = timezone.now() - timedelta(seconds=ttl)

    latest = cache.get(_sequence_key(organization_id)) or 0
    first = max(after, latest - limit) + 1
    keys = [_event_key(organization_id, seq) for seq in range(first, latest + 1)]
    stored = cache.get_many(keys)
    fresh = [
        stored[key]
        for key in keys
        if key in stored and parse_datetime(stored[key]["at"]) >= cutoff
    ]
    return fresh, latest


def publish_stock_available(organization_id, outlet_id):
    event = append_event(organization_id, STOCK_AVAILABLE, {"outlet_id": str(outlet_id)})
    stock_available.send(sender=None, organization_id=organization_id, outlet_id=outlet_id)
    logger.info("Broadcast stock available", extra={"outlet_id": str(outlet_id)})
    return event


def publish_stock_low(organization_id, outlet_id, item_id, item_name, on_ground):
    event = append_event(
        organization_id,
        STOCK_LOW,
        {
            "outlet_id": str(outlet_id),
            "item_id": str(item_id),
            "item_name": item_name,
            "on_ground": str(on_ground),
        },
    )
    stock_low.send(
        sender=None,
        organization_id=organization_id,
        outlet_id=outlet_id,
        item_id=item_id,
        item_name=item_name,
        on_ground=on_ground,
    )
    logger.info(
        "Broadcast stock low",
        extra={"outlet_id": str(outlet_id), "item_id": str(item_id), "on_ground": str(on_ground)},
    )
    return event


def publish_ledger_changed(organization_id, table):
    event = append_event(organization_id, LEDGER_CHANGED, {"table": table})
    ledger_changed.send(sender=None, organization_id=organization_id, table=table)
    return event
