"""
Cache invalidation and change notification for ledger tables.

Any write to the menu, the stock ledgers or the sales ledger drops the
organization's cached stock and dashboard views and publishes a
ledger-changed event so open terminals refetch.
"""

from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from apps.core.cache_utils import invalidate_org_cache


def _invalidate(organization_id, table):
    from apps.notifications.broadcast import publish_ledger_changed

    invalidate_org_cache(organization_id, prefix="stock")
    invalidate_org_cache(organization_id, prefix="dashboard")
    transaction.on_commit(lambda: publish_ledger_changed(organization_id, table))


@receiver(post_save, sender="inventory.MenuItem")
@receiver(post_delete, sender="inventory.MenuItem")
def invalidate_menu_cache(sender, instance, **kwargs):
    """Menu changes alter which items the stock hub lists."""
    _invalidate(instance.organization_id, "menu_items")


@receiver(post_save, sender="inventory.MasterStockEntry")
@receiver(post_delete, sender="inventory.MasterStockEntry")
def invalidate_master_stock_cache(sender, instance, **kwargs):
    _invalidate(instance.organization_id, "master_stocks")


@receiver(post_save, sender="inventory.DistributionEntry")
@receiver(post_delete, sender="inventory.DistributionEntry")
def invalidate_distribution_cache(sender, instance, **kwargs):
    _invalidate(instance.organization_id, "daily_stocks")


@receiver(post_save, sender="sales.SaleTransaction")
@receiver(post_delete, sender="sales.SaleTransaction")
def invalidate_transaction_cache(sender, instance, **kwargs):
    _invalidate(instance.organization_id, "transactions")


@receiver(post_save, sender="sales.SaleLineItem")
def invalidate_transaction_item_cache(sender, instance, created, **kwargs):
    if created:
        _invalidate(instance.transaction.organization_id, "transaction_items")
