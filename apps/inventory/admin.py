"""
Admin configuration for menu and stock ledger models.
"""

from django.contrib import admin

from .models import DistributionEntry, MasterStockEntry, MenuItem


@admin.register(MenuItem)
class MenuItemAdmin(admin.ModelAdmin):
    """Admin interface for MenuItem."""

    list_display = [
        "name",
        "category",
        "unit",
        "base_price",
        "requires_daily_stock",
        "is_market_priced",
        "is_active",
    ]
    list_filter = ["requires_daily_stock", "is_market_priced", "is_active", "category"]
    search_fields = ["name", "name_local", "category"]
    readonly_fields = ["created_at", "updated_at"]


@admin.register(MasterStockEntry)
class MasterStockEntryAdmin(admin.ModelAdmin):
    list_display = ["item", "stock_date", "total_quantity", "daily_price", "organization"]
    list_filter = ["stock_date", "organization"]
    search_fields = ["item__name"]
    readonly_fields = ["created_at", "updated_at"]


@admin.register(DistributionEntry)
class DistributionEntryAdmin(admin.ModelAdmin):
    """Distribution rows are append-only; the admin is read-only."""

    list_display = ["item", "outlet", "stock_date", "quantity", "created_by", "created_at"]
    list_filter = ["stock_date", "outlet"]
    search_fields = ["item__name", "outlet__name"]

    def has_change_permission(self, request, obj=None):
        return False
