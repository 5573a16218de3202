"""
Django admin configuration for sales models.
"""

from django.contrib import admin

from .models import Cart, CartLine, SaleLineItem, SaleTransaction


class SaleLineItemInline(admin.TabularInline):
    """Inline admin for SaleLineItem model."""

    model = SaleLineItem
    extra = 0
    can_delete = False
    readonly_fields = ["id", "item", "quantity", "unit_price", "subtotal"]
    fields = ["item", "quantity", "unit_price", "subtotal"]

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(SaleTransaction)
class SaleTransactionAdmin(admin.ModelAdmin):
    """Transactions are read-only once settled."""

    list_display = ["id", "organization", "outlet", "total_amount", "payment_method", "created_at"]
    list_filter = ["payment_method", "is_paid", "created_at"]
    search_fields = ["id", "outlet__name", "organization__name"]
    readonly_fields = [
        "id",
        "organization",
        "outlet",
        "total_amount",
        "payment_method",
        "is_paid",
        "paid_at",
        "created_by",
        "created_at",
    ]
    inlines = [SaleLineItemInline]
    date_hierarchy = "created_at"

    def has_change_permission(self, request, obj=None):
        return False


class CartLineInline(admin.TabularInline):
    model = CartLine
    extra = 0


@admin.register(Cart)
class CartAdmin(admin.ModelAdmin):
    list_display = ["cashier", "outlet", "state", "updated_at"]
    list_filter = ["state"]
    readonly_fields = ["id", "state", "last_error", "updated_at"]
    inlines = [CartLineInline]
