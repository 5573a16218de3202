"""
Django admin configuration for core models.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import Organization, Outlet, RestaurantTable, User


@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    """Admin interface for Organization model."""

    list_display = ["name", "created_at", "updated_at"]
    search_fields = ["name", "id"]
    readonly_fields = ["id", "created_at", "updated_at"]
    ordering = ["-created_at"]


class RestaurantTableInline(admin.TabularInline):
    model = RestaurantTable
    extra = 0


@admin.register(Outlet)
class OutletAdmin(admin.ModelAdmin):
    """Admin interface for Outlet model."""

    list_display = ["name", "organization", "location", "table_count", "is_active"]
    list_filter = ["is_active", "organization"]
    search_fields = ["name", "location"]
    readonly_fields = ["id", "created_at", "updated_at"]
    inlines = [RestaurantTableInline]


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin interface for the custom User model."""

    list_display = ["username", "full_name", "role", "organization", "outlet", "is_active"]
    list_filter = ["role", "is_active", "organization"]
    search_fields = ["username", "full_name", "login_id", "email"]

    fieldsets = BaseUserAdmin.fieldsets + (
        (
            "Organization",
            {"fields": ("organization", "outlet", "role", "full_name", "login_id")},
        ),
    )
