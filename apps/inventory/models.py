"""
Inventory models for the restaurant POS platform.

- MenuItem: the organization's shared menu
- MasterStockEntry: per item, per day planning total (master_stocks)
- DistributionEntry: append-only signed allotments to outlets (daily_stocks)
"""

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from apps.core.models import Organization, Outlet


class MenuItem(models.Model):
    """
    Menu item shared by every outlet of an organization.

    Items with requires_daily_stock=False are continuous supply: they are
    never counted by the stock ledgers and can always be sold.
    """

    KG = "kg"
    PIECE = "piece"
    PLATE = "plate"

    UNIT_CHOICES = [
        (KG, "Kilogram (kg)"),
        (PIECE, "Piece"),
        (PLATE, "Plate"),
    ]

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the menu item",
    )

    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        related_name="menu_items",
        help_text="Organization that owns this menu item",
    )

    name = models.CharField(max_length=255, help_text="Display name")

    name_local = models.CharField(
        max_length=255, blank=True, help_text="Name in the local language"
    )

    category = models.CharField(max_length=100, blank=True, help_text="Menu category")

    unit = models.CharField(max_length=20, blank=True, help_text="Unit of measure")

    base_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Default selling price",
    )

    image_url = models.URLField(max_length=500, blank=True, help_text="Image shown on the POS")

    is_market_priced = models.BooleanField(
        default=False, help_text="Price is set daily according to the market"
    )

    requires_daily_stock = models.BooleanField(
        default=True, help_text="Item is counted by the daily stock ledgers"
    )

    is_active = models.BooleanField(default=True, help_text="Whether the item is on the menu")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "menu_items"
        ordering = ["category", "name"]
        verbose_name = "Menu Item"
        verbose_name_plural = "Menu Items"
        indexes = [
            models.Index(fields=["organization", "category"], name="menu_org_category_idx"),
            models.Index(fields=["organization", "is_active"], name="menu_org_active_idx"),
        ]

    def __str__(self):
        return self.name

    @property
    def price(self):
        return self.base_price if self.base_price is not None else Decimal("0.00")


class MasterStockEntry(models.Model):
    """
    Organization-wide quantity of an item made available for one day.

    One row per (organization, item, day). Absence of a row means zero
    availability for a stock-tracked item.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the master stock entry",
    )

    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        related_name="master_stocks",
        help_text="Organization that owns this entry",
    )

    item = models.ForeignKey(
        MenuItem,
        on_delete=models.CASCADE,
        related_name="master_stocks",
        help_text="Menu item being stocked",
    )

    stock_date = models.DateField(help_text="Business day this total applies to")

    total_quantity = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Total quantity available to distribute",
    )

    daily_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Price override for the day",
    )

    unit = models.CharField(max_length=20, blank=True, help_text="Unit of measure")

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="master_stock_entries",
        help_text="User who last set this total",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "master_stocks"
        ordering = ["-stock_date", "item__name"]
        verbose_name = "Master Stock Entry"
        verbose_name_plural = "Master Stock Entries"
        unique_together = [["organization", "item", "stock_date"]]
        indexes = [
            models.Index(fields=["organization", "stock_date"], name="master_org_date_idx"),
        ]

    def __str__(self):
        return f"{self.item.name} {self.stock_date}: {self.total_quantity}"


class DistributionEntry(models.Model):
    """
    One act of sending (positive) or correcting (negative) stock to an outlet.

    Rows are appended and summed, never updated.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the distribution entry",
    )

    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        related_name="distributions",
        help_text="Organization that owns this entry",
    )

    outlet = models.ForeignKey(
        Outlet,
        on_delete=models.CASCADE,
        related_name="distributions",
        help_text="Outlet receiving the stock",
    )

    item = models.ForeignKey(
        MenuItem,
        on_delete=models.CASCADE,
        related_name="distributions",
        help_text="Menu item distributed",
    )

    stock_date = models.DateField(help_text="Business day of the distribution")

    quantity = models.DecimalField(
        max_digits=10, decimal_places=2, help_text="Signed quantity adjustment"
    )

    unit = models.CharField(max_length=20, blank=True, help_text="Unit of measure")

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="distribution_entries",
        help_text="User who distributed the stock",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "daily_stocks"
        ordering = ["created_at"]
        verbose_name = "Distribution Entry"
        verbose_name_plural = "Distribution Entries"
        indexes = [
            models.Index(fields=["organization", "stock_date"], name="dist_org_date_idx"),
            models.Index(fields=["outlet", "stock_date"], name="dist_outlet_date_idx"),
        ]

    def __str__(self):
        return f"{self.item.name} -> {self.outlet.name} {self.stock_date}: {self.quantity:+}"

    def save(self, *args, **kwargs):
        """Distribution entries are immutable once written."""
        if not self._state.adding:
            raise ValueError("Distribution entries cannot be modified; append a correction instead")
        super().save(*args, **kwargs)
