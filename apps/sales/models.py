"""
Sales models for the restaurant POS.

- SaleTransaction / SaleLineItem: the sales ledger, written once at settlement
- Cart / CartLine: a terminal's sale in progress, driven by a django-fsm state field

Cart states:
idle -> building (first item added)
building -> building (add/remove) | idle (last line removed) | settling
settling -> idle (settled, lines cleared) | building (settlement failed, lines kept)
"""

import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from django_fsm import RETURN_VALUE, FSMField, transition

from apps.core.models import Organization, Outlet, User
from apps.inventory.models import MenuItem


class SaleTransaction(models.Model):
    """
    Settled POS sale.

    Created atomically with its line items and never modified afterwards.
    """

    CASH = "cash"
    CARD = "card"
    UPI = "upi"

    PAYMENT_METHOD_CHOICES = [
        (CASH, "Cash"),
        (CARD, "Card"),
        (UPI, "UPI / Scan"),
    ]

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the transaction",
    )

    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        related_name="transactions",
        help_text="Organization that owns this transaction",
    )

    outlet = models.ForeignKey(
        Outlet,
        on_delete=models.PROTECT,
        related_name="transactions",
        help_text="Outlet where the sale was made",
    )

    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Total amount charged",
    )

    payment_method = models.CharField(
        max_length=20,
        choices=PAYMENT_METHOD_CHOICES,
        help_text="Payment method used",
    )

    is_paid = models.BooleanField(default=True, help_text="Whether the sale has been settled")

    paid_at = models.DateTimeField(null=True, blank=True, help_text="When payment was received")

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="transactions",
        help_text="Cashier who settled the sale",
    )

    created_at = models.DateTimeField(
        default=timezone.now, db_index=True, help_text="When the sale was settled"
    )

    class Meta:
        db_table = "transactions"
        ordering = ["-created_at"]
        verbose_name = "Sale Transaction"
        verbose_name_plural = "Sale Transactions"
        indexes = [
            models.Index(fields=["organization", "created_at"], name="tx_org_created_idx"),
            models.Index(fields=["outlet", "created_at"], name="tx_outlet_created_idx"),
            models.Index(fields=["organization", "payment_method"], name="tx_org_method_idx"),
        ]

    def __str__(self):
        return f"{str(self.id)[:8]} {self.total_amount} ({self.payment_method})"


class SaleLineItem(models.Model):
    """
    One menu item within a settled sale.

    unit_price is captured at settlement time and may differ from the
    current menu price.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the line item",
    )

    transaction = models.ForeignKey(
        SaleTransaction,
        on_delete=models.CASCADE,
        related_name="items",
        help_text="Transaction that this line belongs to",
    )

    item = models.ForeignKey(
        MenuItem,
        on_delete=models.PROTECT,
        related_name="sale_lines",
        help_text="Menu item that was sold",
    )

    quantity = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
        help_text="Quantity sold",
    )

    unit_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Unit price at time of sale",
    )

    subtotal = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Subtotal for this line (quantity * unit_price)",
    )

    class Meta:
        db_table = "transaction_items"
        verbose_name = "Sale Line Item"
        verbose_name_plural = "Sale Line Items"
        indexes = [
            models.Index(fields=["transaction"], name="txitem_tx_idx"),
            models.Index(fields=["item"], name="txitem_item_idx"),
        ]

    def __str__(self):
        return f"{self.item.name} x {self.quantity}"

    def save(self, *args, **kwargs):
        """
        Override save to compute the subtotal and refuse updates.
        """
        if not self._state.adding:
            raise ValueError("Sale line items cannot be modified")
        self.subtotal = self.calculate_subtotal()
        super().save(*args, **kwargs)

    def calculate_subtotal(self):
        return (Decimal(self.unit_price) * Decimal(self.quantity)).quantize(Decimal("0.01"))


class Cart(models.Model):
    """
    A cashier's sale in progress at one outlet.
    """

    IDLE = "idle"
    BUILDING = "building"
    SETTLING = "settling"

    STATE_CHOICES = [
        (IDLE, "Idle"),
        (BUILDING, "Building"),
        (SETTLING, "Settling"),
    ]

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the cart",
    )

    outlet = models.ForeignKey(
        Outlet,
        on_delete=models.CASCADE,
        related_name="carts",
        help_text="Outlet whose terminal owns the cart",
    )

    cashier = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="carts",
        help_text="User operating the terminal",
    )

    state = FSMField(
        default=IDLE,
        choices=STATE_CHOICES,
        protected=True,
        help_text="Current cart state",
    )

    last_error = models.CharField(
        max_length=255, blank=True, help_text="Error from the last failed settlement"
    )

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "pos_carts"
        verbose_name = "Cart"
        verbose_name_plural = "Carts"
        unique_together = [["outlet", "cashier"]]

    def __str__(self):
        return f"Cart {self.cashier} @ {self.outlet.name} ({self.state})"

    def quantity_of(self, item_id):
        for line in self.lines.all():
            if line.item_id == item_id:
                return line.quantity
        return Decimal("0")

    @transition(field=state, source=[IDLE, BUILDING], target=BUILDING)
    def add(self, item):
        line, created = CartLine.objects.get_or_create(
            cart=self, item=item, defaults={"quantity": Decimal("1")}
        )
        if not created:
            line.quantity += Decimal("1")
            line.save(update_fields=["quantity"])
        self.last_error = ""

    @transition(field=state, source=BUILDING, target=RETURN_VALUE(BUILDING, IDLE))
    def remove(self, item):
        """Take one unit off the item's line; the cart goes idle once empty."""
        line = self.lines.filter(item=item).first()
        if line is not None:
            if line.quantity > Decimal("1"):
                line.quantity -= Decimal("1")
                line.save(update_fields=["quantity"])
            else:
                line.delete()
        return self.BUILDING if self.lines.exists() else self.IDLE

    @transition(field=state, source=BUILDING, target=SETTLING)
    def begin_settlement(self):
        self.last_error = ""

    @transition(field=state, source=SETTLING, target=IDLE)
    def succeed(self):
        self.lines.all().delete()

    @transition(field=state, source=SETTLING, target=BUILDING)
    def fail(self, error=""):
        self.last_error = error[:255]

    @transition(field=state, source=[IDLE, BUILDING], target=IDLE)
    def clear(self):
        self.lines.all().delete()


class CartLine(models.Model):
    cart = models.ForeignKey(Cart, on_delete=models.CASCADE, related_name="lines")
    item = models.ForeignKey(MenuItem, on_delete=models.CASCADE, related_name="cart_lines")
    quantity = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("1"))
    added_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "pos_cart_lines"
        ordering = ["added_at"]
        unique_together = [["cart", "item"]]

    def __str__(self):
        return f"{self.item.name} x {self.quantity}"
