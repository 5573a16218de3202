"""
Core models for the restaurant POS platform.

- Organization: the business that owns outlets, menu and stock ledgers
- Outlet: a physical restaurant location running a POS terminal
- RestaurantTable: dine-in tables configured per outlet
- User: staff account with a closed set of roles
"""

import uuid

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models


class Organization(models.Model):
    """
    Top-level tenant.

    Every ledger row, menu item and user is scoped to exactly one organization.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the organization",
    )

    name = models.CharField(max_length=255, help_text="Name of the restaurant business")

    created_at = models.DateTimeField(
        auto_now_add=True, help_text="Timestamp when the organization was created"
    )

    updated_at = models.DateTimeField(
        auto_now=True, help_text="Timestamp when the organization was last updated"
    )

    class Meta:
        db_table = "organizations"
        ordering = ["-created_at"]
        verbose_name = "Organization"
        verbose_name_plural = "Organizations"

    def __str__(self):
        return self.name


class Outlet(models.Model):
    """
    Restaurant outlet belonging to an organization.

    Outlets receive daily stock distributions and record POS sales.
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the outlet",
    )

    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        related_name="outlets",
        help_text="Organization that owns this outlet",
    )

    name = models.CharField(max_length=255, help_text="Outlet name")

    location = models.CharField(max_length=255, blank=True, help_text="Outlet location")

    table_count = models.PositiveIntegerField(
        default=0, help_text="Number of dine-in tables at the outlet"
    )

    is_active = models.BooleanField(default=True, help_text="Whether the outlet is active")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "outlets"
        ordering = ["name"]
        verbose_name = "Outlet"
        verbose_name_plural = "Outlets"
        unique_together = [["organization", "name"]]
        indexes = [
            models.Index(fields=["organization", "is_active"], name="outlet_org_active_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.organization.name})"


class RestaurantTable(models.Model):
    """Dine-in table configured for an outlet."""

    AVAILABLE = "available"
    OCCUPIED = "occupied"
    RESERVED = "reserved"

    STATUS_CHOICES = [
        (AVAILABLE, "Available"),
        (OCCUPIED, "Occupied"),
        (RESERVED, "Reserved"),
    ]

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for the table",
    )

    outlet = models.ForeignKey(
        Outlet,
        on_delete=models.CASCADE,
        related_name="tables",
        help_text="Outlet this table belongs to",
    )

    table_number = models.CharField(max_length=20, help_text="Table label shown to staff")

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=AVAILABLE,
        help_text="Current table status",
    )

    last_updated = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "restaurant_tables"
        ordering = ["table_number"]
        verbose_name = "Restaurant Table"
        verbose_name_plural = "Restaurant Tables"
        unique_together = [["outlet", "table_number"]]

    def __str__(self):
        return f"Table {self.table_number} ({self.outlet.name})"


class User(AbstractUser):
    """
    Staff account scoped to an organization.

    The role is one of a closed set; what a role may do is looked up in
    apps.core.roles rather than encoded in subclasses.
    """

    ADMIN = "admin"
    MANAGER = "manager"
    STAFF = "staff"
    INACTIVE = "inactive"

    ROLE_CHOICES = [
        (ADMIN, "Administrator"),
        (MANAGER, "Outlet Manager"),
        (STAFF, "Staff"),
        (INACTIVE, "Inactive"),
    ]

    organization = models.ForeignKey(
        Organization,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="users",
        help_text="Organization that this user belongs to",
    )

    role = models.CharField(
        max_length=20,
        choices=ROLE_CHOICES,
        default=STAFF,
        help_text="User's role in the organization",
    )

    outlet = models.ForeignKey(
        Outlet,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="users",
        help_text="Outlet that this user is assigned to",
    )

    full_name = models.CharField(max_length=255, blank=True, help_text="Display name")

    login_id = models.CharField(
        max_length=150,
        unique=True,
        null=True,
        blank=True,
        help_text="Short login identifier issued by the organization admin",
    )

    class Meta:
        db_table = "users"
        ordering = ["username"]
        verbose_name = "User"
        verbose_name_plural = "Users"
        indexes = [
            models.Index(fields=["organization", "role"], name="user_org_role_idx"),
            models.Index(fields=["organization", "outlet"], name="user_org_outlet_idx"),
        ]

    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"

    @staticmethod
    def login_email_for(login_id):
        """Build the username used for an organization-issued login id."""
        return f"{login_id}@{settings.LOGIN_ID_DOMAIN}"

    def is_admin(self):
        return self.role == self.ADMIN

    def is_manager(self):
        return self.role == self.MANAGER

    def is_inactive_role(self):
        return self.role == self.INACTIVE

    def has_organization_access(self):
        """Check if user may act inside their organization."""
        return self.organization_id is not None and self.role != self.INACTIVE

    def save(self, *args, **kwargs):
        """
        Override save to keep outlet and organization consistent.
        """
        if self.outlet_id and self.organization_id:
            if hasattr(self.outlet, "organization_id"):
                outlet_org_id = self.outlet.organization_id
            else:
                outlet_org_id = (
                    Outlet.objects.filter(id=self.outlet_id)
                    .values_list("organization_id", flat=True)
                    .first()
                )

            if outlet_org_id != self.organization_id:
                raise ValueError("Outlet must belong to the same organization as the user")

        super().save(*args, **kwargs)
