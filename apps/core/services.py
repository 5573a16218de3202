"""
Account and organization services.

- Signup: organization, default outlet and first admin in one transaction
- Staff account management (create, update, deactivate, reactivate)
- Admin reset of all stock and sales ledgers
"""

import logging

from django.db import transaction
from rest_framework.exceptions import PermissionDenied, ValidationError

from apps.core import roles
from apps.core.cache_utils import invalidate_org_cache
from apps.core.models import Organization, Outlet, User

logger = logging.getLogger(__name__)

DEFAULT_OUTLET_NAME = "Main Branch"
DEFAULT_OUTLET_LOCATION = "Headquarters"


@transaction.atomic
def signup(organization_name, full_name, email, password):
    """
    Register a new organization.

    Creates the organization, a "Main Branch" outlet at "Headquarters" and an
    admin account with no outlet assignment.
    """
    email = email.strip().lower()
    if User.objects.filter(username__iexact=email).exists():
        raise ValidationError({"email": "An account with this email already exists."})

    organization = Organization.objects.create(name=organization_name.strip())
    Outlet.objects.create(
        organization=organization,
        name=DEFAULT_OUTLET_NAME,
        location=DEFAULT_OUTLET_LOCATION,
    )
    admin = User.objects.create_user(
        username=email,
        email=email,
        password=password,
        organization=organization,
        role=User.ADMIN,
        full_name=full_name,
    )

    logger.info(
        "Organization registered",
        extra={"organization_id": str(organization.id), "admin_id": admin.id},
    )
    return admin


def _validate_assignment(context, role, outlet):
    if role not in dict(User.ROLE_CHOICES):
        raise ValidationError({"role": f"Unknown role '{role}'."})
    if outlet is not None and outlet.organization_id != context.organization_id:
        raise ValidationError({"outlet": "Outlet belongs to another organization."})
    if role in (User.MANAGER, User.STAFF) and outlet is None:
        raise ValidationError({"outlet": "Managers and staff must be assigned to an outlet."})


@transaction.atomic
def create_user(context, login_id, full_name, role, outlet, password):
    """Create a staff account that signs in with ``login_id``."""
    context.require(roles.MANAGE_USERS)

    login_id = login_id.strip().lower()
    if not login_id:
        raise ValidationError({"login_id": "Login id is required."})
    _validate_assignment(context, role, outlet)

    username = User.login_email_for(login_id)
    if User.objects.filter(login_id__iexact=login_id).exists() or User.objects.filter(
        username__iexact=username
    ).exists():
        raise ValidationError({"login_id": "This login id is already taken."})

    user = User.objects.create_user(
        username=username,
        email=username,
        password=password,
        organization=context.organization,
        outlet=outlet,
        role=role,
        full_name=full_name,
        login_id=login_id,
    )
    logger.info(
        "User created",
        extra={"user_id": user.id, "role": role, "organization_id": str(context.organization_id)},
    )
    return user


def _get_member(context, user):
    if user.organization_id != context.organization_id:
        raise PermissionDenied("Access denied. User belongs to another organization.")
    return user


def update_user(context, user, full_name=None, role=None, outlet=None, clear_outlet=False):
    context.require(roles.MANAGE_USERS)
    _get_member(context, user)

    new_role = role if role is not None else user.role
    new_outlet = None if clear_outlet else (outlet if outlet is not None else user.outlet)
    if new_role != User.INACTIVE:
        _validate_assignment(context, new_role, new_outlet)

    if user.pk == context.user.pk and new_role != User.ADMIN:
        raise ValidationError({"role": "You cannot remove your own admin role."})

    if full_name is not None:
        user.full_name = full_name
    user.role = new_role
    user.outlet = new_outlet
    user.save()
    return user


def deactivate_user(context, user):
    """Revoke access by moving the account to the inactive role."""
    context.require(roles.MANAGE_USERS)
    _get_member(context, user)
    if user.pk == context.user.pk:
        raise ValidationError({"user": "You cannot deactivate your own account."})

    user.role = User.INACTIVE
    user.save(update_fields=["role"])
    logger.info("User deactivated", extra={"user_id": user.id})
    return user


def reactivate_user(context, user):
    """Restore a deactivated account with the staff role."""
    context.require(roles.MANAGE_USERS)
    _get_member(context, user)

    user.role = User.STAFF
    user.save(update_fields=["role"])
    logger.info("User reactivated", extra={"user_id": user.id})
    return user


@transaction.atomic
def reset_ledgers(context):
    """
    Delete every sales and stock ledger row of the organization.

    Order matters: line items, transactions, distributions, then master stock.
    Open carts are emptied as well.
    """
    from apps.inventory.models import DistributionEntry, MasterStockEntry
    from apps.notifications.broadcast import publish_ledger_changed
    from apps.sales.models import Cart, SaleLineItem, SaleTransaction

    context.require(roles.RESET_DATA)
    org_id = context.organization_id

    deleted = {}
    deleted["transaction_items"], _ = SaleLineItem.objects.filter(
        transaction__organization_id=org_id
    ).delete()
    deleted["transactions"], _ = SaleTransaction.objects.filter(organization_id=org_id).delete()
    deleted["daily_stocks"], _ = DistributionEntry.objects.filter(organization_id=org_id).delete()
    deleted["master_stocks"], _ = MasterStockEntry.objects.filter(organization_id=org_id).delete()
    Cart.objects.filter(outlet__organization_id=org_id).delete()

    invalidate_org_cache(org_id, prefix="stock")
    invalidate_org_cache(org_id, prefix="dashboard")
    transaction.on_commit(lambda: publish_ledger_changed(org_id, "reset"))

    logger.warning(
        "Ledgers reset",
        extra={"organization_id": str(org_id), "user_id": context.user.id, **deleted},
    )
    return deleted
