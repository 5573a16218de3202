"""
Pytest configuration and fixtures for the restaurant POS platform.
"""

from decimal import Decimal

from django.core.cache import caches

import pytest


@pytest.fixture(autouse=True)
def clear_caches():
    """Local-memory caches outlive a test; start every test from empty caches."""
    for alias in ("default", "realtime"):
        caches[alias].clear()
    yield
    for alias in ("default", "realtime"):
        caches[alias].clear()


@pytest.fixture
def api_client():
    """
    Fixture for Django REST framework API client.
    """
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def organization():
    from apps.core.models import Organization

    return Organization.objects.create(name="Salt Kitchens")


@pytest.fixture
def other_organization():
    from apps.core.models import Organization

    return Organization.objects.create(name="Pepper House")


@pytest.fixture
def outlet(organization):
    from apps.core.models import Outlet

    return Outlet.objects.create(organization=organization, name="Main Branch", location="Headquarters")


@pytest.fixture
def second_outlet(organization):
    from apps.core.models import Outlet

    return Outlet.objects.create(organization=organization, name="Beach Road", location="Beach Road")


@pytest.fixture
def admin_user(organization, django_user_model):
    return django_user_model.objects.create_user(
        username="owner@example.com",
        email="owner@example.com",
        password="testpass123",
        organization=organization,
        role="admin",
        full_name="Asha Owner",
    )


@pytest.fixture
def manager_user(organization, outlet, django_user_model):
    return django_user_model.objects.create_user(
        username="ravi@salt.internal",
        email="ravi@salt.internal",
        password="testpass123",
        organization=organization,
        outlet=outlet,
        role="manager",
        full_name="Ravi Manager",
        login_id="ravi",
    )


@pytest.fixture
def second_manager(organization, second_outlet, django_user_model):
    return django_user_model.objects.create_user(
        username="meena@salt.internal",
        email="meena@salt.internal",
        password="testpass123",
        organization=organization,
        outlet=second_outlet,
        role="manager",
        full_name="Meena Manager",
        login_id="meena",
    )


@pytest.fixture
def staff_user(organization, outlet, django_user_model):
    return django_user_model.objects.create_user(
        username="kiran@salt.internal",
        email="kiran@salt.internal",
        password="testpass123",
        organization=organization,
        outlet=outlet,
        role="staff",
        full_name="Kiran Staff",
        login_id="kiran",
    )


@pytest.fixture
def admin_context(admin_user):
    from apps.core.context import OperatorContext

    return OperatorContext.from_user(admin_user)


@pytest.fixture
def manager_context(manager_user):
    from apps.core.context import OperatorContext

    return OperatorContext.from_user(manager_user)


@pytest.fixture
def second_manager_context(second_manager):
    from apps.core.context import OperatorContext

    return OperatorContext.from_user(second_manager)


@pytest.fixture
def prawn(organization):
    from apps.inventory.models import MenuItem

    return MenuItem.objects.create(
        organization=organization,
        name="Prawn Fry",
        category="Seafood",
        unit="kg",
        base_price=Decimal("450.00"),
        is_market_priced=True,
    )


@pytest.fixture
def chicken(organization):
    from apps.inventory.models import MenuItem

    return MenuItem.objects.create(
        organization=organization,
        name="Chicken Curry",
        category="Mains",
        unit="plate",
        base_price=Decimal("180.00"),
    )


@pytest.fixture
def tea(organization):
    """Continuous-supply item: never counted by the stock ledgers."""
    from apps.inventory.models import MenuItem

    return MenuItem.objects.create(
        organization=organization,
        name="Masala Tea",
        category="Beverages",
        unit="piece",
        base_price=Decimal("20.00"),
        requires_daily_stock=False,
    )


@pytest.fixture
def today():
    from apps.inventory.snapshot import local_today

    return local_today()


@pytest.fixture
def stock_outlet(admin_context, today):
    """
    Seed master stock for an item and distribute part of it to an outlet.

    Usage: stock_outlet(prawn, outlet, master=100, sent=40)
    """
    from apps.inventory.services import distribute_stock, save_master_stock

    def _stock(item, target_outlet, master, sent, price=None):
        save_master_stock(admin_context, {item.id: (Decimal(master), price)}, day=today)
        result = distribute_stock(admin_context, target_outlet, {item.id: Decimal(sent)}, day=today)
        assert not result.errors, result.errors
        return result

    return _stock


@pytest.fixture
def admin_client(admin_user):
    from rest_framework.test import APIClient

    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client


@pytest.fixture
def manager_client(manager_user):
    from rest_framework.test import APIClient

    client = APIClient()
    client.force_authenticate(user=manager_user)
    return client


@pytest.fixture
def staff_client(staff_user):
    from rest_framework.test import APIClient

    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client
