"""
Role capabilities and navigation.

Roles form a closed set (admin, manager, staff, inactive). Every access
decision in the platform is a lookup in ROLE_CAPABILITIES.
"""

from apps.core.models import User

VIEW_DASHBOARD = "view_dashboard"
MANAGE_OUTLETS = "manage_outlets"
MANAGE_MENU = "manage_menu"
MANAGE_STOCK = "manage_stock"
MANAGE_USERS = "manage_users"
USE_POS = "use_pos"
VIEW_TRANSACTIONS = "view_transactions"
VIEW_REPORTS = "view_reports"
RESET_DATA = "reset_data"

ALL_CAPABILITIES = frozenset(
    [
        VIEW_DASHBOARD,
        MANAGE_OUTLETS,
        MANAGE_MENU,
        MANAGE_STOCK,
        MANAGE_USERS,
        USE_POS,
        VIEW_TRANSACTIONS,
        VIEW_REPORTS,
        RESET_DATA,
    ]
)

ROLE_CAPABILITIES = {
    User.ADMIN: ALL_CAPABILITIES,
    User.MANAGER: frozenset([VIEW_DASHBOARD, USE_POS, VIEW_TRANSACTIONS, VIEW_REPORTS]),
    User.STAFF: frozenset([VIEW_DASHBOARD]),
    User.INACTIVE: frozenset(),
}

ROLE_NAVIGATION = {
    User.ADMIN: [
        ("Dashboard", "/dashboard"),
        ("Outlets", "/outlets"),
        ("Menu", "/menu"),
        ("Stock Management", "/stocks"),
        ("Users", "/users"),
    ],
    User.MANAGER: [
        ("Dashboard", "/manager"),
        ("POS Terminal", "/manager/pos"),
    ],
    User.STAFF: [
        ("Dashboard", "/staff"),
    ],
    User.INACTIVE: [],
}


def capabilities_for(role):
    """Return the capability set for a role; unknown roles get nothing."""
    return ROLE_CAPABILITIES.get(role, frozenset())


def has_capability(role, capability):
    return capability in capabilities_for(role)


def navigation_for(role):
    return [{"title": title, "url": url} for title, url in ROLE_NAVIGATION.get(role, [])]
