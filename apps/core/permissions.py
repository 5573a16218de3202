"""
Permission classes for organization-scoped access control.
"""

from rest_framework import permissions

from apps.core.roles import has_capability


class HasOrganizationAccess(permissions.BasePermission):
    """
    Permission class to ensure users can only access resources from their own organization.

    Inactive users are rejected even when their session is still valid.
    """

    message = "Access denied. User must belong to an organization."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.has_organization_access())

    def has_object_permission(self, request, view, obj):
        if hasattr(obj, "organization_id"):
            return obj.organization_id == request.user.organization_id
        if hasattr(obj, "outlet"):
            return obj.outlet.organization_id == request.user.organization_id
        return True


class HasCapability(permissions.BasePermission):
    """
    Grants access when the user's role carries ``required_capability``.

    Use ``capability_required("manage_stock")`` to build a concrete class.
    """

    required_capability = None

    def has_permission(self, request, view):
        user = request.user
        if not (user and user.is_authenticated):
            return False
        return has_capability(user.role, self.required_capability)


def capability_required(capability):
    """Build a permission class for a single capability."""
    return type(
        f"Requires_{capability}",
        (HasCapability,),
        {
            "required_capability": capability,
            "message": f"Access denied. Your role cannot {capability.replace('_', ' ')}.",
        },
    )


class ReadOnlyOrCapability(HasCapability):
    """Safe methods need organization access only; writes need the capability."""

    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True
        return super().has_permission(request, view)


def read_or_capability(capability):
    return type(
        f"ReadOr_{capability}",
        (ReadOnlyOrCapability,),
        {"required_capability": capability},
    )
