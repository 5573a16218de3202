"""
Explicit per-request operator context.

Service functions never read the current user from ambient state; views
build an OperatorContext from the authenticated user and pass it in.
"""

from dataclasses import dataclass
from typing import Optional

from rest_framework.exceptions import PermissionDenied

from apps.core.models import Organization, Outlet, User
from apps.core.roles import capabilities_for, has_capability


@dataclass(frozen=True)
class OperatorContext:
    user: User
    organization: Organization
    outlet: Optional[Outlet]
    role: str

    @classmethod
    def from_user(cls, user):
        """Build the context for an authenticated user with organization access."""
        if not user or not user.is_authenticated or not user.has_organization_access():
            raise PermissionDenied("Access denied. User must belong to an organization.")
        return cls(user=user, organization=user.organization, outlet=user.outlet, role=user.role)

    @property
    def organization_id(self):
        return self.organization.id

    @property
    def outlet_id(self):
        return self.outlet.id if self.outlet else None

    @property
    def capabilities(self):
        return capabilities_for(self.role)

    def can(self, capability):
        return has_capability(self.role, capability)

    def require(self, capability):
        if not self.can(capability):
            raise PermissionDenied(f"Access denied. Role '{self.role}' cannot {capability}.")

    def is_organization_wide(self):
        """Admins see every outlet; everyone else is pinned to their own."""
        return self.role == User.ADMIN

    def require_outlet(self):
        if self.outlet is None:
            raise PermissionDenied("Access denied. No outlet is assigned to this user.")
        return self.outlet

    def visible_outlet_ids(self, requested=None):
        """
        Resolve which outlets a query may cover.

        Returns None for "all outlets of the organization".
        """
        if self.is_organization_wide():
            return requested or None
        if self.outlet is None:
            return []
        return [self.outlet.id]


class OperatorContextMixin:
    """Mixin that attaches request.operator once DRF has authenticated the user."""

    def initial(self, request, *args, **kwargs):
        super().initial(request, *args, **kwargs)
        request.operator = OperatorContext.from_user(request.user)


def get_operator(request):
    """Context for function-based API views."""
    operator = getattr(request, "operator", None)
    if operator is None:
        operator = OperatorContext.from_user(request.user)
        request.operator = operator
    return operator
