"""
Core API views: authentication, outlets, restaurant tables, users and reset.
"""

import logging

from django.contrib.auth import get_user_model
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_http_methods

from rest_framework import generics, permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework_simplejwt.views import TokenObtainPairView

from apps.core import roles, services
from apps.core.context import OperatorContextMixin, get_operator
from apps.core.permissions import (
    HasOrganizationAccess,
    capability_required,
    read_or_capability,
)

from .models import Outlet, RestaurantTable
from .serializers import (
    CustomTokenObtainPairSerializer,
    MeSerializer,
    OutletSerializer,
    RestaurantTableSerializer,
    SignupSerializer,
    UserCreateSerializer,
    UserSerializer,
    UserUpdateSerializer,
)

logger = logging.getLogger(__name__)

User = get_user_model()


@require_http_methods(["GET"])
def health_check(request):
    """
    Health check endpoint for container orchestration.
    """
    return JsonResponse({"status": "healthy", "service": "salt-pos"})


class CustomTokenObtainPairView(TokenObtainPairView):
    """
    JWT token view that includes the user's role and assignment.
    """

    serializer_class = CustomTokenObtainPairSerializer


@api_view(["POST"])
@permission_classes([permissions.AllowAny])
def signup(request):
    """
    Register an organization with its first admin account.
    """
    serializer = SignupSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    admin = services.signup(**serializer.validated_data)
    return Response(MeSerializer(admin).data, status=status.HTTP_201_CREATED)


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated, HasOrganizationAccess])
def me(request):
    """Current operator with capabilities and navigation."""
    return Response(MeSerializer(request.user).data)


# Outlets


class OutletListCreateView(OperatorContextMixin, generics.ListCreateAPIView):
    """
    List outlets of the organization, or create one (admins only).

    Managers and staff only see their own outlet.
    """

    serializer_class = OutletSerializer
    permission_classes = [
        permissions.IsAuthenticated,
        HasOrganizationAccess,
        read_or_capability(roles.MANAGE_OUTLETS),
    ]
    pagination_class = None

    def get_queryset(self):
        operator = self.request.operator
        queryset = Outlet.objects.filter(organization=operator.organization)
        visible = operator.visible_outlet_ids()
        if visible is not None:
            queryset = queryset.filter(id__in=visible)
        return queryset

    def perform_create(self, serializer):
        outlet = serializer.save(organization=self.request.operator.organization)
        logger.info("Outlet created", extra={"outlet_id": str(outlet.id)})


class OutletDetailView(OperatorContextMixin, generics.RetrieveUpdateDestroyAPIView):
    serializer_class = OutletSerializer
    permission_classes = [
        permissions.IsAuthenticated,
        HasOrganizationAccess,
        read_or_capability(roles.MANAGE_OUTLETS),
    ]
    lookup_field = "id"

    def get_queryset(self):
        operator = self.request.operator
        queryset = Outlet.objects.filter(organization=operator.organization)
        visible = operator.visible_outlet_ids()
        if visible is not None:
            queryset = queryset.filter(id__in=visible)
        return queryset


# Restaurant tables


class RestaurantTableListCreateView(OperatorContextMixin, generics.ListCreateAPIView):
    """
    Tables of one outlet, ordered by table number.
    """

    serializer_class = RestaurantTableSerializer
    permission_classes = [
        permissions.IsAuthenticated,
        HasOrganizationAccess,
        read_or_capability(roles.MANAGE_OUTLETS),
    ]
    pagination_class = None

    def get_outlet(self):
        return get_object_or_404(
            Outlet, id=self.kwargs["outlet_id"], organization=self.request.operator.organization
        )

    def get_queryset(self):
        return RestaurantTable.objects.filter(outlet=self.get_outlet())

    def get_serializer_context(self):
        context = super().get_serializer_context()
        if "outlet_id" in self.kwargs and hasattr(self.request, "operator"):
            context["outlet"] = self.get_outlet()
        return context

    def perform_create(self, serializer):
        serializer.save(outlet=self.get_outlet())


class RestaurantTableDetailView(OperatorContextMixin, generics.RetrieveUpdateDestroyAPIView):
    serializer_class = RestaurantTableSerializer
    permission_classes = [
        permissions.IsAuthenticated,
        HasOrganizationAccess,
        read_or_capability(roles.MANAGE_OUTLETS),
    ]
    lookup_field = "id"

    def get_queryset(self):
        return RestaurantTable.objects.filter(
            outlet__organization=self.request.operator.organization
        ).select_related("outlet")


# Users


class UserListCreateView(OperatorContextMixin, generics.ListCreateAPIView):
    """
    List the organization's users or issue a new login id.
    """

    serializer_class = UserSerializer
    permission_classes = [
        permissions.IsAuthenticated,
        HasOrganizationAccess,
        capability_required(roles.MANAGE_USERS),
    ]

    def get_queryset(self):
        queryset = User.objects.filter(organization=self.request.operator.organization)
        role = self.request.query_params.get("role")
        if role:
            queryset = queryset.filter(role=role)
        return queryset.select_related("outlet").order_by("full_name", "username")

    def create(self, request, *args, **kwargs):
        serializer = UserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = services.create_user(request.operator, **serializer.validated_data)
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)


def _get_member_or_404(request, user_id):
    return get_object_or_404(User, id=user_id, organization=get_operator(request).organization)


@api_view(["PATCH"])
@permission_classes(
    [permissions.IsAuthenticated, HasOrganizationAccess, capability_required(roles.MANAGE_USERS)]
)
def user_update(request, user_id):
    user = _get_member_or_404(request, user_id)
    serializer = UserUpdateSerializer(data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    user = services.update_user(
        get_operator(request),
        user,
        full_name=data.get("full_name"),
        role=data.get("role"),
        outlet=data.get("outlet"),
        clear_outlet="outlet" in data and data["outlet"] is None,
    )
    return Response(UserSerializer(user).data)


@api_view(["POST"])
@permission_classes(
    [permissions.IsAuthenticated, HasOrganizationAccess, capability_required(roles.MANAGE_USERS)]
)
def user_deactivate(request, user_id):
    user = services.deactivate_user(get_operator(request), _get_member_or_404(request, user_id))
    return Response(UserSerializer(user).data)


@api_view(["POST"])
@permission_classes(
    [permissions.IsAuthenticated, HasOrganizationAccess, capability_required(roles.MANAGE_USERS)]
)
def user_reactivate(request, user_id):
    user = services.reactivate_user(get_operator(request), _get_member_or_404(request, user_id))
    return Response(UserSerializer(user).data)


@api_view(["POST"])
@permission_classes(
    [permissions.IsAuthenticated, HasOrganizationAccess, capability_required(roles.RESET_DATA)]
)
def reset_data(request):
    """
    Delete all sales and stock ledgers of the organization.

    Requires {"confirm": true} in the body.
    """
    if request.data.get("confirm") is not True:
        return Response(
            {"error": "Reset must be confirmed with {\"confirm\": true}."},
            status=status.HTTP_400_BAD_REQUEST,
        )
    deleted = services.reset_ledgers(get_operator(request))
    return Response({"deleted": deleted})
