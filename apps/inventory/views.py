"""
Views for menu and stock management.

- Menu item list with search and category filter, CRUD for admins
- Stock hub overview (master and distribution modes)
- Master stock save and distribution save
- Ledger history listings
"""

import logging

from django.db.models import Q
from django.shortcuts import get_object_or_404

from rest_framework import generics, permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from apps.core import roles
from apps.core.context import OperatorContextMixin, get_operator
from apps.core.models import Outlet
from apps.core.permissions import HasOrganizationAccess, capability_required, read_or_capability

from . import services
from .models import DistributionEntry, MasterStockEntry, MenuItem
from .serializers import (
    DistributionEntrySerializer,
    DistributionSaveSerializer,
    LedgerQuerySerializer,
    MasterStockEntrySerializer,
    MasterStockSaveSerializer,
    MenuItemSerializer,
    StockOverviewQuerySerializer,
)
from .snapshot import get_stock_overview, local_today

logger = logging.getLogger(__name__)


class MenuItemListCreateView(OperatorContextMixin, generics.ListCreateAPIView):
    """
    API endpoint for listing and creating menu items.

    Supports:
    - Search by name, local name or category
    - Filter by category ("ALL" means no filter), tracked, is_active
    """

    serializer_class = MenuItemSerializer
    permission_classes = [
        permissions.IsAuthenticated,
        HasOrganizationAccess,
        read_or_capability(roles.MANAGE_MENU),
    ]
    pagination_class = None

    def get_queryset(self):
        queryset = MenuItem.objects.filter(organization=self.request.operator.organization)

        search = self.request.query_params.get("search")
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search)
                | Q(name_local__icontains=search)
                | Q(category__icontains=search)
            )

        category = self.request.query_params.get("category")
        if category and category.upper() != "ALL":
            queryset = queryset.filter(category__iexact=category)

        tracked = self.request.query_params.get("tracked")
        if tracked is not None:
            queryset = queryset.filter(requires_daily_stock=tracked.lower() in ["true", "1", "yes"])

        is_active = self.request.query_params.get("is_active")
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active.lower() in ["true", "1", "yes"])

        return queryset.order_by("category", "name")

    def perform_create(self, serializer):
        item = serializer.save(organization=self.request.operator.organization)
        logger.info("Menu item created", extra={"item_id": str(item.id)})


class MenuItemDetailView(OperatorContextMixin, generics.RetrieveUpdateDestroyAPIView):
    serializer_class = MenuItemSerializer
    permission_classes = [
        permissions.IsAuthenticated,
        HasOrganizationAccess,
        read_or_capability(roles.MANAGE_MENU),
    ]
    lookup_field = "id"

    def get_queryset(self):
        return MenuItem.objects.filter(organization=self.request.operator.organization)


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated, HasOrganizationAccess])
def stock_overview(request):
    """
    Stock hub snapshot for a day.

    Query params: date, mode (master|distribution), outlet, search.
    Non-admin users are pinned to their own outlet.
    """
    operator = get_operator(request)
    query = StockOverviewQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    params = query.validated_data

    outlet_id = params.get("outlet")
    if not operator.is_organization_wide():
        outlet_id = operator.outlet_id

    overview = get_stock_overview(
        operator.organization,
        day=params.get("date") or local_today(),
        mode=params["mode"],
        outlet_id=outlet_id,
        search=params.get("search"),
    )
    return Response(overview)


@api_view(["POST"])
@permission_classes(
    [permissions.IsAuthenticated, HasOrganizationAccess, capability_required(roles.MANAGE_STOCK)]
)
def save_master_stock(request):
    """
    Set absolute master totals for a day.

    Returns 200 when at least one row was saved or deleted, 400 when every
    entry was rejected and 503 when the database failed every write.
    """
    operator = get_operator(request)
    serializer = MasterStockSaveSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    result = services.save_master_stock(
        operator, serializer.as_mapping(), day=serializer.validated_data.get("date")
    )
    body = {
        "saved": MasterStockEntrySerializer(result.saved, many=True).data,
        "deleted": result.deleted,
        "errors": result.errors,
        "failures": result.failures,
    }
    return Response(body, status=_result_status(result.saved or result.deleted, result))


@api_view(["POST"])
@permission_classes(
    [permissions.IsAuthenticated, HasOrganizationAccess, capability_required(roles.MANAGE_STOCK)]
)
def distribute_stock(request):
    """
    Append signed stock adjustments for one outlet.

    Request body:
    {
        "outlet": "<uuid>",
        "date": "<optional YYYY-MM-DD>",
        "deltas": [{"item": "<uuid>", "delta": "<signed number>"}]
    }
    """
    operator = get_operator(request)
    serializer = DistributionSaveSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    outlet = get_object_or_404(
        Outlet, id=serializer.validated_data["outlet"], organization=operator.organization
    )
    result = services.distribute_stock(
        operator, outlet, serializer.as_mapping(), day=serializer.validated_data.get("date")
    )
    body = {
        "written": DistributionEntrySerializer(result.written, many=True).data,
        "skipped": result.skipped,
        "errors": result.errors,
        "failures": result.failures,
    }
    return Response(body, status=_result_status(result.written or result.skipped, result))


def _result_status(succeeded, result):
    if succeeded or not (result.errors or result.failures):
        return status.HTTP_200_OK
    if result.failures and not result.errors:
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_400_BAD_REQUEST


def _ledger_filters(request):
    serializer = LedgerQuerySerializer(data=request.query_params)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


class MasterStockListView(OperatorContextMixin, generics.ListAPIView):
    """Master entries for a day (defaults to today)."""

    serializer_class = MasterStockEntrySerializer
    permission_classes = [
        permissions.IsAuthenticated,
        HasOrganizationAccess,
        capability_required(roles.MANAGE_STOCK),
    ]

    def get_queryset(self):
        day = _ledger_filters(self.request).get("date") or local_today()
        return MasterStockEntry.objects.filter(
            organization=self.request.operator.organization, stock_date=day
        ).select_related("item")


class DistributionListView(OperatorContextMixin, generics.ListAPIView):
    """Distribution ledger rows for a day, optionally for one outlet."""

    serializer_class = DistributionEntrySerializer
    permission_classes = [
        permissions.IsAuthenticated,
        HasOrganizationAccess,
        capability_required(roles.MANAGE_STOCK),
    ]

    def get_queryset(self):
        filters = _ledger_filters(self.request)
        day = filters.get("date") or local_today()
        queryset = DistributionEntry.objects.filter(
            organization=self.request.operator.organization, stock_date=day
        ).select_related("item", "outlet")
        outlet = filters.get("outlet")
        if outlet:
            queryset = queryset.filter(outlet_id=outlet)
        return queryset
