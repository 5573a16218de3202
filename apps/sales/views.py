"""
Views for the POS terminal and transaction history.

- Terminal status: lock flag, cart and on-ground figures for the outlet
- Cart add / remove / clear and settlement
- Transaction list and detail
"""

import logging

from django.db.models import Q
from rest_framework import generics, permissions, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from apps.core import roles
from apps.core.context import OperatorContextMixin, get_operator
from apps.core.permissions import HasOrganizationAccess, capability_required

from . import services
from .models import SaleTransaction
from .serializers import (
    CartItemSerializer,
    SaleTransactionDetailSerializer,
    SaleTransactionListSerializer,
    SettleSerializer,
    TransactionQuerySerializer,
)

logger = logging.getLogger(__name__)

CanUsePOS = capability_required(roles.USE_POS)
CanViewTransactions = capability_required(roles.VIEW_TRANSACTIONS)


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated, CanUsePOS])
def terminal_status(request):
    """Current terminal state for the cashier's outlet."""
    return Response(services.terminal_status(get_operator(request)))


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, CanUsePOS])
def cart_add(request):
    """
    Add one unit of an item.

    Request body: {"item": "<menu item uuid>"}

    Returns 409 when the terminal is locked, 400 with code "out_of_stock"
    when nothing is left on ground.
    """
    operator = get_operator(request)
    serializer = CartItemSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    services.add_to_cart(operator, serializer.validated_data["item"])
    return Response(services.terminal_status(operator)["cart"])


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, CanUsePOS])
def cart_remove(request):
    operator = get_operator(request)
    serializer = CartItemSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    services.remove_from_cart(operator, serializer.validated_data["item"])
    return Response(services.terminal_status(operator)["cart"])


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, CanUsePOS])
def cart_clear(request):
    operator = get_operator(request)
    services.clear_cart(operator)
    return Response(services.terminal_status(operator)["cart"])


@api_view(["POST"])
@permission_classes([permissions.IsAuthenticated, CanUsePOS])
def cart_settle(request):
    """
    Settle the cart.

    Request body: {"payment_method": "cash|card|upi"}

    On a write failure the cart is kept and a 503 is returned so the
    cashier can retry.
    """
    operator = get_operator(request)
    serializer = SettleSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    sale = services.settle_cart(operator, serializer.validated_data["payment_method"])
    return Response(SaleTransactionDetailSerializer(sale).data, status=status.HTTP_201_CREATED)


class SaleTransactionListView(OperatorContextMixin, generics.ListAPIView):
    """
    API endpoint for listing transactions.

    Query parameters:
    - search: transaction id fragment or payment method
    - payment_method: cash, card or upi
    - outlet: outlet id (admins only; managers always see their outlet)
    - sort: created_at or total_amount
    - order: asc or desc (default desc)
    """

    serializer_class = SaleTransactionListSerializer
    permission_classes = [permissions.IsAuthenticated, CanViewTransactions]

    def get_queryset(self):
        operator = self.request.operator
        params = TransactionQuerySerializer(data=self.request.query_params)
        params.is_valid(raise_exception=True)
        filters = params.validated_data

        queryset = (
            SaleTransaction.objects.filter(organization=operator.organization)
            .select_related("outlet", "created_by")
            .prefetch_related("items")
        )

        outlet_ids = operator.visible_outlet_ids()
        if outlet_ids is not None:
            queryset = queryset.filter(outlet_id__in=outlet_ids)

        outlet_id = filters.get("outlet")
        if outlet_id and operator.is_organization_wide():
            queryset = queryset.filter(outlet_id=outlet_id)

        payment_method = filters.get("payment_method")
        if payment_method and payment_method.lower() != "all":
            queryset = queryset.filter(payment_method__iexact=payment_method)

        search = filters.get("search")
        if search:
            queryset = queryset.filter(
                Q(id__icontains=search) | Q(payment_method__icontains=search)
            )

        sort = filters["sort"]
        return queryset.order_by(sort if filters["order"] == "asc" else f"-{sort}")


class SaleTransactionDetailView(OperatorContextMixin, generics.RetrieveAPIView):
    serializer_class = SaleTransactionDetailSerializer
    permission_classes = [permissions.IsAuthenticated, CanViewTransactions, HasOrganizationAccess]
    lookup_field = "id"

    def get_queryset(self):
        operator = self.request.operator
        queryset = (
            SaleTransaction.objects.filter(organization=operator.organization)
            .select_related("outlet", "created_by")
            .prefetch_related("items__item")
        )
        outlet_ids = operator.visible_outlet_ids()
        if outlet_ids is not None:
            queryset = queryset.filter(outlet_id__in=outlet_ids)
        return queryset
