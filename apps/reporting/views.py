"""
Views for dashboard metrics and period reports.
"""

from rest_framework import permissions
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from apps.core import roles
from apps.core.context import get_operator
from apps.core.permissions import capability_required

from . import services
from .serializers import DashboardQuerySerializer, ReportQuerySerializer


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated, capability_required(roles.VIEW_DASHBOARD)])
def dashboard(request):
    """
    Dashboard metrics for one business day.

    Query parameters:
    - date: YYYY-MM-DD, defaults to today
    """
    serializer = DashboardQuerySerializer(data=request.query_params)
    serializer.is_valid(raise_exception=True)
    return Response(
        services.dashboard_metrics(get_operator(request), serializer.validated_data.get("date"))
    )


@api_view(["GET"])
@permission_classes([permissions.IsAuthenticated, capability_required(roles.VIEW_REPORTS)])
def report(request):
    """
    Period report.

    Query parameters:
    - report_type: sales, inventory, financial or operations
    - date_range: today, yesterday, this_week, last_week, this_month, last_month or custom
    - start, end: YYYY-MM-DD for custom ranges
    - outlets: comma separated outlet ids or "all" (admins only)
    """
    serializer = ReportQuerySerializer(data=request.query_params)
    serializer.is_valid(raise_exception=True)
    params = serializer.validated_data

    return Response(
        services.build_report(
            get_operator(request),
            params["report_type"],
            date_range=params["date_range"],
            start=params.get("start"),
            end=params.get("end"),
            outlet_ids=params.get("outlets"),
        )
    )
