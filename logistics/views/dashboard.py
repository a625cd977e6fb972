"""
Administrative dashboard endpoint.

Stock totals, low-stock count, estimated stock value, active transfer
counts and the most recent transfers.  Admins only.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..permissions import IsAdminRole
from ..services.dashboard import dashboard_stats


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def admin_dashboard(request):
    return Response({'ok': True, **dashboard_stats()})
