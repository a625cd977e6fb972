"""
Inventory endpoints: per-location stock, low-stock alerts and inward supply.
"""
from __future__ import annotations

from django.conf import settings
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..formatting import format_location, format_record
from ..permissions import IsAdminRole
from ..serializers.inventory import InventoryQuerySerializer, LowStockQuerySerializer, SupplyEntrySerializer
from ..services import inventory as inventory_service
from .common import actor_for, inventory_store, location_or_404


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def location_inventory(request):
    """Stock held at ``locationId`` (default: the caller's own ward), lowest first."""
    q = InventoryQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    location_id = q.validated_data.get('locationId') or request.user.location_id
    if location_id is None:
        raise ValueError('locationId is required for users without a home ward')
    location = location_or_404(location_id)
    threshold = settings.SUPPLY_LOW_STOCK_THRESHOLD
    records = inventory_service.location_inventory(location.id, inventory=inventory_store())
    return Response({
        'ok': True,
        'location': format_location(location),
        'lowStockThreshold': threshold,
        'items': [format_record(r, low_stock_threshold=threshold) for r in records],
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def low_stock(request):
    q = LowStockQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    threshold = q.validated_data.get('threshold', settings.SUPPLY_LOW_STOCK_THRESHOLD)
    records = inventory_service.low_stock(
        inventory=inventory_store(),
        location_id=q.validated_data.get('locationId'),
        threshold=threshold,
    )
    return Response({
        'ok': True,
        'threshold': threshold,
        'items': [format_record(r, low_stock_threshold=threshold) for r in records],
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def supply_entry(request):
    """Record stock delivered to a location from outside the network."""
    s = SupplyEntrySerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    location = location_or_404(vd['locationId'])
    record = inventory_service.receive_supply(
        location.id, vd['drugName'], vd['quantity'], actor_for(request),
        inventory=inventory_store(), expiry_date=vd.get('expiryDate'),
    )
    return Response({'ok': True, 'record': format_record(record)}, status=201)
