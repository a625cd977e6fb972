from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..formatting import format_location
from ..models import Location


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def list_locations(request):
    """Warehouses first, then wards, by name."""
    locations = Location.objects.order_by('-type', 'name')
    return Response({'ok': True, 'locations': [format_location(loc) for loc in locations]})
