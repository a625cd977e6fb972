from rest_framework.exceptions import NotFound

from ..models import Location
from ..services.actors import Actor
from ..stores import DjangoInventoryStore, DjangoTransferLedger


def actor_for(request) -> Actor:
    """The caller of a request, resolved once from the authenticated user."""
    return Actor.from_user(request.user)


def inventory_store() -> DjangoInventoryStore:
    return DjangoInventoryStore()


def transfer_ledger() -> DjangoTransferLedger:
    return DjangoTransferLedger()


def location_or_404(location_id) -> Location:
    location = Location.objects.filter(pk=location_id).first()
    if location is None:
        raise NotFound(f'Location {location_id} does not exist')
    return location
