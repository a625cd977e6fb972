import datetime
import logging
from typing import Optional

from django.conf import settings

from logistics.models import InventoryRecord
from logistics.stores.base import InventoryStore

from .actors import Actor, Role
from .allocation import normalize_drug_name, validate_qty
from .audit import log_action
from .dashboard import invalidate_stats
from .transfers import default_expiry

logger = logging.getLogger(__name__)


def receive_supply(location_id: int, drug_name: str, quantity: int, actor: Actor, *,
                   inventory: InventoryStore, expiry_date: Optional[datetime.date] = None) -> InventoryRecord:
    """Inward supply entry: add delivered stock to a location."""
    actor.require(Role.ADMIN)
    drug_name = normalize_drug_name(drug_name)
    quantity = validate_qty(quantity)
    record = inventory.upsert_increment(
        location_id, drug_name, quantity, default_expiry=default_expiry(), expiry_date=expiry_date,
    )
    logger.info('received %d %s at location %s (now %d)', quantity, drug_name, location_id, record.quantity)
    invalidate_stats()
    log_action(user_id=actor.user_id, action='supply_receive', object_type='inventory', object_id=record.id,
               detail={'drug': drug_name, 'qty': quantity, 'location': location_id})
    return record


def location_inventory(location_id: int, *, inventory: InventoryStore) -> list[InventoryRecord]:
    """Records at a location, lowest quantity first."""
    return inventory.scan_by_location(location_id)


def low_stock(*, inventory: InventoryStore, location_id: Optional[int] = None,
              threshold: Optional[int] = None) -> list[InventoryRecord]:
    threshold = settings.SUPPLY_LOW_STOCK_THRESHOLD if threshold is None else threshold
    return inventory.scan_below(threshold, location_id=location_id)
