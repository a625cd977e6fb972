"""
Source selection for a stock request.

A request is served from the central warehouse whenever a warehouse can
cover it in full ("Central Supply").  Otherwise the richest location
other than the requester is chosen ("Surplus Rebalance").  By default the
fallback does not have to cover the whole request; set
``SUPPLY_SURPLUS_REQUIRE_FULL_COVER`` to demand that as well.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from django.conf import settings

from logistics.exceptions import DrugUnavailable, InsufficientStock
from logistics.stores.base import InventoryStore

logger = logging.getLogger(__name__)

CENTRAL_SUPPLY = 'Central Supply'
SURPLUS_REBALANCE = 'Surplus Rebalance'


@dataclass(frozen=True)
class AllocationPolicy:
    require_full_cover: bool = False

    @classmethod
    def from_settings(cls) -> 'AllocationPolicy':
        return cls(require_full_cover=settings.SUPPLY_SURPLUS_REQUIRE_FULL_COVER)


@dataclass(frozen=True)
class SourceMatch:
    location_id: int
    location_name: str
    kind: str
    available_qty: int

    def as_dict(self) -> dict:
        return {
            'sourceLocationId': self.location_id,
            'sourceLocationName': self.location_name,
            'sourceKind': self.kind,
            'availableQty': self.available_qty,
        }


def normalize_drug_name(drug_name: Optional[str]) -> str:
    name = (drug_name or '').strip()
    if not name:
        raise ValueError('drug name is required')
    return name


def validate_qty(qty) -> int:
    if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
        raise ValueError('quantity must be a positive integer')
    return qty


def locate_source(drug_name: str, requested_qty: int, requesting_location_id: Optional[int], *,
                  inventory: InventoryStore, policy: Optional[AllocationPolicy] = None) -> SourceMatch:
    """Pick the location a transfer of ``requested_qty`` should come from.

    Raises :class:`DrugUnavailable` when no location holds any of the drug,
    and :class:`InsufficientStock` when stock exists but nothing qualifies.
    Reads only.
    """
    drug_name = normalize_drug_name(drug_name)
    requested_qty = validate_qty(requested_qty)
    policy = policy or AllocationPolicy.from_settings()

    stock = inventory.scan_by_drug(drug_name, positive_only=True)
    if not stock:
        raise DrugUnavailable(drug_name)

    for record in stock:
        if record.location_id == requesting_location_id:
            continue
        if record.location.is_warehouse and record.quantity >= requested_qty:
            logger.info('%s x%d for location %s: central supply from %s',
                        drug_name, requested_qty, requesting_location_id, record.location.name)
            return SourceMatch(record.location_id, record.location.name, CENTRAL_SUPPLY, record.quantity)

    richest = None
    for record in stock:
        if record.location_id == requesting_location_id:
            continue
        if policy.require_full_cover and record.quantity < requested_qty:
            continue
        # strict comparison keeps the first record on ties
        if richest is None or record.quantity > richest.quantity:
            richest = record

    if richest is None:
        max_available = max(r.quantity for r in stock)
        total_available = sum(r.quantity for r in stock)
        logger.info('%s x%d for location %s: insufficient stock (max %d)',
                    drug_name, requested_qty, requesting_location_id, max_available)
        raise InsufficientStock(drug_name, max_available, total_available)

    logger.info('%s x%d for location %s: surplus rebalance from %s (%d held)',
                drug_name, requested_qty, requesting_location_id, richest.location.name, richest.quantity)
    return SourceMatch(richest.location_id, richest.location.name, SURPLUS_REBALANCE, richest.quantity)
