"""
Transfer task lifecycle: ``pending`` -> ``in_transit`` -> ``delivered``.

Every status change is a compare-and-set on the ledger, so two porters
racing for the same task cannot both succeed and a retried completion
cannot apply its inventory effect twice.  Completion and its inventory
writes are one ledger operation, retried as a whole on transient
database errors.
"""
from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass
from typing import Optional

from django.conf import settings
from django.utils import timezone

from logistics.exceptions import InvalidTransition, TaskNotFound
from logistics.models import TransferTask
from logistics.stores.base import InventoryStore, TransferLedger

from .actors import Actor, Role
from .allocation import AllocationPolicy, SourceMatch, locate_source, normalize_drug_name, validate_qty
from .audit import log_action

logger = logging.getLogger(__name__)

PENDING = TransferTask.STATUS_PENDING
IN_TRANSIT = TransferTask.STATUS_IN_TRANSIT


@dataclass(frozen=True)
class DeliveryPolicy:
    decrement_source: bool = True

    @classmethod
    def from_settings(cls) -> 'DeliveryPolicy':
        return cls(decrement_source=settings.SUPPLY_DECREMENT_SOURCE_ON_DELIVERY)


def default_expiry(today: Optional[datetime.date] = None) -> datetime.date:
    """Same calendar day next year (28 Feb when today is 29 Feb)."""
    today = today or timezone.localdate()
    try:
        return today.replace(year=today.year + 1)
    except ValueError:
        return today.replace(year=today.year + 1, day=28)


def create_transfer(drug_name: str, qty: int, from_location_id: int, to_location_id: int,
                    requested_by: Optional[Actor], *, ledger: TransferLedger) -> TransferTask:
    drug_name = normalize_drug_name(drug_name)
    qty = validate_qty(qty)
    if from_location_id == to_location_id:
        raise ValueError('source and destination must differ')
    task = ledger.insert(
        drug_name=drug_name,
        qty=qty,
        from_location_id=from_location_id,
        to_location_id=to_location_id,
        requested_by_id=requested_by.user_id if requested_by else None,
    )
    logger.info('transfer %s created: %s x%d %s -> %s', task.id, drug_name, qty, from_location_id, to_location_id)
    log_action(user_id=task.requested_by_id, action='transfer_create', object_type='transfer', object_id=task.id,
               detail={'drug': drug_name, 'qty': qty, 'from': from_location_id, 'to': to_location_id})
    return task


def _transition(task_id: int, expected: str, new: str, *, ledger: TransferLedger,
                extra: dict, operator_id: Optional[int]) -> None:
    task = ledger.get(task_id)
    if task is None:
        raise TaskNotFound(task_id)
    if not ledger.conditional_update_status(task_id, expected, new, extra=extra, operator_id=operator_id):
        current = ledger.get(task_id)
        raise InvalidTransition(task_id, expected, current.status if current else None)


def accept_transfer(task_id: int, porter: Actor, *, ledger: TransferLedger) -> TransferTask:
    porter.require(Role.PORTER)
    try:
        _transition(task_id, PENDING, IN_TRANSIT, ledger=ledger,
                    extra={'accepted_by_id': porter.user_id}, operator_id=porter.user_id)
    except InvalidTransition as exc:
        # another porter got there first; the caller decides what to show
        logger.info('transfer %s accept by %s rejected: %s', task_id, porter.user_id, exc.actual)
        raise
    logger.info('transfer %s accepted by %s', task_id, porter.user_id)
    log_action(user_id=porter.user_id, action='transfer_accept', object_type='transfer', object_id=task_id)
    return ledger.get(task_id)


def complete_transfer(task_id: int, porter: Actor, *, ledger: TransferLedger, inventory: InventoryStore,
                      policy: Optional[DeliveryPolicy] = None) -> TransferTask:
    """Mark an in-transit task delivered and move its stock.

    The destination record is incremented (or created with a one-year
    expiry).  With ``decrement_source`` the source loses the same number
    of units, floored at zero.
    """
    porter.require(Role.PORTER)
    policy = policy or DeliveryPolicy.from_settings()
    if ledger.get(task_id) is None:
        raise TaskNotFound(task_id)
    delivered = ledger.deliver(task_id, inventory=inventory, operator_id=porter.user_id,
                               default_expiry=default_expiry(), decrement_source=policy.decrement_source)
    if delivered is None:
        current = ledger.get(task_id)
        raise InvalidTransition(task_id, IN_TRANSIT, current.status if current else None)
    task, withdrawn = delivered
    if withdrawn is not None and withdrawn < task.qty:
        logger.warning('transfer %s: source %s held only %d of %d %s',
                       task_id, task.from_location_id, withdrawn, task.qty, task.drug_name)
    logger.info('transfer %s delivered by %s', task_id, porter.user_id)
    log_action(user_id=porter.user_id, action='transfer_complete', object_type='transfer', object_id=task_id,
               detail={'qty': task.qty, 'withdrawn': withdrawn})
    return task


def request_restock(drug_name: str, qty: int, actor: Actor, *, ledger: TransferLedger, inventory: InventoryStore,
                    to_location_id: Optional[int] = None,
                    policy: Optional[AllocationPolicy] = None) -> tuple[SourceMatch, TransferTask]:
    """Locate a source for a shortage and open the transfer in one go."""
    actor.require(Role.NURSE)
    destination = to_location_id or actor.location_id
    if destination is None:
        raise ValueError('no destination ward: pass a location or bind the user to a ward')
    match = locate_source(drug_name, qty, destination, inventory=inventory, policy=policy)
    task = create_transfer(drug_name, qty, match.location_id, destination, actor, ledger=ledger)
    return match, task
