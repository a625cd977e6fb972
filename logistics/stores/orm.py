"""
Django ORM implementations of the inventory store and transfer ledger.

Quantity changes use ``select_for_update`` plus ``F()`` expressions so
the database does the arithmetic; status changes are a single
``UPDATE ... WHERE status = <expected>`` so racing callers cannot both
win.  Ledger changes are published after commit to in-process
subscribers, the ``transfers`` websocket group and the dashboard cache.
"""
from __future__ import annotations

import datetime
import logging
import threading
from typing import Callable, Iterable, Optional

from django.core.cache import cache
from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from logistics.formatting import format_task
from logistics.models import InventoryRecord, TransferTask, TransferTransition
from logistics.realtime.broadcast import broadcast_transfer_event

from .base import EVENT_INSERT, EVENT_UPDATE, EventHandler, InventoryStore, TransferLedger, Unsubscribe
from .retry import retry_transient

logger = logging.getLogger(__name__)

DASHBOARD_CACHE_KEY = 'dashboard:stats'


class ChangeFeed:
    """Fan-out of ledger events to local subscribers and relays.

    A failing subscriber is logged and skipped; it never breaks the
    write that produced the event.
    """

    def __init__(self, relays: Optional[list[EventHandler]] = None):
        self._lock = threading.Lock()
        self._subscribers: list[EventHandler] = []
        self.relays = list(relays or [])

    def subscribe(self, on_event: EventHandler) -> Unsubscribe:
        with self._lock:
            self._subscribers.append(on_event)

        def unsubscribe() -> None:
            with self._lock:
                if on_event in self._subscribers:
                    self._subscribers.remove(on_event)

        return unsubscribe

    def publish(self, event_type: str, payload: dict) -> None:
        with self._lock:
            handlers = list(self._subscribers)
        for handler in handlers + self.relays:
            try:
                handler(event_type, payload)
            except Exception:
                logger.exception('transfer event handler %r failed for task %s', handler, payload.get('id'))


def _invalidate_dashboard(event_type: str, payload: dict) -> None:
    cache.delete(DASHBOARD_CACHE_KEY)


transfer_feed = ChangeFeed(relays=[_invalidate_dashboard, broadcast_transfer_event])


class DjangoInventoryStore(InventoryStore):

    def _records(self):
        return InventoryRecord.objects.select_related('location')

    @retry_transient
    def get(self, location_id: int, drug_name: str) -> Optional[InventoryRecord]:
        return self._records().filter(location_id=location_id, drug_name=drug_name).first()

    @retry_transient
    def scan_by_drug(self, drug_name: str, positive_only: bool = False) -> list[InventoryRecord]:
        qs = self._records().filter(drug_name=drug_name)
        if positive_only:
            qs = qs.filter(quantity__gt=0)
        return list(qs.order_by('id'))

    @retry_transient
    def scan_by_location(self, location_id: int) -> list[InventoryRecord]:
        return list(self._records().filter(location_id=location_id).order_by('quantity', 'drug_name'))

    @retry_transient
    def scan_below(self, threshold: int, location_id: Optional[int] = None) -> list[InventoryRecord]:
        qs = self._records().filter(quantity__lt=threshold)
        if location_id is not None:
            qs = qs.filter(location_id=location_id)
        return list(qs.order_by('quantity', 'location__name', 'drug_name'))

    @retry_transient
    def upsert_increment(self, location_id: int, drug_name: str, delta: int,
                         default_expiry: Optional[datetime.date] = None,
                         expiry_date: Optional[datetime.date] = None) -> InventoryRecord:
        if delta <= 0:
            raise ValueError('delta must be positive')
        with transaction.atomic():
            record, created = InventoryRecord.objects.select_for_update().get_or_create(
                location_id=location_id,
                drug_name=drug_name,
                defaults={'quantity': 0, 'expiry_date': expiry_date or default_expiry},
            )
            updates = {'quantity': F('quantity') + delta, 'updated_at': timezone.now()}
            if expiry_date is not None:
                updates['expiry_date'] = expiry_date
            InventoryRecord.objects.filter(pk=record.pk).update(**updates)
        if created:
            logger.info('created inventory record %s/%s', location_id, drug_name)
        return self._records().get(pk=record.pk)

    @retry_transient
    def insert(self, location_id: int, drug_name: str, quantity: int,
               expiry_date: Optional[datetime.date] = None) -> InventoryRecord:
        if quantity < 0:
            raise ValueError('quantity must not be negative')
        try:
            with transaction.atomic():
                record = InventoryRecord.objects.create(
                    location_id=location_id, drug_name=drug_name, quantity=quantity, expiry_date=expiry_date,
                )
        except IntegrityError as exc:
            raise ValueError(f'{drug_name} already has a record at location {location_id}') from exc
        return self._records().get(pk=record.pk)

    @retry_transient
    def withdraw(self, location_id: int, drug_name: str, qty: int) -> int:
        with transaction.atomic():
            record = (
                InventoryRecord.objects.select_for_update()
                .filter(location_id=location_id, drug_name=drug_name)
                .first()
            )
            if record is None:
                return 0
            taken = min(record.quantity, qty)
            if taken:
                InventoryRecord.objects.filter(pk=record.pk).update(
                    quantity=F('quantity') - taken, updated_at=timezone.now()
                )
        return taken


class DjangoTransferLedger(TransferLedger):

    def __init__(self, feed: Optional[ChangeFeed] = None):
        self.feed = feed or transfer_feed

    def _tasks(self):
        return TransferTask.objects.select_related(
            'from_location', 'to_location', 'requested_by', 'accepted_by', 'performed_by'
        )

    def _notify(self, event_type: str, task: TransferTask) -> None:
        payload = format_task(task)
        transaction.on_commit(lambda: self.feed.publish(event_type, payload))

    @retry_transient
    def insert(self, *, drug_name: str, qty: int, from_location_id: int, to_location_id: int,
               requested_by_id: Optional[int] = None) -> TransferTask:
        with transaction.atomic():
            task = TransferTask.objects.create(
                drug_name=drug_name,
                qty=qty,
                from_location_id=from_location_id,
                to_location_id=to_location_id,
                status=TransferTask.STATUS_PENDING,
                requested_by_id=requested_by_id,
            )
            TransferTransition.objects.create(
                task=task, from_status=None, to_status=TransferTask.STATUS_PENDING, operator_id=requested_by_id,
            )
            task = self._tasks().get(pk=task.pk)
            self._notify(EVENT_INSERT, task)
        return task

    @retry_transient
    def get(self, task_id: int) -> Optional[TransferTask]:
        return self._tasks().filter(pk=task_id).first()

    @retry_transient
    def scan_by_status(self, statuses: Iterable[str], limit: Optional[int] = None) -> list[TransferTask]:
        qs = self._tasks().filter(status__in=list(statuses)).order_by('-created_at', '-id')
        if limit:
            qs = qs[:limit]
        return list(qs)

    @retry_transient
    def recent(self, limit: int) -> list[TransferTask]:
        return list(self._tasks().order_by('-created_at', '-id')[:limit])

    @retry_transient
    def conditional_update_status(self, task_id: int, expected_status: str, new_status: str,
                                  extra: Optional[dict] = None,
                                  operator_id: Optional[int] = None) -> bool:
        with transaction.atomic():
            updated = TransferTask.objects.filter(pk=task_id, status=expected_status).update(
                status=new_status, updated_at=timezone.now(), **(extra or {})
            )
            if not updated:
                return False
            TransferTransition.objects.create(
                task_id=task_id, from_status=expected_status, to_status=new_status, operator_id=operator_id,
            )
            self._notify(EVENT_UPDATE, self._tasks().get(pk=task_id))
        return True

    @retry_transient
    def deliver(self, task_id: int, *, inventory: InventoryStore, operator_id: Optional[int] = None,
                default_expiry: Optional[datetime.date] = None,
                decrement_source: bool = True) -> Optional[tuple[TransferTask, Optional[int]]]:
        with transaction.atomic():
            if not self.conditional_update_status(
                task_id, TransferTask.STATUS_IN_TRANSIT, TransferTask.STATUS_DELIVERED,
                extra={'performed_by_id': operator_id}, operator_id=operator_id,
            ):
                return None
            task = self._tasks().get(pk=task_id)
            inventory.upsert_increment(task.to_location_id, task.drug_name, task.qty, default_expiry=default_expiry)
            withdrawn = None
            if decrement_source:
                withdrawn = inventory.withdraw(task.from_location_id, task.drug_name, task.qty)
        return task, withdrawn

    def subscribe(self, on_event: EventHandler) -> Unsubscribe:
        return self.feed.subscribe(on_event)
