"""
In-memory mirror of the active transfer tasks.

:class:`ActiveTaskList` is a reducer over ledger change events.  Events
arrive at least once and possibly out of order, so everything is keyed
by task id: duplicates are no-ops, an event carrying an older lifecycle
status than the one held is dropped, and ids already seen delivered are
never brought back.  Only the most recent ``max_tombstones`` delivered
ids are remembered.
"""
from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from typing import Callable, Optional

from logistics.formatting import format_task
from logistics.models import TransferTask
from logistics.stores.base import EVENT_INSERT, EVENT_UPDATE, TransferLedger, Unsubscribe

logger = logging.getLogger(__name__)

_RANK = {
    TransferTask.STATUS_PENDING: 0,
    TransferTask.STATUS_IN_TRANSIT: 1,
    TransferTask.STATUS_DELIVERED: 2,
}

Resolver = Callable[[dict], dict]


class ActiveTaskList:

    def __init__(self, resolve: Optional[Resolver] = None, max_tombstones: int = 1024):
        self._resolve = resolve
        self.max_tombstones = max_tombstones
        self._lock = threading.Lock()
        self._tasks: list[dict] = []
        self._delivered: OrderedDict = OrderedDict()
        self._unsubscribe: Optional[Unsubscribe] = None

    @property
    def tasks(self) -> list[dict]:
        with self._lock:
            return list(self._tasks)

    def ids(self) -> list:
        return [t['id'] for t in self.tasks]

    def _index(self, task_id) -> Optional[int]:
        for i, task in enumerate(self._tasks):
            if task['id'] == task_id:
                return i
        return None

    def _mark_delivered(self, task_id) -> None:
        # caller holds the lock
        self._delivered[task_id] = None
        self._delivered.move_to_end(task_id)
        while len(self._delivered) > self.max_tombstones:
            self._delivered.popitem(last=False)

    def load(self, ledger: TransferLedger) -> None:
        """Replace the list with the ledger's active tasks, newest first."""
        active = ledger.scan_by_status(TransferTask.ACTIVE_STATUSES)
        with self._lock:
            self._tasks = [format_task(t) for t in active if t.id not in self._delivered]

    def attach(self, ledger: TransferLedger) -> Unsubscribe:
        self.detach()
        self._unsubscribe = ledger.subscribe(self.apply)
        return self.detach

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def apply(self, event_type: str, task: dict) -> bool:
        """Fold one change event into the list; return True if it changed."""
        if event_type not in (EVENT_INSERT, EVENT_UPDATE):
            logger.debug('ignoring %s event', event_type)
            return False
        task_id = task.get('id')
        status = task.get('status')
        if task_id is None or status not in _RANK:
            logger.warning('malformed transfer event: %r', task)
            return False

        with self._lock:
            if task_id in self._delivered:
                return False
            pos = self._index(task_id)

            if status == TransferTask.STATUS_DELIVERED:
                self._mark_delivered(task_id)
                if pos is None:
                    return False
                del self._tasks[pos]
                return True

            if pos is not None:
                held = self._tasks[pos]
                if _RANK[status] < _RANK[held['status']]:
                    return False
                if event_type == EVENT_INSERT or held == task:
                    return False

        # resolve outside the lock, it may hit the database
        entry = self._resolve(task) if self._resolve else dict(task)

        with self._lock:
            if task_id in self._delivered:
                return False
            pos = self._index(task_id)
            if entry.get('status') == TransferTask.STATUS_DELIVERED:
                # the resolver saw a newer state than the event carried
                self._mark_delivered(task_id)
                if pos is not None:
                    del self._tasks[pos]
                return pos is not None
            if pos is None:
                self._tasks.insert(0, entry)
            elif _RANK[entry['status']] >= _RANK[self._tasks[pos]['status']]:
                self._tasks[pos] = entry
            else:
                return False
        return True


def ledger_resolver(ledger: TransferLedger) -> Resolver:
    """Re-read the task so display names reflect the current rows."""
    def resolve(task: dict) -> dict:
        fresh = ledger.get(task['id'])
        return format_task(fresh) if fresh is not None else dict(task)
    return resolve
