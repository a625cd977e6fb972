"""
Store interfaces the supply services are written against.

The allocation engine and the transfer state machine never touch the ORM
directly.  They receive an :class:`InventoryStore` and a
:class:`TransferLedger`, which lets tests (or another backend) swap the
persistence layer while keeping the atomicity guarantees documented on
each method.
"""
from __future__ import annotations

import abc
import datetime
from typing import Any, Callable, Iterable, Optional

EventHandler = Callable[[str, dict], None]
Unsubscribe = Callable[[], None]

EVENT_INSERT = 'insert'
EVENT_UPDATE = 'update'


class InventoryStore(abc.ABC):
    """(location, drug) -> quantity table."""

    @abc.abstractmethod
    def get(self, location_id: int, drug_name: str) -> Optional[Any]:
        ...

    @abc.abstractmethod
    def scan_by_drug(self, drug_name: str, positive_only: bool = False) -> list:
        ...

    @abc.abstractmethod
    def scan_by_location(self, location_id: int) -> list:
        ...

    @abc.abstractmethod
    def scan_below(self, threshold: int, location_id: Optional[int] = None) -> list:
        ...

    @abc.abstractmethod
    def upsert_increment(
        self,
        location_id: int,
        drug_name: str,
        delta: int,
        default_expiry: Optional[datetime.date] = None,
        expiry_date: Optional[datetime.date] = None,
    ) -> Any:
        """Atomically add ``delta`` units, creating the record if missing.

        ``default_expiry`` only applies to a newly created record;
        ``expiry_date`` overwrites the stored expiry either way.
        """

    @abc.abstractmethod
    def insert(self, location_id: int, drug_name: str, quantity: int,
               expiry_date: Optional[datetime.date] = None) -> Any:
        ...

    @abc.abstractmethod
    def withdraw(self, location_id: int, drug_name: str, qty: int) -> int:
        """Atomically remove up to ``qty`` units; return how many were removed."""


class TransferLedger(abc.ABC):
    """Transfer tasks keyed by id, with change notifications."""

    @abc.abstractmethod
    def insert(self, *, drug_name: str, qty: int, from_location_id: int, to_location_id: int,
               requested_by_id: Optional[int] = None) -> Any:
        ...

    @abc.abstractmethod
    def get(self, task_id: int) -> Optional[Any]:
        ...

    @abc.abstractmethod
    def scan_by_status(self, statuses: Iterable[str], limit: Optional[int] = None) -> list:
        """Tasks in any of ``statuses``, newest first."""

    @abc.abstractmethod
    def conditional_update_status(self, task_id: int, expected_status: str, new_status: str,
                                  extra: Optional[dict] = None,
                                  operator_id: Optional[int] = None) -> bool:
        """Compare-and-set on status.

        Returns False, and changes nothing, when the task is not currently
        in ``expected_status``.
        """

    @abc.abstractmethod
    def deliver(self, task_id: int, *, inventory: InventoryStore, operator_id: Optional[int] = None,
                default_expiry: Optional[datetime.date] = None,
                decrement_source: bool = True) -> Optional[tuple[Any, Optional[int]]]:
        """Move an in-transit task to delivered together with its stock.

        The status change, the destination increment and the source
        withdrawal commit or roll back as one unit.  Returns
        ``(task, withdrawn)``, or None when the task was not in transit.
        """

    @abc.abstractmethod
    def subscribe(self, on_event: EventHandler) -> Unsubscribe:
        ...
