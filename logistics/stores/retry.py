"""
Bounded retry for transient database failures.

Only the store adapters retry.  Services above them see either a result
or :class:`~logistics.exceptions.StoreUnavailable`.
"""
from __future__ import annotations

import functools
import logging
import time

from django.conf import settings
from django.db import InterfaceError, OperationalError, transaction

from logistics.exceptions import StoreUnavailable

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (OperationalError, InterfaceError)


def _in_transaction() -> bool:
    return transaction.get_connection().in_atomic_block


def backoff_delays(retries: int, base: float) -> list[float]:
    """Sleep before each retry: base, 2*base, 4*base, ..."""
    return [base * (2 ** n) for n in range(max(0, retries))]


def _transient_cause(exc):
    if isinstance(exc, TRANSIENT_ERRORS):
        return exc
    # raised by a nested store call that gave up inside our transaction
    if isinstance(exc, StoreUnavailable) and isinstance(exc.__cause__, TRANSIENT_ERRORS):
        return exc.__cause__
    return None


def retry_transient(func):
    """Retry ``func`` on transient database errors with bounded backoff.

    Inside an enclosing transaction the error is surfaced at once as
    :class:`StoreUnavailable`; the outermost decorated call, the one that
    owns the transaction, reruns the whole unit.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        delays = backoff_delays(settings.SUPPLY_STORE_RETRIES, settings.SUPPLY_STORE_BACKOFF_SECONDS)
        attempt = 0
        while True:
            try:
                return func(*args, **kwargs)
            except TRANSIENT_ERRORS + (StoreUnavailable,) as exc:
                cause = _transient_cause(exc)
                if cause is None:
                    raise
                # a failed statement poisons the enclosing transaction, retrying inside it is pointless
                if _in_transaction() or attempt >= len(delays):
                    if exc is cause:
                        raise StoreUnavailable(f'{func.__name__}: {exc}') from exc
                    raise
                logger.warning('%s failed (%s), retry %d/%d in %.2fs',
                               func.__name__, cause, attempt + 1, len(delays), delays[attempt])
                time.sleep(delays[attempt])
                attempt += 1
    return wrapper
