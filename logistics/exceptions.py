"""
Domain errors and the unified API exception handler.

Services raise :class:`SupplyError` subclasses; views let them bubble
up and :func:`api_exception_handler` turns them into the standard
``{'ok': False, 'error': {...}}`` envelope.
"""
from __future__ import annotations

import logging
from typing import Optional

from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.response import Response

logger = logging.getLogger(__name__)


class SupplyError(Exception):
    code = 'supply_error'
    status_code = 400

    def __init__(self, message: str = '', **extra):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.extra = extra

    def as_dict(self) -> dict:
        return {'code': self.code, 'message': self.message, **self.extra}


class DrugUnavailable(SupplyError):
    """No location in the network holds a positive quantity of the drug."""
    code = 'drug_unavailable'
    status_code = 422

    def __init__(self, drug_name: str):
        super().__init__(f'{drug_name} is unavailable in the entire hospital network', drugName=drug_name)
        self.drug_name = drug_name


class InsufficientStock(SupplyError):
    """Stock exists but no location qualifies as a source."""
    code = 'insufficient_stock'
    status_code = 422

    def __init__(self, drug_name: str, max_available: int, total_available: int):
        super().__init__(
            f'Not enough {drug_name} found. Max available: {max_available}',
            drugName=drug_name, maxAvailable=max_available, totalAvailable=total_available,
        )
        self.drug_name = drug_name
        self.max_available = max_available
        self.total_available = total_available


class InvalidTransition(SupplyError):
    """The task was not in the expected status (usually a lost race)."""
    code = 'invalid_transition'
    status_code = 409

    def __init__(self, task_id: int, expected: str, actual: Optional[str]):
        super().__init__(
            f'Transfer {task_id} is {actual}, expected {expected}',
            taskId=task_id, expected=expected, actual=actual,
        )
        self.task_id = task_id
        self.expected = expected
        self.actual = actual


class TaskNotFound(SupplyError):
    code = 'task_not_found'
    status_code = 404

    def __init__(self, task_id: int):
        super().__init__(f'Transfer {task_id} does not exist', taskId=task_id)
        self.task_id = task_id


class RoleNotPermitted(SupplyError):
    code = 'role_not_permitted'
    status_code = 403


class StoreUnavailable(SupplyError):
    """Transient failure talking to the data store, after retries."""
    code = 'store_unavailable'
    status_code = 503


def api_exception_handler(exc, context):
    if isinstance(exc, SupplyError):
        error = exc.as_dict()
        if isinstance(exc, StoreUnavailable):
            # driver text stays in the log
            logger.warning('store unavailable: %s', exc)
            error['message'] = 'Data store temporarily unavailable'
        return Response({'ok': False, 'error': error}, status=exc.status_code)
    if isinstance(exc, ValueError):
        return Response({'ok': False, 'error': {'code': 'invalid_request', 'message': str(exc)}}, status=400)
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception('unhandled error in %s', context.get('view'))
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': 'Internal server error'}}, status=500)
    detail = None
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = str(resp.data)
    return Response({'ok': False, 'error': {'code': getattr(exc, 'default_code', 'api_error'), 'message': detail}}, status=resp.status_code)
