"""JSON shapes shared by the HTTP views, the websocket feed and the live task list."""
from __future__ import annotations

from typing import Optional


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def format_location(location) -> dict:
    return {'id': location.id, 'name': location.name, 'type': location.type}


def format_record(record, low_stock_threshold: Optional[int] = None) -> dict:
    data = {
        'id': record.id,
        'locationId': record.location_id,
        'locationName': getattr(record.location, 'name', None),
        'drugName': record.drug_name,
        'quantity': record.quantity,
        'expiryDate': _iso(record.expiry_date),
    }
    if low_stock_threshold is not None:
        data['lowStock'] = record.quantity < low_stock_threshold
    return data


def format_task(task) -> dict:
    return {
        'id': task.id,
        'drugName': task.drug_name,
        'qty': task.qty,
        'status': task.status,
        'fromLocationId': task.from_location_id,
        'fromLocationName': getattr(task.from_location, 'name', None),
        'toLocationId': task.to_location_id,
        'toLocationName': getattr(task.to_location, 'name', None),
        'requestedBy': task.requested_by_id,
        'acceptedBy': task.accepted_by_id,
        'performedBy': task.performed_by_id,
        'createdAt': _iso(task.created_at),
        'updatedAt': _iso(task.updated_at),
    }


def format_transition(transition) -> dict:
    return {
        'from': transition.from_status,
        'to': transition.to_status,
        'operator': transition.operator.username if transition.operator else '',
        'timestamp': _iso(transition.timestamp),
    }
