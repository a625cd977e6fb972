import datetime

import pytest
from django.utils import timezone

from logistics.exceptions import InvalidTransition, RoleNotPermitted, TaskNotFound
from logistics.models import AuditEvent, InventoryRecord, TransferTask
from logistics.services.transfers import (
    DeliveryPolicy,
    accept_transfer,
    complete_transfer,
    create_transfer,
    default_expiry,
    request_restock,
)

pytestmark = pytest.mark.django_db


@pytest.fixture
def pending(ledger, warehouse, icu, nurse):
    return create_transfer('Paracetamol', 20, warehouse.id, icu.id, nurse, ledger=ledger)


def test_create_inserts_pending_task_with_history(pending, nurse_user):
    assert pending.status == TransferTask.STATUS_PENDING
    assert pending.requested_by_id == nurse_user.id
    assert pending.created_at is not None
    history = list(pending.transitions.values_list('from_status', 'to_status'))
    assert history == [(None, 'pending')]
    assert AuditEvent.objects.filter(action='transfer_create', object_id=pending.id).exists()


def test_create_does_not_reserve_source_stock(ledger, warehouse, icu, stock):
    record = stock(warehouse, 'Saline', 30)
    create_transfer('Saline', 10, warehouse.id, icu.id, None, ledger=ledger)
    record.refresh_from_db()
    assert record.quantity == 30


def test_create_rejects_same_source_and_destination(ledger, icu):
    with pytest.raises(ValueError):
        create_transfer('Saline', 10, icu.id, icu.id, None, ledger=ledger)


def test_create_rejects_non_positive_qty(ledger, warehouse, icu):
    with pytest.raises(ValueError):
        create_transfer('Saline', 0, warehouse.id, icu.id, None, ledger=ledger)


def test_accept_moves_to_in_transit(pending, ledger, porter, porter_user):
    task = accept_transfer(pending.id, porter, ledger=ledger)
    assert task.status == TransferTask.STATUS_IN_TRANSIT
    assert task.accepted_by_id == porter_user.id


def test_second_accept_loses_the_race(pending, ledger, porter, other_porter, porter_user):
    accept_transfer(pending.id, porter, ledger=ledger)
    with pytest.raises(InvalidTransition) as exc:
        accept_transfer(pending.id, other_porter, ledger=ledger)
    assert exc.value.expected == 'pending'
    assert exc.value.actual == 'in_transit'
    assert exc.value.status_code == 409
    pending.refresh_from_db()
    assert pending.accepted_by_id == porter_user.id


def test_accept_unknown_task(ledger, porter):
    with pytest.raises(TaskNotFound):
        accept_transfer(999999, porter, ledger=ledger)


def test_nurse_cannot_accept(pending, ledger, nurse):
    with pytest.raises(RoleNotPermitted):
        accept_transfer(pending.id, nurse, ledger=ledger)


def test_admin_may_act_as_porter(pending, ledger, admin):
    assert accept_transfer(pending.id, admin, ledger=ledger).status == 'in_transit'


def test_complete_requires_in_transit(pending, ledger, inventory, porter):
    with pytest.raises(InvalidTransition):
        complete_transfer(pending.id, porter, ledger=ledger, inventory=inventory)
    assert not InventoryRecord.objects.filter(drug_name='Paracetamol').exists()


def test_complete_unknown_task(ledger, inventory, porter):
    with pytest.raises(TaskNotFound):
        complete_transfer(999999, porter, ledger=ledger, inventory=inventory)


def test_complete_creates_destination_record_expiring_next_year(pending, ledger, inventory, porter, porter_user, icu):
    accept_transfer(pending.id, porter, ledger=ledger)
    task = complete_transfer(pending.id, porter, ledger=ledger, inventory=inventory)
    assert task.status == TransferTask.STATUS_DELIVERED
    assert task.performed_by_id == porter_user.id
    record = InventoryRecord.objects.get(location=icu, drug_name='Paracetamol')
    assert record.quantity == 20
    assert record.expiry_date == default_expiry(timezone.localdate())
    assert [t.to_status for t in task.transitions.order_by('id')] == ['pending', 'in_transit', 'delivered']


def test_complete_twice_never_double_increments(pending, ledger, inventory, porter, icu, stock):
    stock(icu, 'Paracetamol', 5)
    accept_transfer(pending.id, porter, ledger=ledger)
    complete_transfer(pending.id, porter, ledger=ledger, inventory=inventory)
    with pytest.raises(InvalidTransition) as exc:
        complete_transfer(pending.id, porter, ledger=ledger, inventory=inventory)
    assert exc.value.actual == 'delivered'
    assert InventoryRecord.objects.get(location=icu, drug_name='Paracetamol').quantity == 25


def test_complete_keeps_existing_expiry(pending, ledger, inventory, porter, icu, stock):
    expiry = datetime.date(2030, 1, 31)
    stock(icu, 'Paracetamol', 5, expiry=expiry)
    accept_transfer(pending.id, porter, ledger=ledger)
    complete_transfer(pending.id, porter, ledger=ledger, inventory=inventory)
    assert InventoryRecord.objects.get(location=icu, drug_name='Paracetamol').expiry_date == expiry


def test_complete_decrements_source(pending, ledger, inventory, porter, warehouse, stock):
    stock(warehouse, 'Paracetamol', 50)
    accept_transfer(pending.id, porter, ledger=ledger)
    complete_transfer(pending.id, porter, ledger=ledger, inventory=inventory)
    assert InventoryRecord.objects.get(location=warehouse, drug_name='Paracetamol').quantity == 30


def test_source_decrement_floors_at_zero(pending, ledger, inventory, porter, warehouse, stock):
    stock(warehouse, 'Paracetamol', 7)
    accept_transfer(pending.id, porter, ledger=ledger)
    complete_transfer(pending.id, porter, ledger=ledger, inventory=inventory)
    assert InventoryRecord.objects.get(location=warehouse, drug_name='Paracetamol').quantity == 0


def test_source_decrement_can_be_disabled(pending, ledger, inventory, porter, warehouse, stock):
    stock(warehouse, 'Paracetamol', 50)
    accept_transfer(pending.id, porter, ledger=ledger)
    complete_transfer(pending.id, porter, ledger=ledger, inventory=inventory,
                      policy=DeliveryPolicy(decrement_source=False))
    assert InventoryRecord.objects.get(location=warehouse, drug_name='Paracetamol').quantity == 50


def test_request_restock_uses_home_ward(ledger, inventory, warehouse, icu, nurse, stock):
    stock(warehouse, 'Adrenaline', 50)
    stock(icu, 'Adrenaline', 3)
    match, task = request_restock('Adrenaline', 20, nurse, ledger=ledger, inventory=inventory)
    assert match.kind == 'Central Supply'
    assert (task.from_location_id, task.to_location_id) == (warehouse.id, icu.id)
    assert task.status == 'pending'


def test_request_restock_requires_destination(ledger, inventory, admin, warehouse, stock):
    stock(warehouse, 'Adrenaline', 50)
    with pytest.raises(ValueError):
        request_restock('Adrenaline', 5, admin, ledger=ledger, inventory=inventory)


def test_restock_into_warehouse_never_targets_itself(ledger, inventory, admin, warehouse, wards, stock):
    stock(warehouse, 'Saline', 50)
    stock(wards['Ward A'], 'Saline', 40)
    match, task = request_restock('Saline', 20, admin, ledger=ledger, inventory=inventory,
                                  to_location_id=warehouse.id)
    assert match.kind == 'Surplus Rebalance'
    assert (task.from_location_id, task.to_location_id) == (wards['Ward A'].id, warehouse.id)


def test_porter_cannot_request_restock(ledger, inventory, porter, icu):
    with pytest.raises(RoleNotPermitted):
        request_restock('Adrenaline', 5, porter, ledger=ledger, inventory=inventory, to_location_id=icu.id)


@pytest.mark.parametrize('today, expected', [
    (datetime.date(2025, 3, 14), datetime.date(2026, 3, 14)),
    (datetime.date(2024, 2, 29), datetime.date(2025, 2, 28)),
])
def test_default_expiry_is_same_day_next_year(today, expected):
    assert default_expiry(today) == expected
