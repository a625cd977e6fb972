"""
Database models for the ward supply backend.

Locations (the central warehouse and the wards) hold inventory records,
one per drug.  Transfer tasks move a quantity of a drug between two
locations and advance through ``pending`` -> ``in_transit`` ->
``delivered``; every status change is kept as a transition row.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models


class Location(models.Model):
    """A physical site holding stock: the central warehouse or a ward."""
    TYPE_WAREHOUSE = 'warehouse'
    TYPE_WARD = 'ward'
    TYPE_CHOICES = ((TYPE_WAREHOUSE, 'Warehouse'), (TYPE_WARD, 'Ward'))

    name = models.CharField(max_length=255, unique=True)
    type = models.CharField(max_length=16, choices=TYPE_CHOICES, default=TYPE_WARD, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    @property
    def is_warehouse(self) -> bool:
        return self.type == self.TYPE_WAREHOUSE

    def __str__(self) -> str:
        return f"{self.name} ({self.type})"


class User(AbstractUser):
    """Custom user model with a supply role and an optional home ward.

    The role is resolved once per request into an ``Actor`` (see
    :mod:`logistics.services.actors`) and never inferred from the
    username or e-mail.  Nurses request stock for their ``location``.
    """
    ROLE_NURSE = 'nurse'
    ROLE_PORTER = 'porter'
    ROLE_ADMIN = 'admin'
    ROLE_CHOICES = [
        (ROLE_NURSE, 'Nurse'),
        (ROLE_PORTER, 'Porter'),
        (ROLE_ADMIN, 'Administrator'),
    ]
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_NURSE)
    location = models.ForeignKey(
        Location, null=True, blank=True, on_delete=models.SET_NULL, related_name='staff'
    )

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class InventoryRecord(models.Model):
    """Quantity of one drug at one location.

    Quantities are only ever changed through ``F()`` expressions in the
    inventory store so that concurrent deliveries cannot lose updates.
    """
    location = models.ForeignKey(Location, on_delete=models.PROTECT, related_name='inventory')
    drug_name = models.CharField(max_length=255, db_index=True)
    quantity = models.PositiveIntegerField(default=0)
    expiry_date = models.DateField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['location', 'drug_name'], name='uniq_inventory_location_drug'),
        ]
        indexes = [
            models.Index(fields=['drug_name', 'quantity'], name='logistics_i_drug_na_3f1c2e_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.drug_name} x{self.quantity} @ {self.location_id}"


class TransferTask(models.Model):
    """A unit of work moving ``qty`` of a drug between two locations."""
    STATUS_PENDING = 'pending'
    STATUS_IN_TRANSIT = 'in_transit'
    STATUS_DELIVERED = 'delivered'
    STATUS_CHOICES = (
        (STATUS_PENDING, 'Pending'),
        (STATUS_IN_TRANSIT, 'In transit'),
        (STATUS_DELIVERED, 'Delivered'),
    )
    ACTIVE_STATUSES = (STATUS_PENDING, STATUS_IN_TRANSIT)

    drug_name = models.CharField(max_length=255)
    qty = models.PositiveIntegerField()
    from_location = models.ForeignKey(Location, on_delete=models.PROTECT, related_name='transfers_out')
    to_location = models.ForeignKey(Location, on_delete=models.PROTECT, related_name='transfers_in')
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    requested_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='transfers_requested'
    )
    accepted_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='transfers_accepted'
    )
    performed_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='transfers_performed'
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['status', 'created_at'], name='logistics_t_status_8b2d4a_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.drug_name} x{self.qty} {self.from_location_id}->{self.to_location_id} ({self.status})"


class TransferTransition(models.Model):
    """Records a status transition for a transfer task."""
    task = models.ForeignKey(TransferTask, related_name='transitions', on_delete=models.CASCADE)
    from_status = models.CharField(max_length=16, null=True, blank=True)
    to_status = models.CharField(max_length=16)
    operator = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='transfer_transitions')
    timestamp = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.task_id}: {self.from_status} → {self.to_status}"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.IntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='logistics_a_action_5e7c1b_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='logistics_a_object__9d0f3c_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.action}:{self.user_id}@{self.created_at:%F %T}"
