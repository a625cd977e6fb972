"""
Management command to seed demo locations, stock and users.

Safe to run repeatedly: locations and users are matched by name, and
stock is only set for records that do not exist yet.
"""
from django.core.management.base import BaseCommand
from django.db import transaction

from logistics.models import InventoryRecord, Location
from logistics.services.transfers import default_expiry

from .ensure_demo_users import ensure_demo_users

LOCATIONS = [
    ("Central Warehouse", Location.TYPE_WAREHOUSE),
    ("ICU", Location.TYPE_WARD),
    ("Ward A", Location.TYPE_WARD),
    ("Ward B", Location.TYPE_WARD),
    ("Ward C", Location.TYPE_WARD),
]

STOCK = {
    "Central Warehouse": {"Adrenaline": 50, "Paracetamol 500mg": 400, "Saline 0.9%": 120, "Morphine": 0},
    "ICU": {"Adrenaline": 3, "Saline 0.9%": 8, "Paracetamol 500mg": 25},
    "Ward A": {"Morphine": 40, "Paracetamol 500mg": 60},
    "Ward B": {"Morphine": 15, "Saline 0.9%": 30},
    "Ward C": {"Paracetamol 500mg": 5},
}


class Command(BaseCommand):
    help = "Seed demo locations, inventory and users (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--no-users", action="store_true", help="Skip the demo user accounts.")

    @transaction.atomic
    def handle(self, *args, **options):
        locations = {}
        for name, kind in LOCATIONS:
            loc, created = Location.objects.get_or_create(name=name, defaults={"type": kind})
            locations[name] = loc
            if created:
                self.stdout.write(f"location: {name} ({kind})")

        expiry = default_expiry()
        added = 0
        for location_name, drugs in STOCK.items():
            for drug_name, qty in drugs.items():
                _, created = InventoryRecord.objects.get_or_create(
                    location=locations[location_name],
                    drug_name=drug_name,
                    defaults={"quantity": qty, "expiry_date": expiry},
                )
                added += int(created)
        self.stdout.write(f"inventory records added: {added}")

        if not options["no_users"]:
            for username, role in ensure_demo_users():
                self.stdout.write(f"user: {username} ({role})")
        self.stdout.write(self.style.SUCCESS("Seed complete."))
