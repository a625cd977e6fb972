from django.core.management.base import BaseCommand
from django.contrib.auth.hashers import make_password

from logistics.models import Location, User

DEMO_PASSWORD = "123456"

# (username, role, home location name)
DEMO_USERS = [
    ("nurse1", User.ROLE_NURSE, "ICU"),
    ("porter1", User.ROLE_PORTER, None),
    ("admin1", User.ROLE_ADMIN, None),
]


def ensure_demo_users(password=DEMO_PASSWORD):
    """Create or reset the demo accounts; returns (username, role) pairs."""
    done = []
    for username, role, location_name in DEMO_USERS:
        location = Location.objects.filter(name=location_name).first() if location_name else None
        u, created = User.objects.get_or_create(
            username=username,
            defaults={"role": role, "location": location, "password": make_password(password), "is_active": True},
        )
        if not created:
            u.password = make_password(password)
            u.role = role
            u.location = location or u.location
            u.is_active = True
            u.save(update_fields=["password", "role", "location", "is_active"])
        done.append((username, role))
    return done


class Command(BaseCommand):
    help = "Ensure the nurse/porter/admin demo users exist with password=123456 (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--password", default=DEMO_PASSWORD)

    def handle(self, *args, **opts):
        for username, role in ensure_demo_users(opts["password"]):
            self.stdout.write(self.style.SUCCESS(f"ok: {username} ({role})"))
        self.stdout.write(self.style.SUCCESS("All demo users ensured."))
