import datetime

import pytest
from django.core.cache import cache
from rest_framework.authtoken.models import Token
from rest_framework.test import APIClient

from logistics.models import InventoryRecord, Location, User
from logistics.services.actors import Actor
from logistics.stores import DjangoInventoryStore, DjangoTransferLedger
from logistics.stores import retry as retry_module


@pytest.fixture(autouse=True)
def _clear_cache():
    # throttle counters and the dashboard cache live here
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def no_sleep(monkeypatch):
    """Record retry backoff delays instead of sleeping."""
    slept = []
    monkeypatch.setattr(retry_module.time, 'sleep', slept.append)
    return slept


@pytest.fixture
def warehouse(db):
    return Location.objects.create(name='Central Warehouse', type=Location.TYPE_WAREHOUSE)


@pytest.fixture
def icu(db):
    return Location.objects.create(name='ICU', type=Location.TYPE_WARD)


@pytest.fixture
def wards(db):
    return {
        name: Location.objects.create(name=name, type=Location.TYPE_WARD)
        for name in ('Ward A', 'Ward B', 'Ward C')
    }


@pytest.fixture
def inventory(db):
    return DjangoInventoryStore()


@pytest.fixture
def ledger(db):
    return DjangoTransferLedger()


@pytest.fixture
def stock(db):
    """stock(location, drug, qty) creates a record expiring in a year."""
    def make(location, drug_name, qty, expiry=None):
        return InventoryRecord.objects.create(
            location=location, drug_name=drug_name, quantity=qty,
            expiry_date=expiry or datetime.date.today() + datetime.timedelta(days=365),
        )
    return make


@pytest.fixture
def nurse_user(icu):
    return User.objects.create_user(username='nurse1', password='P@ssw0rd1', role=User.ROLE_NURSE, location=icu)


@pytest.fixture
def porter_user(db):
    return User.objects.create_user(username='porter1', password='P@ssw0rd1', role=User.ROLE_PORTER)


@pytest.fixture
def other_porter_user(db):
    return User.objects.create_user(username='porter2', password='P@ssw0rd1', role=User.ROLE_PORTER)


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(username='admin1', password='P@ssw0rd1', role=User.ROLE_ADMIN)


@pytest.fixture
def nurse(nurse_user):
    return Actor.from_user(nurse_user)


@pytest.fixture
def porter(porter_user):
    return Actor.from_user(porter_user)


@pytest.fixture
def other_porter(other_porter_user):
    return Actor.from_user(other_porter_user)


@pytest.fixture
def admin(admin_user):
    return Actor.from_user(admin_user)


@pytest.fixture
def api_client_for():
    """api_client_for(user) returns an APIClient carrying the user's token."""
    def make(user):
        client = APIClient()
        token, _ = Token.objects.get_or_create(user=user)
        client.credentials(HTTP_AUTHORIZATION=f'Token {token.key}')
        return client
    return make
