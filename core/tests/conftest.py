import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from core.models import User
from core.services.notifications import registry


@pytest.fixture(autouse=True)
def _isolate(settings):
    """No background sweeper, fresh managers and throttle counters per test."""
    settings.NOTIFICATION_SWEEP_AUTOSTART = False
    registry.reset()
    cache.clear()
    yield
    registry.reset()


@pytest.fixture
def patient(db):
    return User.objects.create_user(username='patient1', password='P@ssw0rd1', role='patient')


@pytest.fixture
def physician(db):
    return User.objects.create_user(username='doctor1', password='P@ssw0rd1', role='physician')


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(username='admin1', password='P@ssw0rd1', role='admin')


@pytest.fixture
def client_for():
    def make(user) -> APIClient:
        client = APIClient()
        client.force_authenticate(user=user)
        return client
    return make
