import pytest
from django.urls import reverse
from rest_framework.test import APIClient
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken

from core.models import User, AuditEvent

pytestmark = pytest.mark.django_db


def test_no_role_bypass_in_login():
    client = APIClient()
    u = User.objects.create_user(username='u1', password='P@ssw0rd1', role='patient')
    # extra role field must be ignored
    r = client.post(reverse('login_view'), {'username': 'u1', 'password': 'P@ssw0rd1', 'role': 'admin'}, format='json')
    assert r.status_code == 200
    assert r.data['role'] == 'patient'
    u.refresh_from_db()
    assert u.role == 'patient'


def test_login_returns_jwt_and_legacy_token():
    client = APIClient()
    User.objects.create_user(username='u_jwt', password='P@ssw0rd1', role='physician')
    r = client.post(reverse('login_view'), {'username': 'u_jwt', 'password': 'P@ssw0rd1'}, format='json')
    assert r.status_code == 200
    assert r.data['jwt_access']
    assert r.data['jwt_refresh']
    assert r.data['token']
    assert r.data['user']['role'] == 'physician'
    assert r.data['biometricEnabled'] is False


def test_login_failure_is_audited_without_password():
    client = APIClient()
    User.objects.create_user(username='u2', password='P@ssw0rd1')
    r = client.post(reverse('login_view'), {'username': 'u2', 'password': 'wrong'}, format='json')
    assert r.status_code == 400
    assert r.data['ok'] is False
    assert r.data['error']['code'] == 'invalid_credentials'
    event = AuditEvent.objects.get(action='login')
    assert event.detail['result'] == 'fail'
    assert event.detail['username'] == 'u2'
    assert 'password' not in event.detail


def test_login_validation_error_uses_unified_envelope():
    r = APIClient().post(reverse('login_view'), {'username': ''}, format='json')
    assert r.status_code == 400
    assert r.data['ok'] is False
    assert 'error' in r.data


def test_legacy_token_authenticates_requests():
    client = APIClient()
    User.objects.create_user(username='u3', password='P@ssw0rd1')
    token = client.post(reverse('login_view'), {'username': 'u3', 'password': 'P@ssw0rd1'}, format='json').data['token']
    client.credentials(HTTP_AUTHORIZATION=f'Token {token}')
    assert client.get('/api/payments/config').status_code == 200


def test_jwt_authenticates_and_refreshes():
    client = APIClient()
    User.objects.create_user(username='u4', password='P@ssw0rd1')
    data = client.post(reverse('login_view'), {'username': 'u4', 'password': 'P@ssw0rd1'}, format='json').data

    client.credentials(HTTP_AUTHORIZATION=f"Bearer {data['jwt_access']}")
    assert client.get('/api/notifications').status_code == 200

    r = APIClient().post(reverse('jwt_refresh_view'), {'refresh': data['jwt_refresh']}, format='json')
    assert r.status_code == 200
    assert r.data['jwt_access']


def test_logout_blacklists_refresh_token():
    client = APIClient()
    User.objects.create_user(username='u5', password='P@ssw0rd1')
    data = client.post(reverse('login_view'), {'username': 'u5', 'password': 'P@ssw0rd1'}, format='json').data
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {data['jwt_access']}")

    r = client.post(reverse('jwt_logout_view'), {'refresh': data['jwt_refresh']}, format='json')
    assert r.status_code == 200
    assert r.data['blacklisted'] == 1
    assert BlacklistedToken.objects.count() == 1

    again = APIClient().post(reverse('jwt_refresh_view'), {'refresh': data['jwt_refresh']}, format='json')
    assert again.status_code == 401


def test_anonymous_requests_are_rejected():
    client = APIClient()
    for url in ('/api/notifications', '/api/pharmacy/cart', '/api/search?q=a', '/api/biometric/status'):
        assert client.get(url).status_code == 401, url


def test_healthz():
    r = APIClient().get('/healthz')
    assert r.status_code == 200
    assert r.json() == {'ok': True, 'db': True}


def test_expired_legacy_token_is_rejected_and_rotated_on_login(settings):
    from datetime import timedelta
    from django.utils import timezone
    from rest_framework.authtoken.models import Token

    settings.AUTH_TOKEN_TTL_HOURS = 1
    client = APIClient()
    User.objects.create_user(username='u6', password='P@ssw0rd1')
    old_key = client.post(reverse('login_view'), {'username': 'u6', 'password': 'P@ssw0rd1'}, format='json').data['token']
    Token.objects.filter(key=old_key).update(created=timezone.now() - timedelta(hours=2))

    client.credentials(HTTP_AUTHORIZATION=f'Token {old_key}')
    assert client.get('/api/payments/config').status_code == 401
    assert not Token.objects.filter(key=old_key).exists()

    fresh = APIClient().post(reverse('login_view'), {'username': 'u6', 'password': 'P@ssw0rd1'}, format='json').data['token']
    assert fresh != old_key
    client.credentials(HTTP_AUTHORIZATION=f'Token {fresh}')
    assert client.get('/api/payments/config').status_code == 200


def test_login_audit_records_forwarded_client_ip():
    User.objects.create_user(username='u7', password='P@ssw0rd1')
    APIClient().post(reverse('login_view'), {'username': 'u7', 'password': 'P@ssw0rd1'}, format='json',
                     HTTP_X_FORWARDED_FOR='203.0.113.7, 10.0.0.1')
    assert AuditEvent.objects.get(action='login').detail == {'result': 'ok', 'ip': '203.0.113.7'}
