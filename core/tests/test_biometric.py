import pytest

from core.models import AuditEvent, SecureValue
from core.services.biometric import (
    BiometricService,
    BiometricException,
    BiometricType,
    DeviceAuthenticator,
    NullAuthenticator,
    PlatformAuthError,
    ReportedAuthenticator,
    KEY_ENABLED,
    KEY_USER_DATA,
)
from core.services.secure_storage import SecureStorage

pytestmark = pytest.mark.django_db


class FakeAuthenticator(DeviceAuthenticator):
    def __init__(self, *, can_check=True, supported=True, biometrics=None, result=True, error=None):
        self.can_check = can_check
        self.supported = supported
        self.biometrics = biometrics if biometrics is not None else [BiometricType.FINGERPRINT]
        self.result = result
        self.error = error
        self.calls = []

    def can_check_biometrics(self):
        return self.can_check

    def is_device_supported(self):
        return self.supported

    def get_available_biometrics(self):
        if isinstance(self.biometrics, Exception):
            raise self.biometrics
        return self.biometrics

    def authenticate(self, *, reason, use_error_dialogs=True, sticky_auth=True, biometric_only=False):
        self.calls.append(reason)
        if self.error is not None:
            raise self.error
        return self.result


def test_availability_requires_both_checks(patient):
    assert BiometricService(patient, FakeAuthenticator()).is_biometric_available() is True
    assert BiometricService(patient, FakeAuthenticator(can_check=False)).is_biometric_available() is False
    assert BiometricService(patient, FakeAuthenticator(supported=False)).is_biometric_available() is False


def test_authenticate_success_and_failure_are_audited(patient):
    assert BiometricService(patient, FakeAuthenticator(result=True)).authenticate('test') is True
    assert BiometricService(patient, FakeAuthenticator(result=False)).authenticate('test') is False
    actions = list(AuditEvent.objects.order_by('id').values_list('action', flat=True))
    assert actions == ['authentication_success', 'authentication_failed']


def test_authenticate_returns_false_when_unavailable(patient):
    authenticator = FakeAuthenticator(supported=False)
    assert BiometricService(patient, authenticator).authenticate('test') is False
    assert BiometricService(patient, NullAuthenticator()).authenticate('test') is False
    assert authenticator.calls == []
    assert not AuditEvent.objects.exists()


@pytest.mark.parametrize('code,message', [
    ('NotEnrolled', 'No biometrics enrolled on this device'),
    ('LockedOut', 'Biometric authentication is temporarily locked'),
    ('PermanentlyLockedOut', 'Biometric authentication is permanently locked'),
])
def test_known_platform_errors_are_mapped(patient, code, message):
    svc = BiometricService(patient, FakeAuthenticator(error=PlatformAuthError(code, 'platform text')))
    with pytest.raises(BiometricException) as exc:
        svc.authenticate('test')
    assert exc.value.message == message
    assert exc.value.code == code


def test_unknown_platform_error_returns_false(patient):
    svc = BiometricService(patient, FakeAuthenticator(error=PlatformAuthError('OtherOperatingSystem', 'x')))
    assert svc.authenticate('test') is False
    assert AuditEvent.objects.filter(action='authentication_error').exists()


def test_unexpected_error_returns_false(patient):
    svc = BiometricService(patient, FakeAuthenticator(error=RuntimeError('boom')))
    assert svc.authenticate('test') is False


def test_enable_and_disable_round_trip(patient):
    svc = BiometricService(patient, FakeAuthenticator())
    assert svc.is_biometric_login_enabled() is False

    assert svc.enable_biometric_login('42', {'username': 'patient1'}) is True
    assert svc.is_biometric_login_enabled() is True
    assert svc.get_enrolled_user_data() == {'username': 'patient1'}
    assert AuditEvent.objects.filter(action='biometric_login_enabled').exists()

    svc.disable_biometric_login()
    assert svc.is_biometric_login_enabled() is False
    assert svc.get_enrolled_user_data() is None
    assert AuditEvent.objects.filter(action='biometric_login_disabled').exists()


def test_enable_fails_without_touching_storage_when_prompt_rejected(patient):
    svc = BiometricService(patient, FakeAuthenticator(result=False))
    assert svc.enable_biometric_login('42', {}) is False
    assert not SecureValue.objects.filter(user=patient).exists()


def test_enable_returns_false_when_unavailable(patient):
    svc = BiometricService(patient, NullAuthenticator())
    assert svc.enable_biometric_login('42', {}) is False
    assert svc.is_biometric_login_enabled() is False


def test_storage_values_are_encrypted(patient):
    BiometricService(patient, FakeAuthenticator()).enable_biometric_login('42', {'name': 'secret-name'})
    stored = SecureValue.objects.get(user=patient, key=KEY_USER_DATA).value
    assert 'secret-name' not in stored
    assert SecureStorage(patient).read(KEY_ENABLED) == 'true'


def test_unreadable_storage_reports_disabled(patient):
    SecureStorage(patient, secret='another-key').write(KEY_ENABLED, 'true')
    assert BiometricService(patient, FakeAuthenticator()).is_biometric_login_enabled() is False


def test_capabilities_description(patient):
    kinds = [BiometricType.FACE, BiometricType.FINGERPRINT]
    assert BiometricService(patient, FakeAuthenticator(biometrics=kinds)).get_biometric_capabilities_description() == 'Fingerprint, Face ID'
    assert BiometricService(patient, FakeAuthenticator(biometrics=[])).get_biometric_capabilities_description() == 'No biometric authentication available'
    broken = FakeAuthenticator(biometrics=RuntimeError('boom'))
    assert BiometricService(patient, broken).get_biometric_capabilities_description() == 'Unknown'
    assert BiometricService(patient, broken).get_available_biometrics() == []


def test_reported_authenticator_reads_client_report():
    auth = ReportedAuthenticator({'canCheckBiometrics': True, 'deviceSupported': True,
                                  'biometrics': ['face'], 'authenticated': True})
    assert auth.can_check_biometrics() and auth.is_device_supported()
    assert auth.get_available_biometrics() == [BiometricType.FACE]
    assert auth.authenticate(reason='x') is True

    with pytest.raises(PlatformAuthError) as exc:
        ReportedAuthenticator({'errorCode': 'LockedOut'}).authenticate(reason='x')
    assert exc.value.code == 'LockedOut'


# ---------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------
DEVICE_OK = {'canCheckBiometrics': True, 'deviceSupported': True, 'biometrics': ['fingerprint'], 'authenticated': True}


def test_status_endpoint_defaults_to_unavailable(patient, client_for):
    r = client_for(patient).get('/api/biometric/status')
    assert r.status_code == 200
    assert r.data['enabled'] is False
    assert r.data['available'] is False
    assert r.data['capabilities'] == 'No biometric authentication available'


def test_enable_status_disable_flow(patient, client_for):
    client = client_for(patient)
    r = client.post('/api/biometric/enable', {'device': DEVICE_OK}, format='json')
    assert r.status_code == 200
    assert r.data['enabled'] is True

    r = client.post('/api/biometric/status', DEVICE_OK, format='json')
    assert r.data['enabled'] is True
    assert r.data['available'] is True
    assert r.data['biometrics'] == ['fingerprint']
    assert BiometricService(patient, NullAuthenticator()).get_enrolled_user_data() == {'username': 'patient1', 'role': 'patient'}

    r = client.post('/api/biometric/disable', {}, format='json')
    assert r.status_code == 200
    assert r.data['enabled'] is False


def test_enable_rejected_prompt_returns_400(patient, client_for):
    device = dict(DEVICE_OK, authenticated=False)
    r = client_for(patient).post('/api/biometric/enable', {'device': device}, format='json')
    assert r.status_code == 400
    assert r.data['error']['code'] == 'biometric_failed'


def test_authenticate_endpoint_maps_lockout(patient, client_for):
    device = dict(DEVICE_OK, errorCode='LockedOut')
    r = client_for(patient).post('/api/biometric/authenticate', device, format='json')
    assert r.status_code == 400
    assert r.data['error'] == {'code': 'LockedOut', 'message': 'Biometric authentication is temporarily locked'}


def test_authenticate_endpoint_success(patient, client_for):
    r = client_for(patient).post('/api/biometric/authenticate', DEVICE_OK, format='json')
    assert r.status_code == 200
    assert r.data['authenticated'] is True


def test_authenticate_endpoint_unavailable_device(patient, client_for):
    device = dict(DEVICE_OK, deviceSupported=False)
    r = client_for(patient).post('/api/biometric/authenticate', device, format='json')
    assert r.status_code == 200
    assert r.data == {'ok': True, 'authenticated': False}
