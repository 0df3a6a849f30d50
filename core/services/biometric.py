"""
Biometric login gate.

The service wraps a device authenticator (the platform fingerprint/face
API, reached through an adapter) and the per-user secure store that
remembers whether biometric login is enabled.  Platform failures are
reduced to a small closed set of :class:`BiometricException` messages;
everything else is logged and answered with a safe default.
"""
from __future__ import annotations

import enum
import json
import logging
from typing import Any, Optional

from django.conf import settings
from django.utils.module_loading import import_string

from core.exceptions import ServiceError
from core.services.audit import log_action
from core.services.secure_storage import SecureStorage

logger = logging.getLogger(__name__)

KEY_USER_ID = 'biometric_user_id'
KEY_USER_DATA = 'biometric_user_data'
KEY_ENABLED = 'biometric_enabled'

ENABLE_REASON = 'Enable biometric login for MedRefer AI'

MSG_NOT_AVAILABLE = 'Biometric authentication not available'

# platform error code -> user facing message
PLATFORM_ERRORS = {
    'NotAvailable': MSG_NOT_AVAILABLE,
    'NotEnrolled': 'No biometrics enrolled on this device',
    'LockedOut': 'Biometric authentication is temporarily locked',
    'PermanentlyLockedOut': 'Biometric authentication is permanently locked',
}


class BiometricType(str, enum.Enum):
    FINGERPRINT = 'fingerprint'
    FACE = 'face'
    IRIS = 'iris'
    STRONG = 'strong'
    WEAK = 'weak'


CAPABILITY_LABELS = [
    (BiometricType.FINGERPRINT, 'Fingerprint'),
    (BiometricType.FACE, 'Face ID'),
    (BiometricType.IRIS, 'Iris'),
    (BiometricType.STRONG, 'Strong Biometric'),
    (BiometricType.WEAK, 'Weak Biometric'),
]


class BiometricException(ServiceError):
    code = 'biometric_error'


class PlatformAuthError(Exception):
    """Raised by authenticators with the platform's error code."""

    def __init__(self, code: str, message: str = ''):
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message


class DeviceAuthenticator:
    """Adapter interface over the device biometric API."""

    def can_check_biometrics(self) -> bool:
        raise NotImplementedError

    def is_device_supported(self) -> bool:
        raise NotImplementedError

    def get_available_biometrics(self) -> list[BiometricType]:
        raise NotImplementedError

    def authenticate(self, *, reason: str, use_error_dialogs: bool = True,
                     sticky_auth: bool = True, biometric_only: bool = False) -> bool:
        raise NotImplementedError


class NullAuthenticator(DeviceAuthenticator):
    """Authenticator for environments without any biometric hardware."""

    def can_check_biometrics(self) -> bool:
        return False

    def is_device_supported(self) -> bool:
        return False

    def get_available_biometrics(self) -> list[BiometricType]:
        return []

    def authenticate(self, *, reason, use_error_dialogs=True, sticky_auth=True, biometric_only=False) -> bool:
        raise PlatformAuthError('NotAvailable', 'no biometric hardware')


class ReportedAuthenticator(DeviceAuthenticator):
    """Authenticator built from what the mobile client reports.

    The client runs the local prompt and posts the outcome, e.g.::

        {"canCheckBiometrics": true, "deviceSupported": true,
         "biometrics": ["face"], "authenticated": true}

    An ``errorCode`` entry is surfaced as a :class:`PlatformAuthError`.
    """

    def __init__(self, report: dict[str, Any]):
        self.report = report or {}

    def can_check_biometrics(self) -> bool:
        return bool(self.report.get('canCheckBiometrics'))

    def is_device_supported(self) -> bool:
        return bool(self.report.get('deviceSupported'))

    def get_available_biometrics(self) -> list[BiometricType]:
        # unknown labels raise ValueError, handled by the caller
        return [BiometricType(b) for b in self.report.get('biometrics') or []]

    def authenticate(self, *, reason, use_error_dialogs=True, sticky_auth=True, biometric_only=False) -> bool:
        code = self.report.get('errorCode')
        if code:
            raise PlatformAuthError(code, self.report.get('errorMessage') or '')
        return bool(self.report.get('authenticated'))


def default_authenticator() -> DeviceAuthenticator:
    return import_string(settings.BIOMETRIC_AUTHENTICATOR)()


class BiometricService:
    def __init__(self, user, authenticator: Optional[DeviceAuthenticator] = None,
                 storage: Optional[SecureStorage] = None):
        self.user = user
        self.authenticator = authenticator or default_authenticator()
        self.storage = storage or SecureStorage(user)

    def is_biometric_available(self) -> bool:
        try:
            return self.authenticator.can_check_biometrics() and self.authenticator.is_device_supported()
        except Exception as e:
            logger.warning('Error checking biometric availability: %s', e)
            return False

    def get_available_biometrics(self) -> list[BiometricType]:
        try:
            return list(self.authenticator.get_available_biometrics())
        except Exception as e:
            logger.warning('Error getting available biometrics: %s', e)
            return []

    def authenticate(self, reason: str, *, use_error_dialogs: bool = True, sticky_auth: bool = True) -> bool:
        """Run the device prompt.

        Returns True/False for a completed prompt.  An unavailable device is
        logged and answers False.  Raises :class:`BiometricException` only
        when the platform reports one of the known lockout/enrolment errors.
        """
        try:
            if not self.is_biometric_available():
                logger.warning('Biometric authentication error: %s', MSG_NOT_AVAILABLE)
                return False
            did_authenticate = self.authenticator.authenticate(
                reason=reason,
                use_error_dialogs=use_error_dialogs,
                sticky_auth=sticky_auth,
                biometric_only=False,
            )
        except PlatformAuthError as e:
            logger.warning('Biometric authentication error: %s', e.message or e.code)
            self._log_event('authentication_error', details=e.message or e.code)
            if e.code in PLATFORM_ERRORS:
                raise BiometricException(PLATFORM_ERRORS[e.code], code=e.code) from e
            return False
        except Exception:
            logger.exception('Unexpected biometric error')
            return False

        self._log_event('authentication_success' if did_authenticate else 'authentication_failed')
        return bool(did_authenticate)

    def enable_biometric_login(self, user_id: str, user_data: dict[str, Any]) -> bool:
        try:
            if not self.authenticate(ENABLE_REASON):
                return False
            self.storage.write(KEY_USER_ID, str(user_id))
            self.storage.write(KEY_USER_DATA, json.dumps(user_data))
            self.storage.write(KEY_ENABLED, 'true')
            self._log_event('biometric_login_enabled')
            return True
        except Exception as e:
            logger.warning('Error enabling biometric login: %s', e)
            return False

    def disable_biometric_login(self) -> None:
        try:
            self.storage.delete(KEY_USER_ID)
            self.storage.delete(KEY_USER_DATA)
            self.storage.write(KEY_ENABLED, 'false')
            self._log_event('biometric_login_disabled')
        except Exception as e:
            logger.warning('Error disabling biometric login: %s', e)

    def is_biometric_login_enabled(self) -> bool:
        try:
            return self.storage.read(KEY_ENABLED) == 'true'
        except Exception as e:
            logger.warning('Error checking biometric login status: %s', e)
            return False

    def get_enrolled_user_data(self) -> Optional[dict[str, Any]]:
        try:
            raw = self.storage.read(KEY_USER_DATA)
            return json.loads(raw) if raw else None
        except Exception as e:
            logger.warning('Error reading biometric user data: %s', e)
            return None

    def get_biometric_capabilities_description(self) -> str:
        try:
            available = self.authenticator.get_available_biometrics()
            if not available:
                return 'No biometric authentication available'
            return ', '.join(label for kind, label in CAPABILITY_LABELS if kind in available)
        except Exception as e:
            logger.warning('Error getting biometric capabilities: %s', e)
            return 'Unknown'

    def _log_event(self, event: str, details: Optional[str] = None) -> None:
        detail = {'details': details} if details else None
        try:
            log_action(user=self.user, action=event, object_type='user',
                       object_id=getattr(self.user, 'id', None), detail=detail)
        except Exception as e:
            logger.warning('Failed to audit biometric event %s: %s', event, e)
