"""
Biometric login endpoints.

The mobile client runs the device prompt locally and posts a ``device``
report; the server maps it through :class:`ReportedAuthenticator` and
keeps the enabled flag in the user's secure store.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.serializers.biometric import DeviceReportSerializer, BiometricEnableSerializer
from core.services.biometric import BiometricService, ReportedAuthenticator
from core.throttling import BiometricRateThrottle


def _service(request, report: dict | None = None) -> BiometricService:
    authenticator = ReportedAuthenticator(report) if report is not None else None
    return BiometricService(request.user, authenticator=authenticator)


def _status_payload(svc: BiometricService) -> dict:
    return {
        'ok': True,
        'enabled': svc.is_biometric_login_enabled(),
        'available': svc.is_biometric_available(),
        'biometrics': [b.value for b in svc.get_available_biometrics()],
        'capabilities': svc.get_biometric_capabilities_description(),
    }


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def biometric_status(request):
    """Return the stored flag plus the capabilities of the reporting device.

    ``GET`` answers with the server default authenticator; ``POST`` takes
    a device report in the body.
    """
    report = None
    if request.method == 'POST':
        s = DeviceReportSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        report = s.validated_data
    return Response(_status_payload(_service(request, report)))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@throttle_classes([BiometricRateThrottle])
def biometric_authenticate(request):
    s = DeviceReportSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    reason = str(request.data.get('reason') or 'Sign in to MedRefer AI')[:255]
    ok = _service(request, s.validated_data).authenticate(reason)
    return Response({'ok': True, 'authenticated': ok})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@throttle_classes([BiometricRateThrottle])
def biometric_enable(request):
    s = BiometricEnableSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = request.user
    user_data = s.validated_data.get('userData') or {'username': user.username, 'role': user.role}
    enabled = _service(request, s.validated_data['device']).enable_biometric_login(str(user.id), user_data)
    if not enabled:
        return Response(
            {'ok': False, 'error': {'code': 'biometric_failed', 'message': 'Biometric login could not be enabled'}},
            status=400,
        )
    return Response({'ok': True, 'enabled': True})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def biometric_disable(request):
    svc = _service(request)
    svc.disable_biometric_login()
    return Response({'ok': True, 'enabled': svc.is_biometric_login_enabled()})
