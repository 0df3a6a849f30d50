"""
Payment gateway configuration endpoints.

Only the non-secret part of the M-Pesa configuration is exposed; the
error lookup lets the client show a readable message for a provider
result code.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.services.payments import MpesaConfig, get_error_message


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def payment_config(request):
    return Response({'ok': True, 'data': MpesaConfig.from_settings().public_summary()})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def payment_error_message(request, code: str):
    return Response({'ok': True, 'code': code, 'message': get_error_message(code)})
