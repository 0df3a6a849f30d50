"""
Authentication views and helper functions.

This module defines the login endpoint used by the mobile client as
well as the JWT refresh/logout pair.  By isolating these views from the
authentication class (see ``core.authentication``) we prevent circular
imports when Django REST framework initialises authentication classes.
"""
from __future__ import annotations

import logging

from django.contrib.auth import authenticate
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenRefreshView
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from core.authentication import issue_token
from core.serializers.auth import LoginSerializer
from core.services.audit import log_action, request_ip
from core.services.biometric import BiometricService
from core.throttling import LoginRateThrottle

from .models import User

logger = logging.getLogger(__name__)


def _audit(**kwargs) -> None:
    try:
        log_action(**kwargs)
    except Exception as e:
        logger.warning('Failed to audit %s: %s', kwargs.get('action'), e)


# ---------------------------------------------------------------------
# Username/password login
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([LoginRateThrottle])
def login_view(request):
    """
    Login with username/password.

    Returns the legacy DRF token together with a JWT pair, plus whether
    biometric login is enabled so the client can offer it next time.
    """
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    username = s.validated_data['username']
    password = s.validated_data['password']

    user = authenticate(request, username=username, password=password)
    if not user:
        # only the username is recorded for failed attempts
        _audit(user=None, action='login', object_type='user', object_id=None,
               detail={'result': 'fail', 'username': username, 'ip': request_ip(request)})
        return Response(
            {'ok': False, 'error': {'code': 'invalid_credentials', 'message': 'Invalid username or password'}},
            status=400,
        )

    _audit(user=user, action='login', object_type='user', object_id=user.id,
           detail={'result': 'ok', 'ip': request_ip(request)})

    token_obj = issue_token(user)
    refresh = RefreshToken.for_user(user)

    payload: dict[str, object] = {
        'ok': True,
        'token': token_obj.key,
        'jwt_access': str(refresh.access_token),
        'jwt_refresh': str(refresh),
        'role': user.role,
        'user': {
            'id': user.id,
            'username': user.username,
            'name': user.get_full_name() or user.username,
            'role': user.role,
        },
        'biometricEnabled': BiometricService(user).is_biometric_login_enabled(),
    }
    return Response(payload, status=200)


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------
def get_user_for_request(request) -> User | None:
    """Return the authenticated user from the request if available."""
    if not hasattr(request, 'user'):
        return None
    user = request.user
    if user and getattr(user, 'is_authenticated', False):
        return user  # type: ignore
    return None


# ---------------------------------------------------------------------
# JWT: refresh & logout
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def jwt_refresh_view(request):
    """Return a new access token from refresh token."""
    view = TokenRefreshView.as_view()
    resp = view(request._request)
    if isinstance(resp, Response):
        data = dict(resp.data)
        if 'access' in data and 'jwt_access' not in data:
            data['jwt_access'] = data.pop('access')
        return Response(data, status=resp.status_code)
    return resp


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def jwt_logout_view(request):
    """Blacklist current user's refresh tokens (all or a given one)."""
    refresh = request.data.get('refresh')
    count = 0
    if refresh:
        try:
            RefreshToken(refresh).blacklist()
            count = 1
        except TokenError as e:
            logger.info('Logout with unusable refresh token: %s', e)
    else:
        for token in OutstandingToken.objects.filter(user=request.user):
            _, created = BlacklistedToken.objects.get_or_create(token=token)
            count += int(created)
    _audit(user=request.user, action='logout', object_type='user', object_id=request.user.id,
           detail={'blacklisted': count})
    return Response({'ok': True, 'blacklisted': count})
