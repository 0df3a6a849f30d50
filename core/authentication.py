"""
Legacy DRF token authentication with expiry.

The mobile client still sends ``Authorization: Token <key>`` on older
builds.  Keys older than ``AUTH_TOKEN_TTL_HOURS`` are rejected and
deleted; login hands out a fresh one through :func:`issue_token`.  This
module holds no views so that REST framework can import it while
initialising authentication classes without circular imports.
"""
from __future__ import annotations

import logging
from datetime import timedelta

from django.conf import settings
from django.utils import timezone
from rest_framework import authentication, exceptions
from rest_framework.authtoken.models import Token

logger = logging.getLogger(__name__)


def token_expired(token: Token) -> bool:
    ttl = settings.AUTH_TOKEN_TTL_HOURS
    return bool(ttl) and token.created < timezone.now() - timedelta(hours=ttl)


def issue_token(user) -> Token:
    """Return the user's token, replacing it when it has expired."""
    token, created = Token.objects.get_or_create(user=user)
    if not created and token_expired(token):
        token.delete()
        token = Token.objects.create(user=user)
    return token


class TokenAuthentication(authentication.TokenAuthentication):
    keyword = 'Token'

    def authenticate_credentials(self, key):
        user, token = super().authenticate_credentials(key)
        if token_expired(token):
            logger.info('Rejected expired token for user %s', user.id)
            token.delete()
            raise exceptions.AuthenticationFailed('Token has expired.')
        return user, token
