"""
Stable import paths for authentication.

The rest of the project imports ``TokenAuthentication`` and
``login_view`` from here so that their implementation modules can move
without touching callers.
"""

from .authentication import TokenAuthentication
from .auth_views import (
    login_view,
    jwt_refresh_view,
    jwt_logout_view,
    get_user_for_request,
)

__all__ = [
    'TokenAuthentication',
    'login_view',
    'jwt_refresh_view',
    'jwt_logout_view',
    'get_user_for_request',
]
