"""
Per-endpoint rate limits.

Function views built with ``@api_view`` do not carry a ``throttle_scope``
attribute through to the generated view class, so each scope gets its
own throttle class instead.  Rates live in
``REST_FRAMEWORK['DEFAULT_THROTTLE_RATES']``.
"""
from rest_framework.throttling import AnonRateThrottle, UserRateThrottle


class LoginRateThrottle(AnonRateThrottle):
    scope = 'login'


class BiometricRateThrottle(UserRateThrottle):
    scope = 'biometric'


class CheckoutRateThrottle(UserRateThrottle):
    """Counts order placement only; listing orders is not limited."""
    scope = 'checkout'

    def allow_request(self, request, view):
        if request.method != 'POST':
            return True
        return super().allow_request(request, view)
