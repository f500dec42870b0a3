# accounts/throttles.py
"""Rate limiting for authentication endpoints."""

from rest_framework.throttling import AnonRateThrottle


class LoginThrottle(AnonRateThrottle):
    """
    Rate limit login attempts.

    Default: 10 attempts per minute per IP.
    Configured via settings.REST_FRAMEWORK['DEFAULT_THROTTLE_RATES']['login']
    """
    scope = 'login'
