"""
Request rate limiting.

Route decorators are bound at import time, so the limiter is module-level.
Its limits are read through callables that ``configure_limiter`` points at
the application's settings.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from newsdesk.core.config import Settings

_limits = {
    "default": "100/minute",
    "auth": "10/minute",
}


def default_limit() -> str:
    return _limits["default"]


def auth_limit() -> str:
    return _limits["auth"]


limiter = Limiter(key_func=get_remote_address, default_limits=[default_limit])


def configure_limiter(settings: Settings) -> Limiter:
    """Apply the configured limits and on/off switch to the shared limiter."""
    _limits["default"] = settings.DEFAULT_RATE_LIMIT
    _limits["auth"] = settings.AUTH_RATE_LIMIT
    limiter.enabled = settings.RATE_LIMIT_ENABLED
    return limiter
