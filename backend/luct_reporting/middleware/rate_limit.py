"""Shared slowapi limiter, keyed on the client address.

The limiter is process-wide. ``configure_limiter`` applies an app's settings
to it; the last app created in a process wins.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from luct_reporting.config import Settings, settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

_login_limit = settings.LOGIN_RATE_LIMIT


def configure_limiter(app_settings: Settings) -> Limiter:
    global _login_limit
    limiter.enabled = app_settings.RATE_LIMIT_ENABLED
    _login_limit = app_settings.LOGIN_RATE_LIMIT
    return limiter


def login_limit() -> str:
    """Current login limit, evaluated by slowapi on every request."""
    return _login_limit
