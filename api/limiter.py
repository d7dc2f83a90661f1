"""
api/limiter.py -- Shared slowapi rate limiter instance.

Import this in both api/main.py (to mount as middleware) and
api/routes/auth.py (to apply the login limit with @limiter.limit()).

One shared instance means every route counts against the same in-memory
store. default_limits applies RATE_LIMIT_REQUESTS per RATE_LIMIT_WINDOW_SECONDS
to every route; the limiter is switched off entirely in development.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

_settings = get_settings()

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
    default_limits=[_settings.default_rate_limit],
    enabled=not _settings.is_development,
)
