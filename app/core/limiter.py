# app/core/limiter.py
"""
Rate limiter configuration module.
Separated to avoid circular imports.
"""

from slowapi import Limiter

from app.core.config import settings
from app.core.request_context import rate_limit_key

# Both check-in routes count against one bucket per address
CHECKIN_SCOPE = "checkin"


def api_rate_limit() -> str:
    return settings.API_RATE_LIMIT


def checkin_rate_limit() -> str:
    return settings.CHECKIN_RATE_LIMIT


# Keyed by the request-context client address (proxy-aware when configured).
# The application limit is one bucket per address across every route.
limiter = Limiter(key_func=rate_limit_key, application_limits=[api_rate_limit])
