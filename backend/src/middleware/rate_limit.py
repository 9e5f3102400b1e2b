"""
Shared slowapi limiter.

The default limit (RATE_LIMIT_MAX_REQUESTS per RATE_LIMIT_WINDOW_MS) applies
to every route through SlowAPIMiddleware; auth endpoints add a tighter
per-route limit with ``@limiter.limit``.

Clients are keyed by IP, honouring X-Forwarded-For behind a proxy.
"""

from starlette.requests import Request

from slowapi import Limiter

from backend.src.config.settings import get_settings
from backend.src.utils.client_ip import get_client_ip


AUTH_RATE_LIMIT = "10/minute"


def rate_limit_key(request: Request) -> str:
    return get_client_ip(request)


def build_limiter() -> Limiter:
    settings = get_settings()
    return Limiter(
        key_func=rate_limit_key,
        default_limits=[settings.default_rate_limit],
        storage_uri=settings.rate_limit_storage_uri,
        headers_enabled=False,
    )


limiter = build_limiter()
