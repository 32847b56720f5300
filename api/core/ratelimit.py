"""Rate limiting for the admin write endpoints and health probes (slowapi).

Limits come from settings (``RATELIMIT_ADMIN_WRITE``, ``RATELIMIT_HEALTH``).
memory:// storage counts per worker; point RATELIMIT_STORAGE_URI at Redis
when running several replicas.
"""

import logging

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from core.config import get_settings
from core.i18n import resolve_language, t

logger = logging.getLogger(__name__)

settings = get_settings()


def _client_key(request: Request) -> str:
    """Client address, taken from X-Forwarded-For when the proxy is trusted."""
    if settings.trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    return get_remote_address(request)


_using_redis = settings.ratelimit_storage_uri.startswith("redis://")

limiter = Limiter(
    key_func=_client_key,
    default_limits=[settings.ratelimit_default],
    storage_uri=settings.ratelimit_storage_uri,
    in_memory_fallback_enabled=_using_redis,
    key_prefix="catalog:",
)

ADMIN_WRITE_LIMIT = settings.ratelimit_admin_write
HEALTH_LIMIT = settings.ratelimit_health


def rate_limit_exceeded_handler(request: Request, exc: Exception) -> Response:
    """429 in the same ``{"detail", "code"}`` shape as the domain errors."""
    if not isinstance(exc, RateLimitExceeded):
        return JSONResponse(status_code=500, content={"detail": "Unexpected error"})

    lang = resolve_language(
        request.query_params.get("lang"), request.headers.get("accept-language")
    )
    logger.warning(
        "ratelimit.exceeded",
        extra={"client": _client_key(request), "limit": exc.detail},
    )
    return JSONResponse(
        status_code=429,
        content={"detail": t("errors.rate_limited", lang), "code": "rate_limited"},
        headers={"Retry-After": str(getattr(exc, "retry_after", 60))},
    )
