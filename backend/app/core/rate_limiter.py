"""
Rate Limiting for the UniTrack API
==================================
slowapi with in-memory storage.

- Every route: API_RATE_LIMIT per client (default 100 per 15 minutes)
- POST /auth/student/login: LOGIN_RATE_LIMIT (default 5 per 15 minutes)

Limits are keyed by client IP. RATE_LIMIT_ENABLED=false turns them off
(the test suite does this).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.logging_config import logger


def get_client_identifier(request: Request) -> str:
    """Rate limit key: forwarded client IP when behind a proxy, else socket peer"""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return f"ip:{forwarded.split(',')[0].strip()}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=[settings.API_RATE_LIMIT],
    storage_uri="memory://",
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """429 with the same message/code envelope as every other error"""
    logger.warning(
        f"[RateLimit] Exceeded for {get_client_identifier(request)}: {exc.detail}",
        extra={"event_type": "rate_limited", "http_path": request.url.path}
    )

    message = "Too many requests, please try again later."
    if request.url.path.endswith("/auth/student/login"):
        message = "Too many login attempts, please try again later."

    return JSONResponse(
        status_code=429,
        content={
            "message": message,
            "code": "RATE_LIMITED",
            "detail": str(exc.detail),
        },
        headers={"Retry-After": "900"},
    )


def login_rate_limit():
    """Stricter limit for credential-guessing targets"""
    return limiter.limit(settings.LOGIN_RATE_LIMIT)
