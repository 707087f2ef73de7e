"""
Rate limiting for the Web3 Payroll API.
SlowAPI with in-memory storage unless RATE_LIMIT_STORAGE_URI points to a shared backend.
"""

import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from app.core.config import settings
from app.core.wallet import is_valid_address

logger = logging.getLogger("web3payroll.rate_limiter")


def get_real_client_ip(request: Request) -> str:
    """
    Get the real client IP, accounting for reverse proxies.
    Checks X-Forwarded-For header first, then falls back to direct IP.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # First IP in the chain is the original client
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return get_remote_address(request)


def get_client_identifier(request: Request) -> str:
    """
    Rate limit key: the caller's wallet when it sends one, otherwise its IP.
    """
    wallet = request.headers.get("x-wallet-address")
    if wallet and is_valid_address(wallet):
        return f"wallet:{wallet.lower()}"
    return f"ip:{get_real_client_ip(request)}"


if settings.RATE_LIMIT_STORAGE_URI:
    logged_uri = settings.RATE_LIMIT_STORAGE_URI.split("@")[-1]
    logger.info(f"Rate limiter using shared storage: {logged_uri}")
elif settings.IS_PRODUCTION:
    logger.warning(
        "PRODUCTION WARNING: Rate limiting is using in-memory storage. "
        "Limits won't sync across instances; configure RATE_LIMIT_STORAGE_URI."
    )


limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI or "memory://",
    strategy="fixed-window",
    headers_enabled=False,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Handler for rate limit exceeded errors.
    Returns a JSON response with retry information.
    """
    logger.warning(
        f"Rate limit exceeded for {get_client_identifier(request)} "
        f"on {request.method} {request.url.path}"
    )

    retry_after = getattr(exc, "retry_after", 60)

    return JSONResponse(
        status_code=429,
        content={
            "error": "Rate limit exceeded",
            "detail": f"Too many requests. Please retry after {retry_after} seconds.",
            "retry_after": retry_after,
        },
        headers={"Retry-After": str(retry_after)},
    )


class RateLimits:
    """Per-endpoint limits layered on top of the default."""

    AUTH_LOGIN = "10/minute"
    ENS_LOOKUP = "60/minute"
    PAYROLL_PROCESS = "30/minute"
