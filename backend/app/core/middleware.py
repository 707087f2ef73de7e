"""
HTTP hardening middleware: security headers and request body size limits.
"""

import logging
from typing import Callable

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import settings

logger = logging.getLogger("web3payroll.middleware")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Adds the browser security headers a JSON API should always send.
    """
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "0"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cross-Origin-Opener-Policy"] = "same-origin"
        response.headers["Cross-Origin-Resource-Policy"] = "same-origin"
        response.headers["X-DNS-Prefetch-Control"] = "off"
        if settings.IS_PRODUCTION:
            response.headers["Strict-Transport-Security"] = "max-age=15552000; includeSubDomains"

        # Interactive docs need inline scripts; everything else is JSON
        if "text/html" not in response.headers.get("content-type", ""):
            response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"

        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """
    Rejects requests whose declared body exceeds ``max_size`` bytes.
    """

    def __init__(self, app, max_size: int = 1024 * 1024):
        super().__init__(app)
        self.max_size = max_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self.max_size:
            logger.warning(
                f"Request too large: {content_length} bytes "
                f"(max: {self.max_size}) from {request.client.host if request.client else 'unknown'}"
            )
            return JSONResponse(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                content={"error": f"Request body too large. Maximum size is {self.max_size} bytes"},
            )

        return await call_next(request)
