import logging
import traceback
from datetime import datetime

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from prometheus_fastapi_instrumentator import Instrumentator

from app.core.config import settings
from app.api.v1 import api_router
from app.db.session import check_db_connection
from app.core.logging_config import setup_logging, RequestLoggingMiddleware
from app.core.middleware import RequestSizeLimitMiddleware, SecurityHeadersMiddleware
from app.core.rate_limiter import limiter, rate_limit_exceeded_handler
from app.core.shutdown import lifespan_manager, RequestTrackingMiddleware
from app.services.payroll_ledger import LedgerError

# Configure structured logging (JSON in production, colored in development)
setup_logging()
logger = logging.getLogger("web3payroll")


class ErrorResponse(BaseModel):
    """Standardized error response format."""
    error: str
    detail: str | None = None
    timestamp: str
    path: str | None = None


class HealthResponse(BaseModel):
    """Health check response format."""
    status: str
    service: str
    version: str
    environment: str
    privacy: str
    timestamp: str
    checks: dict[str, bool]


app = FastAPI(
    title=f"{settings.PROJECT_NAME} API",
    description="Wallet-authenticated payroll with ENS employee identities",
    version=settings.VERSION,
    docs_url="/docs" if settings.DEBUG else None,  # Disable docs in production
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan_manager,  # Graceful startup/shutdown
)

# Add rate limiter to app state
app.state.limiter = limiter

# Register rate limit exceeded handler
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

cors_origins = settings.ALLOWED_ORIGINS


def get_cors_headers(request: Request) -> dict:
    """Get CORS headers based on request origin."""
    origin = request.headers.get("origin", "")
    if origin in cors_origins:
        return {
            "Access-Control-Allow-Origin": origin,
            "Access-Control-Allow-Credentials": "true",
        }
    return {}


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render ``{"error": detail}``; dict details already carry their own ``error``."""
    if isinstance(exc.detail, dict):
        content = exc.detail
    elif exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        content = {"error": "Route not found"}
    else:
        content = {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg"),
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Validation failed", "details": details},
    )


@app.exception_handler(LedgerError)
async def ledger_exception_handler(request: Request, exc: LedgerError) -> JSONResponse:
    logger.info(f"Ledger rejected {request.method} {request.url.path}: {exc.reason}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": exc.reason})


# Global exception handler - catches all unhandled exceptions
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler that returns consistent error responses.
    In production, sensitive details are hidden to prevent information leakage.
    """
    error_id = datetime.utcnow().strftime("%Y%m%d%H%M%S%f")

    logger.error(
        f"Unhandled exception [{error_id}]: {exc}\n"
        f"Path: {request.url.path}\n"
        f"Method: {request.method}\n"
        f"Traceback: {traceback.format_exc()}"
    )

    headers = get_cors_headers(request)

    if settings.IS_PRODUCTION:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(
                error="Internal server error",
                detail=f"An unexpected error occurred. Reference ID: {error_id}",
                timestamp=datetime.utcnow().isoformat(),
                path=request.url.path,
            ).model_dump(),
            headers=headers,
        )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error=exc.__class__.__name__,
            detail=str(exc),
            timestamp=datetime.utcnow().isoformat(),
            path=request.url.path,
        ).model_dump(),
        headers=headers,
    )


# Global default rate limit (per wallet, else per client IP)
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(SecurityHeadersMiddleware)

# Request Size Limit Middleware (prevents large payload DoS)
app.add_middleware(RequestSizeLimitMiddleware, max_size=settings.MAX_REQUEST_BODY_BYTES)

# Request tracking middleware for graceful shutdown
app.add_middleware(RequestTrackingMiddleware)

# Request logging middleware with timing and request IDs
app.add_middleware(RequestLoggingMiddleware)

app.include_router(api_router, prefix=settings.API_PREFIX)

# Prometheus metrics, exposed on /metrics only when ENABLE_METRICS=true
instrumentator = Instrumentator(
    should_group_status_codes=False,
    should_ignore_untemplated=True,
    should_respect_env_var=True,
    env_var_name="ENABLE_METRICS",
    excluded_handlers=["/health", "/metrics"],
)
instrumentator.instrument(app).expose(app, include_in_schema=False)


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Returns 503 when the database is unreachable."""
    db_healthy = await check_db_connection()
    checks = {"database": db_healthy}

    response = HealthResponse(
        status="healthy" if db_healthy else "unhealthy",
        service="web3-payroll-backend",
        version=settings.VERSION,
        environment=settings.ENVIRONMENT,
        privacy="Web3 Privacy-First",
        timestamp=datetime.utcnow().isoformat(),
        checks=checks,
    )

    if not db_healthy:
        logger.warning(f"Health check failed: {checks}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=response.model_dump(),
        )

    return response


@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.PROJECT_NAME} API"}
