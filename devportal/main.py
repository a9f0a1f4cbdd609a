"""
DevPortal Access API - Main application entry point.
"""
import time
from contextlib import asynccontextmanager
from typing import Dict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from structlog.contextvars import bind_contextvars, clear_contextvars

from devportal.api.v1.router import api_router
from devportal.core.config import settings
from devportal.core.errors import ErrorCode, ErrorResponse
from devportal.core.exceptions import DevPortalException
from devportal.core.logging import get_logger, log_error_details, log_request_details, setup_logging
from devportal.infrastructure.store import RedisResourceStore
from devportal.services.access import build_portal

# Setup logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    """
    # Startup
    logger.info(
        "Starting DevPortal Access API",
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        store_backend=settings.STORE_BACKEND,
    )
    app.state.portal = build_portal(settings)

    yield

    # Shutdown
    logger.info("Shutting down DevPortal Access API")
    if isinstance(app.state.portal.store, RedisResourceStore):
        await app.state.portal.store.close()


# Create FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.APP_VERSION,
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json" if not settings.is_production else None,
    docs_url=f"{settings.API_V1_PREFIX}/docs" if not settings.is_production else None,
    redoc_url=f"{settings.API_V1_PREFIX}/redoc" if not settings.is_production else None,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Add request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests with timing information."""
    start_time = time.time()

    logger.info(
        "Request started",
        **log_request_details(
            request_id=request.headers.get("X-Request-ID", ""),
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
        ),
    )

    response = await call_next(request)

    duration_ms = (time.time() - start_time) * 1000
    logger.info(
        "Request completed",
        status_code=response.status_code,
        duration_ms=round(duration_ms, 2),
    )

    return response


# Add request ID middleware (registered last so it runs first)
@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add unique request ID to each request."""
    request_id = request.headers.get("X-Request-ID", str(time.time_ns()))

    # Bind request ID to logging context
    clear_contextvars()
    bind_contextvars(request_id=request_id)

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(DevPortalException)
async def portal_exception_handler(request: Request, exc: DevPortalException):
    """Map the portal's error taxonomy onto HTTP responses."""
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "Request failed",
        status_code=exc.status_code,
        error_code=exc.code.value,
        path=request.url.path,
        method=request.method,
        **log_error_details(exc.__cause__ or exc),
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(exc.code, exc.message, exc.details).to_dict(),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and parameters are validation errors (400)."""
    errors = [
        {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg", "")}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(ErrorCode.VAL_INVALID_INPUT, details={"errors": errors}).to_dict(),
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions."""
    logger.error(
        "Unhandled exception",
        exc_info=exc,
        path=request.url.path,
        method=request.method,
    )

    return JSONResponse(
        status_code=500,
        content=ErrorResponse.internal_error().to_dict(),
    )


# Include API router
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


# Root endpoint
@app.get("/")
async def root() -> Dict[str, str]:
    """
    Root endpoint.

    Returns:
        API information
    """
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": f"{settings.API_V1_PREFIX}/docs" if not settings.is_production else "Disabled in production",
    }
