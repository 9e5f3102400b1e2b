"""
FastAPI application entry point for the Event Planner CRM backend.

This module initializes the FastAPI application with:
- CORS middleware for the browser frontend
- Global per-IP rate limiting (slowapi)
- Exception handlers for consistent error responses
- Health and readiness probes
- API routers under /api and the real-time WebSocket at /ws
- Logging configuration

Environment Variables:
    CRM_ENV: Environment (production/development, default: development)
    CRM_LOG_LEVEL: Log level (DEBUG/INFO/WARNING/ERROR/CRITICAL, default: INFO)
    CRM_DB_URL: Database URL (default: sqlite:///./planner_crm.db)
    JWT_SECRET_KEY: Token signing secret (required for authentication)
"""

import traceback
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.src.config.settings import get_settings
from backend.src.db.database import DATABASE_URL, check_connection, dispose_engine, init_db
from backend.src.middleware.rate_limit import limiter
from backend.src.services.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
)
from backend.src.services.exceptions import ValidationError as ServiceValidationError
from backend.src.utils.logging_config import get_logger, init_logging
from backend.src.utils.websocket import get_connection_manager


APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events:
    - Startup: Warn about missing JWT secret, create tables for local SQLite
    - Shutdown: Close WebSocket connections, dispose the engine
    """
    logger = get_logger("api")
    settings = get_settings()
    logger.info(f"Starting Event Planner CRM backend ({settings.environment})")

    if not settings.jwt_configured:
        logger.warning("JWT_SECRET_KEY is not set; authentication endpoints will return 503")

    if DATABASE_URL.startswith("sqlite") and not settings.is_production:
        logger.info("Creating tables for local SQLite database")
        init_db()

    yield

    logger.info("Shutting down Event Planner CRM backend")
    await get_connection_manager().close_all()
    dispose_engine()


# Initialize logging before creating app
init_logging()

settings = get_settings()

app = FastAPI(
    title="Event Planner CRM API",
    description="Backend API for the event planner CRM: users and clients, events, "
                "vendors, payments, tasks, activities, file uploads and reports, "
                "plus a real-time presence and notification relay.",
    version=APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers

SERVICE_ERROR_STATUS = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ServiceValidationError, status.HTTP_400_BAD_REQUEST),
    (ConflictError, status.HTTP_409_CONFLICT),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
)


@app.exception_handler(StarletteHTTPException)
async def not_found_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Name the missing path for unknown routes; defer to FastAPI otherwise."""
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": f"Not Found - {request.url.path}"},
        )
    return await http_exception_handler(request, exc)


@app.exception_handler(ServiceError)
async def service_exception_handler(
    request: Request, exc: ServiceError
) -> JSONResponse:
    """Map service errors that escaped a route to their HTTP status."""
    status_code = status.HTTP_400_BAD_REQUEST
    for error_type, code in SERVICE_ERROR_STATUS:
        if isinstance(exc, error_type):
            status_code = code
            break

    get_logger("api").info(
        f"{type(exc).__name__} on {request.method} {request.url.path}: {exc}"
    )
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(ValidationError)
async def validation_exception_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors raised inside handlers."""
    logger = get_logger("api")
    logger.warning(
        "Validation error",
        extra={
            "path": request.url.path,
            "method": request.method,
            "errors": exc.errors(),
        }
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation Error",
            "message": "Request validation failed",
            "details": exc.errors(include_url=False, include_context=False),
        }
    )


@app.exception_handler(IntegrityError)
async def integrity_exception_handler(
    request: Request, exc: IntegrityError
) -> JSONResponse:
    """Duplicate keys, broken references and check constraints are client errors."""
    logger = get_logger("db")
    logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Integrity Error",
            "message": "The request conflicts with existing data or violates a constraint.",
        }
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    logger = get_logger("db")
    logger.error(
        "Database error",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error": str(exc),
        }
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Database Error",
            "message": "An error occurred while accessing the database. "
                      "Please try again later.",
        }
    )


@app.exception_handler(Exception)
async def generic_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """
    Handle all other unhandled exceptions.

    The stack trace is included in the body outside production.
    """
    logger = get_logger("api")
    logger.error(
        "Unhandled exception",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_type": type(exc).__name__,
            "error": str(exc),
        },
        exc_info=True,
    )

    content: Dict[str, Any] = {
        "error": "Internal Server Error",
        "message": "An unexpected error occurred. Please try again later.",
    }
    if not get_settings().is_production:
        content["stack"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


# Health check endpoints


@app.get("/health", tags=["Health"])
async def health_check() -> Dict[str, Any]:
    """Liveness probe."""
    return {
        "status": "healthy",
        "service": "planner-crm-backend",
        "version": APP_VERSION,
        "environment": get_settings().environment,
    }


@app.get("/ready", tags=["Health"])
async def readiness_check() -> JSONResponse:
    """Readiness probe: the database must answer SELECT 1."""
    if check_connection():
        return JSONResponse(status_code=status.HTTP_200_OK, content={"status": "ready", "database": "ok"})
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "unavailable", "database": "unreachable"},
    )


# API routers
from backend.src.api import (  # noqa: E402
    activities,
    auth,
    clients,
    contacts,
    deals,
    events,
    leads,
    payments,
    realtime,
    reports,
    tasks,
    upload,
    users,
    vendors,
)

app.include_router(auth.router, prefix="/api")
app.include_router(users.router, prefix="/api")
app.include_router(clients.router, prefix="/api")
app.include_router(events.router, prefix="/api")
app.include_router(vendors.router, prefix="/api")
app.include_router(payments.router, prefix="/api")
app.include_router(tasks.router, prefix="/api")
app.include_router(activities.router, prefix="/api")
app.include_router(contacts.router, prefix="/api")
app.include_router(leads.router, prefix="/api")
app.include_router(deals.router, prefix="/api")
app.include_router(upload.router, prefix="/api")
app.include_router(reports.router, prefix="/api")
app.include_router(realtime.router, prefix="/api")
app.include_router(realtime.ws_router)


@app.get("/", tags=["Root"])
async def root() -> Dict[str, str]:
    """API metadata and documentation links."""
    return {
        "message": "Event Planner CRM API",
        "version": APP_VERSION,
        "docs": "/docs",
        "redoc": "/redoc",
        "openapi": "/openapi.json",
    }
