"""
FastAPI application entry point.
"""
import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from opsdesk.core.config import settings
from opsdesk.core.exceptions import (
    AppException,
    app_exception_handler,
    request_validation_exception_handler,
)
from opsdesk.core.logging import (
    bind_request_context,
    clear_request_context,
    configure_logging,
    get_logger,
)
from opsdesk.api.auth import router as auth_router
from opsdesk.api.permissions import router as permissions_router
from opsdesk.api.roles import router as roles_router
from opsdesk.api.users import router as users_router
from opsdesk.database import check_db_connection, dispose_engine


configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    # Startup
    logger.info("application_starting", version=settings.app_version)
    if await check_db_connection():
        logger.info("database_connection_successful")
    else:
        logger.error("database_connection_failed")

    yield

    # Shutdown
    logger.info("application_shutting_down")
    await dispose_engine()
    logger.info("database_engine_disposed")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan
)


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request logging middleware (inner, runs with the correlation ID bound)
@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    """Log all requests."""
    logger.info(
        "request_started",
        method=request.method,
        path=request.url.path,
        client=request.client.host if request.client else None
    )

    response = await call_next(request)

    logger.info(
        "request_completed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code
    )

    return response


# Correlation ID middleware (outer)
@app.middleware("http")
async def correlation_id_middleware(request: Request, call_next):
    """Add correlation ID to request and response headers."""
    correlation_id = request.headers.get("X-Correlation-ID", str(uuid.uuid4()))
    request.state.correlation_id = correlation_id

    bind_request_context(correlation_id=correlation_id, request_path=request.url.path)
    try:
        response = await call_next(request)
        response.headers["X-Correlation-ID"] = correlation_id
        return response
    finally:
        clear_request_context()


# Exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)


@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
    """Handle database errors."""
    logger.error("database_error", error=str(exc), error_type=type(exc).__name__)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "message": "A database error occurred", "code": "DATABASE_ERROR"}
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors."""
    logger.error("unexpected_error", error=str(exc), error_type=type(exc).__name__)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "message": "An unexpected error occurred", "code": "INTERNAL_ERROR"}
    )


# Include routers
app.include_router(auth_router, prefix=settings.api_prefix)
app.include_router(permissions_router, prefix=settings.api_prefix)
app.include_router(roles_router, prefix=settings.api_prefix)
app.include_router(users_router, prefix=settings.api_prefix)


# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/api/docs",
        "openapi": "/api/openapi.json"
    }


# Health check endpoints
@app.get("/health", tags=["Health"])
async def health_check():
    """Basic health check."""
    return {
        "status": "healthy",
        "version": settings.app_version
    }


@app.get(f"{settings.api_prefix}/health", tags=["Health"])
async def detailed_health_check():
    """Detailed health check with component status."""
    db_healthy = await check_db_connection()

    return {
        "status": "healthy" if db_healthy else "degraded",
        "version": settings.app_version,
        "components": {
            "database": "healthy" if db_healthy else "unhealthy"
        }
    }


def run() -> None:
    """Run the development server."""
    import uvicorn
    uvicorn.run(
        "opsdesk.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        reload=True,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    run()
