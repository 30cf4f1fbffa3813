"""
FastAPI application factory.

Usage:
    python -m ecoforecast.api.app              # Dev server on API_PORT (5000)
    STORAGE_BACKEND=sheets python -m ecoforecast.api.app

OpenAPI docs are at http://localhost:5000/docs after starting.

The storage gateway is created once in the lifespan and closed at shutdown.
Tests pass their own storage to create_app() instead.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from ecoforecast import __version__
from ecoforecast.api.envelope import error_response
from ecoforecast.api.routes import health, inputs
from ecoforecast.audit import AuditLogger
from ecoforecast.config import get_settings
from ecoforecast.services.storage import InputsStorageInterface, create_storage


logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the storage gateway unless one was injected."""
    owns_storage = getattr(app.state, "storage", None) is None

    if owns_storage:
        backend = get_settings().app.storage_backend
        if backend == "http":
            # The http backend calls this server; serve from memory instead
            logger.warning("api_storage_backend_http_unsupported", fallback="memory")
            backend = "memory"
        storage, audit_storage = create_storage(backend)
        app.state.storage = storage
        app.state.audit_logger = AuditLogger(audit_storage)
        logger.info("api_started", storage_backend=backend)

    try:
        yield
    finally:
        if owns_storage:
            await app.state.storage.close()
            app.state.storage = None
            logger.info("api_stopped")


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request body"

    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


def create_app(
    storage: Optional[InputsStorageInterface] = None,
    audit_logger: Optional[AuditLogger] = None,
) -> FastAPI:
    """
    Create the API.

    Args:
        storage: Inputs storage to serve from. When None the lifespan
                 builds the configured backend.
        audit_logger: Audit trail for injected storage (local logging only
                      if omitted).
    """
    app = FastAPI(
        title="EcoForecast API",
        description="Stores and retrieves quarterly electricity, water and fuel inputs.",
        version=__version__,
        lifespan=lifespan,
    )

    if storage is not None:
        app.state.storage = storage
        app.state.audit_logger = audit_logger or AuditLogger()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_settings().app.cors_origins_list,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.info(
            "request_validation_failed",
            method=request.method,
            path=request.url.path,
            errors=len(exc.errors()),
        )
        return error_response(422, _describe_validation_error(exc))

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Catch unhandled exceptions and return the JSON envelope instead of plain text."""
        logger.error(
            "unhandled_exception",
            method=request.method,
            path=request.url.path,
            error_type=type(exc).__name__,
            error=str(exc),
        )
        audit_logger = getattr(request.app.state, "audit_logger", None)
        if audit_logger is not None:
            await audit_logger.log_error(
                error_type=type(exc).__name__,
                error_message=str(exc),
                details={"method": request.method, "path": request.url.path},
            )
        return error_response(500, "Internal server error")

    app.include_router(health.router)
    app.include_router(inputs.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    app_settings = get_settings().app
    uvicorn.run(
        "ecoforecast.api.app:app",
        host=app_settings.api_host,
        port=app_settings.api_port,
        reload=app_settings.debug_mode,
    )
