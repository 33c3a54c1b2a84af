"""FastAPI application for the ModelCatalog HTTP API."""

from __future__ import annotations

from contextlib import asynccontextmanager
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from modelcatalog import __version__
from modelcatalog.config import get_config
from modelcatalog.container import Container, build_container
from modelcatalog.core.logging import configure_logging
from modelcatalog.db.connection import close_db
from modelcatalog.errors import (
    FilterAccessDeniedError,
    FilterNotFoundError,
    FilterRunNotFoundError,
    FilterValidationError,
    PersistenceError,
)
from modelcatalog.web.routes import admin, filters, health, models

logger = structlog.get_logger()

# Seconds to wait for background syncs/persistence on shutdown
SHUTDOWN_DRAIN_SECONDS = 30.0


# Request Logging Middleware
class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        structlog.contextvars.clear_contextvars()

        request_id = request.headers.get("X-Request-ID", str(uuid4()))
        structlog.contextvars.bind_contextvars(request_id=request_id)

        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)

            logger.info(
                "request_completed",
                status_code=response.status_code,
            )
            response.headers["X-Request-ID"] = request_id
            return response

        except Exception as exc:
            logger.error("request_failed", error=str(exc))
            raise


def _field_path(loc: tuple) -> str:
    """``("body", "rules", 0, "field")`` -> ``rules[0].field``."""
    path = ""
    for part in loc:
        if part in ("body", "query", "path", "header"):
            continue
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path = f"{path}.{part}" if path else str(part)
    return path or "body"


def _error_response(status_code: int, message: str, details: list[dict] | None = None):
    content: dict = {"error": message}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=exc.headers,
        )

    @app.exception_handler(FilterValidationError)
    async def filter_validation_handler(request: Request, exc: FilterValidationError):
        return _error_response(
            400, "Validation failed", [error.as_dict() for error in exc.errors]
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        details = [
            {"field": _field_path(tuple(error.get("loc", ()))), "message": error.get("msg", "")}
            for error in exc.errors()
        ]
        return _error_response(400, "Validation failed", details)

    @app.exception_handler(FilterNotFoundError)
    async def filter_not_found_handler(request: Request, exc: FilterNotFoundError):
        return _error_response(404, "Filter not found")

    @app.exception_handler(FilterRunNotFoundError)
    async def run_not_found_handler(request: Request, exc: FilterRunNotFoundError):
        return _error_response(404, "Filter run not found")

    @app.exception_handler(FilterAccessDeniedError)
    async def access_denied_handler(request: Request, exc: FilterAccessDeniedError):
        return _error_response(403, "Access denied")

    @app.exception_handler(PersistenceError)
    async def persistence_handler(request: Request, exc: PersistenceError):
        logger.error("persistence_failed", error=str(exc))
        return _error_response(500, "Storage unavailable")


def create_app(container: Container | None = None) -> FastAPI:
    """Build the API application.

    Args:
        container: Pre-built service graph (tests). When omitted the graph is
            built from environment configuration at startup and the database
            engine is disposed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_container = container is None
        app.state.container = container or build_container(get_config())
        config = app.state.container.config
        configure_logging(config.log_level, config.log_format)
        logger.info("app_started", sources=len(app.state.container.sources))
        try:
            yield
        finally:
            await app.state.container.supervisor.drain(timeout=SHUTDOWN_DRAIN_SECONDS)
            if owns_container:
                await app.state.container.cache.close()
                await close_db()
            logger.info("app_stopped")

    app = FastAPI(
        title="ModelCatalog API",
        description="Aggregated AI model catalog with saved rule-based filters",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    if container is not None:
        app.state.container = container

    app.add_middleware(RequestLoggingMiddleware)
    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(models.router)
    app.include_router(filters.router)
    app.include_router(admin.router)
    return app


app = create_app()
