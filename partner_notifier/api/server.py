"""FastAPI application factory.

The app holds the dispatcher (and optionally the directory client) on
``app.state``; routes resolve them through dependencies so tests can build
an app around fakes.
"""

import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Callable, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from partner_notifier import __version__
from partner_notifier.logging import get_logger
from partner_notifier.logging.context import log_context
from partner_notifier.notifications.dispatcher import NotificationDispatcher
from partner_notifier.service_layer.client import ServiceLayerClient

from .routes import health, notifications, partners

logger = get_logger(__name__, component="api")


def create_app(
    dispatcher: NotificationDispatcher,
    directory: Optional[ServiceLayerClient] = None,
    on_shutdown: Optional[Callable[[], None]] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        dispatcher: Dispatcher serving the notification endpoints
        directory: Service Layer client for the partner listing (disabled if None)
        on_shutdown: Called once when the server stops (e.g. Service Layer logout)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Partner Notifier API starting up", extra={"event": "api.startup"})
        yield
        logger.info("Shutting down gracefully...", extra={"event": "api.shutdown"})
        if on_shutdown is not None:
            try:
                on_shutdown()
            except Exception as e:
                logger.error(
                    f"Error during shutdown: {e}",
                    exc_info=True,
                    extra={"event": "api.shutdown.failed"},
                )

    app = FastAPI(
        title="Partner Notifier API",
        description="Email and SMS notifications for SAP Business One business partners",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.dispatcher = dispatcher
    app.state.directory = directory

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        with log_context(request_id=request_id):
            logger.info(
                f"{request.method} {request.url.path}",
                extra={
                    "event": "http.request",
                    "ip": request.client.host if request.client else None,
                    "user_agent": request.headers.get("user-agent"),
                },
            )
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": _describe_validation_error(exc)},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled error: {exc}",
            exc_info=exc,
            extra={"event": "api.request.error", "path": request.url.path},
        )
        return JSONResponse(
            status_code=500, content={"success": False, "error": "Internal server error"}
        )

    app.include_router(health.router, tags=["Health"])
    app.include_router(notifications.router, tags=["Notifications"])
    app.include_router(partners.router, tags=["Business Partners"])

    return app


def _describe_validation_error(exc: RequestValidationError) -> str:
    """Summarize the first validation error as ``field: message``."""
    errors = exc.errors()
    if not errors:
        return "Invalid request body"

    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "invalid value")
    if not location:
        return f"Invalid request body: {message}"
    return f"Invalid value for {location}: {message}"
