"""FastAPI application — entry point, middleware, and error envelopes.

Creates the Recordbook API with:
- API versioning via router prefix (/api/v1/)
- CORS middleware (origins from settings)
- Request logging middleware (raw ASGI — no response body buffering)
- Exception handlers turning every failure into an ApiResponse envelope
- Health endpoint

Startup is where configuration problems surface: a malformed setting, or a
SQL Server store that cannot be reached, raises out of create_app() and
stops the process. After startup, a failed operation only ever produces
an error envelope.

Run with: uvicorn recordbook.main:app --reload
"""

from __future__ import annotations

import logging
import time
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from recordbook.config import Settings, get_settings
from recordbook.errors import (
    DuplicateKeyError,
    FieldValidationError,
    KeyChangeRejected,
    NoSelectionError,
    RecordbookError,
    StorageAccessError,
)
from recordbook.schemas import ApiError, ApiResponse

logger = logging.getLogger("recordbook")

# Matched along the exception's MRO; the nearest class wins.
_ERROR_RESPONSES: dict[type[RecordbookError], tuple[int, str]] = {
    DuplicateKeyError: (409, "DUPLICATE_KEY"),
    StorageAccessError: (503, "STORAGE_ERROR"),
    KeyChangeRejected: (409, "KEY_CHANGE_REJECTED"),
    NoSelectionError: (400, "NO_SELECTION"),
    FieldValidationError: (422, "VALIDATION_ERROR"),
}


# ---------------------------------------------------------------------------
# Request logging middleware (raw ASGI)
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware:
    """Logs method, path, status code, and duration for every request.

    Does NOT log request/response bodies, query params, or client IPs.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Wraps the ASGI call to measure timing and capture status code."""
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method = scope.get("method", "?")
        path = scope.get("path", "?")
        start = time.monotonic()
        status_code = 0

        async def logging_send(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
            await send(message)

        try:
            await self.app(scope, receive, logging_send)
        finally:
            duration_ms = (time.monotonic() - start) * 1000
            logger.info(
                "%s %s %d %.1fms", method, path, status_code, duration_ms
            )


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


def _recordbook_error_response(request: Request, exc: RecordbookError) -> JSONResponse:
    """Wraps a domain error in ApiResponse envelope.

    The message is the same text a screen would display. Storage failures
    are logged with their chained cause; client-side rejections are not
    worth more than a debug line.
    """
    status_code, code = 500, "INTERNAL_ERROR"
    for cls in type(exc).__mro__:
        if cls in _ERROR_RESPONSES:
            status_code, code = _ERROR_RESPONSES[cls]
            break

    if isinstance(exc, StorageAccessError):
        logger.warning(
            "%s on %s %s: %s", code, request.method, request.url.path, exc.message
        )
    else:
        logger.debug("%s on %s %s", code, request.method, request.url.path)

    return JSONResponse(
        status_code=status_code,
        content=ApiResponse(
            ok=False,
            error=ApiError(code=code, message=exc.message),
        ).model_dump(),
    )


def _http_exception_response(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Passes a route's own ApiResponse detail through; wraps anything else.

    Routes raise 404 NOT_FOUND with a ready envelope as the detail.
    Router-level failures (unknown path, wrong method) arrive as plain text.
    """
    if isinstance(exc.detail, dict) and "ok" in exc.detail:
        return JSONResponse(status_code=exc.status_code, content=exc.detail)

    code = "NOT_FOUND" if exc.status_code == 404 else "HTTP_ERROR"
    return JSONResponse(
        status_code=exc.status_code,
        content=ApiResponse(ok=False, error=ApiError(code=code, message=str(exc.detail))).model_dump(),
    )


def _validation_error_response(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Reports the first malformed request field as VALIDATION_ERROR.

    The location drops the leading "body" segment, so a bad update reads
    "fields -> basket_no: Field required".
    """
    detail = "Request validation failed."
    for error in exc.errors()[:1]:
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        msg = error.get("msg", "Validation error")
        detail = f"{' -> '.join(loc)}: {msg}" if loc else msg

    return JSONResponse(
        status_code=422,
        content=ApiResponse(
            ok=False,
            error=ApiError(code="VALIDATION_ERROR", message=detail),
        ).model_dump(),
    )


def _unhandled_exception_response(request: Request, exc: Exception) -> JSONResponse:
    """Catches all unhandled exceptions — never leaks internals to client.

    Logs the full traceback server-side. Returns a generic 500 response.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)

    return JSONResponse(
        status_code=500,
        content=ApiResponse(
            ok=False,
            error=ApiError(
                code="INTERNAL_ERROR",
                message="An unexpected error occurred.",
            ),
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# App creation
# ---------------------------------------------------------------------------


def _init_store(settings: Settings) -> None:
    """Builds the configured connection provider and sets the deps singleton.

    The SQL Server provider is pinged once so that bad credentials or an
    unreachable server stop startup instead of failing every request.
    The in-memory store has nothing to reach.

    Raises:
        StoreError: If the SQL Server store cannot be reached.
    """
    from recordbook.api import deps

    provider = deps.create_provider(settings)
    if settings.store_backend != "memory":
        try:
            provider.ping()
        except Exception:
            logger.critical(
                "Cannot reach the %s store at %s. Check the DB_* settings.",
                settings.store_backend,
                settings.database.server,
            )
            raise
    deps._provider = provider
    logger.info("Store initialized: backend=%s", settings.store_backend)


def create_app() -> FastAPI:
    """Creates and configures the FastAPI application.

    Raises:
        ConfigError: On missing or malformed configuration.
        StoreError: If the configured SQL Server store cannot be reached.
    """
    settings = get_settings()

    # Configure logging level
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

    application = FastAPI(
        title="Recordbook",
        description="Students, courses, customers, fruit baskets and purchases",
        version="0.1.0",
    )

    # -- Middleware (order matters: last added = first executed) --

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_middleware(RequestLoggingMiddleware)

    # -- Exception handlers --
    application.add_exception_handler(RecordbookError, _recordbook_error_response)
    application.add_exception_handler(StarletteHTTPException, _http_exception_response)
    application.add_exception_handler(RequestValidationError, _validation_error_response)
    application.add_exception_handler(Exception, _unhandled_exception_response)

    # -- Routers --
    _register_routes(application)

    # -- Store (fatal on failure) --
    _init_store(settings)

    return application


def _register_routes(application: FastAPI) -> None:
    """Registers all API routers on the application."""
    from fastapi import APIRouter

    v1 = APIRouter(prefix="/api/v1")

    @v1.get("/health")
    async def health() -> dict[str, Any]:
        return ApiResponse(ok=True, data={"status": "healthy"}).model_dump()

    from recordbook.api.students import router as students_router

    v1.include_router(students_router, prefix="/students", tags=["students"])

    from recordbook.api.customers import router as customers_router

    v1.include_router(customers_router, prefix="/customers", tags=["customers"])

    from recordbook.api.baskets import router as baskets_router

    v1.include_router(baskets_router, prefix="/baskets", tags=["baskets"])

    from recordbook.api.purchases import router as purchases_router

    v1.include_router(purchases_router, prefix="/purchases", tags=["purchases"])

    application.include_router(v1)


def run() -> None:
    """Console entry point: serves the app on APP_PORT."""
    import uvicorn

    uvicorn.run("recordbook.main:app", port=get_settings().app_port)


app = create_app()
