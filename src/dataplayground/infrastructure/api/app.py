"""Application factory.

Run with uvicorn in factory mode::

    uvicorn dataplayground.infrastructure.api.app:create_app --factory

Every error leaves the API as ``{"success": false, "message": ...}``,
optionally with ``errors`` (per-field messages) or ``field``.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import APIRouter, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from dataplayground.core.config import Settings, get_settings
from dataplayground.core.logging import (
    bind_correlation_id,
    clear_context,
    configure_logging,
    get_logger,
    new_correlation_id,
)
from dataplayground.domain.exceptions import (
    AuthenticationError,
    ConflictError,
    DataPlaygroundError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from dataplayground.infrastructure.auth import JWTService
from dataplayground.infrastructure.persistence.database import DatabaseManager, init_database

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"
INTERNAL_ERROR_MESSAGE = "Internal server error"

# Looked up along the exception's MRO; DataPlaygroundError is the fallback.
ERROR_STATUS: dict[type[DataPlaygroundError], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    AuthenticationError: status.HTTP_401_UNAUTHORIZED,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    InternalError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    DataPlaygroundError: status.HTTP_400_BAD_REQUEST,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings
    db: DatabaseManager = app.state.db

    configure_logging(settings)
    logger.info(
        "Starting Data Playground",
        version=settings.app_version,
        environment=settings.environment,
    )
    await init_database(db)

    try:
        yield
    finally:
        await db.disconnect()
        logger.info("Data Playground stopped")


def create_app(settings: Settings | None = None, db: DatabaseManager | None = None) -> FastAPI:
    """Build the application.

    Args:
        settings: Loaded from the environment when omitted.
        db: Built from ``settings`` when omitted. Tests pass one bound to
            an in-memory engine.
    """
    settings = settings or get_settings()
    expose_docs = not settings.is_production

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Custom tabular data collections with sharing",
        docs_url="/docs" if expose_docs else None,
        redoc_url="/redoc" if expose_docs else None,
        openapi_url="/openapi.json" if expose_docs else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = db or DatabaseManager(settings)
    app.state.jwt_service = JWTService(
        secret_key=settings.secret_key,
        access_token_expire_minutes=settings.access_token_expire_minutes,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        expose_headers=[CORRELATION_HEADER],
    )
    app.middleware("http")(correlation_middleware)

    app.include_router(_service_router(settings))
    _include_api_routers(app, settings.api_prefix)
    _install_error_handlers(app)
    return app


def _service_router(settings: Settings) -> APIRouter:
    """Liveness, readiness and the API root."""
    router = APIRouter()
    identity = {"service": settings.app_name, "version": settings.app_version}

    @router.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "healthy", **identity}

    @router.get("/ready", tags=["health"])
    async def ready(request: Request) -> Any:
        if await request.app.state.db.check_connection():
            return {"status": "ready", "database": "connected", **identity}
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "database": "disconnected", **identity},
        )

    @router.get(settings.api_prefix, tags=["root"])
    async def api_root() -> dict[str, str]:
        return {"name": settings.app_name, "version": settings.app_version}

    return router


def _include_api_routers(app: FastAPI, prefix: str) -> None:
    from dataplayground.infrastructure.api.routes import auth_router, collections_router

    app.include_router(auth_router, prefix=f"{prefix}/auth", tags=["auth"])
    app.include_router(collections_router, prefix=f"{prefix}/collections", tags=["collections"])


def error_body(message: str, **extra: Any) -> dict[str, Any]:
    return {"success": False, "message": message, **extra}


def _status_for(exc: DataPlaygroundError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return status.HTTP_400_BAD_REQUEST


def _install_error_handlers(app: FastAPI) -> None:
    debug = app.state.settings.debug

    @app.exception_handler(DataPlaygroundError)
    async def domain_error(request: Request, exc: DataPlaygroundError) -> JSONResponse:
        status_code = _status_for(exc)
        if status_code >= 500:
            logger.error(
                "Internal error",
                method=request.method,
                path=request.url.path,
                exc_type=type(exc).__name__,
                error=exc.message,
            )
            return JSONResponse(status_code=status_code, content=error_body(INTERNAL_ERROR_MESSAGE))

        extra: dict[str, Any] = {}
        if isinstance(exc, ValidationError):
            extra["errors"] = [error.to_dict() for error in exc.errors]
        elif isinstance(exc, ConflictError) and exc.field:
            extra["field"] = exc.field
        return JSONResponse(status_code=status_code, content=error_body(exc.message, **extra))

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        # loc starts with "body", "query" or "path"
        errors = [
            {
                "field": ".".join(str(part) for part in error.get("loc", ())[1:]),
                "message": error.get("msg", "Invalid value"),
            }
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body("Validation error", errors=errors),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail)),
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unhandled exception",
            method=request.method,
            path=request.url.path,
            exc_type=type(exc).__name__,
        )
        extra = {"detail": str(exc)} if debug else {}
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body(INTERNAL_ERROR_MESSAGE, **extra),
        )


async def correlation_middleware(request: Request, call_next):
    """Tag every log line of a request, and the response, with one correlation ID."""
    correlation_id = request.headers.get(CORRELATION_HEADER) or new_correlation_id()
    bind_correlation_id(correlation_id)
    try:
        response = await call_next(request)
        logger.info(
            "Request handled",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
        )
        response.headers[CORRELATION_HEADER] = correlation_id
        return response
    finally:
        clear_context()
