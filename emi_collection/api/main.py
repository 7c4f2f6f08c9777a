"""
Main FastAPI application.

EMI collection API with:
- CORS configuration
- Uniform ``{success, message}`` error bodies
- Request ID tracking
- Structured logging
- Prometheus metrics
"""
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from emi_collection import __version__
from emi_collection.config import Settings, get_settings
from emi_collection.core.exceptions import EMICollectionError
from emi_collection.database.connection import Database
from emi_collection.monitoring.logging import setup_logging

from .routes import customer_router, monitoring_router, payment_router

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, Any]:
    """
    Application lifespan manager.

    Builds the database (and its pool) at startup unless one was injected,
    and disposes of it at shutdown.
    """
    settings: Settings = app.state.settings
    logger.info("application_startup", app_name=settings.app_name, env=settings.app_env)

    owns_database = app.state.database is None
    if owns_database:
        app.state.database = Database.from_settings(settings)
        logger.info("database_pool_created", pool_size=settings.database_pool_size)

    yield

    logger.info("application_shutdown")
    if owns_database:
        try:
            await app.state.database.dispose()
            logger.info("database_connections_closed")
        except Exception as e:
            logger.error("database_shutdown_error", error=str(e))
        app.state.database = None


def _error_body(message: str) -> dict[str, Any]:
    return {"success": False, "message": message}


async def emi_error_handler(request: Request, exc: EMICollectionError) -> JSONResponse:
    """Translate service errors into their status code and public message."""
    log = logger.warning if exc.http_status < 500 else logger.error
    log(
        "request_error",
        error=exc.message,
        error_type=type(exc).__name__,
        status_code=exc.http_status,
        path=request.url.path,
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed bodies and parameters are client errors (400), not 422."""
    errors = exc.errors()
    detail = "Invalid request"
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        detail = f"Invalid request: {field}: {first.get('msg')}" if field else first.get("msg", detail)
    logger.warning("request_validation_failed", path=request.url.path, errors=len(errors))
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_error_body(detail))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Keep routing errors (404 for unknown paths, 405, ...) in the same body shape."""
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(message),
        headers=getattr(exc, "headers", None),
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler for unhandled exceptions.
    """
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("Something went wrong!"),
    )


async def add_request_id_middleware(request: Request, call_next: Any) -> Response:
    """
    Add request ID to all requests for tracing.

    Also adds timing information and structured logging context.
    """
    request_id = str(uuid.uuid4())
    start_time = time.time()

    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
    )

    logger.info(
        "request_started",
        client_host=request.client.host if request.client else None,
    )

    try:
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        duration = time.time() - start_time
        logger.info(
            "request_completed",
            status_code=response.status_code,
            duration_seconds=duration,
        )
        return response

    except Exception as e:
        duration = time.time() - start_time
        logger.error("request_failed", error=str(e), duration_seconds=duration)
        raise

    finally:
        structlog.contextvars.clear_contextvars()


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Application settings (defaults to the cached environment settings)
        database: Pre-built database; when given, the app neither creates nor
            disposes of one

    Returns:
        FastAPI: Configured application
    """
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title="EMI Collection Service",
        description="Customer loan records and EMI payment collection.",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.settings = settings
    app.state.database = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_allowed_origins_list(),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(add_request_id_middleware)

    app.add_exception_handler(EMICollectionError, emi_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    app.include_router(customer_router)
    app.include_router(payment_router)
    app.include_router(monitoring_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "emi_collection.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
