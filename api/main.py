"""FastAPI application for the Catalog Admin API."""

import asyncio
import logging
from contextlib import asynccontextmanager

import fastapi
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from core.config import get_settings
from core.database import (
    create_engine,
    create_session_maker,
    dispose_engine,
    init_db,
)
from core.exceptions import CatalogError
from core.i18n import localize_params, resolve_language, t
from core.logger import configure_logging
from core.middleware import ContentLanguageMiddleware, SecurityHeadersMiddleware
from core.ratelimit import limiter, rate_limit_exceeded_handler
from core.telemetry import RequestTimingMiddleware
from core.wide_event import set_wide_event_fields
from routes import (
    health_router,
    products_admin_router,
    topics_admin_router,
    topics_router,
)

configure_logging()
logger = logging.getLogger(__name__)


def _request_language(request: Request) -> str:
    return resolve_language(
        request.query_params.get("lang"), request.headers.get("accept-language")
    )


async def catalog_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map domain exceptions to their status with a localized message."""
    if not isinstance(exc, CatalogError):
        return JSONResponse(status_code=500, content={"detail": "Unexpected error"})

    lang = _request_language(request)
    detail = t(exc.message_key, lang, **localize_params(exc.params, lang))

    set_wide_event_fields(error_code=exc.code, error_message_key=exc.message_key)
    logger.info(
        "request.domain_error",
        extra={
            "path": request.url.path,
            "method": request.method,
            "code": exc.code,
            "message_key": exc.message_key,
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": detail, "code": exc.code},
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler for unhandled exceptions."""
    logger.exception(
        "unhandled.exception",
        extra={
            "exc_type": type(exc).__name__,
            "path": request.url.path,
            "method": request.method,
        },
    )
    lang = _request_language(request)
    return JSONResponse(
        status_code=500,
        content={"detail": t("errors.unexpected", lang), "code": "internal_error"},
    )


def _jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """``exc.errors()`` with the non-serializable ``ctx`` values stringified."""
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        errors.append(error)
    return errors


async def validation_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Handler for request validation errors."""
    if not isinstance(exc, RequestValidationError):
        return JSONResponse(status_code=500, content={"detail": "Unexpected error"})

    logger.warning(
        "request.validation_error",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_count": len(exc.errors()),
        },
    )
    return JSONResponse(
        status_code=422,
        content={"detail": _jsonable_errors(exc)},
    )


@asynccontextmanager
async def lifespan(app: fastapi.FastAPI):
    """Create DB engine at startup, dispose on shutdown.

    Schema changes are applied with ``python -m cli migrate``, not here.
    """
    app.state.engine = create_engine()
    app.state.session_maker = create_session_maker(app.state.engine)

    try:
        async with asyncio.timeout(60):
            await init_db(app.state.engine)
        logger.info("init.complete")
    except TimeoutError:
        logger.error("init.timeout", extra={"hint": "Check DB connectivity"})
        await dispose_engine(app.state.engine)
        raise RuntimeError("Application startup timed out")
    except Exception as e:
        logger.error("init.failed", extra={"error": str(e)}, exc_info=True)
        await dispose_engine(app.state.engine)
        raise

    try:
        yield
    finally:
        await dispose_engine(app.state.engine)


_settings = get_settings()

app = fastapi.FastAPI(
    title="Catalog Admin API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if _settings.enable_docs or _settings.debug else None,
    redoc_url="/redoc" if _settings.enable_docs or _settings.debug else None,
    openapi_url=("/openapi.json" if _settings.enable_docs or _settings.debug else None),
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_exception_handler(CatalogError, catalog_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.add_middleware(GZipMiddleware, minimum_size=500)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(ContentLanguageMiddleware)

if _settings.debug:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Accept-Language", "Content-Type"],
        expose_headers=["X-Request-Duration-Ms", "X-Request-Id"],
        max_age=600,
    )

# Outermost, so the canonical log line covers every other middleware.
app.add_middleware(RequestTimingMiddleware)

app.include_router(health_router)
app.include_router(topics_admin_router)
app.include_router(topics_router)
app.include_router(products_admin_router)
