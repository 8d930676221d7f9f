"""FastAPI application factory.

Learn: App factory pattern: create_app() returns a configured FastAPI
instance. Lifespan owns the storage resources: it builds the engine and
session factory from Settings, wires the AuthService, and parks them on
app.state. Nothing is a module-level singleton, so tests can build an
app and hand it their own service.

Errors: every core AuthError becomes {"message": ...} with the error's
status code. Infrastructure faults are logged with their internal detail
and answered with a generic message only.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from authcore import __version__
from authcore.api import api_router
from authcore.config import Settings, get_settings
from authcore.db.engine import create_all, create_engine, create_session_factory
from authcore.errors import AuthError, InfrastructureFault, InvalidSignature, TokenExpired
from authcore.log import configure_logging
from authcore.middleware.request_id import RequestIdMiddleware
from authcore.middleware.security import SecurityHeadersMiddleware
from authcore.services.auth_service import build_auth_service

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at
    shutdown. A missing signing secret raises ConfigurationFault here and
    the server refuses to start.
    """
    settings: Settings = app.state.settings
    logger.info(
        "authcore.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    engine = create_engine(settings)
    if settings.db_create_all:
        await create_all(engine)

    app.state.engine = engine
    app.state.auth_service = build_auth_service(settings, create_session_factory(engine))

    yield

    logger.info("authcore.shutdown")
    await engine.dispose()


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Render a core error as {"message": ...}."""
    if isinstance(exc, InfrastructureFault):
        logger.error(
            "authcore.infrastructure_fault",
            kind=type(exc).__name__,
            detail=exc.detail,
            path=request.url.path,
        )
    headers = None
    if isinstance(exc, (InvalidSignature, TokenExpired)):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message},
        headers=headers,
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies are a 400 like every other input problem."""
    logger.info("authcore.invalid_request", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(status_code=400, content={"message": "Invalid request body"})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("authcore.unhandled_error", path=request.url.path)
    return JSONResponse(status_code=500, content={"message": "Server error"})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build and return the FastAPI application."""
    settings = settings or get_settings()
    configure_logging(settings.log_level, json_logs=settings.log_json)

    app = FastAPI(
        title="authcore",
        description="Email/password registration and login issuing signed bearer tokens",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → CORS → handler
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(api_router)

    return app
