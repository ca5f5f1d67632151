"""
Inkwell Backend — FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app(settings) builds the auth and post components from the
       given Settings, stores them on app.state, registers middleware,
       exception handlers and routers, and returns the app.
Who:   uvicorn (`uvicorn inkwell.main:app`), the test suite, and tools that
       need an isolated app with their own configuration.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware: Rate Limit → Request ID → Logging → GZip → CORS
    │                                                          │
    │  Routes:                                                 │
    │   /register /login /profile /logout      (auth)          │
    │   /post  /post/{id}  /uploads/{path}     (posts)         │
    │   /health                                                │
    │                                                          │
    │  app.state: engine · session_factory · TokenService ·    │
    │             SessionTransport · CoverStorage ·            │
    │             AuthService · PostService                    │
    └──────────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from inkwell import __version__
from inkwell.config import Settings, settings as default_settings
from inkwell.database import build_engine, build_session_factory
from inkwell.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DatabaseError,
    FileStorageError,
    InkwellError,
    InvalidCredentialsError,
    NotFoundError,
    TokenSigningError,
    ValidationError,
)
from inkwell.middleware.logging import RequestLoggingMiddleware
from inkwell.middleware.rate_limit import RateLimitMiddleware
from inkwell.middleware.request_id import RequestIDMiddleware, request_id_var
from inkwell.routes import auth, health, posts
from inkwell.services.auth_service import AuthService
from inkwell.services.cover_storage import build_cover_storage
from inkwell.services.passwords import PasswordHasher
from inkwell.services.post_service import PostService
from inkwell.services.session import SessionTransport
from inkwell.services.tokens import TokenService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(config: Settings) -> None:
    """
    Configure logging for the whole process.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s to stdout, which
    the container runtime collects.
    """
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers are chatty at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

def _lifespan_for(config: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        Startup: logging, configuration check. Shutdown: close the pool.

        A configuration problem is logged, not fatal, so /health still answers
        and the failure shows up in API responses.
        """
        setup_logging(config)
        logger.info("=" * 60)
        logger.info("Inkwell Backend %s starting up...", __version__)

        try:
            config.validate_required_for_production()
        except ValueError as e:
            logger.error("Configuration error: %s", e)

        logger.info("Cover storage: %s", app.state.cover_storage.name)
        logger.info("Token expiry: %s", f"{config.token_ttl_seconds}s" if config.token_ttl_seconds else "none")
        logger.info("Server ready at http://%s:%d", config.backend_host, config.backend_port)
        logger.info("=" * 60)

        yield

        logger.info("Inkwell Backend shutting down...")
        await app.state.engine.dispose()
        logger.info("Shutdown complete.")

    return lifespan


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(error: str, message: str, details: Optional[dict] = None) -> dict:
    body = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map application exceptions to HTTP responses.

    Handler hierarchy:
        ValidationError / RequestValidationError → 400
        InvalidCredentialsError                  → 400 ("wrong credentials")
        AuthenticationError (InvalidTokenError)  → 401
        AuthorizationError                       → 403
        NotFoundError                            → 404
        TokenSigningError / DatabaseError /
        FileStorageError / InkwellError          → 500 (generic message)
        Exception                                → 500 (generic message)

    5xx responses never carry internal details; they are logged with the
    request id instead.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", exc.message, exc.context),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        logger.warning("[%s] Request validation failed on %s", request_id_var.get(""), request.url.path)
        return JSONResponse(
            status_code=400,
            content=_error_body(
                "validation_error",
                "Request is missing fields or has invalid values",
                {"errors": jsonable_encoder(exc.errors())},
            ),
        )

    @app.exception_handler(InvalidCredentialsError)
    async def handle_invalid_credentials(request: Request, exc: InvalidCredentialsError):
        return JSONResponse(
            status_code=400,
            content=_error_body("wrong_credentials", exc.message),
        )

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        logger.info("[%s] Unauthenticated request: %s %s", request_id_var.get(""), exc.message, exc.context)
        return JSONResponse(
            status_code=401,
            content=_error_body("not_authenticated", exc.message),
        )

    @app.exception_handler(AuthorizationError)
    async def handle_authorization_error(request: Request, exc: AuthorizationError):
        return JSONResponse(
            status_code=403,
            content=_error_body("forbidden", exc.message),
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=404,
            content=_error_body("not_found", exc.message),
        )

    @app.exception_handler(TokenSigningError)
    @app.exception_handler(DatabaseError)
    @app.exception_handler(FileStorageError)
    async def handle_server_error(request: Request, exc: InkwellError):
        rid = request_id_var.get("")
        logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", exc.message),
        )

    @app.exception_handler(InkwellError)
    async def handle_inkwell_error(request: Request, exc: InkwellError):
        rid = request_id_var.get("")
        logger.error("[%s] Unhandled application error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", "An internal error occurred. Please try again later."),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), exc, exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "internal_server_error",
                "An unexpected error occurred. Please try again later.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(config: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Settings to build the app from; defaults to the environment.
    """
    config = config or default_settings

    app = FastAPI(
        title="Inkwell API",
        description="Blogging backend: accounts, cookie sessions and author-owned posts.",
        version=__version__,
        lifespan=_lifespan_for(config),
    )

    # ── Components (built once, shared by all requests) ──────────────────
    ttl = timedelta(seconds=config.token_ttl_seconds) if config.token_ttl_seconds else None
    hasher = PasswordHasher(rounds=config.bcrypt_rounds)
    tokens = TokenService(config.jwt_secret, algorithm=config.jwt_algorithm, ttl=ttl)
    cover_storage = build_cover_storage(config)

    engine = build_engine(config)

    app.state.settings = config
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.token_service = tokens
    app.state.session_transport = SessionTransport(
        cookie_name=config.cookie_name,
        secure=config.cookie_secure,
        samesite=config.cookie_samesite,
        domain=config.cookie_domain,
        max_age=config.token_ttl_seconds,
    )
    app.state.cover_storage = cover_storage
    app.state.auth_service = AuthService(hasher=hasher, tokens=tokens)
    app.state.post_service = PostService(cover_storage=cover_storage)

    # ── Middleware (last added = first to execute) ────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=config.rate_limit_requests,
        window=config.rate_limit_window,
        enabled=config.rate_limit_enabled,
    )

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(posts.router)
    app.include_router(health.router)

    return app


app = create_app()
