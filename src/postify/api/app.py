"""FastAPI application: wiring, middleware, error mapping and health."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from postify.api.context import build_context
from postify.api.endpoints.account import router as account_router
from postify.api.endpoints.generate import router as generate_router
from postify.api.endpoints.models import router as models_router
from postify.api.endpoints.posts import router as posts_router
from postify.api.middleware import RateLimitMiddleware, RequestTimingMiddleware
from postify.api.responses import DatabaseStatus, HealthResponse, LLMStatus
from postify.config import PostifyConfig, load_config
from postify.errors import (
    AllModelsFailedError,
    APINotReadyError,
    APIValidationError,
    ArticleParseError,
    AuthenticationError,
    PostifyError,
    PostNotFoundError,
    UserExistsError,
)
from postify.runtime.logging_config import configure_from_config

log = logging.getLogger(__name__)


def _error_body(exc: PostifyError) -> tuple[int, dict]:
    if isinstance(exc, APIValidationError):
        return 400, {"error": "Invalid request data", "details": exc.errors}
    if isinstance(exc, ArticleParseError):
        return 400, {"error": "Failed to parse article", "message": exc.message}
    if isinstance(exc, AuthenticationError):
        return 401, {"error": "Authentication required", "message": exc.message}
    if isinstance(exc, PostNotFoundError):
        return 404, {"error": "Post not found"}
    if isinstance(exc, UserExistsError):
        return 409, {"error": "User already exists"}
    if isinstance(exc, AllModelsFailedError):
        return 502, {
            "error": "AI service error",
            "message": "Failed to generate content. Please try again later.",
        }
    if isinstance(exc, APINotReadyError):
        return 503, {"error": "Service unavailable", "message": exc.message}
    return 500, {
        "error": "Internal server error",
        "message": "An unexpected error occurred while processing your request",
    }


async def _handle_postify_error(request: Request, exc: PostifyError) -> JSONResponse:
    status, body = _error_body(exc)
    if status >= 500:
        log.error(
            "api.error path=%s code=%s status=%d error=%s",
            request.url.path,
            exc.code,
            status,
            exc.message,
        )
    else:
        log.info(
            "api.rejected path=%s code=%s status=%d",
            request.url.path,
            exc.code,
            status,
        )
    return JSONResponse(body, status_code=status)


def create_app(config: PostifyConfig | None = None) -> FastAPI:
    """Build the Postify API.

    The application context is created on startup unless one was already
    placed on ``app.state.ctx``.
    """
    config = config or load_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_from_config(config)
        if getattr(app.state, "ctx", None) is None:
            app.state.ctx = await build_context(config)
        log.info(
            "Postify API started environment=%s db=%s",
            config.runtime.environment,
            config.substrate.db_path,
        )
        yield
        log.info("Postify API stopped")

    app = FastAPI(title="Postify", version="0.1.0", lifespan=lifespan)
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestTimingMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        rpm=config.api.rate_limit_rpm,
        burst=config.api.rate_limit_burst,
    )
    app.add_exception_handler(PostifyError, _handle_postify_error)

    app.include_router(generate_router)
    app.include_router(posts_router)
    app.include_router(account_router)
    app.include_router(models_router)

    @app.get("/health", response_model=HealthResponse)
    async def health(request: Request) -> HealthResponse:
        ctx = getattr(request.app.state, "ctx", None)
        db_ok = ctx is not None and await ctx.substrate.ping()
        settings = config.openrouter
        return HealthResponse(
            status="OK",
            timestamp=datetime.now(UTC).isoformat(),
            environment=config.runtime.environment,
            database=DatabaseStatus(
                status="connected" if db_ok else "disconnected",
                path=config.substrate.db_path,
            ),
            llm=LLMStatus(
                configured=bool(settings.api_key),
                default_model=settings.default_model,
                prefer_free_models=settings.prefer_free_models,
            ),
        )

    return app


app = create_app()
