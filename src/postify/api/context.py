"""Application wiring: the objects a request handler needs."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Request

from postify.config import PostifyConfig
from postify.errors import APINotReadyError
from postify.runtime.completion import CompletionClient
from postify.runtime.discovery import ModelState, OpenRouterCatalog
from postify.runtime.router import FallbackRouter
from postify.services.article import ArticleService
from postify.services.generator import PostGenerator
from postify.substrate import Substrate

log = logging.getLogger(__name__)


@dataclass
class AppContext:
    config: PostifyConfig
    substrate: Substrate
    model_state: ModelState
    router: FallbackRouter
    generator: PostGenerator


def build_router(config: PostifyConfig, state: ModelState | None = None) -> FallbackRouter:
    """Wire the fallback router from config.

    Raises:
        ConfigMissingError: if no OpenRouter API key is configured.
    """
    settings = config.openrouter
    catalog = OpenRouterCatalog(
        settings.api_key,
        base_url=settings.base_url,
        site_url=settings.site_url,
        app_name=settings.app_name,
    )
    completer = CompletionClient(
        settings.api_key,
        base_url=settings.base_url,
        site_url=settings.site_url,
        app_name=settings.app_name,
        timeout=settings.request_timeout_s,
    )
    return FallbackRouter(settings, state or ModelState(), catalog, completer)


async def build_context(config: PostifyConfig) -> AppContext:
    substrate = Substrate(config.substrate.db_path)
    await substrate.initialize()

    router = build_router(config)
    articles = ArticleService(
        max_text_length=config.article.max_text_length,
        timeout=config.article.fetch_timeout_s,
    )
    generator = PostGenerator(articles, router, substrate)
    log.info(
        "context.built default_model=%s prefer_free=%s",
        config.openrouter.default_model,
        config.openrouter.prefer_free_models,
    )
    return AppContext(
        config=config,
        substrate=substrate,
        model_state=router.state,
        router=router,
        generator=generator,
    )


def get_context(request: Request) -> AppContext:
    """FastAPI dependency: the AppContext built during lifespan startup."""
    ctx = getattr(request.app.state, "ctx", None)
    if ctx is None:
        raise APINotReadyError("Service not initialized")
    return ctx
