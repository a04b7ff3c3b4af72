"""Generation pipeline: parse article -> generate posts -> save to history."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from postify.errors import ArticleParseError
from postify.models.article import ArticleData
from postify.models.post import (
    ArticleSnapshot,
    GenerationParameters,
    GenerationRequest,
    GenerationResult,
    Platform,
    PostRecord,
    Tone,
)

if TYPE_CHECKING:
    from postify.runtime.router import FallbackRouter
    from postify.services.article.service import ArticleService
    from postify.substrate import Substrate

log = logging.getLogger(__name__)


@dataclass
class GenerationOutcome:
    article: ArticleData
    result: GenerationResult
    post_id: str | None = None

    @property
    def saved_to_history(self) -> bool:
        return self.post_id is not None


class PostGenerator:
    """Runs one generation request end to end for a user."""

    def __init__(
        self,
        articles: ArticleService,
        router: FallbackRouter,
        substrate: Substrate | None = None,
    ) -> None:
        self._articles = articles
        self._router = router
        self._substrate = substrate

    async def generate(
        self,
        *,
        url: str,
        tone: Tone,
        platforms: list[Platform],
        hashtags: list[str] | None = None,
        cta: str | None = None,
        user_id: str | None = None,
    ) -> GenerationOutcome:
        """Generate posts for ``url``.

        Raises:
            ArticleParseError: the page could not be fetched or had no readable text.
            AllModelsFailedError: every model in the chain failed.
        """
        log.info("generator.request url=%s", url)
        article = await self._articles.parse_article(url)
        if article is None:
            raise ArticleParseError(
                "Failed to parse article from URL", context={"url": url}
            )

        request = GenerationRequest(
            article=article,
            tone=tone,
            platforms=platforms,
            hashtags=hashtags or [],
            cta=cta or None,
        )
        result = await self._router.generate_posts(request)

        post_id = None
        if user_id is not None and self._substrate is not None:
            post_id = await self._save(self._substrate, user_id, request, result)

        log.info(
            "generator.done platforms=%d model=%s saved=%s",
            len(request.platforms),
            result.model_id,
            post_id is not None,
        )
        return GenerationOutcome(article=article, result=result, post_id=post_id)

    async def _save(
        self,
        substrate: Substrate,
        user_id: str,
        request: GenerationRequest,
        result: GenerationResult,
    ) -> str | None:
        """Persist to history. A storage failure never fails the request."""
        article = request.article
        post = PostRecord(
            user_id=user_id,
            article=ArticleSnapshot(
                url=article.url,
                title=article.title,
                site=article.site_name,
                author=article.byline,
                summary=result.content.summary,
            ),
            parameters=GenerationParameters(
                tone=request.tone,
                platforms=request.platforms,
                hashtags=request.hashtags,
                cta=request.cta,
            ),
            generated_posts=result.content.posts,
            model_id=result.model_id,
        )
        try:
            await substrate.posts.save(post)
        except Exception:
            log.exception("generator.save_failed user_id=%s", user_id)
            return None

        # The post is stored; a stale counter must not hide it from the caller
        try:
            await substrate.users.increment_generations(user_id)
        except Exception:
            log.exception("generator.stats_failed user_id=%s", user_id)
        return post.post_id
