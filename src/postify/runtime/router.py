"""Model fallback router.

Builds an ordered chain of OpenRouter model ids (curated free models first,
then other healthy free models, then unhealthy ones, then the configured
default) and walks it one attempt at a time until a model returns a
well-formed result.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Protocol

from postify.errors import AllModelsFailedError, LLMParseError, classify_error, is_transient
from postify.models.post import GeneratedContent, GenerationRequest, GenerationResult
from postify.runtime.prompts import build_messages

if TYPE_CHECKING:
    from postify.config import OpenRouterConfig
    from postify.runtime.clock import Clock
    from postify.runtime.discovery.schemas import ModelDescriptor
    from postify.runtime.discovery.state import ModelState

log = logging.getLogger(__name__)


class CatalogSource(Protocol):
    async def fetch_models(self) -> list[ModelDescriptor]: ...


class Completer(Protocol):
    async def complete(self, model_id: str, messages: list[dict[str, str]]) -> str: ...


def parse_generated_content(content: str, request: GenerationRequest) -> GeneratedContent:
    """Parse a model's JSON reply, keeping only the requested platforms.

    Raises LLMParseError when the reply is not a JSON object carrying a
    non-empty ``summary`` and a ``posts`` mapping.
    """
    try:
        data: Any = json.loads(content)
    except (json.JSONDecodeError, TypeError) as exc:
        raise LLMParseError(f"Invalid JSON from model: {exc}") from exc

    if not isinstance(data, dict):
        raise LLMParseError("Invalid response structure: expected a JSON object")

    summary = data.get("summary")
    posts = data.get("posts")
    if not summary or not isinstance(summary, str) or not isinstance(posts, dict):
        raise LLMParseError("Invalid response structure: summary and posts are required")

    by_key = {str(k).lower(): v for k, v in posts.items()}
    selected = {
        p.key: str(by_key[p.key])
        for p in request.platforms
        if by_key.get(p.key)
    }
    return GeneratedContent(summary=summary, posts=selected)


class FallbackRouter:
    def __init__(
        self,
        settings: OpenRouterConfig,
        state: ModelState,
        catalog: CatalogSource,
        completer: Completer,
        clock: Clock | None = None,
    ) -> None:
        self.settings = settings
        self.state = state
        self.catalog = catalog
        self.completer = completer
        self.clock = clock or state.clock

    # ── Catalog ───────────────────────────────────────────────────────

    async def get_available_models(self) -> list[ModelDescriptor]:
        """Full catalog, or [] when the catalog cannot be read."""
        try:
            return await self.catalog.fetch_models()
        except Exception as exc:
            log.error("catalog.fetch_failed error=%s", exc)
            return []

    async def get_free_models(self) -> list[ModelDescriptor]:
        """Zero-cost models, cached for an hour. Never raises."""
        cached = self.state.cached_free_models()
        if cached is not None:
            return cached

        try:
            models = await self.catalog.fetch_models()
        except Exception as exc:
            log.error("catalog.free_models_failed error=%s", exc)
            return []

        free = [m for m in models if m.is_free]
        self.state.store_free_models(free)
        log.info("catalog.free_models found=%d total=%d", len(free), len(models))
        return free

    # ── Chain ─────────────────────────────────────────────────────────

    async def build_fallback_chain(self) -> list[str]:
        default = self.settings.default_model
        free_models = await self.get_free_models()
        if not free_models:
            return [default]

        free_ids = [m.id for m in free_models]
        available = set(free_ids)
        chain: list[str] = []
        seen: set[str] = set()

        def _add(model_id: str) -> None:
            if model_id not in seen:
                seen.add(model_id)
                chain.append(model_id)

        for model_id in self.settings.preferred_models:
            if model_id in available and self.state.is_healthy(model_id):
                _add(model_id)

        for model_id in free_ids:
            if self.state.is_healthy(model_id):
                _add(model_id)

        # Unhealthy models stay in the chain as a last resort
        for model_id in free_ids:
            _add(model_id)

        _add(default)

        head = " -> ".join(chain[:3])
        more = f" -> ... ({len(chain)} total)" if len(chain) > 3 else ""
        log.info("router.chain %s%s", head, more)
        return chain

    async def select_best_free_model(self) -> str:
        chain = await self.build_fallback_chain()
        selected = chain[0] if chain else self.settings.default_model
        log.info("router.selected model=%s", selected)
        return selected

    # ── Generation ────────────────────────────────────────────────────

    async def generate_with_fallback(self, request: GenerationRequest) -> GenerationResult:
        if self.settings.prefer_free_models:
            chain = await self.build_fallback_chain()
        else:
            chain = [self.settings.default_model]

        messages = build_messages(request)
        last_error: BaseException | None = None

        for index, model_id in enumerate(chain):
            log.info("router.attempt n=%d/%d model=%s", index + 1, len(chain), model_id)
            try:
                raw = await self.completer.complete(model_id, messages)
                content = parse_generated_content(raw, request)
            except Exception as exc:
                last_error = exc
                self.state.record_outcome(model_id, success=False)
                log.warning(
                    "router.model_failed model=%s code=%s error=%s",
                    model_id,
                    classify_error(exc).code,
                    exc,
                )

                if index == len(chain) - 1:
                    break

                if is_transient(exc):
                    delay_ms = self.settings.retry_delay_ms * (index + 1)
                    log.info("router.backoff delay_ms=%d next=%s", delay_ms, chain[index + 1])
                    await self.clock.sleep(delay_ms / 1000)
                continue

            self.state.record_outcome(model_id, success=True)
            log.info("router.success model=%s", model_id)
            return GenerationResult(content=content, model_id=model_id)

        log.error("router.all_models_failed attempted=%d", len(chain))
        raise AllModelsFailedError(last_error, attempted=chain)

    async def generate_posts(self, request: GenerationRequest) -> GenerationResult:
        platforms = ", ".join(p.value for p in request.platforms)
        log.info("router.generate platforms=%s", platforms)
        try:
            return await self.generate_with_fallback(request)
        except AllModelsFailedError as exc:
            log.error("router.generation_failed error=%s", exc.message)
            raise
