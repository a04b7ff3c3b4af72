"""Process-wide model state: the free-model cache and the health table.

One ModelState is owned by the application and shared by every request.
Mutations are plain field updates keyed by model id; health is a soft
ordering hint, so a lost update under concurrency only biases ordering.
"""

from __future__ import annotations

import logging

from postify.runtime.clock import Clock, SystemClock
from postify.runtime.discovery.schemas import FreeModelCache, ModelDescriptor, ModelHealth

log = logging.getLogger(__name__)

FREE_MODELS_TTL_S = 60 * 60
HEALTH_RETENTION_S = 5 * 60
RECENT_FAILURE_WINDOW_S = 2 * 60
MAX_CONSECUTIVE_FAILURES = 3


class ModelState:
    """Owns the free-model cache and per-model health records."""

    def __init__(self, clock: Clock | None = None) -> None:
        self.clock: Clock = clock or SystemClock()
        self._free_models: FreeModelCache | None = None
        self._health: dict[str, ModelHealth] = {}

    # ── Free-model cache ──────────────────────────────────────────────

    def cached_free_models(self) -> list[ModelDescriptor] | None:
        """Return the cached list while it is fresh, else None."""
        cache = self._free_models
        if cache is not None and cache.is_fresh(self.clock.now()):
            return cache.models
        return None

    def store_free_models(self, models: list[ModelDescriptor]) -> None:
        self._free_models = FreeModelCache(
            models=list(models),
            expires_at=self.clock.now() + FREE_MODELS_TTL_S,
        )

    # ── Health tracking ───────────────────────────────────────────────

    def record_outcome(self, model_id: str, success: bool) -> None:
        """Update health for a model after an attempt, then sweep stale entries."""
        now = self.clock.now()
        h = self._health.get(model_id)
        if h is None:
            h = ModelHealth(model_id=model_id, last_updated=now)
            self._health[model_id] = h

        if success:
            h.success_count += 1
            h.consecutive_failures = 0
        else:
            h.failure_count += 1
            h.consecutive_failures += 1
            h.last_failure_at = now

        h.last_updated = now
        self._sweep(now)

    def is_healthy(self, model_id: str) -> bool:
        """Unknown models are healthy; three straight failures or any
        failure inside the cooldown window make a model unhealthy."""
        h = self._health.get(model_id)
        if h is None:
            return True

        if h.consecutive_failures >= MAX_CONSECUTIVE_FAILURES:
            return False

        if h.last_failure_at is not None:
            if self.clock.now() - h.last_failure_at < RECENT_FAILURE_WINDOW_S:
                return False

        return True

    def get_health(self, model_id: str) -> ModelHealth | None:
        return self._health.get(model_id)

    def health_snapshot(self) -> dict[str, ModelHealth]:
        return {k: v.model_copy() for k, v in self._health.items()}

    def _sweep(self, now: float) -> None:
        stale = [
            model_id
            for model_id, h in self._health.items()
            if now - h.last_updated > HEALTH_RETENTION_S
        ]
        for model_id in stale:
            del self._health[model_id]
        if stale:
            log.debug("health.evicted count=%d", len(stale))
