"""Tests for the free-model cache and per-model health tracking."""

from __future__ import annotations

from postify.runtime.discovery import ModelDescriptor, ModelState
from postify.runtime.discovery.state import (
    FREE_MODELS_TTL_S,
    HEALTH_RETENTION_S,
    RECENT_FAILURE_WINDOW_S,
)


def _free(model_id: str) -> ModelDescriptor:
    return ModelDescriptor(id=model_id, pricing={"prompt": "0", "completion": "0"})


# ── Health ────────────────────────────────────────────────────────────────


def test_unknown_model_is_healthy(clock):
    state = ModelState(clock)
    assert state.is_healthy("never/seen") is True
    assert state.get_health("never/seen") is None


def test_single_recent_failure_makes_model_unhealthy(clock):
    state = ModelState(clock)
    state.record_outcome("a/model", success=False)
    assert state.is_healthy("a/model") is False


def test_recovers_after_failure_window(clock):
    state = ModelState(clock)
    state.record_outcome("a/model", success=False)
    clock.advance(RECENT_FAILURE_WINDOW_S + 1)
    assert state.is_healthy("a/model") is True


def test_three_consecutive_failures_unhealthy_even_after_window(clock):
    state = ModelState(clock)
    for _ in range(3):
        state.record_outcome("a/model", success=False)
    clock.advance(RECENT_FAILURE_WINDOW_S + 1)
    assert state.is_healthy("a/model") is False


def test_success_resets_consecutive_failures(clock):
    state = ModelState(clock)
    state.record_outcome("a/model", success=False)
    state.record_outcome("a/model", success=False)
    state.record_outcome("a/model", success=True)

    h = state.get_health("a/model")
    assert h is not None
    assert h.success_count == 1
    assert h.failure_count == 2
    assert h.consecutive_failures == 0


def test_success_does_not_clear_recent_failure_timestamp(clock):
    state = ModelState(clock)
    state.record_outcome("a/model", success=False)
    state.record_outcome("a/model", success=True)
    # The failure is still inside the cooldown window
    assert state.is_healthy("a/model") is False


def test_stale_entries_swept_on_next_update(clock):
    state = ModelState(clock)
    state.record_outcome("old/model", success=False)
    clock.advance(HEALTH_RETENTION_S + 1)
    state.record_outcome("new/model", success=True)

    assert state.get_health("old/model") is None
    assert state.get_health("new/model") is not None


def test_entries_within_retention_survive_sweep(clock):
    state = ModelState(clock)
    state.record_outcome("a/model", success=True)
    clock.advance(HEALTH_RETENTION_S - 1)
    state.record_outcome("b/model", success=True)
    assert set(state.health_snapshot()) == {"a/model", "b/model"}


def test_snapshot_is_a_copy(clock):
    state = ModelState(clock)
    state.record_outcome("a/model", success=True)
    snap = state.health_snapshot()
    snap["a/model"].success_count = 99
    assert state.get_health("a/model").success_count == 1


# ── Free-model cache ──────────────────────────────────────────────────────


def test_cache_empty_initially(clock):
    assert ModelState(clock).cached_free_models() is None


def test_cache_fresh_until_ttl(clock):
    state = ModelState(clock)
    state.store_free_models([_free("a:free")])

    clock.advance(FREE_MODELS_TTL_S - 1)
    cached = state.cached_free_models()
    assert cached is not None
    assert [m.id for m in cached] == ["a:free"]

    clock.advance(2)
    assert state.cached_free_models() is None


def test_empty_list_is_cached(clock):
    state = ModelState(clock)
    state.store_free_models([])
    assert state.cached_free_models() == []


def test_success_after_cooldown_restores_three_strike_model(clock):
    state = ModelState(clock)
    for _ in range(3):
        state.record_outcome("a/model", success=False)
    clock.advance(RECENT_FAILURE_WINDOW_S + 1)
    assert state.is_healthy("a/model") is False

    state.record_outcome("a/model", success=True)
    assert state.is_healthy("a/model") is True
