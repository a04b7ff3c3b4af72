"""Data models for model discovery and health tracking."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator


def _to_price(value: Any) -> float | None:
    """Normalize a catalog price (``0``, ``"0"``, ``"0.000001"``) to float.

    Returns None for missing or unparseable values.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class ModelPricing(BaseModel):
    """Per-token prices. None means the catalog gave no usable value."""

    prompt: float | None = None
    completion: float | None = None

    @field_validator("prompt", "completion", mode="before")
    @classmethod
    def normalize_price(cls, v: Any) -> float | None:
        return _to_price(v)


class ModelDescriptor(BaseModel):
    """A model listed by the OpenRouter catalog."""

    id: str  # e.g. "mistralai/mistral-7b-instruct:free"
    name: str = ""
    context_length: int = 4096
    pricing: ModelPricing = Field(default_factory=ModelPricing)

    model_config = {"frozen": True}

    @property
    def is_free(self) -> bool:
        return self.pricing.prompt == 0 and self.pricing.completion == 0


class ModelHealth(BaseModel):
    """Outcome counters for a single model id."""

    model_id: str
    success_count: int = 0
    failure_count: int = 0
    consecutive_failures: int = 0
    last_failure_at: float | None = None
    last_updated: float = 0.0


class FreeModelCache(BaseModel):
    """The zero-cost slice of the catalog plus its expiry."""

    models: list[ModelDescriptor] = Field(default_factory=list)
    expires_at: float = 0.0

    def is_fresh(self, now: float) -> bool:
        return now < self.expires_at
