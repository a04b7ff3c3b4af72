"""Free-model discovery and health tracking for OpenRouter."""

from postify.runtime.discovery.catalog import OpenRouterCatalog, parse_catalog
from postify.runtime.discovery.schemas import (
    FreeModelCache,
    ModelDescriptor,
    ModelHealth,
    ModelPricing,
)
from postify.runtime.discovery.state import ModelState

__all__ = [
    "FreeModelCache",
    "ModelDescriptor",
    "ModelHealth",
    "ModelPricing",
    "ModelState",
    "OpenRouterCatalog",
    "parse_catalog",
]
