"""OpenRouter model catalog fetcher."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from postify.errors import ConfigMissingError
from postify.runtime.discovery.schemas import ModelDescriptor

log = logging.getLogger(__name__)

_CLIENT_TIMEOUT = 15.0


def parse_catalog(data: Any) -> list[ModelDescriptor]:
    """Turn a ``/models`` payload into descriptors, skipping malformed rows.

    Prices arrive either as numbers or as numeric strings depending on the
    model; both are normalized to float by ``ModelPricing``.
    """
    items = data.get("data", []) if isinstance(data, dict) else []
    models: list[ModelDescriptor] = []
    for m in items:
        if not isinstance(m, dict) or not m.get("id"):
            continue
        try:
            models.append(
                ModelDescriptor(
                    id=m["id"],
                    name=m.get("name") or m["id"],
                    context_length=m.get("context_length") or 4096,
                    pricing=m.get("pricing") or {},
                )
            )
        except ValidationError:
            log.debug("catalog.skip_malformed model=%s", m.get("id"))
    return models


class OpenRouterCatalog:
    """Reads the model list from the OpenRouter catalog endpoint."""

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = "https://openrouter.ai/api/v1",
        site_url: str = "",
        app_name: str = "",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ConfigMissingError("OPENROUTER_API_KEY environment variable is required")
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._site_url = site_url
        self._app_name = app_name
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {self._api_key}"}
        if self._site_url:
            headers["HTTP-Referer"] = self._site_url
        if self._app_name:
            headers["X-Title"] = self._app_name
        return headers

    async def fetch_models(self) -> list[ModelDescriptor]:
        """GET the full catalog. Raises httpx errors on failure."""
        async with httpx.AsyncClient(
            timeout=_CLIENT_TIMEOUT, transport=self._transport
        ) as client:
            resp = await client.get(f"{self._base_url}/models", headers=self._headers())
            resp.raise_for_status()
            data = resp.json()
        models = parse_catalog(data)
        log.debug("catalog.fetched models=%d", len(models))
        return models
