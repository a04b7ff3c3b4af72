"""Chat completion calls against OpenRouter via litellm."""

from __future__ import annotations

import logging
import time
from typing import Any

import litellm

from postify.errors import ConfigMissingError, LLMParseError

log = logging.getLogger(__name__)

TEMPERATURE = 0.7
MAX_TOKENS = 1500


class CompletionClient:
    """Issues one JSON-mode chat completion for a given OpenRouter model id."""

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = "https://openrouter.ai/api/v1",
        site_url: str = "",
        app_name: str = "",
        timeout: float = 60.0,
    ) -> None:
        if not api_key:
            raise ConfigMissingError("OPENROUTER_API_KEY environment variable is required")
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._site_url = site_url
        self._app_name = app_name
        self._timeout = timeout

    async def complete(self, model_id: str, messages: list[dict[str, str]]) -> str:
        """Return the message content of the first choice.

        Provider errors (with ``status_code``) propagate unchanged.
        """
        start = time.monotonic()
        response = await litellm.acompletion(
            model=f"openrouter/{model_id}",
            messages=messages,
            temperature=TEMPERATURE,
            max_tokens=MAX_TOKENS,
            response_format={"type": "json_object"},
            api_key=self._api_key,
            api_base=self._base_url,
            extra_headers={
                "HTTP-Referer": self._site_url,
                "X-Title": self._app_name,
            },
            timeout=self._timeout,
        )
        latency_ms = (time.monotonic() - start) * 1000

        content = _first_content(response)
        if not content:
            raise LLMParseError(
                "No content generated from OpenRouter",
                context={"model": model_id},
            )

        log.debug("llm.call model=%s latency_ms=%.1f", model_id, latency_ms)
        return content


def _first_content(response: Any) -> str:
    try:
        return response.choices[0].message.content or ""
    except (AttributeError, IndexError, TypeError):
        return ""
