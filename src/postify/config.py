"""Typed configuration models for Postify.

Provides Pydantic validation for config.toml, catching typos, wrong types,
and invalid values at startup rather than at runtime. Environment variables
(loaded from ``.env`` by python-dotenv) override the file.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

log = logging.getLogger(__name__)

DEFAULT_PREFERRED_MODELS: list[str] = [
    "google/gemma-7b-it:free",
    "meta-llama/llama-3-8b-instruct:free",
    "mistralai/mistral-7b-instruct:free",
    "microsoft/phi-3-mini-128k-instruct:free",
    "huggingfaceh4/zephyr-7b-beta:free",
    "openchat/openchat-7b:free",
    "nousresearch/nous-hermes-llama2-13b:free",
]


class OpenRouterConfig(BaseModel):
    api_key: str | None = None
    base_url: str = "https://openrouter.ai/api/v1"
    default_model: str = "openai/gpt-4o-mini"
    prefer_free_models: bool = False
    max_retries: int = Field(default=3, ge=0)
    retry_delay_ms: int = Field(default=1000, ge=0)
    app_name: str = "Postify"
    site_url: str = "http://localhost:3001"
    preferred_models: list[str] = Field(
        default_factory=lambda: list(DEFAULT_PREFERRED_MODELS)
    )
    request_timeout_s: float = Field(default=60.0, gt=0)

    @field_validator("default_model", mode="before")
    @classmethod
    def strip_model_name(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v


class RuntimeConfig(BaseModel):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool = False
    log_dir: str | None = None
    module_levels: dict[str, str] | None = None
    environment: str = "development"


class SubstrateConfig(BaseModel):
    db_path: str = "data/postify.db"


class APIConfig(BaseModel):
    rate_limit_rpm: int = Field(default=10, gt=0)
    rate_limit_burst: int = Field(default=0, ge=0)
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173"]
    )


class ArticleConfig(BaseModel):
    max_text_length: int = Field(default=4000, gt=0)
    fetch_timeout_s: float = Field(default=10.0, gt=0)


class PostifyConfig(BaseModel):
    """Root configuration model for config.toml."""

    openrouter: OpenRouterConfig = Field(default_factory=OpenRouterConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)
    substrate: SubstrateConfig = Field(default_factory=SubstrateConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    article: ArticleConfig = Field(default_factory=ArticleConfig)

    model_config = {"extra": "allow"}


# env var -> (section, key)
_ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "OPENROUTER_API_KEY": ("openrouter", "api_key"),
    "OPENROUTER_MODEL": ("openrouter", "default_model"),
    "OPENROUTER_PREFER_FREE": ("openrouter", "prefer_free_models"),
    "OPENROUTER_MAX_RETRIES": ("openrouter", "max_retries"),
    "OPENROUTER_RETRY_DELAY": ("openrouter", "retry_delay_ms"),
    "OPENROUTER_APP_NAME": ("openrouter", "app_name"),
    "OPENROUTER_SITE_URL": ("openrouter", "site_url"),
    "POSTIFY_DB_PATH": ("substrate", "db_path"),
    "POSTIFY_ENV": ("runtime", "environment"),
    "RATE_LIMIT_RPM": ("api", "rate_limit_rpm"),
}


def _apply_env(raw: dict[str, Any], environ: dict[str, str]) -> None:
    for var, (section, key) in _ENV_OVERRIDES.items():
        value = environ.get(var)
        if value is None or value == "":
            continue
        raw.setdefault(section, {})[key] = value

    client_url = environ.get("CLIENT_URL")
    if client_url:
        origins = [u.strip() for u in client_url.split(",") if u.strip()]
        raw.setdefault("api", {})["cors_origins"] = origins


def load_config(
    path: Path | None = None,
    environ: dict[str, str] | None = None,
) -> PostifyConfig:
    """Load and validate config.toml, returning typed PostifyConfig.

    Missing file or sections are filled with defaults. Environment variables
    win over file values. Raises pydantic.ValidationError on invalid values.
    """
    if environ is None:
        load_dotenv()
        environ = dict(os.environ)

    config_path = path or Path("config.toml")
    raw: dict[str, Any] = {}

    if config_path.exists():
        with config_path.open("rb") as f:
            raw = tomllib.load(f)

    _apply_env(raw, environ)

    config = PostifyConfig.model_validate(raw)
    log.debug(
        "config.loaded path=%s default_model=%s prefer_free=%s log_level=%s db=%s",
        config_path,
        config.openrouter.default_model,
        config.openrouter.prefer_free_models,
        config.runtime.log_level,
        config.substrate.db_path,
    )
    return config
