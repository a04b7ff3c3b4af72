"""Tests for config loading and environment overrides."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from postify.config import DEFAULT_PREFERRED_MODELS, PostifyConfig, load_config


def test_defaults(tmp_path):
    cfg = load_config(tmp_path / "missing.toml", environ={})
    assert cfg.openrouter.api_key is None
    assert cfg.openrouter.default_model == "openai/gpt-4o-mini"
    assert cfg.openrouter.prefer_free_models is False
    assert cfg.openrouter.max_retries == 3
    assert cfg.openrouter.retry_delay_ms == 1000
    assert cfg.openrouter.app_name == "Postify"
    assert cfg.openrouter.site_url == "http://localhost:3001"
    assert cfg.openrouter.preferred_models == DEFAULT_PREFERRED_MODELS
    assert cfg.substrate.db_path == "data/postify.db"
    assert cfg.api.rate_limit_rpm == 10


def test_file_values(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(
        '[openrouter]\ndefault_model = "  anthropic/claude-3-haiku  "\n'
        'preferred_models = ["a:free"]\n\n'
        '[runtime]\nlog_level = "DEBUG"\n'
    )
    cfg = load_config(path, environ={})
    assert cfg.openrouter.default_model == "anthropic/claude-3-haiku"
    assert cfg.openrouter.preferred_models == ["a:free"]
    assert cfg.runtime.log_level == "DEBUG"


def test_env_overrides_file(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('[openrouter]\ndefault_model = "from/file"\n')
    cfg = load_config(
        path,
        environ={
            "OPENROUTER_API_KEY": "sk-env",
            "OPENROUTER_MODEL": "from/env",
            "OPENROUTER_PREFER_FREE": "true",
            "OPENROUTER_RETRY_DELAY": "250",
            "POSTIFY_DB_PATH": str(tmp_path / "x.db"),
            "CLIENT_URL": "http://a.test, http://b.test",
        },
    )
    assert cfg.openrouter.api_key == "sk-env"
    assert cfg.openrouter.default_model == "from/env"
    assert cfg.openrouter.prefer_free_models is True
    assert cfg.openrouter.retry_delay_ms == 250
    assert cfg.substrate.db_path == str(tmp_path / "x.db")
    assert cfg.api.cors_origins == ["http://a.test", "http://b.test"]


def test_empty_env_values_ignored(tmp_path):
    cfg = load_config(tmp_path / "none.toml", environ={"OPENROUTER_MODEL": ""})
    assert cfg.openrouter.default_model == "openai/gpt-4o-mini"


def test_invalid_values_rejected(tmp_path):
    with pytest.raises(ValidationError):
        load_config(tmp_path / "none.toml", environ={"OPENROUTER_RETRY_DELAY": "-5"})
    with pytest.raises(ValidationError):
        PostifyConfig.model_validate({"runtime": {"log_level": "LOUD"}})
