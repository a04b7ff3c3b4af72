"""Tests for the centralized logging configuration."""

from __future__ import annotations

import json
import logging

import pytest

from postify.config import PostifyConfig
from postify.runtime.logging_config import (
    HumanFormatter,
    JSONFormatter,
    RequestContextFilter,
    configure_from_config,
    configure_logging,
    ctx_request_id,
    ctx_user_id,
    update_log_level,
)


@pytest.fixture(autouse=True)
def _reset_logging():
    """Reset root logger after each test to avoid cross-contamination."""
    yield
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.WARNING)


def _record(name: str = "test", msg: str = "msg") -> logging.LogRecord:
    return logging.LogRecord(name, logging.INFO, "", 0, msg, (), None)


class TestRequestContextFilter:
    def test_injects_context_vars(self):
        record = _record()
        tok_req = ctx_request_id.set("req_abc123")
        tok_user = ctx_user_id.set("user_42")
        try:
            assert RequestContextFilter().filter(record) is True
            assert record.request_id == "req_abc123"  # type: ignore[attr-defined]
            assert record.user_id == "user_42"  # type: ignore[attr-defined]
        finally:
            ctx_request_id.reset(tok_req)
            ctx_user_id.reset(tok_user)

    def test_defaults_to_empty_string(self):
        record = _record()
        RequestContextFilter().filter(record)
        assert record.request_id == ""  # type: ignore[attr-defined]
        assert record.user_id == ""  # type: ignore[attr-defined]


class TestJSONFormatter:
    def test_basic_format(self):
        record = _record("postify.runtime.router", "hello world")
        data = json.loads(JSONFormatter(datefmt="%Y-%m-%dT%H:%M:%S").format(record))
        assert data["level"] == "INFO"
        assert data["logger"] == "postify.runtime.router"
        assert data["msg"] == "hello world"
        assert "ts" in data
        assert "request_id" not in data

    def test_includes_request_context(self):
        record = _record()
        record.request_id = "req_1"  # type: ignore[attr-defined]
        record.user_id = "user_2"  # type: ignore[attr-defined]
        data = json.loads(JSONFormatter().format(record))
        assert data["request_id"] == "req_1"
        assert data["user_id"] == "user_2"

    def test_includes_exception(self):
        try:
            raise ValueError("test error")
        except ValueError:
            import sys

            record = logging.LogRecord(
                "test", logging.ERROR, "", 0, "failed", (), sys.exc_info()
            )
        data = json.loads(JSONFormatter().format(record))
        assert "ValueError: test error" in data["exception"]


class TestHumanFormatter:
    def test_appends_context_suffix(self):
        fmt = HumanFormatter(fmt="%(levelname)s: %(message)s")
        record = _record()
        record.request_id = "abcdef1234567890"  # type: ignore[attr-defined]
        record.user_id = ""  # type: ignore[attr-defined]
        assert fmt.format(record) == "INFO: msg [req=abcdef123456]"

    def test_no_suffix_without_context(self):
        fmt = HumanFormatter(fmt="%(message)s")
        assert fmt.format(_record()) == "msg"


class TestConfigureLogging:
    def test_sets_level_and_quiets_noisy_loggers(self):
        configure_logging(level="DEBUG")
        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("LiteLLM").level == logging.WARNING

    def test_file_handler_writes_json(self, tmp_path):
        configure_logging(level="INFO", log_dir=tmp_path)
        logging.getLogger("postify.test").info("router.success model=%s", "a/b")
        for handler in logging.getLogger().handlers:
            handler.flush()

        lines = (tmp_path / "postify.log").read_text().strip().splitlines()
        assert json.loads(lines[-1])["msg"] == "router.success model=a/b"

    def test_module_levels(self):
        configure_logging(module_levels={"postify.runtime.router": "DEBUG"})
        assert logging.getLogger("postify.runtime.router").level == logging.DEBUG

    def test_configure_from_config_verbose(self):
        configure_from_config(PostifyConfig(), verbose=True)
        assert logging.getLogger().level == logging.DEBUG

    def test_update_log_level(self):
        configure_logging(level="INFO")
        update_log_level("ERROR")
        assert logging.getLogger().level == logging.ERROR
