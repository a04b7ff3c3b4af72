"""Tests for the structured error taxonomy."""

from __future__ import annotations

from postify.errors import (
    AllModelsFailedError,
    APIValidationError,
    LLMParseError,
    LLMProviderError,
    LLMRateLimitError,
    LLMTimeoutError,
    PostifyError,
    classify_error,
    is_transient,
)


class _WithStatus(Exception):
    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class _WithResponse(Exception):
    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.response = type("Resp", (), {"status_code": status_code})()


class TestClassifyError:
    def test_passthrough_postify_error(self):
        err = LLMParseError("bad")
        assert classify_error(err) is err

    def test_status_code_wins(self):
        assert isinstance(classify_error(_WithStatus("whatever", 429)), LLMRateLimitError)
        assert isinstance(classify_error(_WithStatus("whatever", 503)), LLMProviderError)

    def test_status_from_response(self):
        assert isinstance(classify_error(_WithResponse("x", 429)), LLMRateLimitError)

    def test_keywords(self):
        assert isinstance(classify_error(RuntimeError("Request timed out")), LLMTimeoutError)
        assert isinstance(classify_error(RuntimeError("model is overloaded")), LLMProviderError)
        assert isinstance(classify_error(ValueError("could not parse JSON")), LLMParseError)

    def test_unknown_falls_back_to_base(self):
        err = classify_error(RuntimeError("something odd"))
        assert type(err) is PostifyError
        assert err.message == "something odd"


class TestIsTransient:
    def test_status_codes(self):
        assert is_transient(_WithStatus("", 429)) is True
        assert is_transient(_WithStatus("", 503)) is True
        assert is_transient(_WithStatus("", 401)) is False

    def test_message_markers(self):
        assert is_transient(RuntimeError("Error 429: too many requests")) is True
        assert is_transient(RuntimeError("Rate limit reached")) is True
        assert is_transient(RuntimeError("upstream overloaded")) is True
        assert is_transient(RuntimeError("HTTP 503")) is True

    def test_other_errors_not_transient(self):
        assert is_transient(RuntimeError("invalid api key")) is False
        assert is_transient(LLMParseError("Invalid JSON from model")) is False


def test_all_models_failed_message():
    err = AllModelsFailedError(RuntimeError("boom"), attempted=["a", "b"])
    assert err.message == "All models failed. Last error: boom"
    assert err.context == {"attempted": ["a", "b"]}
    assert isinstance(err.last_error, RuntimeError)


def test_all_models_failed_without_last_error():
    assert AllModelsFailedError(None).message == "All models failed. Last error: Unknown error"


def test_to_dict():
    data = LLMRateLimitError("slow down").to_dict()
    assert data["code"] == "PF_LLM_RATE_LIMIT"
    assert data["domain"] == "LLM"
    assert data["is_retryable"] is True
    assert data["message"] == "slow down"


def test_validation_error_keeps_list():
    err = APIValidationError(["URL is required", "Tone is required"])
    assert err.errors == ["URL is required", "Tone is required"]
    assert "URL is required" in err.message


def test_postify_errors_judged_by_status_code_only():
    assert is_transient(LLMParseError("Invalid JSON from model: line 1 (char 429)")) is False
    assert is_transient(LLMRateLimitError("slow down")) is True
    assert is_transient(LLMProviderError("down")) is True


def test_status_numbers_match_as_whole_words():
    assert is_transient(RuntimeError("unexpected token at char 4290")) is False
    assert is_transient(RuntimeError("upstream returned 15030 bytes")) is False
    assert type(classify_error(RuntimeError("read 14291 bytes"))) is PostifyError
