"""Structured error taxonomy for Postify.

Every error carries a machine-readable code, severity, and retryability
flag so that the fallback router and the API layer can make automated
decisions.

Error code format: PF_<DOMAIN>_<ISSUE>
Domains: LLM, CONFIG, ARTICLE, SECURITY, SUBSTRATE, API
"""

from __future__ import annotations

import re
from enum import StrEnum
from typing import Any


class Severity(StrEnum):
    CRITICAL = "critical"  # process cannot continue
    ERROR = "error"  # operation failed
    WARN = "warn"  # degraded but operational


class ErrorDomain(StrEnum):
    LLM = "LLM"
    CONFIG = "CONFIG"
    ARTICLE = "ARTICLE"
    SECURITY = "SECURITY"
    SUBSTRATE = "SUBSTRATE"
    API = "API"


# ── Base exception ─────────────────────────────────────────────────────────


class PostifyError(Exception):
    """Base exception for all Postify errors."""

    code: str = "PF_UNKNOWN"
    domain: ErrorDomain = ErrorDomain.API
    severity: Severity = Severity.ERROR
    is_retryable: bool = False
    retry_delay_ms: int = 0
    status_code: int | None = None

    def __init__(
        self,
        message: str = "",
        *,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.code
        self.context: dict[str, Any] = context or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "domain": self.domain.value,
            "severity": self.severity.value,
            "message": self.message,
            "is_retryable": self.is_retryable,
            "retry_delay_ms": self.retry_delay_ms,
            "context": self.context,
        }


# ── LLM errors ─────────────────────────────────────────────────────────────


class LLMRateLimitError(PostifyError):
    code = "PF_LLM_RATE_LIMIT"
    domain = ErrorDomain.LLM
    severity = Severity.WARN
    is_retryable = True
    retry_delay_ms = 5000
    status_code = 429


class LLMTimeoutError(PostifyError):
    code = "PF_LLM_TIMEOUT"
    domain = ErrorDomain.LLM
    severity = Severity.WARN
    is_retryable = True
    retry_delay_ms = 2000


class LLMProviderError(PostifyError):
    code = "PF_LLM_PROVIDER_DOWN"
    domain = ErrorDomain.LLM
    severity = Severity.ERROR
    is_retryable = True
    retry_delay_ms = 10000
    status_code = 503


class LLMParseError(PostifyError):
    code = "PF_LLM_PARSE_FAILED"
    domain = ErrorDomain.LLM
    severity = Severity.ERROR
    is_retryable = False


class AllModelsFailedError(PostifyError):
    """Every model in the fallback chain failed.

    ``last_error`` is the exception raised by the final attempt.
    """

    code = "PF_LLM_ALL_MODELS_FAILED"
    domain = ErrorDomain.LLM
    severity = Severity.ERROR
    is_retryable = False

    def __init__(
        self,
        last_error: BaseException | None,
        attempted: list[str] | None = None,
    ) -> None:
        self.last_error = last_error
        self.attempted = list(attempted or [])
        detail = str(last_error) if last_error is not None else "Unknown error"
        super().__init__(
            f"All models failed. Last error: {detail}",
            context={"attempted": self.attempted},
        )


# ── Config errors ──────────────────────────────────────────────────────────


class ConfigMissingError(PostifyError):
    code = "PF_CONFIG_MISSING"
    domain = ErrorDomain.CONFIG
    severity = Severity.CRITICAL
    is_retryable = False


# ── Article errors ─────────────────────────────────────────────────────────


class ArticleFetchError(PostifyError):
    code = "PF_ARTICLE_FETCH_FAILED"
    domain = ErrorDomain.ARTICLE
    severity = Severity.WARN
    is_retryable = True
    retry_delay_ms = 1000


class ArticleParseError(PostifyError):
    code = "PF_ARTICLE_PARSE_FAILED"
    domain = ErrorDomain.ARTICLE
    severity = Severity.WARN
    is_retryable = False


# ── Security errors ────────────────────────────────────────────────────────


class AuthenticationError(PostifyError):
    code = "PF_SECURITY_AUTH_FAILED"
    domain = ErrorDomain.SECURITY
    severity = Severity.WARN
    is_retryable = False


# ── Substrate errors ───────────────────────────────────────────────────────


class PostNotFoundError(PostifyError):
    code = "PF_SUBSTRATE_POST_NOT_FOUND"
    domain = ErrorDomain.SUBSTRATE
    severity = Severity.WARN
    is_retryable = False


class UserExistsError(PostifyError):
    code = "PF_SUBSTRATE_USER_EXISTS"
    domain = ErrorDomain.SUBSTRATE
    severity = Severity.WARN
    is_retryable = False


# ── API errors ─────────────────────────────────────────────────────────────


class APIValidationError(PostifyError):
    code = "PF_API_VALIDATION"
    domain = ErrorDomain.API
    severity = Severity.WARN
    is_retryable = False

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors), context={"errors": self.errors})


class APINotReadyError(PostifyError):
    code = "PF_API_NOT_READY"
    domain = ErrorDomain.API
    severity = Severity.ERROR
    is_retryable = True
    retry_delay_ms = 5000


# ── Error classification helpers ───────────────────────────────────────────

_KEYWORDS: dict[str, type[PostifyError]] = {
    "429": LLMRateLimitError,
    "rate limit": LLMRateLimitError,
    "rate_limit": LLMRateLimitError,
    "503": LLMProviderError,
    "overloaded": LLMProviderError,
    "timeout": LLMTimeoutError,
    "timed out": LLMTimeoutError,
    "json": LLMParseError,
    "parse": LLMParseError,
}

_STATUS_CODES: dict[int, type[PostifyError]] = {
    429: LLMRateLimitError,
    503: LLMProviderError,
}

_TRANSIENT_RE = re.compile(r"\b(?:429|503)\b|rate limit|overloaded")


def _mentions(keyword: str, msg: str) -> bool:
    # Status codes match as whole numbers only; "char 4290" is not a 429
    if keyword.isdigit():
        return re.search(rf"\b{keyword}\b", msg) is not None
    return keyword in msg


def _status_of(exc: BaseException) -> int | None:
    status = getattr(exc, "status_code", None)
    if isinstance(status, int):
        return status
    response = getattr(exc, "response", None)
    status = getattr(response, "status_code", None)
    return status if isinstance(status, int) else None


def classify_error(exc: BaseException) -> PostifyError:
    """Classify a raw exception into a structured PostifyError.

    Uses the HTTP status code when the exception carries one, then keyword
    matching on the message. Falls back to PostifyError if nothing matches.
    """
    if isinstance(exc, PostifyError):
        return exc

    status = _status_of(exc)
    if status in _STATUS_CODES:
        return _STATUS_CODES[status](str(exc), context={"status_code": status})

    msg = str(exc).lower()
    for keyword, error_cls in _KEYWORDS.items():
        if _mentions(keyword, msg):
            return error_cls(str(exc))

    return PostifyError(str(exc))


def is_transient(exc: BaseException) -> bool:
    """True for rate limiting (429) and overload (503) failures.

    Transient failures earn a backoff delay before the next model is tried.
    A PostifyError is judged by its own status code only, so a parse
    failure never backs off because its message quotes a number.
    """
    if isinstance(exc, PostifyError):
        return exc.status_code in (429, 503)
    status = _status_of(exc)
    if status in (429, 503):
        return True
    msg = str(exc).lower()
    return _TRANSIENT_RE.search(msg) is not None
