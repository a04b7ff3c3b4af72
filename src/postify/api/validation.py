"""Request body validation with human-readable error lists."""

from __future__ import annotations

from typing import Any
from urllib.parse import urlparse

from postify.models.post import Platform, Tone

VALID_TONES = [t.value for t in Tone]
VALID_PLATFORMS = [p.value for p in Platform]
MAX_HASHTAGS = 10
MAX_CTA_LENGTH = 100


def _validate_url(url: Any) -> list[str]:
    if not url:
        return ["URL is required"]
    if not isinstance(url, str):
        return ["URL must be a string"]
    try:
        parsed = urlparse(url)
    except ValueError:
        return ["URL must be a valid URL"]
    if not parsed.scheme or not parsed.netloc:
        return ["URL must be a valid URL"]
    if parsed.scheme not in ("http", "https"):
        return ["URL must use HTTP or HTTPS protocol"]
    return []


def _validate_platforms(platforms: Any, *, required: bool) -> list[str]:
    if platforms is None:
        return ["Platforms array is required"] if required else []
    if not isinstance(platforms, list):
        return ["Platforms must be an array"]
    if required and not platforms:
        return ["At least one platform must be selected"]
    invalid = [str(p) for p in platforms if p not in VALID_PLATFORMS]
    if invalid:
        return [
            f"Invalid platforms: {', '.join(invalid)}. "
            f"Valid platforms are: {', '.join(VALID_PLATFORMS)}"
        ]
    return []


def _validate_hashtags(hashtags: Any) -> list[str]:
    if hashtags is None:
        return []
    if not isinstance(hashtags, list):
        return ["Hashtags must be an array"]
    errors = []
    if any(not isinstance(h, str) or not h.strip() for h in hashtags):
        errors.append("All hashtags must be non-empty strings")
    if len(hashtags) > MAX_HASHTAGS:
        errors.append(f"Maximum {MAX_HASHTAGS} hashtags allowed")
    return errors


def validate_generate_request(body: Any) -> list[str]:
    """Return every problem with a /api/generate body; empty means valid."""
    if not isinstance(body, dict):
        return ["Request body must be a JSON object"]

    errors = _validate_url(body.get("url"))

    tone = body.get("tone")
    if not tone:
        errors.append("Tone is required")
    elif tone not in VALID_TONES:
        errors.append(f"Tone must be one of: {', '.join(VALID_TONES)}")

    errors += _validate_platforms(body.get("platforms"), required=True)
    errors += _validate_hashtags(body.get("hashtags"))

    cta = body.get("cta")
    if cta is not None:
        if not isinstance(cta, str):
            errors.append("CTA must be a string")
        elif len(cta) > MAX_CTA_LENGTH:
            errors.append(f"CTA must be {MAX_CTA_LENGTH} characters or less")

    return errors


def validate_preferences(body: Any) -> list[str]:
    """Validate a PUT /auth/preferences body (every field optional)."""
    if not isinstance(body, dict):
        return ["Request body must be a JSON object"]

    errors: list[str] = []
    tone = body.get("defaultTone")
    if tone is not None and tone not in VALID_TONES:
        errors.append(f"Tone must be one of: {', '.join(VALID_TONES)}")
    errors += _validate_platforms(body.get("defaultPlatforms"), required=False)
    errors += _validate_hashtags(body.get("defaultHashtags"))
    return errors
