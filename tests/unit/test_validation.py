"""Tests for request body validation messages."""

from __future__ import annotations

from postify.api.validation import validate_generate_request, validate_preferences

VALID = {
    "url": "https://example.com/a",
    "tone": "Witty",
    "platforms": ["Twitter"],
}


def test_valid_body_has_no_errors():
    assert validate_generate_request(VALID) == []
    assert validate_generate_request({**VALID, "hashtags": ["a"], "cta": "Go"}) == []


def test_empty_body_lists_all_required_fields():
    assert validate_generate_request({}) == [
        "URL is required",
        "Tone is required",
        "Platforms array is required",
    ]


def test_non_object_body():
    assert validate_generate_request(["x"]) == ["Request body must be a JSON object"]


def test_url_rules():
    assert validate_generate_request({**VALID, "url": 5}) == ["URL must be a string"]
    assert validate_generate_request({**VALID, "url": "not a url"}) == ["URL must be a valid URL"]
    assert validate_generate_request({**VALID, "url": "ftp://x.org"}) == [
        "URL must use HTTP or HTTPS protocol"
    ]


def test_platform_rules():
    assert validate_generate_request({**VALID, "platforms": "Twitter"}) == [
        "Platforms must be an array"
    ]
    assert validate_generate_request({**VALID, "platforms": []}) == [
        "At least one platform must be selected"
    ]
    errors = validate_generate_request({**VALID, "platforms": ["Twitter", "Fax"]})
    assert errors == [
        "Invalid platforms: Fax. Valid platforms are: Twitter, LinkedIn, Instagram"
    ]


def test_hashtag_rules():
    assert validate_generate_request({**VALID, "hashtags": "a"}) == ["Hashtags must be an array"]
    assert validate_generate_request({**VALID, "hashtags": ["ok", " "]}) == [
        "All hashtags must be non-empty strings"
    ]
    assert validate_generate_request({**VALID, "hashtags": [f"h{i}" for i in range(11)]}) == [
        "Maximum 10 hashtags allowed"
    ]


def test_cta_rules():
    assert validate_generate_request({**VALID, "cta": 3}) == ["CTA must be a string"]
    assert validate_generate_request({**VALID, "cta": "x" * 101}) == [
        "CTA must be 100 characters or less"
    ]
    assert validate_generate_request({**VALID, "cta": "x" * 100}) == []


def test_preferences_all_optional():
    assert validate_preferences({}) == []
    assert validate_preferences({"defaultPlatforms": []}) == []
    assert validate_preferences({"defaultTone": "Loud"}) == [
        "Tone must be one of: Professional, Witty, Punchy, Neutral"
    ]
