"""Generation request, generated content and post history models."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator

from postify.models.article import ArticleData


class Tone(StrEnum):
    PROFESSIONAL = "Professional"
    WITTY = "Witty"
    PUNCHY = "Punchy"
    NEUTRAL = "Neutral"


class Platform(StrEnum):
    TWITTER = "Twitter"
    LINKEDIN = "LinkedIn"
    INSTAGRAM = "Instagram"

    @property
    def key(self) -> str:
        """Lowercase name used in LLM output and stored posts."""
        return self.value.lower()


class GenerationRequest(BaseModel):
    """Everything the fallback router needs to produce posts."""

    article: ArticleData
    tone: Tone
    platforms: list[Platform] = Field(min_length=1)
    hashtags: list[str] = Field(default_factory=list)
    cta: str | None = None

    @field_validator("platforms")
    @classmethod
    def dedupe_platforms(cls, v: list[Platform]) -> list[Platform]:
        return list(dict.fromkeys(v))


class GeneratedContent(BaseModel):
    """Parsed LLM output, restricted to the requested platforms."""

    summary: str
    posts: dict[str, str] = Field(default_factory=dict)


class GenerationResult(BaseModel):
    content: GeneratedContent
    model_id: str


class CopyEvent(BaseModel):
    platform: Platform
    copied_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ArticleSnapshot(BaseModel):
    url: str
    title: str
    site: str = ""
    author: str = ""
    summary: str = ""


class GenerationParameters(BaseModel):
    tone: Tone
    platforms: list[Platform]
    hashtags: list[str] = Field(default_factory=list)
    cta: str | None = None


class PostRecord(BaseModel):
    """One entry in a user's generation history."""

    post_id: str = Field(default_factory=lambda: f"post_{uuid.uuid4().hex[:16]}")
    user_id: str
    article: ArticleSnapshot
    parameters: GenerationParameters
    generated_posts: dict[str, str] = Field(default_factory=dict)
    model_id: str = ""
    favorited: bool = False
    favorited_at: datetime | None = None
    copied: list[CopyEvent] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class PostPage(BaseModel):
    posts: list[PostRecord]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return -(-self.total // self.limit) if self.limit else 0
