"""Typed Pydantic response models for API endpoints.

Field names are camelCase where the web client expects them.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from postify.models.post import PostRecord
from postify.models.user import UserRecord

# ── Health ─────────────────────────────────────────────────────────────────


class DatabaseStatus(BaseModel):
    status: str
    path: str


class LLMStatus(BaseModel):
    provider: str = "OpenRouter"
    configured: bool
    default_model: str
    prefer_free_models: bool


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    environment: str
    database: DatabaseStatus
    llm: LLMStatus


# ── Generation ─────────────────────────────────────────────────────────────


class SourceInfo(BaseModel):
    url: str
    site: str
    author: str


class GenerateResponse(BaseModel):
    id: str | None = None
    title: str
    source: SourceInfo
    summary: str
    posts: dict[str, str]
    model: str
    saved_to_history: bool


# ── Posts ──────────────────────────────────────────────────────────────────


class CopyEventResponse(BaseModel):
    platform: str
    copiedAt: datetime


class PostResponse(BaseModel):
    id: str
    article: dict[str, Any]
    generationParams: dict[str, Any]
    generatedPosts: dict[str, str]
    model: str
    isFavorited: bool
    favoritedAt: datetime | None = None
    copiedPlatforms: list[CopyEventResponse] = Field(default_factory=list)
    createdAt: datetime

    @classmethod
    def from_record(cls, post: PostRecord) -> PostResponse:
        params = post.parameters
        return cls(
            id=post.post_id,
            article=post.article.model_dump(),
            generationParams={
                "tone": params.tone.value,
                "platforms": [p.value for p in params.platforms],
                "hashtags": params.hashtags,
                "cta": params.cta,
            },
            generatedPosts=post.generated_posts,
            model=post.model_id,
            isFavorited=post.favorited,
            favoritedAt=post.favorited_at,
            copiedPlatforms=[
                CopyEventResponse(platform=c.platform.value, copiedAt=c.copied_at)
                for c in post.copied
            ],
            createdAt=post.created_at,
        )


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class PostsListResponse(BaseModel):
    posts: list[PostResponse]
    pagination: Pagination


class FavoriteResponse(BaseModel):
    isFavorited: bool
    favoritedAt: datetime | None = None


class MessageResponse(BaseModel):
    message: str


# ── Accounts ───────────────────────────────────────────────────────────────


class PreferencesResponse(BaseModel):
    defaultTone: str
    defaultPlatforms: list[str]
    defaultHashtags: list[str]


class UserResponse(BaseModel):
    id: str
    email: str
    name: str
    picture: str
    preferences: PreferencesResponse
    totalGenerations: int
    lastGeneratedAt: datetime | None = None
    createdAt: datetime
    lastLoginAt: datetime | None = None

    @classmethod
    def from_record(cls, user: UserRecord) -> UserResponse:
        prefs = user.preferences
        return cls(
            id=user.user_id,
            email=user.email,
            name=user.name,
            picture=user.picture,
            preferences=PreferencesResponse(
                defaultTone=prefs.default_tone.value,
                defaultPlatforms=[p.value for p in prefs.default_platforms],
                defaultHashtags=prefs.default_hashtags,
            ),
            totalGenerations=user.stats.total_generations,
            lastGeneratedAt=user.stats.last_generated_at,
            createdAt=user.created_at,
            lastLoginAt=user.last_login_at,
        )


class ApiKeyResponse(BaseModel):
    api_key: str


# ── Models ─────────────────────────────────────────────────────────────────


class ModelInfo(BaseModel):
    id: str
    name: str
    context_length: int


class HealthEntry(BaseModel):
    success_count: int
    failure_count: int
    consecutive_failures: int
    healthy: bool


class ModelsResponse(BaseModel):
    prefer_free_models: bool
    default_model: str
    max_retries: int
    free_models: list[ModelInfo]
    chain: list[str]
    health: dict[str, HealthEntry]
