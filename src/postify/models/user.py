"""User account models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from postify.models.post import Platform, Tone


class UserPreferences(BaseModel):
    default_tone: Tone = Tone.PROFESSIONAL
    default_platforms: list[Platform] = Field(default_factory=list)
    default_hashtags: list[str] = Field(default_factory=list)


class UserStats(BaseModel):
    total_generations: int = 0
    last_generated_at: datetime | None = None


class UserRecord(BaseModel):
    user_id: str
    email: str
    name: str
    picture: str = ""
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    stats: UserStats = Field(default_factory=UserStats)
    created_at: datetime
    last_login_at: datetime | None = None
