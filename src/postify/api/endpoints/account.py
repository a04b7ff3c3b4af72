"""Account endpoints for the authenticated user."""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, Request

from postify.api.auth import require_user
from postify.api.context import AppContext, get_context
from postify.api.responses import ApiKeyResponse, PreferencesResponse, UserResponse
from postify.api.validation import validate_preferences
from postify.errors import APIValidationError
from postify.models.post import Platform, Tone
from postify.models.user import UserPreferences, UserRecord

log = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["account"])


@router.get("/user", response_model=UserResponse)
async def current_user(
    user: UserRecord = Depends(require_user),  # noqa: B008
    ctx: AppContext = Depends(get_context),  # noqa: B008
) -> UserResponse:
    # The web client calls this once per session, so it doubles as the login mark
    await ctx.substrate.users.touch_login(user.user_id)
    refreshed = await ctx.substrate.users.get_user(user.user_id)
    return UserResponse.from_record(refreshed or user)


@router.put("/preferences", response_model=PreferencesResponse)
async def update_preferences(
    request: Request,
    user: UserRecord = Depends(require_user),  # noqa: B008
    ctx: AppContext = Depends(get_context),  # noqa: B008
) -> PreferencesResponse:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise APIValidationError(["Request body must be valid JSON"]) from None

    errors = validate_preferences(body)
    if errors:
        raise APIValidationError(errors)

    current = user.preferences
    prefs = UserPreferences(
        default_tone=Tone(body["defaultTone"]) if body.get("defaultTone") else current.default_tone,
        default_platforms=(
            [Platform(p) for p in body["defaultPlatforms"]]
            if body.get("defaultPlatforms") is not None
            else current.default_platforms
        ),
        default_hashtags=(
            [h.strip() for h in body["defaultHashtags"]]
            if body.get("defaultHashtags") is not None
            else current.default_hashtags
        ),
    )
    await ctx.substrate.users.update_preferences(user.user_id, prefs)
    return PreferencesResponse(
        defaultTone=prefs.default_tone.value,
        defaultPlatforms=[p.value for p in prefs.default_platforms],
        defaultHashtags=prefs.default_hashtags,
    )


@router.post("/rotate-key", response_model=ApiKeyResponse)
async def rotate_key(
    user: UserRecord = Depends(require_user),  # noqa: B008
    ctx: AppContext = Depends(get_context),  # noqa: B008
) -> ApiKeyResponse:
    api_key = await ctx.substrate.users.rotate_api_key(user.user_id)
    log.info("account.key_rotated user_id=%s", user.user_id)
    return ApiKeyResponse(api_key=api_key)
