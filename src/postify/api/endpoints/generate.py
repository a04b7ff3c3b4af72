"""Post generation endpoint."""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, Request

from postify.api.auth import require_user
from postify.api.context import AppContext, get_context
from postify.api.responses import GenerateResponse, SourceInfo
from postify.api.validation import validate_generate_request
from postify.errors import APIValidationError
from postify.models.post import Platform, Tone
from postify.models.user import UserRecord

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["generate"])


@router.post("/generate", response_model=GenerateResponse)
async def generate_posts(
    request: Request,
    user: UserRecord = Depends(require_user),  # noqa: B008
    ctx: AppContext = Depends(get_context),  # noqa: B008
) -> GenerateResponse:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise APIValidationError(["Request body must be valid JSON"]) from None

    errors = validate_generate_request(body)
    if errors:
        raise APIValidationError(errors)

    outcome = await ctx.generator.generate(
        url=body["url"],
        tone=Tone(body["tone"]),
        platforms=[Platform(p) for p in body["platforms"]],
        hashtags=[h.strip() for h in body.get("hashtags") or []],
        cta=(body.get("cta") or "").strip() or None,
        user_id=user.user_id,
    )

    article = outcome.article
    content = outcome.result.content
    return GenerateResponse(
        id=outcome.post_id,
        title=article.title,
        source=SourceInfo(url=article.url, site=article.site_name, author=article.byline),
        summary=content.summary,
        posts=content.posts,
        model=outcome.result.model_id,
        saved_to_history=outcome.saved_to_history,
    )
