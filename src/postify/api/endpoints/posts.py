"""Post history endpoints: list, fetch, copy tracking, favorites, delete."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from postify.api.auth import require_user
from postify.api.context import AppContext, get_context
from postify.api.responses import (
    FavoriteResponse,
    MessageResponse,
    Pagination,
    PostResponse,
    PostsListResponse,
)
from postify.api.validation import VALID_PLATFORMS
from postify.errors import APIValidationError, PostNotFoundError
from postify.models.post import Platform
from postify.models.user import UserRecord

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api/posts", tags=["posts"])


class CopyRequest(BaseModel):
    platform: str = ""


@router.get("", response_model=PostsListResponse)
async def list_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    favorited: bool | None = None,
    user: UserRecord = Depends(require_user),  # noqa: B008
    ctx: AppContext = Depends(get_context),  # noqa: B008
) -> PostsListResponse:
    result = await ctx.substrate.posts.list_for_user(
        user.user_id, page=page, limit=limit, favorited=favorited
    )
    return PostsListResponse(
        posts=[PostResponse.from_record(p) for p in result.posts],
        pagination=Pagination(
            page=result.page,
            limit=result.limit,
            total=result.total,
            pages=result.pages,
        ),
    )


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: str,
    user: UserRecord = Depends(require_user),  # noqa: B008
    ctx: AppContext = Depends(get_context),  # noqa: B008
) -> PostResponse:
    post = await ctx.substrate.posts.get(user.user_id, post_id)
    if post is None:
        raise PostNotFoundError("Post not found", context={"post_id": post_id})
    return PostResponse.from_record(post)


@router.post("/{post_id}/copy", response_model=MessageResponse)
async def mark_copied(
    post_id: str,
    body: CopyRequest,
    user: UserRecord = Depends(require_user),  # noqa: B008
    ctx: AppContext = Depends(get_context),  # noqa: B008
) -> MessageResponse:
    if body.platform not in VALID_PLATFORMS:
        raise APIValidationError(["Invalid platform"])
    await ctx.substrate.posts.mark_copied(user.user_id, post_id, Platform(body.platform))
    return MessageResponse(message="Copy tracked successfully")


@router.post("/{post_id}/favorite", response_model=FavoriteResponse)
async def toggle_favorite(
    post_id: str,
    user: UserRecord = Depends(require_user),  # noqa: B008
    ctx: AppContext = Depends(get_context),  # noqa: B008
) -> FavoriteResponse:
    post = await ctx.substrate.posts.toggle_favorite(user.user_id, post_id)
    return FavoriteResponse(isFavorited=post.favorited, favoritedAt=post.favorited_at)


@router.delete("/{post_id}", response_model=MessageResponse)
async def delete_post(
    post_id: str,
    user: UserRecord = Depends(require_user),  # noqa: B008
    ctx: AppContext = Depends(get_context),  # noqa: B008
) -> MessageResponse:
    if not await ctx.substrate.posts.delete(user.user_id, post_id):
        raise PostNotFoundError("Post not found", context={"post_id": post_id})
    log.info("posts.deleted post_id=%s", post_id)
    return MessageResponse(message="Post deleted successfully")
