"""Per-user API key authentication for Postify endpoints.

Clients send their key in ``X-API-Key`` (or as ``Authorization: Bearer``).
The key is hashed and looked up in the user store.
"""

from __future__ import annotations

import logging

from fastapi import Depends, Request, Security
from fastapi.security import APIKeyHeader

from postify.api.context import AppContext, get_context
from postify.errors import AuthenticationError
from postify.models.user import UserRecord
from postify.runtime.logging_config import ctx_user_id

log = logging.getLogger(__name__)

_api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token:
        return token.strip()
    return None


async def require_user(
    request: Request,
    api_key: str | None = Security(_api_key_header),
    ctx: AppContext = Depends(get_context),  # noqa: B008
) -> UserRecord:
    """Dependency: resolve the calling user or fail with 401."""
    key = api_key or _bearer_token(request)
    if not key:
        raise AuthenticationError("Not authenticated")

    user = await ctx.substrate.users.get_by_api_key(key)
    if user is None:
        log.warning(
            "auth.invalid_key ip=%s path=%s",
            request.client.host if request.client else "unknown",
            request.url.path,
        )
        raise AuthenticationError("Invalid API key")

    ctx_user_id.set(user.user_id)
    return user
