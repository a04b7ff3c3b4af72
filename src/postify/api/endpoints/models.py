"""Model discovery endpoint: free models, current fallback chain, health."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from postify.api.auth import require_user
from postify.api.context import AppContext, get_context
from postify.api.responses import HealthEntry, ModelInfo, ModelsResponse
from postify.models.user import UserRecord

router = APIRouter(prefix="/api", tags=["models"])


@router.get("/models", response_model=ModelsResponse)
async def list_models(
    _user: UserRecord = Depends(require_user),  # noqa: B008
    ctx: AppContext = Depends(get_context),  # noqa: B008
) -> ModelsResponse:
    settings = ctx.config.openrouter
    free = await ctx.router.get_free_models()
    chain = (
        await ctx.router.build_fallback_chain()
        if settings.prefer_free_models
        else [settings.default_model]
    )
    state = ctx.model_state
    return ModelsResponse(
        prefer_free_models=settings.prefer_free_models,
        default_model=settings.default_model,
        max_retries=settings.max_retries,
        free_models=[
            ModelInfo(id=m.id, name=m.name, context_length=m.context_length) for m in free
        ],
        chain=chain,
        health={
            model_id: HealthEntry(
                success_count=h.success_count,
                failure_count=h.failure_count,
                consecutive_failures=h.consecutive_failures,
                healthy=state.is_healthy(model_id),
            )
            for model_id, h in state.health_snapshot().items()
        },
    )
