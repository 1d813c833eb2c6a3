"""
backend/forbet/routers/cache_admin.py

Purpose:
    Cache inspection and targeted invalidation by category.

Dependencies:
    - forbet.services.cache_manager
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from forbet.context import AppContext, get_context
from forbet.services.cache_manager import CacheCategory
from forbet.utils import utcnow

logger = logging.getLogger("forbet.cache_admin")

router = APIRouter(prefix="/api/cache-admin", tags=["cache-admin"])


@router.get("")
async def cache_info(ctx: AppContext = Depends(get_context)):
    info = ctx.cache.get_cache_info()
    return {
        "success": True,
        "cache": {
            **info,
            "categories": [category.value for category in CacheCategory],
            "ttls": {
                "default": ctx.cache.ttls.default,
                "fixtures": ctx.cache.ttls.fixtures,
                "validation": ctx.cache.ttls.validation,
                "live": ctx.cache.ttls.live,
                "odds": ctx.cache.ttls.odds,
                "predictions": ctx.cache.ttls.predictions,
                "enriched": ctx.cache.ttls.enriched,
                "team_logos": ctx.cache.ttls.team_logos,
            },
        },
        "timestamp": utcnow().isoformat(),
    }


@router.delete("")
async def invalidate_cache(
    type: str = Query(..., description="Cache category to invalidate"),
    date: Optional[str] = Query(None),
    provider: Optional[str] = Query(None),
    fixture_id: Optional[str] = Query(None),
    team_ids: Optional[str] = Query(None, description="Comma-separated team ids"),
    ctx: AppContext = Depends(get_context),
):
    try:
        category = CacheCategory(type)
    except ValueError:
        allowed = ", ".join(item.value for item in CacheCategory)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid cache type: {type}. Use: {allowed}",
        ) from None

    ids = [part.strip() for part in (team_ids or "").split(",") if part.strip()]
    try:
        message = await ctx.cache.invalidate_category(
            category,
            date=date,
            provider=provider,
            fixture_id=fixture_id,
            team_ids=ids or None,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from None

    logger.info("Cache invalidated: %s", message)
    return {
        "success": True,
        "invalidated": True,
        "message": f"Invalidated {message}",
        "timestamp": utcnow().isoformat(),
    }
