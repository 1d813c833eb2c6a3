"""
backend/forbet/routers/fixtures.py

Purpose:
    Public read API: daily fixtures with provider fallback, provider
    availability, credential validation, per-fixture odds/predictions/
    enriched data, and live scores. Payloads are wrapped as
    ``{data, cached, timestamp}``.

Dependencies:
    - forbet.context
    - forbet.services.fixture_service
    - forbet.services.fixture_detail_service
    - forbet.services.api_validation_service
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse

from forbet.context import AppContext, get_context
from forbet.services.api_validation_service import ApiValidationService
from forbet.services.fixture_detail_service import FixtureDetailService
from forbet.utils import today_utc, utcnow

router = APIRouter(prefix="/api", tags=["fixtures"])


def _envelope(data: Any, cached: bool, **extra: Any) -> dict[str, Any]:
    return {"data": data, "cached": cached, **extra, "timestamp": utcnow().isoformat()}


def _cached_response(ctx: AppContext, body: dict[str, Any], ttl: int, cached: bool) -> JSONResponse:
    headers = ctx.cache.cache_headers(ttl)
    headers["X-Cache"] = "HIT" if cached else "MISS"
    return JSONResponse(content=body, headers=headers)


def _details(ctx: AppContext) -> FixtureDetailService:
    if ctx.details is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Fixture details provider is not configured.",
        )
    return ctx.details


@router.get("/fixtures")
async def list_fixtures(
    date: Optional[str] = Query(None, description="Match day, YYYY-MM-DD (default: today UTC)"),
    ctx: AppContext = Depends(get_context),
):
    """Fixtures for one day from the first provider that has them."""
    result = await ctx.fixtures.fetch_fixtures_result(date or today_utc())
    body = _envelope(
        [fixture.to_json_dict() for fixture in result.fixtures],
        result.cached,
        date=result.date,
        provider=result.provider,
        count=len(result.fixtures),
    )
    return _cached_response(ctx, body, ctx.cache.ttls.fixtures, result.cached)


@router.get("/providers/status")
async def provider_status(ctx: AppContext = Depends(get_context)):
    return {
        "providers": ctx.fixtures.get_provider_status(),
        "cache": ctx.cache.get_cache_info(),
        "timestamp": utcnow().isoformat(),
    }


@router.get("/validation")
async def validate_providers(
    refresh: bool = Query(False, description="Bypass cached validation results"),
    ctx: AppContext = Depends(get_context),
):
    results = await ctx.validation.validate_all(use_cache=not refresh)
    summary = ApiValidationService.summary(results)
    return {
        "results": summary["results"],
        "valid_providers": summary["valid_providers"],
        "timestamp": summary["checked_at"],
    }


@router.get("/fixtures/{fixture_id}/odds")
async def fixture_odds(fixture_id: str, ctx: AppContext = Depends(get_context)):
    report, cached = await _details(ctx).get_odds_report(fixture_id)
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No odds found for this fixture.")
    return _cached_response(ctx, _envelope(report, cached), ctx.cache.ttls.odds, cached)


@router.get("/fixtures/{fixture_id}/predictions")
async def fixture_predictions(fixture_id: str, ctx: AppContext = Depends(get_context)):
    payload, cached = await _details(ctx).get_fixture_predictions(fixture_id)
    if payload is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No predictions for this fixture.")
    return _cached_response(ctx, _envelope(payload, cached), ctx.cache.ttls.predictions, cached)


@router.get("/fixtures/{fixture_id}/enriched")
async def fixture_enriched(fixture_id: str, ctx: AppContext = Depends(get_context)):
    payload, cached = await _details(ctx).get_enriched_fixture(fixture_id)
    if payload is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Fixture not found.")
    return _cached_response(ctx, _envelope(payload, cached), ctx.cache.ttls.enriched, cached)


@router.get("/live-scores")
async def live_scores(
    date: Optional[str] = Query(None, description="Cache bucket date, YYYY-MM-DD (default: today UTC)"),
    ctx: AppContext = Depends(get_context),
):
    fixtures, cached = await _details(ctx).get_live_scores(date)
    body = _envelope(fixtures, cached, count=len(fixtures))
    return _cached_response(ctx, body, ctx.cache.ttls.live, cached)
