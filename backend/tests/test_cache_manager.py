"""
backend/tests/test_cache_manager.py

Purpose:
    Canonical cache keys, category TTLs and category invalidation.
"""

from __future__ import annotations

import pytest

from forbet.config import Settings
from forbet.services.cache_manager import CacheCategory, CacheKeys, CacheManager, CacheTTLs


def test_cache_keys_are_stable():
    assert CacheKeys.fixtures("2024-01-15") == "fixtures:2024-01-15"
    assert CacheKeys.fixtures("2024-01-15", "SportMonks") == "fixtures:2024-01-15:SportMonks"
    assert CacheKeys.validation("APIFootball") == "validation:APIFootball"
    assert CacheKeys.live_scores("2024-01-15") == "live:2024-01-15"
    assert CacheKeys.api_status() == "api:status"
    assert CacheKeys.rate_limit("FootballData") == "ratelimit:FootballData"
    assert CacheKeys.odds(19135003) == "odds:detailed:19135003"
    assert CacheKeys.predictions(fixture_id=42) == "predictions:fixture:42"
    assert CacheKeys.predictions(date="2024-01-15") == "predictions:2024-01-15"
    assert CacheKeys.enriched(42) == "enriched:fixture:42"


def test_team_logo_key_is_order_independent():
    assert CacheKeys.team_logos([85, 9, 1]) == "teams:logos:1,9,85"
    assert CacheKeys.team_logos(["85", "9"]) == CacheKeys.team_logos([9, 85])


def test_predictions_key_requires_an_identifier():
    with pytest.raises(ValueError):
        CacheKeys.predictions()


def test_ttls_follow_settings():
    ttls = CacheTTLs.from_settings(Settings(CACHE_FIXTURES_TTL=120, CACHE_LIVE_TTL=15))
    assert ttls.fixtures == 120
    assert ttls.live == 15
    assert ttls.team_logos == 86400


@pytest.mark.asyncio
async def test_fixture_entries_expire_with_fixture_ttl(cache_manager, clock):
    await cache_manager.set_fixtures("2024-01-15", [{"id": "a"}])
    clock.advance(599)
    assert await cache_manager.get_fixtures("2024-01-15") == [{"id": "a"}]

    clock.advance(1)
    assert await cache_manager.get_fixtures("2024-01-15") is None


@pytest.mark.asyncio
async def test_live_scores_expire_after_thirty_seconds(cache_manager, clock):
    await cache_manager.set_live_scores("2024-01-15", [])
    assert await cache_manager.get_live_scores("2024-01-15") == []

    clock.advance(30)
    assert await cache_manager.get_live_scores("2024-01-15") is None


@pytest.mark.asyncio
async def test_fixture_reader_rejects_non_list_payload(cache_manager, memory_cache):
    await memory_cache.set(CacheKeys.fixtures("2024-01-15"), {"unexpected": True}, 60)
    assert await cache_manager.get_fixtures("2024-01-15") is None


@pytest.mark.asyncio
async def test_invalidate_fixtures_without_provider_drops_provider_keys(cache_manager):
    await cache_manager.set_fixtures("2024-01-15", [{"id": "a"}])
    await cache_manager.set_fixtures("2024-01-15", [{"id": "a"}], provider="SportMonks")
    await cache_manager.set_fixtures("2024-01-16", [{"id": "b"}])

    message = await cache_manager.invalidate_category(CacheCategory.FIXTURES, date="2024-01-15")

    assert message == "fixtures for 2024-01-15"
    assert await cache_manager.get_fixtures("2024-01-15") is None
    assert await cache_manager.get_fixtures("2024-01-15", "SportMonks") is None
    assert await cache_manager.get_fixtures("2024-01-16") == [{"id": "b"}]


@pytest.mark.asyncio
async def test_api_status_invalidation_also_drops_validations(cache_manager):
    await cache_manager.set_validation("SportMonks", {"is_valid": True})
    await cache_manager.set_api_status({"valid_providers": ["SportMonks"]})

    await cache_manager.invalidate_category("api-status")

    assert await cache_manager.get_validation("SportMonks") is None
    assert await cache_manager.get_api_status() is None


@pytest.mark.asyncio
async def test_team_logo_invalidation_uses_sorted_key(cache_manager):
    await cache_manager.set_team_logos([2, 1], [{"id": 1}, {"id": 2}])
    await cache_manager.invalidate_category(CacheCategory.TEAM_LOGOS, team_ids=["1", "2"])
    assert await cache_manager.get_team_logos([1, 2]) is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "category",
    [CacheCategory.FIXTURES, CacheCategory.LIVE, CacheCategory.ODDS, CacheCategory.ENRICHED,
     CacheCategory.PREDICTIONS, CacheCategory.TEAM_LOGOS],
)
async def test_targeted_invalidation_requires_identifiers(cache_manager, category):
    with pytest.raises(ValueError):
        await cache_manager.invalidate_category(category)


@pytest.mark.asyncio
async def test_invalidate_all_clears_everything(cache_manager):
    await cache_manager.set_odds(1, {"fixture_id": 1})
    await cache_manager.set_enriched(1, {"fixture_info": {}})

    assert await cache_manager.invalidate_category("all") == "all cache entries"
    assert await cache_manager.get_odds(1) is None
    assert await cache_manager.get_enriched(1) is None


def test_unknown_category_is_rejected():
    with pytest.raises(ValueError):
        CacheCategory("bogus")


def test_cache_headers_and_info(cache_manager):
    headers = cache_manager.cache_headers(600)
    assert headers["Cache-Control"] == "public, max-age=600, s-maxage=600"
    assert headers["X-Cache-TTL"] == "600"
    assert headers["X-Cache-Provider"] == "memory"
    assert cache_manager.get_cache_info() == {"type": "memory", "connected": True}
    assert CacheManager(cache_manager.client).cache_headers()["X-Cache-TTL"] == "300"


@pytest.mark.asyncio
async def test_invalidated_fixtures_miss_before_ttl(cache_manager):
    await cache_manager.set_fixtures("2024-01-15", [{"id": "a"}])
    await cache_manager.invalidate_fixtures("2024-01-15")
    assert await cache_manager.get_fixtures("2024-01-15") is None
