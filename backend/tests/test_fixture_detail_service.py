"""
backend/tests/test_fixture_detail_service.py

Purpose:
    Per-fixture Sportmonks views: odds report, odds-derived predictions,
    enriched fixture, team logos and live scores, with caching and the
    shared Sportmonks request budget.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from forbet.errors import ProviderError, ProvidersExhaustedError
from forbet.models.fixtures import FixtureStatus, LeagueRef, Score, TeamRef, UnifiedFixture
from forbet.services.cache_manager import CacheKeys
from forbet.services.fixture_detail_service import FixtureDetailService, completeness_score
from forbet.services.provider_rate_limiter import ProviderRateLimiter
from forbet.services.provider_registry import ProviderRegistry

ODDS_ROWS = [
    {"market_id": 1, "label": "Home", "value": "2.00", "bookmaker_id": 2,
     "market": {"name": "Fulltime Result"}, "bookmaker": {"id": 2, "name": "bet365"}},
    {"market_id": 1, "label": "Draw", "value": "3.50", "bookmaker_id": 2,
     "market": {"name": "Fulltime Result"}, "bookmaker": {"id": 2, "name": "bet365"}},
    {"market_id": 1, "label": "Away", "value": "4.00", "bookmaker_id": 2,
     "market": {"name": "Fulltime Result"}, "bookmaker": {"id": 2, "name": "bet365"}},
]

FIXTURE = {
    "id": 19135003,
    "name": "Celtic vs Rangers",
    "starting_at": "2024-01-15 20:00:00",
    "state": {"id": 5, "name": "Full Time", "short_name": "FT", "developer_name": "FT"},
    "league": {"id": 501, "name": "Premiership", "short_code": "SCO P", "image_path": "https://img/501.png"},
    "participants": [
        {"id": 53, "name": "Celtic", "short_code": "CEL", "image_path": "https://img/53-old.png",
         "meta": {"location": "home"}},
        {"id": 62, "name": "Rangers", "short_code": "RAN", "image_path": "https://img/62.png",
         "meta": {"location": "away"}},
    ],
    "scores": [
        {"type_id": 1525, "description": "CURRENT", "score": {"goals": 2, "participant": "home"}},
        {"type_id": 1525, "description": "CURRENT", "score": {"goals": 1, "participant": "away"}},
    ],
    "statistics": [
        {"type_id": 52, "participant_id": 53, "data": {"value": 2}},
        {"type_id": 52, "participant_id": 62, "data": {"value": 1}},
    ],
    "venue": None,
}


class _FakeSportmonks:
    name = "SportMonks"

    def __init__(self, *, odds=None, fixture=None, teams=None, live=None, team_errors=()):
        self.odds = odds if odds is not None else []
        self.fixture = fixture
        self.teams = teams or {}
        self.live = live or []
        self.team_errors = set(team_errors)
        self.calls: list[tuple] = []

    async def get_prematch_odds(self, fixture_id):
        self.calls.append(("odds", fixture_id))
        return list(self.odds)

    async def get_fixture(self, fixture_id):
        self.calls.append(("fixture", fixture_id))
        return self.fixture

    async def get_team(self, team_id):
        self.calls.append(("team", team_id))
        if team_id in self.team_errors:
            raise ProviderError("SportMonks", "SportMonks error: HTTP 500", status_code=500)
        return self.teams.get(team_id)

    async def fetch_live_fixtures(self):
        self.calls.append(("live",))
        return list(self.live)


def _service(cache_manager, provider, limiter=None) -> FixtureDetailService:
    return FixtureDetailService(cache_manager, provider, limiter or ProviderRateLimiter(), ProviderRegistry())


@pytest.mark.asyncio
async def test_odds_report_is_built_and_cached(cache_manager, memory_cache):
    provider = _FakeSportmonks(odds=ODDS_ROWS)
    service = _service(cache_manager, provider)

    report, cached = await service.get_odds_report("19135003")
    again, cached_again = await service.get_odds_report(19135003)

    assert cached is False and cached_again is True
    assert again == report
    assert report["best_odds"]["fullTimeResult"] == {"home": 2.0, "draw": 3.5, "away": 4.0}
    assert report["bookmakers"][0]["name"] == "bet365"
    assert provider.calls == [("odds", 19135003)]
    assert await memory_cache.get(CacheKeys.odds(19135003)) == report


@pytest.mark.asyncio
async def test_missing_odds_return_none_and_are_not_cached(cache_manager):
    provider = _FakeSportmonks(odds=[])
    report, cached = await _service(cache_manager, provider).get_odds_report(1)

    assert report is None and cached is False
    assert await cache_manager.get_odds(1) is None


@pytest.mark.asyncio
@pytest.mark.parametrize("bad_id", ["abc", "0", "-4", ""])
async def test_invalid_fixture_ids_are_rejected(cache_manager, bad_id):
    provider = _FakeSportmonks(odds=ODDS_ROWS)
    with pytest.raises(ValueError):
        await _service(cache_manager, provider).get_odds_report(bad_id)
    assert provider.calls == []


@pytest.mark.asyncio
async def test_predictions_are_derived_from_best_odds(cache_manager):
    provider = _FakeSportmonks(odds=ODDS_ROWS)
    payload, cached = await _service(cache_manager, provider).get_fixture_predictions(42)

    assert cached is False
    assert payload["fixture_id"] == 42
    assert payload["predictions"]["fullTimeResult"]["home"] == {"probability": 50.0, "description": "Balanced"}
    assert payload["predictions"]["correctScore"] == []
    assert await cache_manager.get_predictions(fixture_id=42) == payload


@pytest.mark.asyncio
async def test_enriched_fixture_combines_sections_and_team_logos(cache_manager):
    provider = _FakeSportmonks(
        fixture=FIXTURE,
        teams={53: {"id": 53, "name": "Celtic", "image_path": "https://img/53.png", "founded": 1887}},
        team_errors={62},
    )
    service = _service(cache_manager, provider)

    payload, cached = await service.get_enriched_fixture(19135003)

    assert cached is False
    assert payload["fixture_info"]["state"]["developer_name"] == "FT"
    assert payload["league"]["logo"] == "https://img/501.png"
    assert [team["logo"] for team in payload["teams"]] == ["https://img/53.png", "https://img/62.png"]
    assert [team["location"] for team in payload["teams"]] == ["home", "away"]
    assert payload["venue"] is None
    assert payload["score"] == {"home": 2, "away": 1}
    assert payload["statistics"] == [{"name": "Goals", "homeValue": 2, "awayValue": 1, "typeId": 52}]
    assert payload["data_quality"]["completeness_score"] == 83
    assert "venue" not in payload["data_quality"]["includes"]

    logos = await cache_manager.get_team_logos([53, 62])
    assert [item["id"] for item in logos] == [53]

    again, cached_again = await service.get_enriched_fixture(19135003)
    assert cached_again is True and again == payload


@pytest.mark.asyncio
async def test_throttled_logo_lookup_keeps_the_enriched_fixture(cache_manager, clock):
    limiter = ProviderRateLimiter(clock=clock)
    for _ in range(58):
        limiter.record_request("SportMonks")
    provider = _FakeSportmonks(
        fixture=FIXTURE,
        teams={
            53: {"id": 53, "name": "Celtic", "image_path": "https://img/53.png"},
            62: {"id": 62, "name": "Rangers", "image_path": "https://img/62-new.png"},
        },
    )

    payload, cached = await _service(cache_manager, provider, limiter).get_enriched_fixture(19135003)

    assert cached is False
    assert payload["fixture_info"]["id"] == 19135003
    assert [team["logo"] for team in payload["teams"]] == ["https://img/53.png", "https://img/62.png"]
    assert provider.calls == [("fixture", 19135003), ("team", 53)]
    assert await cache_manager.get_team_logos([53, 62]) is None


@pytest.mark.asyncio
async def test_unknown_fixture_returns_none(cache_manager):
    payload, cached = await _service(cache_manager, _FakeSportmonks(fixture=None)).get_enriched_fixture(5)
    assert payload is None and cached is False


@pytest.mark.asyncio
async def test_team_logos_are_not_cached_when_empty(cache_manager):
    provider = _FakeSportmonks(teams={})
    logos, cached = await _service(cache_manager, provider).get_team_logos(["7", 3])

    assert logos == [] and cached is False
    assert [call for call in provider.calls] == [("team", 3), ("team", 7)]
    assert await cache_manager.get_team_logos([3, 7]) is None


@pytest.mark.asyncio
async def test_live_scores_cache_even_when_empty(cache_manager, clock):
    fixture = UnifiedFixture(
        id="sportmonks_1",
        provider="SportMonks",
        original_id=1,
        home_team=TeamRef(name="A"),
        away_team=TeamRef(name="B"),
        league=LeagueRef(name="L"),
        start_time=datetime(2024, 1, 15, 20, 0, tzinfo=timezone.utc),
        status=FixtureStatus.LIVE,
        score=Score(home=0, away=0),
    )
    provider = _FakeSportmonks(live=[fixture])
    service = _service(cache_manager, provider)

    scores, cached = await service.get_live_scores("2024-01-15")
    assert cached is False
    assert scores[0]["score"] == {"home": 0, "away": 0}

    provider.live = []
    clock.advance(31)
    empty, cached = await service.get_live_scores("2024-01-15")
    again, cached_again = await service.get_live_scores("2024-01-15")

    assert empty == [] and again == []
    assert cached_again is True
    assert provider.calls == [("live",), ("live",)]


@pytest.mark.asyncio
async def test_spent_sportmonks_budget_raises_exhaustion(cache_manager, clock):
    limiter = ProviderRateLimiter(clock=clock)
    for _ in range(60):
        limiter.record_request("SportMonks")
    provider = _FakeSportmonks(odds=ODDS_ROWS)

    with pytest.raises(ProvidersExhaustedError, match="SportMonks: rate limited"):
        await _service(cache_manager, provider, limiter).get_odds_report(1)
    assert provider.calls == []


def test_completeness_score_counts_present_sections():
    assert completeness_score({}) == 0
    assert completeness_score({"participants": [1], "league": {"id": 1}, "state": {"id": 1}}) == 50
