"""
backend/forbet/services/fixture_detail_service.py

Purpose:
    Cache-first per-fixture views backed by Sportmonks: detailed odds,
    odds-derived predictions, enriched fixture data, team logos and live
    scores. Every getter returns ``(payload, cached)``; ``payload`` is None
    when upstream has nothing for the fixture.

Dependencies:
    - forbet.providers.sportmonks
    - forbet.services.cache_manager
    - forbet.services.odds_service
    - forbet.services.predictions_service
    - forbet.services.statistics_service
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from forbet.errors import ProviderError, ProviderFailure, ProvidersExhaustedError
from forbet.providers.sportmonks import SportmonksProvider
from forbet.services.cache_manager import CacheManager
from forbet.services.odds_service import build_odds_report, get_best_odds, quotes_from_sportmonks
from forbet.services.predictions_service import process_predictions
from forbet.services.provider_rate_limiter import ProviderRateLimiter
from forbet.services.provider_registry import ProviderRegistry
from forbet.services.statistics_service import process_scores, process_statistics
from forbet.utils import today_utc, utcnow, validate_fixture_date

logger = logging.getLogger("forbet.fixture_detail")

ENRICHED_SECTIONS = ("participants", "league", "state", "scores", "statistics", "venue")


def _positive_id(value: int | str, kind: str = "fixture") -> int:
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValueError(f"Invalid {kind} id: {value!r}") from None
    if parsed <= 0:
        raise ValueError(f"Invalid {kind} id: {value!r}")
    return parsed


def completeness_score(fixture: dict[str, Any]) -> int:
    present = sum(1 for section in ENRICHED_SECTIONS if fixture.get(section))
    return round(present * 100 / len(ENRICHED_SECTIONS))


class FixtureDetailService:
    def __init__(
        self,
        cache: CacheManager,
        provider: SportmonksProvider,
        rate_limiter: ProviderRateLimiter,
        registry: ProviderRegistry,
    ) -> None:
        self.cache = cache
        self.provider = provider
        self.rate_limiter = rate_limiter
        self.registry = registry

    def _try_admit(self, subject: str) -> bool:
        """Record one Sportmonks request if the minute budget allows it."""
        name = self.provider.name
        descriptor = self.registry.get(name)
        limit = descriptor.rate_limit if descriptor is not None else 0
        if not self.rate_limiter.can_make_request(name, limit):
            logger.warning("Rate limit reached for %s, skipping %s", name, subject)
            return False
        self.rate_limiter.record_request(name)
        return True

    def _admit(self, subject: str) -> None:
        if not self._try_admit(subject):
            raise ProvidersExhaustedError([ProviderFailure(self.provider.name, "rate limited")], subject=subject)

    async def _fetch_quotes(self, fixture_id: int):
        self._admit(f"odds for fixture {fixture_id}")
        rows = await self.provider.get_prematch_odds(fixture_id)
        return quotes_from_sportmonks(rows)

    async def get_odds_report(self, fixture_id: int | str) -> tuple[dict[str, Any] | None, bool]:
        fixture_id = _positive_id(fixture_id)
        cached = await self.cache.get_odds(fixture_id)
        if cached:
            logger.info("Cache hit for odds of fixture %s", fixture_id)
            return cached, True

        quotes = await self._fetch_quotes(fixture_id)
        if not quotes:
            logger.info("No odds available for fixture %s", fixture_id)
            return None, False
        report = build_odds_report(fixture_id, quotes)
        await self.cache.set_odds(fixture_id, report)
        logger.info("Processed %d odds for fixture %s", len(quotes), fixture_id)
        return report, False

    async def get_fixture_predictions(self, fixture_id: int | str) -> tuple[dict[str, Any] | None, bool]:
        fixture_id = _positive_id(fixture_id)
        cached = await self.cache.get_predictions(fixture_id=fixture_id)
        if cached:
            return cached, True

        quotes = await self._fetch_quotes(fixture_id)
        if not quotes:
            return None, False
        best = get_best_odds(quotes)
        payload = {
            "fixture_id": fixture_id,
            "best_odds": best.to_json_dict(),
            "predictions": process_predictions(best).to_json_dict(),
            "generated_at": utcnow().isoformat(),
        }
        await self.cache.set_predictions(payload, fixture_id=fixture_id)
        return payload, False

    async def get_team_logos(self, team_ids: Iterable[int | str]) -> tuple[list[dict[str, Any]], bool]:
        ids = sorted({_positive_id(team_id, "team") for team_id in team_ids})
        if not ids:
            return [], False
        cached = await self.cache.get_team_logos(ids)
        if cached is not None:
            return cached, True

        logos: list[dict[str, Any]] = []
        throttled = False
        for team_id in ids:
            if not self._try_admit(f"team {team_id}"):
                throttled = True
                break
            try:
                team = await self.provider.get_team(team_id)
            except ProviderError as exc:
                logger.warning("Could not load team %s: %s", team_id, exc)
                continue
            if not team:
                continue
            logos.append({
                "id": team.get("id", team_id),
                "name": team.get("name"),
                "logo": team.get("image_path"),
                "founded": team.get("founded"),
                "venue_id": team.get("venue_id"),
                "country_id": team.get("country_id"),
            })
        if logos and not throttled:
            await self.cache.set_team_logos(ids, logos)
        return logos, False

    async def get_enriched_fixture(self, fixture_id: int | str) -> tuple[dict[str, Any] | None, bool]:
        fixture_id = _positive_id(fixture_id)
        cached = await self.cache.get_enriched(fixture_id)
        if cached:
            return cached, True

        self._admit(f"enriched fixture {fixture_id}")
        fixture = await self.provider.get_fixture(fixture_id)
        if not fixture:
            return None, False

        participants = fixture.get("participants") or []
        team_ids = [item["id"] for item in participants if item.get("id")]
        logos, _ = await self.get_team_logos(team_ids) if team_ids else ([], False)
        logos_by_id = {item["id"]: item for item in logos}

        state = fixture.get("state") or {}
        league = fixture.get("league") or {}
        venue = fixture.get("venue") or None
        payload = {
            "fixture_info": {
                "id": fixture.get("id"),
                "name": fixture.get("name"),
                "starting_at": fixture.get("starting_at"),
                "result_info": fixture.get("result_info"),
                "state": {
                    "id": state.get("id"),
                    "name": state.get("name"),
                    "short_name": state.get("short_name"),
                    "developer_name": state.get("developer_name"),
                },
            },
            "league": {
                "id": league.get("id"),
                "name": league.get("name"),
                "short_code": league.get("short_code"),
                "logo": league.get("image_path"),
            },
            "teams": [
                {
                    "id": item.get("id"),
                    "name": item.get("name"),
                    "short_code": item.get("short_code"),
                    "logo": (logos_by_id.get(item.get("id")) or {}).get("logo") or item.get("image_path"),
                    "location": (item.get("meta") or {}).get("location"),
                }
                for item in participants
            ],
            "venue": {
                "id": venue.get("id"),
                "name": venue.get("name"),
                "city": venue.get("city_name") or venue.get("city"),
                "capacity": venue.get("capacity"),
                "image": venue.get("image_path"),
            } if venue else None,
            "score": process_scores(fixture.get("scores")),
            "statistics": [
                row.to_json_dict() for row in process_statistics(fixture.get("statistics"), participants)
            ],
            "data_quality": {
                "completeness_score": completeness_score(fixture),
                "includes": [section for section in ENRICHED_SECTIONS if fixture.get(section)],
                "last_updated": utcnow().isoformat(),
            },
        }
        await self.cache.set_enriched(fixture_id, payload)
        return payload, False

    async def get_live_scores(self, date: str | None = None) -> tuple[list[dict[str, Any]], bool]:
        date = validate_fixture_date(date) if date else today_utc()
        cached = await self.cache.get_live_scores(date)
        if cached is not None:
            return cached, True

        self._admit("live scores")
        fixtures = await self.provider.fetch_live_fixtures()
        payload = [fixture.to_json_dict() for fixture in fixtures]
        await self.cache.set_live_scores(date, payload)
        return payload, False
