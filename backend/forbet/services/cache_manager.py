"""
backend/forbet/services/cache_manager.py

Purpose:
    Category-aware cache helpers. Translates domain concepts (fixtures for a
    date, odds for a fixture, provider validation, ...) into canonical keys
    and category TTLs on top of a CacheClient.

    Key formats are part of the operational contract: admin tooling
    invalidates entries by building these keys directly.

Dependencies:
    - forbet.services.cache_backends
    - forbet.config
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

from forbet.config import Settings
from forbet.services.cache_backends import CacheClient

logger = logging.getLogger("forbet.cache_manager")

KNOWN_PROVIDERS: tuple[str, ...] = ("TheSportsDB", "FootballData", "APIFootball", "SportMonks")


def _team_ids_part(team_ids: Iterable[int | str]) -> str:
    ids = [str(team_id).strip() for team_id in team_ids if str(team_id).strip()]
    if all(item.lstrip("-").isdigit() for item in ids):
        ids.sort(key=int)
    else:
        ids.sort()
    return ",".join(ids)


class CacheKeys:
    """Canonical key builders."""

    @staticmethod
    def fixtures(date: str, provider: str | None = None) -> str:
        return f"fixtures:{date}:{provider}" if provider else f"fixtures:{date}"

    @staticmethod
    def validation(provider: str) -> str:
        return f"validation:{provider}"

    @staticmethod
    def live_scores(date: str) -> str:
        return f"live:{date}"

    @staticmethod
    def api_status() -> str:
        return "api:status"

    @staticmethod
    def rate_limit(provider: str) -> str:
        return f"ratelimit:{provider}"

    @staticmethod
    def odds(fixture_id: int | str) -> str:
        return f"odds:detailed:{fixture_id}"

    @staticmethod
    def predictions(fixture_id: int | str | None = None, date: str | None = None) -> str:
        if fixture_id is not None:
            return f"predictions:fixture:{fixture_id}"
        if date:
            return f"predictions:{date}"
        raise ValueError("predictions key needs a fixture_id or a date")

    @staticmethod
    def enriched(fixture_id: int | str) -> str:
        return f"enriched:fixture:{fixture_id}"

    @staticmethod
    def team_logos(team_ids: Iterable[int | str]) -> str:
        return f"teams:logos:{_team_ids_part(team_ids)}"


@dataclass(frozen=True)
class CacheTTLs:
    default: int = 300
    fixtures: int = 600
    validation: int = 180
    live: int = 30
    odds: int = 600
    predictions: int = 1800
    enriched: int = 3600
    team_logos: int = 86400

    @classmethod
    def from_settings(cls, settings: Settings) -> "CacheTTLs":
        return cls(
            default=settings.CACHE_DEFAULT_TTL,
            fixtures=settings.CACHE_FIXTURES_TTL,
            validation=settings.CACHE_VALIDATION_TTL,
            live=settings.CACHE_LIVE_TTL,
            odds=settings.CACHE_ODDS_TTL,
            predictions=settings.CACHE_PREDICTIONS_TTL,
            enriched=settings.CACHE_ENRICHED_TTL,
            team_logos=settings.CACHE_TEAM_LOGOS_TTL,
        )


class CacheCategory(str, Enum):
    FIXTURES = "fixtures"
    VALIDATIONS = "validations"
    API_STATUS = "api-status"
    LIVE = "live"
    ODDS = "odds"
    PREDICTIONS = "predictions"
    ENRICHED = "enriched"
    TEAM_LOGOS = "team-logos"
    ALL = "all"


class CacheManager:
    def __init__(
        self,
        client: CacheClient,
        ttls: CacheTTLs | None = None,
        known_providers: Iterable[str] = KNOWN_PROVIDERS,
    ) -> None:
        self.client = client
        self.ttls = ttls or CacheTTLs()
        self.known_providers = tuple(known_providers)

    # fixtures
    async def get_fixtures(self, date: str, provider: str | None = None) -> list[dict[str, Any]] | None:
        value = await self.client.get(CacheKeys.fixtures(date, provider))
        return value if isinstance(value, list) else None

    async def set_fixtures(self, date: str, fixtures: list[dict[str, Any]], provider: str | None = None) -> None:
        await self.client.set(CacheKeys.fixtures(date, provider), fixtures, self.ttls.fixtures)

    async def invalidate_fixtures(self, date: str, provider: str | None = None) -> None:
        await self.client.delete(CacheKeys.fixtures(date, provider))

    # provider validation
    async def get_validation(self, provider: str) -> dict[str, Any] | None:
        return await self.client.get(CacheKeys.validation(provider))

    async def set_validation(self, provider: str, result: dict[str, Any]) -> None:
        await self.client.set(CacheKeys.validation(provider), result, self.ttls.validation)

    async def invalidate_all_validations(self) -> None:
        # Not every backend can scan keys, so walk the known provider names.
        for provider in self.known_providers:
            await self.client.delete(CacheKeys.validation(provider))
        logger.info("Validation cache invalidated for %d providers", len(self.known_providers))

    # live scores
    async def get_live_scores(self, date: str) -> list[dict[str, Any]] | None:
        value = await self.client.get(CacheKeys.live_scores(date))
        return value if isinstance(value, list) else None

    async def set_live_scores(self, date: str, scores: list[dict[str, Any]]) -> None:
        await self.client.set(CacheKeys.live_scores(date), scores, self.ttls.live)

    async def invalidate_live_scores(self, date: str) -> None:
        await self.client.delete(CacheKeys.live_scores(date))

    # aggregate API status
    async def get_api_status(self) -> Any | None:
        return await self.client.get(CacheKeys.api_status())

    async def set_api_status(self, status: Any) -> None:
        await self.client.set(CacheKeys.api_status(), status, self.ttls.validation)

    async def invalidate_api_status(self) -> None:
        await self.client.delete(CacheKeys.api_status())

    # rate-limit bookkeeping snapshots
    async def get_rate_limit(self, provider: str) -> dict[str, Any] | None:
        return await self.client.get(CacheKeys.rate_limit(provider))

    async def set_rate_limit(self, provider: str, snapshot: dict[str, Any]) -> None:
        await self.client.set(CacheKeys.rate_limit(provider), snapshot, self.ttls.default)

    # odds
    async def get_odds(self, fixture_id: int | str) -> dict[str, Any] | None:
        return await self.client.get(CacheKeys.odds(fixture_id))

    async def set_odds(self, fixture_id: int | str, odds: dict[str, Any]) -> None:
        await self.client.set(CacheKeys.odds(fixture_id), odds, self.ttls.odds)

    async def invalidate_odds(self, fixture_id: int | str) -> None:
        await self.client.delete(CacheKeys.odds(fixture_id))

    # predictions
    async def get_predictions(self, fixture_id: int | str | None = None, date: str | None = None) -> Any | None:
        return await self.client.get(CacheKeys.predictions(fixture_id, date))

    async def set_predictions(
        self,
        predictions: Any,
        fixture_id: int | str | None = None,
        date: str | None = None,
    ) -> None:
        await self.client.set(CacheKeys.predictions(fixture_id, date), predictions, self.ttls.predictions)

    async def invalidate_predictions(self, fixture_id: int | str | None = None, date: str | None = None) -> None:
        await self.client.delete(CacheKeys.predictions(fixture_id, date))

    # enriched fixture data
    async def get_enriched(self, fixture_id: int | str) -> dict[str, Any] | None:
        return await self.client.get(CacheKeys.enriched(fixture_id))

    async def set_enriched(self, fixture_id: int | str, data: dict[str, Any]) -> None:
        await self.client.set(CacheKeys.enriched(fixture_id), data, self.ttls.enriched)

    async def invalidate_enriched(self, fixture_id: int | str) -> None:
        await self.client.delete(CacheKeys.enriched(fixture_id))

    # team logos
    async def get_team_logos(self, team_ids: Iterable[int | str]) -> list[dict[str, Any]] | None:
        value = await self.client.get(CacheKeys.team_logos(team_ids))
        return value if isinstance(value, list) else None

    async def set_team_logos(self, team_ids: Iterable[int | str], logos: list[dict[str, Any]]) -> None:
        await self.client.set(CacheKeys.team_logos(team_ids), logos, self.ttls.team_logos)

    async def invalidate_team_logos(self, team_ids: Iterable[int | str]) -> None:
        await self.client.delete(CacheKeys.team_logos(team_ids))

    async def invalidate_category(
        self,
        category: CacheCategory | str,
        *,
        date: str | None = None,
        provider: str | None = None,
        fixture_id: int | str | None = None,
        team_ids: Iterable[int | str] | None = None,
    ) -> str:
        """Invalidate one category; returns a short description of what was dropped."""
        category = CacheCategory(category)
        if category is CacheCategory.FIXTURES:
            if not date:
                raise ValueError("date is required to invalidate fixtures")
            await self.invalidate_fixtures(date, provider)
            if provider is None:
                for name in self.known_providers:
                    await self.invalidate_fixtures(date, name)
                return f"fixtures for {date}"
            return f"fixtures for {date} (provider: {provider})"
        if category is CacheCategory.VALIDATIONS:
            await self.invalidate_all_validations()
            return "provider validations"
        if category is CacheCategory.API_STATUS:
            await self.invalidate_all_validations()
            await self.invalidate_api_status()
            return "provider validations and api status"
        if category is CacheCategory.LIVE:
            if not date:
                raise ValueError("date is required to invalidate live scores")
            await self.invalidate_live_scores(date)
            return f"live scores for {date}"
        if category is CacheCategory.ODDS:
            if fixture_id is None:
                raise ValueError("fixture_id is required to invalidate odds")
            await self.invalidate_odds(fixture_id)
            return f"odds for fixture {fixture_id}"
        if category is CacheCategory.PREDICTIONS:
            if fixture_id is None and not date:
                raise ValueError("fixture_id or date is required to invalidate predictions")
            await self.invalidate_predictions(fixture_id, date)
            return "predictions"
        if category is CacheCategory.ENRICHED:
            if fixture_id is None:
                raise ValueError("fixture_id is required to invalidate enriched data")
            await self.invalidate_enriched(fixture_id)
            return f"enriched data for fixture {fixture_id}"
        if category is CacheCategory.TEAM_LOGOS:
            if not team_ids:
                raise ValueError("team_ids are required to invalidate team logos")
            await self.invalidate_team_logos(team_ids)
            return "team logos"
        await self.clear()
        return "all cache entries"

    async def clear(self) -> None:
        await self.client.clear()

    def is_connected(self) -> bool:
        return self.client.is_connected()

    def get_cache_info(self) -> dict[str, Any]:
        return {"type": self.client.backend_name, "connected": self.client.is_connected()}

    def cache_headers(self, ttl: int | None = None) -> dict[str, str]:
        ttl = self.ttls.default if ttl is None else int(ttl)
        return {
            "Cache-Control": f"public, max-age={ttl}, s-maxage={ttl}",
            "X-Cache-TTL": str(ttl),
            "X-Cache-Provider": self.client.backend_name,
        }
