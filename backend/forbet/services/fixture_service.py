"""
backend/forbet/services/fixture_service.py

Purpose:
    Multi-provider fixture fetch. Cache first, then providers strictly in
    registry priority order, skipping rate-limited ones, until one returns
    data. Concurrent requests for the same uncached date share a single
    upstream fetch.

Dependencies:
    - forbet.services.cache_manager
    - forbet.services.provider_registry
    - forbet.services.provider_rate_limiter
    - forbet.providers.base
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping

import httpx
from pydantic import ValidationError

from forbet.errors import ProviderError, ProviderFailure, ProvidersExhaustedError
from forbet.models.fixtures import FixturesResult, UnifiedFixture
from forbet.providers.base import BaseProvider
from forbet.services.cache_manager import CacheKeys, CacheManager
from forbet.services.provider_rate_limiter import ProviderRateLimiter
from forbet.services.provider_registry import ProviderRegistry
from forbet.utils import validate_fixture_date

logger = logging.getLogger("forbet.fixture_service")

PROVIDER_FAILURES = (httpx.HTTPError, ProviderError, ValidationError, ValueError)


def dedupe_fixtures(fixtures: list[UnifiedFixture]) -> list[UnifiedFixture]:
    """Drop repeated ids, keeping the first occurrence."""
    seen: set[str] = set()
    unique: list[UnifiedFixture] = []
    for fixture in fixtures:
        if fixture.id in seen:
            continue
        seen.add(fixture.id)
        unique.append(fixture)
    return unique


class FixtureService:
    def __init__(
        self,
        cache: CacheManager,
        registry: ProviderRegistry,
        rate_limiter: ProviderRateLimiter,
        providers: Mapping[str, BaseProvider],
        *,
        trust_empty_responses: bool = False,
    ) -> None:
        self.cache = cache
        self.registry = registry
        self.rate_limiter = rate_limiter
        self.providers = dict(providers)
        self.trust_empty_responses = trust_empty_responses
        self._inflight: dict[str, asyncio.Future[FixturesResult]] = {}

    async def fetch_fixtures(self, date: str) -> list[UnifiedFixture]:
        result = await self.fetch_fixtures_result(date)
        return result.fixtures

    async def fetch_fixtures_result(self, date: str) -> FixturesResult:
        """Fixtures for ``date`` plus where they came from.

        Raises ValueError for a malformed date and ProvidersExhaustedError
        when no provider produced data.
        """
        date = validate_fixture_date(date)
        key = CacheKeys.fixtures(date)
        pending = self._inflight.get(key)
        if pending is not None:
            logger.debug("Joining in-flight fixture fetch for %s", date)
            return await asyncio.shield(pending)

        task = asyncio.ensure_future(self._load(date))
        self._inflight[key] = task
        task.add_done_callback(lambda done: self._finish_inflight(key, done))
        return await asyncio.shield(task)

    def _finish_inflight(self, key: str, task: asyncio.Future) -> None:
        self._inflight.pop(key, None)
        # Waiters may all be cancelled; the outcome is retrieved here.
        if not task.cancelled():
            task.exception()

    async def _read_cache(self, date: str) -> FixturesResult | None:
        cached = await self.cache.get_fixtures(date)
        if not cached:
            return None
        try:
            fixtures = [UnifiedFixture.model_validate(item) for item in cached]
        except ValidationError:
            logger.warning("Discarding unreadable cached fixtures for %s", date)
            await self.cache.invalidate_fixtures(date)
            return None
        return FixturesResult(date=date, fixtures=fixtures, provider=fixtures[0].provider, cached=True)

    async def _load(self, date: str) -> FixturesResult:
        cached = await self._read_cache(date)
        if cached is not None:
            logger.info("Cache hit for fixtures %s (%d)", date, len(cached.fixtures))
            return cached

        failures: list[ProviderFailure] = []
        for descriptor in self.registry.candidates("fixtures"):
            adapter = self.providers.get(descriptor.name)
            if adapter is None:
                continue
            if not self.rate_limiter.can_make_request(descriptor.name, descriptor.rate_limit):
                logger.warning("Rate limit reached for %s, skipping", descriptor.name)
                failures.append(ProviderFailure(descriptor.name, "rate limited"))
                continue

            self.rate_limiter.record_request(descriptor.name)
            await self.cache.set_rate_limit(descriptor.name, {
                "requests": self.rate_limiter.requests_in_window(descriptor.name),
                "limit": descriptor.rate_limit,
            })
            try:
                fixtures = await adapter.fetch_fixtures(date)
            except PROVIDER_FAILURES as exc:
                message = str(exc) or exc.__class__.__name__
                logger.warning("Provider %s failed for %s: %s", descriptor.name, date, message)
                failures.append(ProviderFailure(descriptor.name, message))
                continue

            if not fixtures:
                if self.trust_empty_responses:
                    logger.info("Provider %s reported no fixtures for %s", descriptor.name, date)
                    return FixturesResult(date=date, fixtures=[], provider=descriptor.name)
                logger.info("Provider %s returned no data for %s, trying next", descriptor.name, date)
                failures.append(ProviderFailure(descriptor.name, "no data"))
                continue

            unique = dedupe_fixtures(fixtures)
            payload = [fixture.to_json_dict() for fixture in unique]
            await self.cache.set_fixtures(date, payload)
            await self.cache.set_fixtures(date, payload, descriptor.name)
            logger.info("Fetched %d fixtures for %s from %s", len(unique), date, descriptor.name)
            return FixturesResult(date=date, fixtures=unique, provider=descriptor.name)

        error = ProvidersExhaustedError(failures)
        logger.error("%s", error)
        raise error

    def get_provider_status(self) -> list[dict[str, Any]]:
        return [
            {
                "name": descriptor.name,
                "available": self.rate_limiter.can_make_request(descriptor.name, descriptor.rate_limit),
                "cost": descriptor.cost.value,
            }
            for descriptor in self.registry
        ]
