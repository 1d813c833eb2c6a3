"""
backend/forbet/context.py

Purpose:
    Explicit application context: owns the cache client, rate limiter,
    provider adapters and the services built on them. Created once per
    process (FastAPI lifespan) or per test, closed with aclose().

Dependencies:
    - forbet.config
    - forbet.providers.*
    - forbet.services.*
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import httpx
from fastapi import Request

from forbet.config import Settings
from forbet.providers.api_football import ApiFootballProvider
from forbet.providers.base import BaseProvider
from forbet.providers.football_data import FootballDataProvider
from forbet.providers.http_client import ResilientClient
from forbet.providers.sportmonks import SportmonksProvider
from forbet.providers.thesportsdb import TheSportsDBProvider
from forbet.services.api_validation_service import ApiValidationService
from forbet.services.cache_backends import CacheClient, create_cache_client
from forbet.services.cache_manager import CacheManager, CacheTTLs
from forbet.services.fixture_detail_service import FixtureDetailService
from forbet.services.fixture_service import FixtureService
from forbet.services.provider_rate_limiter import ProviderRateLimiter
from forbet.services.provider_registry import ProviderRegistry, build_default_registry

logger = logging.getLogger("forbet.context")


def build_providers(
    settings: Settings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, BaseProvider]:
    """One adapter per provider, each with its own resilient HTTP client."""

    def client(name: str) -> ResilientClient:
        return ResilientClient(
            name,
            timeout=settings.PROVIDER_TIMEOUT_SECONDS,
            max_retries=settings.PROVIDER_MAX_RETRIES,
            base_delay=settings.PROVIDER_BASE_DELAY_SECONDS,
            transport=transport,
        )

    adapters: list[BaseProvider] = [
        TheSportsDBProvider(
            settings.THESPORTSDB_BASE_URL, settings.THESPORTSDB_API_KEY, client=client("TheSportsDB"),
        ),
        FootballDataProvider(
            settings.FOOTBALL_DATA_BASE_URL, settings.FOOTBALL_DATA_API_KEY, client=client("FootballData"),
        ),
        ApiFootballProvider(
            settings.API_FOOTBALL_BASE_URL, settings.API_FOOTBALL_KEY, client=client("APIFootball"),
        ),
        SportmonksProvider(
            settings.SPORTMONKS_BASE_URL, settings.SPORTMONKS_API_KEY, client=client("SportMonks"),
        ),
    ]
    return {adapter.name: adapter for adapter in adapters}


@dataclass
class AppContext:
    settings: Settings
    cache_client: CacheClient
    cache: CacheManager
    registry: ProviderRegistry
    rate_limiter: ProviderRateLimiter
    providers: dict[str, BaseProvider] = field(default_factory=dict)
    fixtures: FixtureService | None = None
    validation: ApiValidationService | None = None
    details: FixtureDetailService | None = None

    @classmethod
    def build(
        cls,
        settings: Settings,
        *,
        cache_client: CacheClient | None = None,
        providers: dict[str, BaseProvider] | None = None,
        registry: ProviderRegistry | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "AppContext":
        cache_client = cache_client or create_cache_client(settings)
        cache = CacheManager(cache_client, CacheTTLs.from_settings(settings))
        registry = registry or build_default_registry(settings)
        rate_limiter = ProviderRateLimiter()
        if providers is None:
            providers = build_providers(settings, transport=transport)

        ctx = cls(
            settings=settings,
            cache_client=cache_client,
            cache=cache,
            registry=registry,
            rate_limiter=rate_limiter,
            providers=providers,
        )
        ctx.fixtures = FixtureService(
            cache,
            registry,
            rate_limiter,
            providers,
            trust_empty_responses=settings.TRUST_EMPTY_PROVIDER_RESPONSES,
        )
        ctx.validation = ApiValidationService(cache, registry, providers)
        sportmonks = providers.get(SportmonksProvider.name)
        if isinstance(sportmonks, SportmonksProvider):
            ctx.details = FixtureDetailService(cache, sportmonks, rate_limiter, registry)
        return ctx

    async def start(self) -> None:
        await self.cache_client.start()
        logger.info(
            "Context started: cache=%s providers=%s",
            self.cache_client.backend_name,
            ",".join(self.registry.names()),
        )

    async def aclose(self) -> None:
        for adapter in self.providers.values():
            await adapter.aclose()
        await self.cache_client.close()


def get_context(request: Request) -> AppContext:
    """FastAPI dependency returning the context created in the app lifespan."""
    return request.app.state.ctx
