"""
backend/forbet/services/provider_registry.py

Purpose:
    Static metadata for the upstream fixture providers. Registry iteration
    order (ascending priority) is the fallback order of every multi-provider
    operation.

Dependencies:
    - forbet.config
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable

from forbet.config import Settings


class ProviderCost(str, Enum):
    FREE = "free"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class ProviderCapabilities:
    fixtures: bool = False
    live_scores: bool = False
    odds: bool = False
    statistics: bool = False
    predictions: bool = False
    leagues: bool = False
    teams: bool = False

    def supports(self, capability: str) -> bool:
        if capability not in self.__dataclass_fields__:
            raise ValueError(f"Unknown provider capability: {capability}")
        return bool(getattr(self, capability))


@dataclass(frozen=True)
class ProviderDescriptor:
    name: str
    priority: int
    cost: ProviderCost
    rate_limit: int  # requests per minute
    capabilities: ProviderCapabilities = field(default_factory=ProviderCapabilities)


DEFAULT_PROVIDERS: tuple[ProviderDescriptor, ...] = (
    ProviderDescriptor(
        name="TheSportsDB",
        priority=1,
        cost=ProviderCost.FREE,
        rate_limit=300,
        capabilities=ProviderCapabilities(
            fixtures=True, live_scores=True, statistics=True, leagues=True, teams=True,
        ),
    ),
    ProviderDescriptor(
        name="FootballData",
        priority=2,
        cost=ProviderCost.LOW,
        rate_limit=100,
        capabilities=ProviderCapabilities(
            fixtures=True, statistics=True, leagues=True, teams=True,
        ),
    ),
    ProviderDescriptor(
        name="APIFootball",
        priority=3,
        cost=ProviderCost.LOW,
        rate_limit=100,
        capabilities=ProviderCapabilities(
            fixtures=True, live_scores=True, odds=True, statistics=True,
            predictions=True, leagues=True, teams=True,
        ),
    ),
    ProviderDescriptor(
        name="SportMonks",
        priority=4,
        cost=ProviderCost.HIGH,
        rate_limit=60,
        capabilities=ProviderCapabilities(
            fixtures=True, live_scores=True, odds=True, statistics=True,
            predictions=True, leagues=True, teams=True,
        ),
    ),
)


class ProviderRegistry:
    """Immutable, priority-ordered collection of provider descriptors."""

    def __init__(self, descriptors: Iterable[ProviderDescriptor] = DEFAULT_PROVIDERS) -> None:
        ordered = sorted(descriptors, key=lambda item: item.priority)
        names = [item.name for item in ordered]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate provider names in registry: {names}")
        self._providers: tuple[ProviderDescriptor, ...] = tuple(ordered)

    def __iter__(self):
        return iter(self._providers)

    def __len__(self) -> int:
        return len(self._providers)

    def ordered(self) -> tuple[ProviderDescriptor, ...]:
        return self._providers

    def names(self) -> list[str]:
        return [item.name for item in self._providers]

    def get(self, name: str) -> ProviderDescriptor | None:
        for item in self._providers:
            if item.name == name:
                return item
        return None

    def candidates(self, capability: str) -> list[ProviderDescriptor]:
        return [item for item in self._providers if item.capabilities.supports(capability)]


def build_default_registry(settings: Settings) -> ProviderRegistry:
    """Default providers with RPM budgets taken from settings."""
    rpm_overrides = {
        "TheSportsDB": settings.THESPORTSDB_RATE_LIMIT_RPM,
        "FootballData": settings.FOOTBALL_DATA_RATE_LIMIT_RPM,
        "APIFootball": settings.API_FOOTBALL_RATE_LIMIT_RPM,
        "SportMonks": settings.SPORTMONKS_RATE_LIMIT_RPM,
    }
    return ProviderRegistry(
        replace(item, rate_limit=int(rpm_overrides.get(item.name, item.rate_limit)))
        for item in DEFAULT_PROVIDERS
    )
