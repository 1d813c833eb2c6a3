"""
backend/forbet/services/api_validation_service.py

Purpose:
    Probe every registered provider's credentials/quota, caching each result
    under validation:{provider} and the aggregate under api:status.

Dependencies:
    - forbet.services.cache_manager
    - forbet.services.provider_registry
    - forbet.providers.base
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from forbet.models.validation import ApiValidationResult, ValidationStatus
from forbet.providers.base import BaseProvider
from forbet.services.cache_manager import CacheManager
from forbet.services.provider_registry import ProviderRegistry
from forbet.utils import utcnow

logger = logging.getLogger("forbet.api_validation")


def valid_provider_names(results: Iterable[ApiValidationResult]) -> list[str]:
    return [result.name for result in results if result.is_valid]


class ApiValidationService:
    def __init__(
        self,
        cache: CacheManager,
        registry: ProviderRegistry,
        providers: Mapping[str, BaseProvider],
    ) -> None:
        self.cache = cache
        self.registry = registry
        self.providers = dict(providers)

    async def _cached(self, name: str) -> ApiValidationResult | None:
        raw = await self.cache.get_validation(name)
        if not raw:
            return None
        try:
            return ApiValidationResult.model_validate(raw)
        except ValidationError:
            logger.warning("Ignoring unreadable cached validation for %s", name)
            return None

    async def _probe(self, name: str) -> ApiValidationResult:
        adapter = self.providers.get(name)
        if adapter is None:
            return ApiValidationResult.failed(name, ValidationStatus.AUTH_ERROR, "Provider not configured")
        try:
            return await adapter.validate()
        except Exception as exc:
            logger.warning("Validation probe for %s failed: %s", name, exc)
            return ApiValidationResult.failed(name, ValidationStatus.UNKNOWN_ERROR, str(exc) or "Unknown error")

    async def validate_all(self, use_cache: bool = True) -> list[ApiValidationResult]:
        """One result per registered provider, in registry order."""
        results: list[ApiValidationResult] = []
        for name in self.registry.names():
            result = await self._cached(name) if use_cache else None
            if result is None:
                result = await self._probe(name)
                await self.cache.set_validation(name, result.model_dump(mode="json"))
            results.append(result)

        await self.cache.set_api_status(self.summary(results))
        log_status(results)
        return results

    @staticmethod
    def summary(results: list[ApiValidationResult]) -> dict[str, Any]:
        return {
            "results": [result.model_dump(mode="json") for result in results],
            "valid_providers": valid_provider_names(results),
            "checked_at": utcnow().isoformat(),
        }


def log_status(results: Iterable[ApiValidationResult]) -> None:
    for result in results:
        quota = f" ({result.remaining_quota} remaining)" if result.remaining_quota is not None else ""
        error = f" - {result.error}" if result.error else ""
        logger.info(
            "Provider %s %s%s%s",
            result.name,
            "OK" if result.is_valid else result.status.value,
            quota,
            error,
        )
