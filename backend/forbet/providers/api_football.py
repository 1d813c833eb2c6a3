"""
backend/forbet/providers/api_football.py

Purpose:
    API-Football (api-sports.io v3) adapter for daily fixtures and the
    /status account probe. The API answers 200 with an ``errors`` object on
    auth and quota problems, so the body is inspected as well.

Dependencies:
    - forbet.providers.base
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlparse

from forbet.errors import ProviderError
from forbet.models.fixtures import UnifiedFixture
from forbet.models.validation import ApiValidationResult, ValidationStatus
from forbet.providers.base import BaseProvider
from forbet.utils import to_int

logger = logging.getLogger("forbet.api_football")


def _error_text(errors: Any) -> str | None:
    if not errors:
        return None
    if isinstance(errors, dict):
        return "; ".join(f"{key}: {value}" for key, value in errors.items())
    if isinstance(errors, list):
        return "; ".join(str(item) for item in errors)
    return str(errors)


class ApiFootballProvider(BaseProvider):
    name = "APIFootball"
    source = "api_football"

    def _headers(self) -> dict[str, str]:
        return {
            "X-RapidAPI-Key": self._require_key(),
            "X-RapidAPI-Host": urlparse(self.base_url).netloc,
        }

    async def fetch_fixtures(self, date: str) -> list[UnifiedFixture]:
        payload = await self._get_json("fixtures", params={"date": date}, headers=self._headers())
        message = _error_text((payload or {}).get("errors"))
        if message:
            raise ProviderError(self.name, f"{self.name} error: {message}")
        fixtures = self._normalize_rows((payload or {}).get("response") or [])
        logger.info("API-Football returned %d fixtures for %s", len(fixtures), date)
        return fixtures

    async def validate(self) -> ApiValidationResult:
        if not self.api_key:
            return self._missing_key_result()
        try:
            response = await self._get("status", headers=self._headers())
        except ProviderError as exc:
            return ApiValidationResult.failed(self.name, ValidationStatus.UNKNOWN_ERROR, str(exc))
        if response.status_code >= 400:
            return self._validation_for_status(response.status_code)

        try:
            payload = response.json()
        except ValueError:
            return ApiValidationResult.failed(self.name, ValidationStatus.UNKNOWN_ERROR, "Malformed status response")

        errors = payload.get("errors") or {}
        message = _error_text(errors)
        if message:
            lowered = message.lower()
            if "token" in lowered or "key" in lowered:
                return ApiValidationResult.failed(self.name, ValidationStatus.AUTH_ERROR, message)
            if "limit" in lowered or "requests" in lowered:
                return ApiValidationResult.failed(self.name, ValidationStatus.QUOTA_EXCEEDED, message)
            return ApiValidationResult.failed(self.name, ValidationStatus.UNKNOWN_ERROR, message)

        requests = ((payload.get("response") or {}).get("requests")) or {}
        current = to_int(requests.get("current"))
        limit_day = to_int(requests.get("limit_day"))
        remaining = limit_day - current if current is not None and limit_day is not None else None
        if remaining is not None and remaining <= 0:
            return ApiValidationResult.failed(self.name, ValidationStatus.QUOTA_EXCEEDED, "Daily quota exhausted")
        return ApiValidationResult.ok(self.name, remaining_quota=remaining)
