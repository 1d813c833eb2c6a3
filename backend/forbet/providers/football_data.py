"""
backend/forbet/providers/football_data.py

Purpose:
    Adapter for football-data.org v4 daily matches and the competitions
    endpoint used as a cheap credential probe.

Dependencies:
    - forbet.providers.base
"""

from __future__ import annotations

import logging

from forbet.errors import ProviderError
from forbet.models.fixtures import UnifiedFixture
from forbet.models.validation import ApiValidationResult, ValidationStatus
from forbet.providers.base import BaseProvider
from forbet.utils import to_int

logger = logging.getLogger("forbet.football_data")

# football-data.org reports the remaining per-minute budget under either name
_QUOTA_HEADERS = ("X-Requests-Available-Minute", "X-RequestCounter-Remaining")


class FootballDataProvider(BaseProvider):
    name = "FootballData"
    source = "football_data"

    def _headers(self) -> dict[str, str]:
        return {"X-Auth-Token": self._require_key()}

    async def fetch_fixtures(self, date: str) -> list[UnifiedFixture]:
        payload = await self._get_json(
            "matches",
            params={"dateFrom": date, "dateTo": date},
            headers=self._headers(),
        )
        matches = (payload or {}).get("matches") or []
        fixtures = self._normalize_rows(matches)
        logger.info("football-data.org returned %d fixtures for %s", len(fixtures), date)
        return fixtures

    async def validate(self) -> ApiValidationResult:
        if not self.api_key:
            return self._missing_key_result()
        try:
            response = await self._get("competitions", headers=self._headers())
        except ProviderError as exc:
            return ApiValidationResult.failed(self.name, ValidationStatus.UNKNOWN_ERROR, str(exc))
        remaining = None
        for header in _QUOTA_HEADERS:
            remaining = to_int(response.headers.get(header))
            if remaining is not None:
                break
        return self._validation_for_status(response.status_code, remaining_quota=remaining)
