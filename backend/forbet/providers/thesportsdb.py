"""
backend/forbet/providers/thesportsdb.py

Purpose:
    TheSportsDB adapter (free tier, highest fallback priority). The API key
    is a path segment; the public test key "3" works without signup.

Dependencies:
    - forbet.providers.base
"""

from __future__ import annotations

import logging

from forbet.models.fixtures import UnifiedFixture
from forbet.models.validation import ApiValidationResult
from forbet.providers.base import BaseProvider

logger = logging.getLogger("forbet.thesportsdb")

PUBLIC_API_KEY = "3"


class TheSportsDBProvider(BaseProvider):
    name = "TheSportsDB"
    source = "thesportsdb"

    def _key_path(self) -> str:
        return self.api_key or PUBLIC_API_KEY

    async def fetch_fixtures(self, date: str) -> list[UnifiedFixture]:
        payload = await self._get_json(
            f"{self._key_path()}/eventsday.php",
            params={"d": date, "s": "Soccer"},
        )
        events = (payload or {}).get("events") or []
        fixtures = self._normalize_rows(events)
        logger.info("TheSportsDB returned %d fixtures for %s", len(fixtures), date)
        return fixtures

    async def validate(self) -> ApiValidationResult:
        # Free tier, nothing to probe.
        return ApiValidationResult.ok(self.name)
