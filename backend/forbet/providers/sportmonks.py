"""
backend/forbet/providers/sportmonks.py

Purpose:
    Sportmonks v3 adapter: daily fixtures (last fallback), live scores and
    the per-fixture detail endpoints (pre-match odds, enriched fixture,
    teams) behind the fixture detail service.

Dependencies:
    - forbet.providers.base
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import parse_qsl, urlsplit

from forbet.errors import ProviderError
from forbet.models.fixtures import UnifiedFixture
from forbet.models.validation import ApiValidationResult, ValidationStatus
from forbet.providers.base import BaseProvider
from forbet.utils import to_int

logger = logging.getLogger("forbet.sportmonks")

FIXTURE_INCLUDES = "participants;league;state;scores"
ENRICHED_INCLUDES = "participants;league;state;scores;statistics;venue"
ODDS_INCLUDES = "market;bookmaker"
PAGE_GUARD = 50


class SportmonksProvider(BaseProvider):
    """HTTP adapter for Sportmonks API with rate-limit header extraction."""

    name = "SportMonks"
    source = "sportmonks"

    def _headers(self) -> dict[str, str]:
        return {"Authorization": self._require_key()}

    @staticmethod
    def _extract_remaining(*, payload: dict[str, Any], headers: Any) -> int | None:
        remaining = to_int(headers.get("X-RateLimit-Remaining"))
        if remaining is None:
            remaining = to_int(((payload or {}).get("rate_limit") or {}).get("remaining"))
        return remaining

    @staticmethod
    def _extract_page_number(next_page_url: str | None) -> int | None:
        if not next_page_url:
            return None
        query = dict(parse_qsl(urlsplit(next_page_url).query, keep_blank_values=False))
        return to_int(query.get("page"))

    async def _get_paginated(self, path: str, *, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        merged: list[dict[str, Any]] = []
        base_params: dict[str, Any] = dict(params or {})
        current_page = 1
        seen_pages: set[int] = set()
        while len(seen_pages) < PAGE_GUARD:
            if current_page in seen_pages:
                logger.warning(
                    "Sportmonks pagination repeated page=%s for %s; stopping to prevent loop",
                    current_page,
                    path,
                )
                break
            seen_pages.add(current_page)
            payload = await self._get_json(
                path,
                params={**base_params, "page": current_page},
                headers=self._headers(),
            )
            rows = (payload or {}).get("data") or []
            if isinstance(rows, list):
                merged.extend(rows)
            pagination = (payload or {}).get("pagination") or {}
            if not pagination.get("has_more"):
                break
            next_page = self._extract_page_number(str(pagination.get("next_page") or ""))
            current_page = next_page if next_page and next_page > current_page else current_page + 1
        else:
            logger.warning("Sportmonks pagination guard hit for %s", path)
        return merged

    async def _get_data(self, path: str, *, params: dict[str, Any] | None = None) -> Any | None:
        """``data`` of a single-resource endpoint; None on 404."""
        try:
            payload = await self._get_json(path, params=params, headers=self._headers())
        except ProviderError as exc:
            if exc.status_code == 404:
                return None
            raise
        return (payload or {}).get("data")

    async def fetch_fixtures(self, date: str) -> list[UnifiedFixture]:
        rows = await self._get_paginated(f"football/fixtures/date/{date}", params={"include": FIXTURE_INCLUDES})
        fixtures = self._normalize_rows(rows)
        logger.info("Sportmonks returned %d fixtures for %s", len(fixtures), date)
        return fixtures

    async def fetch_live_fixtures(self) -> list[UnifiedFixture]:
        rows = await self._get_paginated("football/livescores/inplay", params={"include": FIXTURE_INCLUDES})
        return self._normalize_rows(rows)

    async def get_prematch_odds(self, fixture_id: int) -> list[dict[str, Any]]:
        return await self._get_paginated(
            f"football/odds/pre-match/fixtures/{int(fixture_id)}",
            params={"include": ODDS_INCLUDES},
        )

    async def get_fixture(self, fixture_id: int, *, include: str = ENRICHED_INCLUDES) -> dict[str, Any] | None:
        data = await self._get_data(f"football/fixtures/{int(fixture_id)}", params={"include": include})
        return data if isinstance(data, dict) else None

    async def get_team(self, team_id: int) -> dict[str, Any] | None:
        data = await self._get_data(f"football/teams/{int(team_id)}")
        return data if isinstance(data, dict) else None

    async def validate(self) -> ApiValidationResult:
        if not self.api_key:
            return self._missing_key_result()
        try:
            response = await self._get("my/resources", headers=self._headers())
        except ProviderError as exc:
            return ApiValidationResult.failed(self.name, ValidationStatus.UNKNOWN_ERROR, str(exc))
        payload: dict[str, Any] = {}
        if response.status_code < 400 and response.content:
            try:
                payload = response.json()
            except ValueError:
                payload = {}
        remaining = self._extract_remaining(payload=payload, headers=response.headers)
        return self._validation_for_status(response.status_code, remaining_quota=remaining)
