"""
backend/forbet/providers/base.py

Purpose:
    Common contract for upstream fixture providers plus the JSON GET helper
    that turns HTTP failures into ProviderError.

Dependencies:
    - forbet.providers.http_client
    - forbet.services.fixture_normalizers
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Iterable

import httpx

from forbet.errors import ProviderConfigError, ProviderError
from forbet.models.fixtures import UnifiedFixture
from forbet.models.raw_payloads import raw_fixture_adapter
from forbet.models.validation import ApiValidationResult, ValidationStatus
from forbet.providers.http_client import ResilientClient, safe_url
from forbet.services.fixture_normalizers import normalize_fixture

logger = logging.getLogger("forbet.providers")


class BaseProvider(ABC):
    """Abstract base class for fixture data providers.

    ``name`` must match the provider's registry descriptor; ``source`` is the
    raw payload tag its rows are parsed with.
    """

    name: str = ""
    source: str = ""

    def __init__(self, base_url: str, api_key: str = "", *, client: ResilientClient | None = None) -> None:
        self.base_url = str(base_url or "").rstrip("/")
        self.api_key = str(api_key or "").strip()
        self._client = client or ResilientClient(self.name)

    @abstractmethod
    async def fetch_fixtures(self, date: str) -> list[UnifiedFixture]:
        """Fixtures starting on ``date`` (YYYY-MM-DD), normalized."""
        ...

    @abstractmethod
    async def validate(self) -> ApiValidationResult:
        """Probe credentials and quota without fetching fixtures."""
        ...

    @property
    def circuit_open(self) -> bool:
        return self._client.circuit_open

    async def aclose(self) -> None:
        await self._client.aclose()

    def _build_url(self, path: str) -> str:
        if not self.base_url:
            raise ProviderConfigError(self.name, f"{self.name} base URL is missing")
        return f"{self.base_url}/{str(path or '').lstrip('/')}"

    def _require_key(self) -> str:
        if not self.api_key:
            raise ProviderConfigError(self.name, f"{self.name} API key is missing")
        return self.api_key

    async def _get(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        url = self._build_url(path)
        logger.info("%s API call: GET %s", self.name, safe_url(url))
        try:
            return await self._client.get(url, params=params, headers=headers)
        except httpx.HTTPError as exc:
            raise ProviderError(self.name, f"{self.name} request failed: {exc.__class__.__name__}") from exc

    async def _get_json(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        response = await self._get(path, params=params, headers=headers)
        if response.status_code >= 400:
            raise ProviderError(
                self.name,
                f"{self.name} error: HTTP {response.status_code}",
                status_code=response.status_code,
            )
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(self.name, f"{self.name} returned malformed JSON") from exc

    def _normalize_rows(self, rows: Iterable[dict[str, Any]] | None) -> list[UnifiedFixture]:
        """Parse rows as this provider's payload variant and normalize them.

        Schema drift surfaces as pydantic ValidationError.
        """
        fixtures = []
        for row in rows or []:
            raw = raw_fixture_adapter.validate_python({**row, "source": self.source})
            fixtures.append(normalize_fixture(raw))
        return fixtures

    def _validation_for_status(
        self,
        status_code: int,
        *,
        remaining_quota: int | None = None,
    ) -> ApiValidationResult:
        if status_code in (401, 403):
            return ApiValidationResult.failed(self.name, ValidationStatus.AUTH_ERROR, "Invalid API key")
        if status_code == 429:
            return ApiValidationResult.failed(self.name, ValidationStatus.QUOTA_EXCEEDED, "Rate limit exceeded")
        if status_code >= 400:
            return ApiValidationResult.failed(
                self.name, ValidationStatus.UNKNOWN_ERROR, f"HTTP {status_code}",
            )
        return ApiValidationResult.ok(self.name, remaining_quota=remaining_quota)

    def _missing_key_result(self) -> ApiValidationResult:
        return ApiValidationResult.failed(self.name, ValidationStatus.AUTH_ERROR, "API key not configured")
