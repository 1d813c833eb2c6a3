"""
backend/forbet/providers/http_client.py

Purpose:
    Outbound HTTP for provider adapters. One ResilientClient per provider
    wraps an httpx.AsyncClient with a bounded timeout, exponential backoff
    on 429/5xx and transport errors, and a circuit breaker that stops
    calling a provider after repeated exhausted requests.

Dependencies:
    - httpx
"""

import asyncio
import logging
import time
from typing import Callable, Optional
from urllib.parse import urlparse

import httpx

from forbet.errors import ProviderError

logger = logging.getLogger("forbet.http_client")

RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})
RETRYABLE_ERRORS = (httpx.TimeoutException, httpx.ConnectError, httpx.RemoteProtocolError)
MAX_BACKOFF_SECONDS = 60.0


class CircuitBreaker:
    """Opens after ``failure_threshold`` exhausted requests; half-opens after ``recovery_timeout``."""

    def __init__(
        self,
        name: str,
        failure_threshold: int = 3,
        recovery_timeout: float = 300.0,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._clock = clock
        self.failures = 0
        self.opened_at: Optional[float] = None

    @property
    def is_open(self) -> bool:
        return self.opened_at is not None

    def allows_request(self) -> bool:
        if self.opened_at is None:
            return True
        if self._clock() - self.opened_at >= self.recovery_timeout:
            logger.info("[%s] circuit half-open, letting one request through", self.name)
            return True
        return False

    def on_success(self) -> None:
        if self.opened_at is not None:
            logger.info("[%s] circuit closed", self.name)
        self.failures = 0
        self.opened_at = None

    def on_failure(self) -> None:
        self.failures += 1
        if self.failures >= self.failure_threshold:
            if self.opened_at is None:
                logger.warning("[%s] circuit open after %d failed requests", self.name, self.failures)
            self.opened_at = self._clock()


def retry_after_seconds(response: httpx.Response) -> Optional[float]:
    """Server-provided wait (Retry-After / X-RateLimit-Retry-After), if numeric."""
    for header in ("retry-after", "x-ratelimit-retry-after"):
        raw = response.headers.get(header)
        if raw is None:
            continue
        try:
            return max(0.0, float(raw))
        except ValueError:
            continue
    return None


def safe_url(url: str) -> str:
    """URL without its query string; provider keys may travel as params."""
    parsed = urlparse(str(url))
    return f"{parsed.scheme}://{parsed.netloc}{parsed.path}"


class ResilientClient:
    def __init__(
        self,
        name: str,
        timeout: float = 15.0,
        max_retries: int = 2,
        base_delay: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.name = name
        self.max_retries = max(0, int(max_retries))
        self.base_delay = max(0.0, float(base_delay))
        self.circuit = CircuitBreaker(name)
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json", "User-Agent": "forbet-data/1.0"},
        )

    @property
    def circuit_open(self) -> bool:
        return not self.circuit.allows_request()

    def _backoff(self, attempt: int, response: httpx.Response | None = None) -> float:
        delay = retry_after_seconds(response) if response is not None else None
        if delay is None:
            delay = self.base_delay * (2 ** attempt)
        return min(delay, MAX_BACKOFF_SECONDS)

    async def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Send with retries. Returns the last response once retries run out on a
        retryable status; re-raises the last transport error otherwise."""
        if not self.circuit.allows_request():
            raise ProviderError(self.name, f"{self.name} circuit open, skipping call")

        attempts = self.max_retries + 1
        response: httpx.Response | None = None
        error: Exception | None = None

        for attempt in range(attempts):
            response, error = None, None
            try:
                response = await self._client.request(method, url, **kwargs)
            except RETRYABLE_ERRORS as exc:
                error = exc
                logger.warning(
                    "[%s] %s %s transport error (attempt %d/%d): %s",
                    self.name, method, safe_url(url), attempt + 1, attempts, exc.__class__.__name__,
                )
            else:
                if response.status_code not in RETRYABLE_STATUSES:
                    if response.status_code < 400:
                        self.circuit.on_success()
                    return response
                logger.warning(
                    "[%s] %s %s answered %d (attempt %d/%d)",
                    self.name, method, safe_url(url), response.status_code, attempt + 1, attempts,
                )

            if attempt + 1 < attempts:
                await asyncio.sleep(self._backoff(attempt, response))

        self.circuit.on_failure()
        if response is not None:
            logger.error(
                "[%s] giving up on %s %s after %d attempts (HTTP %d)",
                self.name, method, safe_url(url), attempts, response.status_code,
            )
            return response
        logger.error("[%s] giving up on %s %s after %d attempts", self.name, method, safe_url(url), attempts)
        raise error  # type: ignore[misc]

    async def get(self, url: str, **kwargs) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()
