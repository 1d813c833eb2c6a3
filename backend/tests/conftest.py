"""
backend/tests/conftest.py

Purpose:
    Shared pytest bootstrap: import paths for the backend package and a few
    fixtures used across service tests.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

_THIS_FILE = Path(__file__).resolve()
_BACKEND_DIR = _THIS_FILE.parents[1]
_REPO_ROOT = _THIS_FILE.parents[2]

for candidate in (str(_BACKEND_DIR), str(_REPO_ROOT)):
    if candidate not in sys.path:
        sys.path.insert(0, candidate)

from forbet.services.cache_backends import MemoryCacheClient  # noqa: E402
from forbet.services.cache_manager import CacheManager  # noqa: E402


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_cache(clock) -> MemoryCacheClient:
    return MemoryCacheClient(clock=clock)


@pytest.fixture
def cache_manager(memory_cache) -> CacheManager:
    return CacheManager(memory_cache)
