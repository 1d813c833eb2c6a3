"""
backend/forbet/models/fixtures.py

Purpose:
    Provider-agnostic fixture model produced by every normalizer and stored
    in the fixtures cache.

Dependencies:
    - pydantic
    - forbet.models.common
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, model_validator

from forbet.models.common import CamelModel


class FixtureStatus(str, Enum):
    SCHEDULED = "scheduled"
    LIVE = "live"
    FINISHED = "finished"
    POSTPONED = "postponed"


STARTED_STATUSES = frozenset({FixtureStatus.LIVE, FixtureStatus.FINISHED})


class TeamRef(CamelModel):
    name: str
    logo: str | None = None


class LeagueRef(CamelModel):
    name: str
    logo: str | None = None


class Score(CamelModel):
    home: int
    away: int


class MatchOdds(CamelModel):
    """1X2 decimal prices; 0 means the selection was not quoted."""

    home: float
    draw: float
    away: float


class UnifiedFixture(CamelModel):
    id: str
    provider: str
    original_id: str | int
    home_team: TeamRef
    away_team: TeamRef
    league: LeagueRef
    start_time: datetime
    status: FixtureStatus = FixtureStatus.SCHEDULED
    score: Score | None = None
    odds: MatchOdds | None = None

    @model_validator(mode="after")
    def _score_only_when_started(self) -> "UnifiedFixture":
        if self.score is not None and self.status not in STARTED_STATUSES:
            raise ValueError(f"score is only allowed for live/finished fixtures, got {self.status.value}")
        return self


class FixturesResult(BaseModel):
    """Outcome of one orchestrated fixture fetch."""

    model_config = ConfigDict(frozen=True)

    date: str
    fixtures: list[UnifiedFixture]
    provider: str | None = None
    cached: bool = False
