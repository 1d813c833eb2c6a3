"""
backend/forbet/models/odds.py

Purpose:
    Bookmaker quote input model, best-price summary (ProcessedOdds) and the
    odds-derived prediction shapes.

Dependencies:
    - pydantic
    - forbet.models.common
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from forbet.models.common import CamelModel


class RawOddQuote(BaseModel):
    """One bookmaker price for one selection of one market."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    market_id: int | None = None
    market_description: str = ""
    label: str = ""
    value: float
    bookmaker_id: int | str | None = None
    bookmaker_name: str | None = None
    total: str | None = None
    handicap: str | None = None

    @field_validator("value", mode="before")
    @classmethod
    def _parse_price(cls, raw: Any) -> float:
        price = float(raw)
        if not math.isfinite(price) or price <= 0:
            raise ValueError(f"invalid decimal price: {raw!r}")
        return price

    @field_validator("total", "handicap", mode="before")
    @classmethod
    def _stringify(cls, raw: Any) -> str | None:
        if raw is None:
            return None
        return str(raw).strip()


class FullTimeResultOdds(CamelModel):
    home: float = 0.0
    draw: float = 0.0
    away: float = 0.0


class BothTeamsToScoreOdds(CamelModel):
    yes: float = 0.0
    no: float = 0.0


class TotalGoalsOdds(CamelModel):
    over25: float = 0.0
    under25: float = 0.0
    over15: float = 0.0
    under15: float = 0.0
    over35: float = 0.0
    under35: float = 0.0


class CorrectScoreOdd(CamelModel):
    score: str
    odd: float


class AsianHandicapOdd(CamelModel):
    handicap: str
    home: float
    away: float


class ProcessedOdds(CamelModel):
    """Best price per selection; 0 marks a selection nobody quoted."""

    full_time_result: FullTimeResultOdds | None = None
    both_teams_to_score: BothTeamsToScoreOdds | None = None
    total_goals: TotalGoalsOdds | None = None
    correct_score: list[CorrectScoreOdd] | None = None
    asian_handicap: list[AsianHandicapOdd] | None = None


class PredictionEntry(CamelModel):
    probability: float
    description: str


class CorrectScorePrediction(PredictionEntry):
    score: str


class PredictionData(CamelModel):
    full_time_result: dict[str, PredictionEntry] | None = None
    both_teams_to_score: dict[str, PredictionEntry] | None = None
    total_goals: dict[str, PredictionEntry] | None = None
    correct_score: list[CorrectScorePrediction] = Field(default_factory=list)
