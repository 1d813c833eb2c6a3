"""
backend/forbet/services/predictions_service.py

Purpose:
    Turn best bookmaker prices into implied-probability predictions with a
    human-readable likelihood band.

Dependencies:
    - forbet.models.odds
"""

from __future__ import annotations

from forbet.models.odds import (
    CorrectScorePrediction,
    PredictionData,
    PredictionEntry,
    ProcessedOdds,
)

# (lower bound in percent, description), checked top-down
PROBABILITY_BANDS: tuple[tuple[float, str], ...] = (
    (70.0, "Very likely"),
    (55.0, "Likely"),
    (40.0, "Balanced"),
    (25.0, "Unlikely"),
)
LOWEST_BAND = "Very unlikely"


def odds_to_probability(price: float) -> float:
    if not price or price <= 0:
        return 0.0
    return round(100.0 / price, 2)


def describe_probability(probability: float) -> str:
    for threshold, label in PROBABILITY_BANDS:
        if probability >= threshold:
            return label
    return LOWEST_BAND


def _entry(price: float) -> PredictionEntry:
    probability = odds_to_probability(price)
    return PredictionEntry(probability=probability, description=describe_probability(probability))


def process_predictions(processed: ProcessedOdds | None) -> PredictionData:
    if processed is None:
        return PredictionData()

    full_time = None
    if processed.full_time_result is not None:
        ftr = processed.full_time_result
        full_time = {"home": _entry(ftr.home), "draw": _entry(ftr.draw), "away": _entry(ftr.away)}

    btts = None
    if processed.both_teams_to_score is not None:
        both = processed.both_teams_to_score
        btts = {"yes": _entry(both.yes), "no": _entry(both.no)}

    goals = None
    if processed.total_goals is not None:
        totals = processed.total_goals
        goals = {
            "over25": _entry(totals.over25),
            "under25": _entry(totals.under25),
            "over15": _entry(totals.over15),
            "under15": _entry(totals.under15),
        }

    correct = []
    for item in processed.correct_score or []:
        probability = odds_to_probability(item.odd)
        correct.append(CorrectScorePrediction(
            score=item.score,
            probability=probability,
            description=describe_probability(probability),
        ))

    return PredictionData(
        full_time_result=full_time,
        both_teams_to_score=btts,
        total_goals=goals,
        correct_score=correct,
    )
