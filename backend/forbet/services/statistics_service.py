"""
backend/forbet/services/statistics_service.py

Purpose:
    Pair Sportmonks per-team statistics into home/away rows and pull the
    current score out of the scores include.

Dependencies:
    - forbet.models.statistics
"""

from __future__ import annotations

from typing import Any

from forbet.models.statistics import ProcessedStatistic

STATISTIC_TYPES: dict[int, str] = {
    52: "Goals",
    86: "Shots",
    87: "Shots On Target",
    88: "Shots Off Target",
    79: "Ball Possession (%)",
    7: "Corners",
    8: "Fouls",
    84: "Yellow Cards",
    85: "Red Cards",
    81: "Total Passes",
    155: "Accurate Passes",
    156: "Inaccurate Passes",
    45: "Goalkeeper Saves",
    46: "Difficult Saves",
    83: "Offsides",
}

POSSESSION_TYPE_ID = 79
STATISTIC_PRIORITY: tuple[int, ...] = (52, 86, 87, 79, 7, 84, 85)
CURRENT_SCORE_TYPE_ID = 1525
FIRST_HALF_SCORE_TYPE_ID = 1

_MISSING = "-"


def is_current_score(type_id: Any, description: Any) -> bool:
    return description == "CURRENT" or type_id == CURRENT_SCORE_TYPE_ID


def _participant_id(participants: list[dict[str, Any]], location: str) -> Any:
    for item in participants:
        meta = item.get("meta") or {}
        if meta.get("location") == location:
            return item.get("id")
    return None


def _stat_value(stat: dict[str, Any]) -> Any:
    data = stat.get("data") or {}
    value = data.get("value")
    return _MISSING if value is None else value


def _sort_key(row: ProcessedStatistic) -> tuple[int, int, str]:
    if row.type_id in STATISTIC_PRIORITY:
        return (0, STATISTIC_PRIORITY.index(row.type_id), "")
    return (1, 0, row.name)


def process_statistics(
    statistics: list[dict[str, Any]] | None,
    participants: list[dict[str, Any]] | None,
) -> list[ProcessedStatistic]:
    """Rows for every statistic type reported for both teams, most relevant first."""
    if not statistics or not participants or len(participants) < 2:
        return []
    home_id = _participant_id(participants, "home")
    away_id = _participant_id(participants, "away")
    if home_id is None or away_id is None:
        return []

    grouped: dict[int, dict[str, dict[str, Any]]] = {}
    for stat in statistics:
        type_id = stat.get("type_id")
        if type_id is None:
            continue
        sides = grouped.setdefault(int(type_id), {})
        if stat.get("participant_id") == home_id:
            sides["home"] = stat
        elif stat.get("participant_id") == away_id:
            sides["away"] = stat

    rows: list[ProcessedStatistic] = []
    for type_id, sides in grouped.items():
        if "home" not in sides or "away" not in sides:
            continue
        home_value = _stat_value(sides["home"])
        away_value = _stat_value(sides["away"])
        if type_id == POSSESSION_TYPE_ID:
            home_value = f"{home_value}%" if home_value != _MISSING else _MISSING
            away_value = f"{away_value}%" if away_value != _MISSING else _MISSING
        rows.append(ProcessedStatistic(
            name=STATISTIC_TYPES.get(type_id, f"Statistic {type_id}"),
            home_value=home_value,
            away_value=away_value,
            type_id=type_id,
        ))
    return sorted(rows, key=_sort_key)


def process_scores(scores: list[dict[str, Any]] | None) -> dict[str, int]:
    """Current goals per side; 0 when not reported.

    Rows for the first-half period only count when no CURRENT row exists.
    """
    result = {"home": 0, "away": 0}
    rows = scores or []
    current = [item for item in rows if is_current_score(item.get("type_id"), item.get("description"))]
    if not current:
        current = [item for item in rows if item.get("type_id") == FIRST_HALF_SCORE_TYPE_ID]
    for item in current:
        score = item.get("score") or {}
        goals = score.get("goals")
        side = score.get("participant")
        if isinstance(goals, int) and side in result:
            result[side] = goals
    return result
