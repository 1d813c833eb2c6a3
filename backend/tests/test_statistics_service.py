"""
backend/tests/test_statistics_service.py

Purpose:
    Home/away statistic pairing and current-score extraction.
"""

from __future__ import annotations

from forbet.services.statistics_service import process_scores, process_statistics

PARTICIPANTS = [
    {"id": 10, "name": "Home FC", "meta": {"location": "home"}},
    {"id": 20, "name": "Away FC", "meta": {"location": "away"}},
]


def _stat(type_id, participant_id, value):
    return {"type_id": type_id, "participant_id": participant_id, "data": {"value": value}}


def test_statistics_are_paired_and_ordered_by_priority():
    rows = process_statistics(
        [
            _stat(7, 10, 5), _stat(7, 20, 3),
            _stat(79, 10, 61), _stat(79, 20, 39),
            _stat(52, 10, 2), _stat(52, 20, 1),
            _stat(83, 10, 1), _stat(83, 20, None),
            _stat(999, 10, 4), _stat(999, 20, 4),
        ],
        PARTICIPANTS,
    )

    assert [row.name for row in rows] == ["Goals", "Ball Possession (%)", "Corners", "Offsides", "Statistic 999"]
    possession = rows[1]
    assert (possession.home_value, possession.away_value) == ("61%", "39%")
    offsides = rows[3]
    assert offsides.away_value == "-"


def test_statistics_reported_for_one_side_only_are_skipped():
    rows = process_statistics([_stat(86, 10, 12)], PARTICIPANTS)
    assert rows == []


def test_statistics_need_both_participants():
    assert process_statistics([_stat(52, 10, 1)], PARTICIPANTS[:1]) == []
    assert process_statistics([], PARTICIPANTS) == []
    assert process_statistics(None, None) == []


def test_process_scores_reads_current_entries():
    scores = [
        {"type_id": 1, "description": "1ST_HALF", "score": {"goals": 3, "participant": "home"}},
        {"type_id": 1525, "description": "CURRENT", "score": {"goals": 2, "participant": "home"}},
        {"type_id": 1525, "description": "CURRENT", "score": {"goals": 1, "participant": "away"}},
    ]
    assert process_scores(scores) == {"home": 2, "away": 1}
    assert process_scores(None) == {"home": 0, "away": 0}


def test_process_scores_ignores_first_half_rows_listed_after_current():
    scores = [
        {"type_id": 1525, "description": "CURRENT", "score": {"goals": 3, "participant": "home"}},
        {"type_id": 1525, "description": "CURRENT", "score": {"goals": 2, "participant": "away"}},
        {"type_id": 1, "description": "1ST_HALF", "score": {"goals": 1, "participant": "home"}},
        {"type_id": 1, "description": "1ST_HALF", "score": {"goals": 0, "participant": "away"}},
    ]
    assert process_scores(scores) == {"home": 3, "away": 2}


def test_process_scores_falls_back_to_first_half_without_current_rows():
    scores = [
        {"type_id": 1, "description": "1ST_HALF", "score": {"goals": 1, "participant": "home"}},
        {"type_id": 1, "description": "1ST_HALF", "score": {"goals": 1, "participant": "away"}},
    ]
    assert process_scores(scores) == {"home": 1, "away": 1}
