"""
backend/forbet/models/statistics.py

Purpose:
    Paired home/away match statistic as exposed by the enriched fixture view.

Dependencies:
    - forbet.models.common
"""

from __future__ import annotations

from forbet.models.common import CamelModel


class ProcessedStatistic(CamelModel):
    name: str
    home_value: str | int | float
    away_value: str | int | float
    type_id: int
