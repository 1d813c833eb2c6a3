"""
backend/forbet/services/odds_service.py

Purpose:
    Best-price selection across bookmakers and the detailed odds report
    (per-bookmaker markets, per-market spread and margin). Pure functions,
    no I/O.

Dependencies:
    - forbet.models.odds
    - forbet.utils
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Iterable

from pydantic import ValidationError

from forbet.models.odds import (
    AsianHandicapOdd,
    BothTeamsToScoreOdds,
    CorrectScoreOdd,
    FullTimeResultOdds,
    ProcessedOdds,
    RawOddQuote,
    TotalGoalsOdds,
)
from forbet.utils import utcnow

logger = logging.getLogger("forbet.odds_service")

FULL_TIME_RESULT_MARKETS = frozenset({"full time result", "match winner", "fulltime result", "3way result"})
BTTS_MARKETS = frozenset({"both teams to score"})
TOTAL_GOALS_MARKETS = frozenset({"goals over/under", "total goals", "goal line", "alternative goal line"})
CORRECT_SCORE_MARKETS = frozenset({"correct score"})
ASIAN_HANDICAP_MARKETS = frozenset({"asian handicap", "alternative asian handicap"})

_LABEL_ALIASES = {
    "1": "home",
    "x": "draw",
    "2": "away",
}

_TOTAL_LINES = {"1.5": "15", "2.5": "25", "3.5": "35"}

CORRECT_SCORE_LIMIT = 10
ASIAN_HANDICAP_LIMIT = 5


def _label(quote: RawOddQuote) -> str:
    text = quote.label.strip().lower()
    return _LABEL_ALIASES.get(text, text)


def _market(quote: RawOddQuote) -> str:
    return quote.market_description.strip().lower()


def _best(prices: Iterable[float]) -> float:
    return max(prices, default=0.0)


def _normalize_line(total: str | None) -> str | None:
    if total is None:
        return None
    try:
        return f"{float(total):.1f}"
    except ValueError:
        return None


def get_best_odds(quotes: Iterable[RawOddQuote]) -> ProcessedOdds:
    """Highest quoted price per selection; markets nobody quoted stay None."""
    by_market: dict[str, list[RawOddQuote]] = defaultdict(list)
    for quote in quotes:
        market = _market(quote)
        if not market and quote.market_id == 1:
            market = "full time result"
        by_market[market].append(quote)

    def collect(markets: frozenset[str]) -> list[RawOddQuote]:
        return [q for name in markets for q in by_market.get(name, [])]

    result: dict[str, Any] = {}

    ftr = collect(FULL_TIME_RESULT_MARKETS)
    if ftr:
        result["full_time_result"] = FullTimeResultOdds(
            home=_best(q.value for q in ftr if _label(q) == "home"),
            draw=_best(q.value for q in ftr if _label(q) == "draw"),
            away=_best(q.value for q in ftr if _label(q) == "away"),
        )

    btts = collect(BTTS_MARKETS)
    if btts:
        result["both_teams_to_score"] = BothTeamsToScoreOdds(
            yes=_best(q.value for q in btts if _label(q) == "yes"),
            no=_best(q.value for q in btts if _label(q) == "no"),
        )

    goals = collect(TOTAL_GOALS_MARKETS)
    if goals:
        lines: dict[str, float] = {}
        for line, suffix in _TOTAL_LINES.items():
            for side in ("over", "under"):
                lines[f"{side}{suffix}"] = _best(
                    q.value for q in goals
                    if _label(q) == side and _normalize_line(q.total) == line
                )
        result["total_goals"] = TotalGoalsOdds(**lines)

    scores = collect(CORRECT_SCORE_MARKETS)
    if scores:
        grouped: dict[str, float] = {}
        for quote in scores:
            score = quote.label.strip()
            grouped[score] = max(grouped.get(score, 0.0), quote.value)
        ranked = sorted(grouped.items(), key=lambda item: item[1])[:CORRECT_SCORE_LIMIT]
        result["correct_score"] = [CorrectScoreOdd(score=score, odd=odd) for score, odd in ranked]

    handicaps = collect(ASIAN_HANDICAP_MARKETS)
    if handicaps:
        sides: dict[str, dict[str, float]] = {}
        for quote in handicaps:
            side = _label(quote)
            if side not in ("home", "away"):
                continue
            bucket = sides.setdefault(quote.handicap or "0", {"home": 0.0, "away": 0.0})
            bucket[side] = max(bucket[side], quote.value)
        result["asian_handicap"] = [
            AsianHandicapOdd(handicap=line, home=prices["home"], away=prices["away"])
            for line, prices in sides.items()
            if prices["home"] > 0 and prices["away"] > 0
        ][:ASIAN_HANDICAP_LIMIT]

    return ProcessedOdds(**result)


def implied_probability(price: float) -> float:
    if price is None or price <= 0:
        return 0.0
    return 1.0 / price


def format_odd(value: float) -> str:
    if not value:
        return "N/A"
    return f"{value:.2f}"


def market_margin(home: float, draw: float, away: float) -> float:
    """Bookmaker overround of a 1X2 market in percent; 0.0 when a side is missing."""
    if min(home, draw, away) <= 0:
        return 0.0
    total = implied_probability(home) + implied_probability(draw) + implied_probability(away)
    return round((total - 1.0) * 100, 2)


def _nested_name(value: Any) -> str | None:
    if isinstance(value, dict):
        name = value.get("name")
        return str(name) if name else None
    return None


def quotes_from_sportmonks(items: Iterable[dict[str, Any]]) -> list[RawOddQuote]:
    """Convert Sportmonks odds rows (optionally with market/bookmaker includes) to quotes.

    Rows with an unusable price are dropped.
    """
    quotes: list[RawOddQuote] = []
    dropped = 0
    for item in items:
        market = item.get("market") if isinstance(item.get("market"), dict) else {}
        bookmaker = item.get("bookmaker") if isinstance(item.get("bookmaker"), dict) else {}
        try:
            quotes.append(RawOddQuote(
                market_id=item.get("market_id") or market.get("id"),
                market_description=item.get("market_description") or _nested_name(market) or "",
                label=str(item.get("label") or item.get("name") or ""),
                value=item.get("value"),
                bookmaker_id=item.get("bookmaker_id") or bookmaker.get("id"),
                bookmaker_name=_nested_name(bookmaker),
                total=item.get("total"),
                handicap=item.get("handicap"),
            ))
        except (ValidationError, TypeError):
            dropped += 1
    if dropped:
        logger.debug("Dropped %d odds rows with unusable prices", dropped)
    return quotes


def _market_margin_for(quotes: list[RawOddQuote]) -> float:
    first: dict[str, float] = {}
    for quote in quotes:
        first.setdefault(_label(quote), quote.value)
    return market_margin(first.get("home", 0.0), first.get("draw", 0.0), first.get("away", 0.0))


def build_odds_report(fixture_id: int | str, quotes: list[RawOddQuote]) -> dict[str, Any]:
    """Detailed odds payload: best prices, per-bookmaker markets and market analysis."""
    bookmakers: dict[str, dict[str, Any]] = {}
    markets: dict[str, list[RawOddQuote]] = defaultdict(list)

    for quote in quotes:
        market_name = quote.market_description or "Unknown Market"
        bookmaker_key = str(quote.bookmaker_id) if quote.bookmaker_id is not None else "unknown"
        entry = bookmakers.setdefault(bookmaker_key, {
            "id": quote.bookmaker_id if quote.bookmaker_id is not None else "unknown",
            "name": quote.bookmaker_name or "Unknown Bookmaker",
            "markets": defaultdict(list),
        })
        entry["markets"][market_name].append({"label": quote.label, "value": quote.value})
        markets[market_name].append(quote)

    bookmaker_rows = [
        {
            "id": entry["id"],
            "name": entry["name"],
            "markets": [
                {"market_name": name, "selections": selections}
                for name, selections in entry["markets"].items()
            ],
        }
        for entry in bookmakers.values()
    ]

    analysis = []
    for name, market_quotes in markets.items():
        values = [q.value for q in market_quotes]
        analysis.append({
            "market_name": name,
            "bookmaker_count": len({q.bookmaker_id for q in market_quotes}),
            "min_odd": min(values),
            "max_odd": max(values),
            "avg_odd": round(sum(values) / len(values), 4),
            "margin_percentage": _market_margin_for(market_quotes),
        })

    return {
        "fixture_id": fixture_id,
        "best_odds": get_best_odds(quotes).to_json_dict(),
        "bookmakers": bookmaker_rows,
        "market_analysis": analysis,
        "data_quality": {
            "total_odds_count": len(quotes),
            "bookmaker_count": len(bookmakers),
            "market_count": len(markets),
            "last_updated": utcnow().isoformat(),
        },
    }
