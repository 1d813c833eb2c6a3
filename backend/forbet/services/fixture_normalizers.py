"""
backend/forbet/services/fixture_normalizers.py

Purpose:
    One normalizer per raw provider payload variant, each producing a
    UnifiedFixture, plus the per-provider status vocabularies.

Dependencies:
    - forbet.models.raw_payloads
    - forbet.models.fixtures
    - forbet.services.odds_service
    - forbet.services.statistics_service
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Mapping

from forbet.models.fixtures import (
    STARTED_STATUSES,
    FixtureStatus,
    LeagueRef,
    MatchOdds,
    Score,
    TeamRef,
    UnifiedFixture,
)
from forbet.models.raw_payloads import (
    ApiFootballFixture,
    FootballDataMatch,
    RawFixture,
    SportmonksFixture,
    TheSportsDBEvent,
)
from forbet.services.odds_service import get_best_odds, quotes_from_sportmonks
from forbet.services.statistics_service import FIRST_HALF_SCORE_TYPE_ID, is_current_score
from forbet.utils import parse_utc, to_float, to_int

logger = logging.getLogger("forbet.normalizers")

_S = FixtureStatus

THESPORTSDB_STATUS: dict[str, FixtureStatus] = {
    "Match Finished": _S.FINISHED,
    "FT": _S.FINISHED,
    "AET": _S.FINISHED,
    "PEN": _S.FINISHED,
    "Not Started": _S.SCHEDULED,
    "NS": _S.SCHEDULED,
    "1H": _S.LIVE,
    "2H": _S.LIVE,
    "HT": _S.LIVE,
    "ET": _S.LIVE,
    "Live": _S.LIVE,
    "In Progress": _S.LIVE,
    "Postponed": _S.POSTPONED,
    "Match Postponed": _S.POSTPONED,
    "PST": _S.POSTPONED,
}

FOOTBALL_DATA_STATUS: dict[str, FixtureStatus] = {
    "FINISHED": _S.FINISHED,
    "AWARDED": _S.FINISHED,
    "IN_PLAY": _S.LIVE,
    "PAUSED": _S.LIVE,
    "LIVE": _S.LIVE,
    "SCHEDULED": _S.SCHEDULED,
    "TIMED": _S.SCHEDULED,
    "POSTPONED": _S.POSTPONED,
    "SUSPENDED": _S.POSTPONED,
    "CANCELLED": _S.POSTPONED,
}

API_FOOTBALL_STATUS: dict[str, FixtureStatus] = {
    "FT": _S.FINISHED,
    "AET": _S.FINISHED,
    "PEN": _S.FINISHED,
    "AWD": _S.FINISHED,
    "WO": _S.FINISHED,
    "1H": _S.LIVE,
    "2H": _S.LIVE,
    "HT": _S.LIVE,
    "ET": _S.LIVE,
    "BT": _S.LIVE,
    "P": _S.LIVE,
    "LIVE": _S.LIVE,
    "INT": _S.LIVE,
    "NS": _S.SCHEDULED,
    "TBD": _S.SCHEDULED,
    "PST": _S.POSTPONED,
    "SUSP": _S.POSTPONED,
    "CANC": _S.POSTPONED,
    "ABD": _S.POSTPONED,
}

SPORTMONKS_STATUS: dict[str, FixtureStatus] = {
    "NS": _S.SCHEDULED,
    "TBA": _S.SCHEDULED,
    "DELAYED": _S.SCHEDULED,
    "INPLAY_1ST_HALF": _S.LIVE,
    "INPLAY_2ND_HALF": _S.LIVE,
    "HT": _S.LIVE,
    "BREAK": _S.LIVE,
    "INPLAY_ET": _S.LIVE,
    "EXTRA_TIME_BREAK": _S.LIVE,
    "INPLAY_PENALTIES": _S.LIVE,
    "PEN_BREAK": _S.LIVE,
    "FT": _S.FINISHED,
    "AET": _S.FINISHED,
    "FT_PEN": _S.FINISHED,
    "AWARDED": _S.FINISHED,
    "POSTPONED": _S.POSTPONED,
    "SUSPENDED": _S.POSTPONED,
    "CANCELLED": _S.POSTPONED,
    "ABANDONED": _S.POSTPONED,
    "INTERRUPTED": _S.POSTPONED,
}

_CANONICAL = {status.value: status for status in FixtureStatus}


def map_status(table: Mapping[str, FixtureStatus], raw: str | FixtureStatus | None) -> FixtureStatus:
    """Translate a provider status code; canonical values pass through, unknown -> scheduled."""
    if isinstance(raw, FixtureStatus):
        return raw
    if raw is None:
        return FixtureStatus.SCHEDULED
    text = str(raw).strip()
    if text in _CANONICAL:
        return _CANONICAL[text]
    mapped = table.get(text) or table.get(text.upper())
    if mapped is None:
        if text:
            logger.debug("Unmapped provider status %r, defaulting to scheduled", text)
        return FixtureStatus.SCHEDULED
    return mapped


def _score_for(status: FixtureStatus, home, away) -> Score | None:
    home_goals = to_int(home)
    away_goals = to_int(away)
    if status not in STARTED_STATUSES or home_goals is None or away_goals is None:
        return None
    return Score(home=home_goals, away=away_goals)


def normalize_thesportsdb(raw: TheSportsDBEvent) -> UnifiedFixture:
    status = map_status(THESPORTSDB_STATUS, raw.status)
    if raw.timestamp:
        start_time = parse_utc(raw.timestamp)
    else:
        clock = (raw.time or "00:00:00").strip() or "00:00:00"
        if len(clock) == 5:
            clock = f"{clock}:00"
        start_time = parse_utc(f"{raw.date_event}T{clock[:8]}")
    return UnifiedFixture(
        id=f"thesportsdb_{raw.id_event}",
        provider="TheSportsDB",
        original_id=raw.id_event,
        home_team=TeamRef(name=raw.home_team, logo=raw.home_badge or None),
        away_team=TeamRef(name=raw.away_team, logo=raw.away_badge or None),
        league=LeagueRef(name=raw.league or "Unknown League", logo=raw.league_badge or None),
        start_time=start_time,
        status=status,
        score=_score_for(status, raw.home_score, raw.away_score),
    )


def normalize_football_data(raw: FootballDataMatch) -> UnifiedFixture:
    status = map_status(FOOTBALL_DATA_STATUS, raw.status)
    full_time = raw.score.full_time
    return UnifiedFixture(
        id=f"footballdata_{raw.id}",
        provider="FootballData",
        original_id=raw.id,
        home_team=TeamRef(name=raw.home_team.name or "TBD", logo=raw.home_team.crest),
        away_team=TeamRef(name=raw.away_team.name or "TBD", logo=raw.away_team.crest),
        league=LeagueRef(name=raw.competition.name, logo=raw.competition.emblem),
        start_time=parse_utc(raw.utc_date),
        status=status,
        score=_score_for(status, full_time.home, full_time.away),
    )


def _api_football_match_winner(raw: ApiFootballFixture) -> MatchOdds | None:
    if not raw.bookmakers:
        return None
    for bet in raw.bookmakers[0].bets:
        if bet.name != "Match Winner":
            continue
        prices = {value.value: to_float(value.odd) or 0.0 for value in bet.values}
        return MatchOdds(
            home=prices.get("Home", 0.0),
            draw=prices.get("Draw", 0.0),
            away=prices.get("Away", 0.0),
        )
    return None


def normalize_api_football(raw: ApiFootballFixture) -> UnifiedFixture:
    status = map_status(API_FOOTBALL_STATUS, raw.fixture.status.short)
    return UnifiedFixture(
        id=f"apifootball_{raw.fixture.id}",
        provider="APIFootball",
        original_id=raw.fixture.id,
        home_team=TeamRef(name=raw.teams.home.name, logo=raw.teams.home.logo),
        away_team=TeamRef(name=raw.teams.away.name, logo=raw.teams.away.logo),
        league=LeagueRef(name=raw.league.name, logo=raw.league.logo),
        start_time=parse_utc(raw.fixture.date),
        status=status,
        score=_score_for(status, raw.goals.home, raw.goals.away),
        odds=_api_football_match_winner(raw),
    )


def sportmonks_current_score(raw: SportmonksFixture) -> tuple[int | None, int | None]:
    home: int | None = None
    away: int | None = None
    current = [item for item in raw.scores if is_current_score(item.type_id, item.description)]
    if not current:
        current = [item for item in raw.scores if item.type_id == FIRST_HALF_SCORE_TYPE_ID]
    for item in current:
        if item.score.participant == "home":
            home = item.score.goals
        elif item.score.participant == "away":
            away = item.score.goals
    return home, away


def normalize_sportmonks(raw: SportmonksFixture) -> UnifiedFixture:
    state = raw.state.developer_name if raw.state is not None else None
    status = map_status(SPORTMONKS_STATUS, state)
    home = raw.participant("home")
    away = raw.participant("away")
    if raw.starting_at_timestamp is not None:
        start_time = datetime.fromtimestamp(raw.starting_at_timestamp, tz=timezone.utc)
    elif raw.starting_at:
        start_time = parse_utc(raw.starting_at)
    else:
        raise ValueError(f"Sportmonks fixture {raw.id} has no start time")

    odds = None
    if raw.odds:
        best = get_best_odds(quotes_from_sportmonks(raw.odds))
        if best.full_time_result is not None:
            ftr = best.full_time_result
            odds = MatchOdds(home=ftr.home, draw=ftr.draw, away=ftr.away)

    home_goals, away_goals = sportmonks_current_score(raw)
    return UnifiedFixture(
        id=f"sportmonks_{raw.id}",
        provider="SportMonks",
        original_id=raw.id,
        home_team=TeamRef(name=home.name if home else "Home", logo=home.image_path if home else None),
        away_team=TeamRef(name=away.name if away else "Away", logo=away.image_path if away else None),
        league=LeagueRef(
            name=raw.league.name if raw.league else "Unknown League",
            logo=raw.league.image_path if raw.league else None,
        ),
        start_time=start_time,
        status=status,
        score=_score_for(status, home_goals, away_goals),
        odds=odds,
    )


def normalize_fixture(raw: RawFixture) -> UnifiedFixture:
    """Dispatch a tagged raw payload to its normalizer."""
    if isinstance(raw, TheSportsDBEvent):
        return normalize_thesportsdb(raw)
    if isinstance(raw, FootballDataMatch):
        return normalize_football_data(raw)
    if isinstance(raw, ApiFootballFixture):
        return normalize_api_football(raw)
    if isinstance(raw, SportmonksFixture):
        return normalize_sportmonks(raw)
    raise TypeError(f"Unsupported raw fixture payload: {type(raw).__name__}")
