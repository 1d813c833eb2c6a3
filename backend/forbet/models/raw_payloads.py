"""
backend/forbet/models/raw_payloads.py

Purpose:
    Typed views of each upstream provider's fixture payload. Every variant
    carries a ``source`` tag so the normalizer can dispatch explicitly, and
    schema drift surfaces as a ValidationError at parse time instead of
    missing fields further down.

Dependencies:
    - pydantic
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class _RawModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# --- TheSportsDB -----------------------------------------------------------

class TheSportsDBEvent(_RawModel):
    source: Literal["thesportsdb"] = "thesportsdb"
    id_event: str | int = Field(alias="idEvent")
    home_team: str = Field(alias="strHomeTeam")
    away_team: str = Field(alias="strAwayTeam")
    league: str | None = Field(default=None, alias="strLeague")
    home_badge: str | None = Field(default=None, alias="strHomeTeamBadge")
    away_badge: str | None = Field(default=None, alias="strAwayTeamBadge")
    league_badge: str | None = Field(default=None, alias="strLeagueBadge")
    date_event: str = Field(alias="dateEvent")
    time: str | None = Field(default=None, alias="strTime")
    timestamp: str | None = Field(default=None, alias="strTimestamp")
    status: str | None = Field(default=None, alias="strStatus")
    home_score: str | int | None = Field(default=None, alias="intHomeScore")
    away_score: str | int | None = Field(default=None, alias="intAwayScore")


# --- football-data.org -----------------------------------------------------

class FootballDataTeam(_RawModel):
    name: str | None = None
    crest: str | None = None


class FootballDataCompetition(_RawModel):
    name: str
    emblem: str | None = None


class FootballDataScoreLine(_RawModel):
    home: int | None = None
    away: int | None = None


class FootballDataScore(_RawModel):
    full_time: FootballDataScoreLine = Field(default_factory=FootballDataScoreLine, alias="fullTime")


class FootballDataMatch(_RawModel):
    source: Literal["football_data"] = "football_data"
    id: int
    utc_date: str = Field(alias="utcDate")
    status: str | None = None
    home_team: FootballDataTeam = Field(alias="homeTeam")
    away_team: FootballDataTeam = Field(alias="awayTeam")
    competition: FootballDataCompetition
    score: FootballDataScore = Field(default_factory=FootballDataScore)


# --- API-Football ----------------------------------------------------------

class ApiFootballStatus(_RawModel):
    short: str | None = None


class ApiFootballFixtureInfo(_RawModel):
    id: int
    date: str
    status: ApiFootballStatus = Field(default_factory=ApiFootballStatus)


class ApiFootballNamed(_RawModel):
    name: str
    logo: str | None = None


class ApiFootballTeams(_RawModel):
    home: ApiFootballNamed
    away: ApiFootballNamed


class ApiFootballGoals(_RawModel):
    home: int | None = None
    away: int | None = None


class ApiFootballBetValue(_RawModel):
    value: str
    odd: str | float


class ApiFootballBet(_RawModel):
    name: str
    values: list[ApiFootballBetValue] = Field(default_factory=list)


class ApiFootballBookmaker(_RawModel):
    name: str | None = None
    bets: list[ApiFootballBet] = Field(default_factory=list)


class ApiFootballFixture(_RawModel):
    source: Literal["api_football"] = "api_football"
    fixture: ApiFootballFixtureInfo
    league: ApiFootballNamed
    teams: ApiFootballTeams
    goals: ApiFootballGoals = Field(default_factory=ApiFootballGoals)
    bookmakers: list[ApiFootballBookmaker] = Field(default_factory=list)


# --- Sportmonks v3 ---------------------------------------------------------

class SportmonksParticipantMeta(_RawModel):
    location: str | None = None


class SportmonksParticipant(_RawModel):
    id: int
    name: str
    image_path: str | None = None
    meta: SportmonksParticipantMeta | None = None


class SportmonksLeague(_RawModel):
    name: str
    image_path: str | None = None


class SportmonksState(_RawModel):
    developer_name: str | None = None
    short_name: str | None = None


class SportmonksScoreValue(_RawModel):
    goals: int | None = None
    participant: str | None = None


class SportmonksScore(_RawModel):
    type_id: int | None = None
    description: str | None = None
    participant_id: int | None = None
    score: SportmonksScoreValue = Field(default_factory=SportmonksScoreValue)


class SportmonksFixture(_RawModel):
    source: Literal["sportmonks"] = "sportmonks"
    id: int
    name: str | None = None
    starting_at: str | None = None
    starting_at_timestamp: int | None = None
    participants: list[SportmonksParticipant] = Field(default_factory=list)
    league: SportmonksLeague | None = None
    state: SportmonksState | None = None
    scores: list[SportmonksScore] = Field(default_factory=list)
    odds: list[dict[str, Any]] = Field(default_factory=list)

    def participant(self, location: str) -> SportmonksParticipant | None:
        for item in self.participants:
            if item.meta is not None and item.meta.location == location:
                return item
        return None


RawFixture = Annotated[
    Union[TheSportsDBEvent, FootballDataMatch, ApiFootballFixture, SportmonksFixture],
    Field(discriminator="source"),
]

raw_fixture_adapter: TypeAdapter[RawFixture] = TypeAdapter(RawFixture)
