"""
backend/tests/test_providers.py

Purpose:
    Provider adapter behavior against faked HTTP responses: request shape
    (paths, params, auth headers), payload unwrapping, error mapping and
    credential validation results.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from forbet.errors import ProviderConfigError, ProviderError
from forbet.models.validation import ValidationStatus
from forbet.providers.api_football import ApiFootballProvider
from forbet.providers.football_data import FootballDataProvider
from forbet.providers.sportmonks import SportmonksProvider
from forbet.providers.thesportsdb import TheSportsDBProvider


class _FakeResponse:
    def __init__(self, payload=None, headers: dict[str, str] | None = None, status_code: int = 200) -> None:
        self._payload = payload
        self.headers = headers or {}
        self.status_code = status_code
        self.content = b"" if payload is None else b"{}"

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class _FakeClient:
    def __init__(self, responses: list[_FakeResponse]) -> None:
        self._responses = list(responses)
        self.calls: list[dict] = []
        self.circuit_open = False

    async def get(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        return self._responses.pop(0)

    async def aclose(self):
        pass


def _tsdb_event(event_id: str) -> dict:
    return {
        "idEvent": event_id,
        "strHomeTeam": "Arsenal",
        "strAwayTeam": "Chelsea",
        "strLeague": "English Premier League",
        "dateEvent": "2024-01-15",
        "strTime": "15:00:00",
        "strStatus": "Not Started",
    }


@pytest.mark.asyncio
async def test_thesportsdb_uses_key_path_and_unwraps_events():
    client = _FakeClient([_FakeResponse({"events": [_tsdb_event("1"), _tsdb_event("2")]})])
    provider = TheSportsDBProvider("https://www.thesportsdb.com/api/v1/json/", "", client=client)

    fixtures = await provider.fetch_fixtures("2024-01-15")

    assert [item.id for item in fixtures] == ["thesportsdb_1", "thesportsdb_2"]
    assert client.calls[0]["url"] == "https://www.thesportsdb.com/api/v1/json/3/eventsday.php"
    assert client.calls[0]["params"] == {"d": "2024-01-15", "s": "Soccer"}


@pytest.mark.asyncio
async def test_thesportsdb_null_events_is_empty():
    client = _FakeClient([_FakeResponse({"events": None})])
    provider = TheSportsDBProvider("https://tsdb", "3", client=client)
    assert await provider.fetch_fixtures("2024-01-15") == []
    assert (await provider.validate()).is_valid is True


@pytest.mark.asyncio
async def test_http_error_status_becomes_provider_error():
    client = _FakeClient([_FakeResponse({"message": "boom"}, status_code=500)])
    provider = TheSportsDBProvider("https://tsdb", "3", client=client)

    with pytest.raises(ProviderError) as excinfo:
        await provider.fetch_fixtures("2024-01-15")
    assert excinfo.value.status_code == 500
    assert str(excinfo.value) == "TheSportsDB error: HTTP 500"


@pytest.mark.asyncio
async def test_malformed_json_becomes_provider_error():
    client = _FakeClient([_FakeResponse(ValueError("bad json"))])
    provider = TheSportsDBProvider("https://tsdb", "3", client=client)

    with pytest.raises(ProviderError, match="malformed JSON"):
        await provider.fetch_fixtures("2024-01-15")


@pytest.mark.asyncio
async def test_schema_drift_surfaces_as_validation_error():
    client = _FakeClient([_FakeResponse({"events": [{"idEvent": "1"}]})])
    provider = TheSportsDBProvider("https://tsdb", "3", client=client)

    with pytest.raises(ValidationError):
        await provider.fetch_fixtures("2024-01-15")


@pytest.mark.asyncio
async def test_football_data_sends_auth_header_and_date_window():
    client = _FakeClient([_FakeResponse({"matches": [{
        "id": 1,
        "utcDate": "2024-01-15T20:00:00Z",
        "status": "SCHEDULED",
        "homeTeam": {"name": "A"},
        "awayTeam": {"name": "B"},
        "competition": {"name": "PL"},
    }]})])
    provider = FootballDataProvider("https://api.football-data.org/v4", "secret", client=client)

    fixtures = await provider.fetch_fixtures("2024-01-15")

    assert fixtures[0].id == "footballdata_1"
    call = client.calls[0]
    assert call["url"] == "https://api.football-data.org/v4/matches"
    assert call["params"] == {"dateFrom": "2024-01-15", "dateTo": "2024-01-15"}
    assert call["headers"] == {"X-Auth-Token": "secret"}


@pytest.mark.asyncio
async def test_football_data_without_key_fails_before_any_call():
    client = _FakeClient([])
    provider = FootballDataProvider("https://api.football-data.org/v4", "", client=client)

    with pytest.raises(ProviderConfigError):
        await provider.fetch_fixtures("2024-01-15")
    result = await provider.validate()

    assert client.calls == []
    assert result.status is ValidationStatus.AUTH_ERROR
    assert result.error == "API key not configured"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status_code,expected",
    [
        (200, ValidationStatus.SUCCESS),
        (401, ValidationStatus.AUTH_ERROR),
        (403, ValidationStatus.AUTH_ERROR),
        (429, ValidationStatus.QUOTA_EXCEEDED),
        (500, ValidationStatus.UNKNOWN_ERROR),
    ],
)
async def test_football_data_validation_maps_status_codes(status_code, expected):
    client = _FakeClient([_FakeResponse({}, headers={"X-Requests-Available-Minute": "9"}, status_code=status_code)])
    provider = FootballDataProvider("https://fd", "secret", client=client)

    result = await provider.validate()

    assert result.status is expected
    assert result.is_valid is (expected is ValidationStatus.SUCCESS)
    if result.is_valid:
        assert result.remaining_quota == 9


@pytest.mark.asyncio
async def test_api_football_headers_and_errors_object():
    client = _FakeClient([_FakeResponse({"errors": {"token": "Error/Missing application key."}, "response": []})])
    provider = ApiFootballProvider("https://v3.football.api-sports.io", "key", client=client)

    with pytest.raises(ProviderError, match="APIFootball error: token"):
        await provider.fetch_fixtures("2024-01-15")
    assert client.calls[0]["headers"] == {
        "X-RapidAPI-Key": "key",
        "X-RapidAPI-Host": "v3.football.api-sports.io",
    }
    assert client.calls[0]["params"] == {"date": "2024-01-15"}


@pytest.mark.asyncio
async def test_api_football_fixture_rows_are_normalized():
    client = _FakeClient([_FakeResponse({"errors": [], "response": [{
        "fixture": {"id": 5, "date": "2024-01-15T18:00:00+00:00", "status": {"short": "FT"}},
        "league": {"name": "Serie A"},
        "teams": {"home": {"name": "Inter"}, "away": {"name": "Milan"}},
        "goals": {"home": 2, "away": 2},
    }]})])
    provider = ApiFootballProvider("https://v3.football.api-sports.io", "key", client=client)

    fixtures = await provider.fetch_fixtures("2024-01-15")

    assert fixtures[0].score.home == 2
    assert fixtures[0].status.value == "finished"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload,expected,remaining",
    [
        ({"errors": [], "response": {"requests": {"current": 40, "limit_day": 100}}}, ValidationStatus.SUCCESS, 60),
        ({"errors": [], "response": {"requests": {"current": 100, "limit_day": 100}}}, ValidationStatus.QUOTA_EXCEEDED, None),
        ({"errors": {"token": "Invalid key"}}, ValidationStatus.AUTH_ERROR, None),
        ({"errors": {"requests": "You have reached the request limit for the day"}}, ValidationStatus.QUOTA_EXCEEDED, None),
    ],
)
async def test_api_football_validation_reads_status_body(payload, expected, remaining):
    client = _FakeClient([_FakeResponse(payload)])
    provider = ApiFootballProvider("https://v3.football.api-sports.io", "key", client=client)

    result = await provider.validate()

    assert result.status is expected
    assert result.remaining_quota == remaining
    assert client.calls[0]["url"] == "https://v3.football.api-sports.io/status"


@pytest.mark.asyncio
async def test_sportmonks_pagination_merges_pages_and_uses_header_auth():
    row = {
        "starting_at": "2024-01-15 20:00:00",
        "participants": [
            {"id": 1, "name": "A", "meta": {"location": "home"}},
            {"id": 2, "name": "B", "meta": {"location": "away"}},
        ],
        "state": {"developer_name": "NS"},
    }
    client = _FakeClient([
        _FakeResponse({
            "data": [{**row, "id": 1}],
            "pagination": {"has_more": True, "next_page": "https://api.sportmonks.com/v3/football/fixtures?page=2"},
        }),
        _FakeResponse({"data": [{**row, "id": 2}], "pagination": {"has_more": False}}),
    ])
    provider = SportmonksProvider("https://api.sportmonks.com/v3", "token", client=client)

    fixtures = await provider.fetch_fixtures("2024-01-15")

    assert [item.id for item in fixtures] == ["sportmonks_1", "sportmonks_2"]
    assert [call["params"]["page"] for call in client.calls] == [1, 2]
    assert client.calls[0]["url"] == "https://api.sportmonks.com/v3/football/fixtures/date/2024-01-15"
    assert client.calls[0]["params"]["include"] == "participants;league;state;scores"
    assert client.calls[0]["headers"] == {"Authorization": "token"}


@pytest.mark.asyncio
async def test_sportmonks_pagination_advances_past_stale_next_page():
    client = _FakeClient([
        _FakeResponse({"data": [{"id": 1}], "pagination": {"has_more": True, "next_page": "x?page=1"}}),
        _FakeResponse({"data": [{"id": 2}], "pagination": {"has_more": True, "next_page": "x?page=2"}}),
        _FakeResponse({"data": [{"id": 3}], "pagination": {"has_more": False}}),
    ])
    provider = SportmonksProvider("https://sm", "token", client=client)

    rows = await provider.get_prematch_odds(7)

    assert rows == [{"id": 1}, {"id": 2}, {"id": 3}]
    assert [call["params"]["page"] for call in client.calls] == [1, 2, 3]
    assert client.calls[0]["url"] == "https://sm/football/odds/pre-match/fixtures/7"


@pytest.mark.asyncio
async def test_sportmonks_single_resource_returns_none_on_404():
    client = _FakeClient([_FakeResponse({"message": "not found"}, status_code=404), _FakeResponse({"data": {"id": 9}})])
    provider = SportmonksProvider("https://sm", "token", client=client)

    assert await provider.get_fixture(1) is None
    assert await provider.get_team(9) == {"id": 9}
    assert client.calls[1]["url"] == "https://sm/football/teams/9"


@pytest.mark.asyncio
async def test_sportmonks_validation_reads_remaining_from_header_then_body():
    client = _FakeClient([
        _FakeResponse({"data": []}, headers={"X-RateLimit-Remaining": "2999"}),
        _FakeResponse({"data": [], "rate_limit": {"remaining": 12}}),
        _FakeResponse(None, status_code=401),
    ])
    provider = SportmonksProvider("https://sm", "token", client=client)

    first = await provider.validate()
    second = await provider.validate()
    third = await provider.validate()

    assert first.remaining_quota == 2999
    assert second.remaining_quota == 12
    assert third.status is ValidationStatus.AUTH_ERROR
    assert third.error == "Invalid API key"
