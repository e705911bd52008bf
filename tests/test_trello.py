"""Tests for the Trello client (trellops.trello)."""

from datetime import datetime, timezone

import pytest
import requests

from trellops.models import Coordinates
from trellops.trello import (
    AuthError,
    RateLimitError,
    TrelloClient,
    TrelloError,
    parse_card,
    parse_remote_coordinates,
    parse_timestamp,
    scopes_from_token,
)


class FakeResponse:
    def __init__(self, status_code=200, data=None, text=""):
        self.status_code = status_code
        self.ok = status_code < 400
        self._data = data
        self.text = text

    def json(self):
        if self._data is None:
            raise ValueError("no json")
        return self._data


class FakeSession:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, params=None, timeout=None):
        self.calls.append((method, url, params))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _make_client(*responses):
    session = FakeSession(*responses)
    return TrelloClient("KEY", "TOKEN", session=session), session


def _card_json(**kwargs):
    data = {
        "id": "5f5e1000aaaaaaaaaaaaaaaa",
        "idList": "L1",
        "name": "Fix pump",
        "desc": "12 Main St",
        "pos": 16384,
        "labels": [{"id": "A", "name": "Urgent", "color": "red"}],
        "isTemplate": False,
        "dueComplete": False,
        "dateLastActivity": "2024-05-01T10:00:00.000Z",
        "due": None,
        "shortUrl": "https://trello.com/c/abc",
    }
    data.update(kwargs)
    return data


def test_parse_timestamp():
    assert parse_timestamp("2024-05-01T10:00:00.000Z") == datetime(2024, 5, 1, 10, tzinfo=timezone.utc)
    assert parse_timestamp(None) is None
    assert parse_timestamp("yesterday") is None


def test_parse_card():
    card = parse_card(_card_json())
    assert card.list_id == "L1"
    assert card.pos == 16384.0
    assert card.label_ids == {"A"}
    assert card.last_activity == datetime(2024, 5, 1, 10, tzinfo=timezone.utc)
    assert card.coordinates is None
    assert card.source == "none"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("-37.8,145.0", Coordinates(-37.8, 145.0)),
        ({"latitude": 1.5, "longitude": 2.5}, Coordinates(1.5, 2.5)),
        ({"lat": "1", "lng": "2"}, Coordinates(1.0, 2.0)),
        ("", None),
        ("nowhere", None),
        ("a,b", None),
        ({"latitude": 1}, None),
    ],
)
def test_parse_remote_coordinates(raw, expected):
    assert parse_remote_coordinates(raw) == expected


def test_card_with_remote_coordinates_is_sourced_from_api():
    card = parse_card(_card_json(coordinates="1.0,2.0"))
    assert card.coordinates == Coordinates(1.0, 2.0)
    assert card.source == "api"


def test_board_cards_sends_key_and_token():
    client, session = _make_client(FakeResponse(data=[_card_json()]))
    cards = client.board_cards("B1")
    assert [c.name for c in cards] == ["Fix pump"]
    method, url, params = session.calls[0]
    assert method == "GET"
    assert url == "https://api.trello.com/1/boards/B1/cards"
    assert params["key"] == "KEY"
    assert params["token"] == "TOKEN"
    assert "dueComplete" in params["fields"]


def test_rate_limit_raises():
    client, _ = _make_client(FakeResponse(429, text="slow down"))
    with pytest.raises(RateLimitError) as exc:
        client.board_lists("B1")
    assert exc.value.status == 429


def test_unauthorised_raises_auth_error():
    client, _ = _make_client(FakeResponse(401, data={"message": "invalid token"}))
    with pytest.raises(AuthError, match="invalid token"):
        client.board_lists("B1")


def test_other_errors_use_message():
    client, _ = _make_client(FakeResponse(404, text="board not found"))
    with pytest.raises(TrelloError, match="board not found"):
        client.board_labels("B1")


def test_network_failure_wrapped():
    client, _ = _make_client(requests.ConnectionError("down"))
    with pytest.raises(TrelloError):
        client.board_cards("B1")


def test_missing_token_is_auth_error():
    client = TrelloClient("KEY", "", session=FakeSession())
    with pytest.raises(AuthError):
        client.board_cards("B1")


def test_token_scopes():
    assert scopes_from_token({"permissions": [{"read": True, "write": False}, {"read": True, "write": True}]}) == {
        "read",
        "write",
    }
    client, session = _make_client(FakeResponse(data={"permissions": [{"read": True, "write": False}]}))
    assert client.token_scopes() == {"read"}
    assert session.calls[0][1].endswith("/tokens/TOKEN")


def test_token_scope_failure_means_no_scopes():
    client, _ = _make_client(FakeResponse(500, text="oops"))
    assert client.token_scopes() == set()


def test_update_card_coordinates():
    client, session = _make_client(FakeResponse(data={"id": "c1"}))
    client.update_card_coordinates("c1", Coordinates(1.5, 2.5))
    method, url, params = session.calls[0]
    assert method == "PUT"
    assert url.endswith("/cards/c1")
    assert params["coordinates"] == "1.5,2.5"


@pytest.mark.asyncio
async def test_async_wrapper():
    client, _ = _make_client(FakeResponse(data=[{"id": "L1", "name": "Inbox", "color": None}]))
    lists = await client.async_board_lists("B1")
    assert [lst.name for lst in lists] == ["Inbox"]


def test_list_cards():
    client, session = _make_client(FakeResponse(data=[_card_json()]))
    cards = client.list_cards("L1")
    assert cards[0].name == "Fix pump"
    assert session.calls[0][1].endswith("/lists/L1/cards")
