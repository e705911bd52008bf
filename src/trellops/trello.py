"""Trello REST API client, with sync methods and async wrappers."""

import asyncio
import logging
from datetime import datetime
from typing import Any

import requests

from trellops.models import Card, Coordinates, Label, TrelloList

logger = logging.getLogger(__name__)

API_BASE = "https://api.trello.com/1"
TIMEOUT = 30

CARD_FIELDS = "id,idList,name,desc,pos,labels,isTemplate,dateLastActivity,due,dueComplete,shortUrl,coordinates"
TASK_CARD_FIELDS = "id,name,due,dueComplete,idBoard,idList,idMembers,url,shortUrl,desc,labels"


class TrelloError(Exception):
    """A failed Trello API request."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class RateLimitError(TrelloError):
    """HTTP 429: requests too fast or too frequent."""


class AuthError(TrelloError):
    """HTTP 401, or no token configured."""


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an API timestamp such as "2024-05-01T10:00:00.000Z" into an aware datetime."""
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        logger.debug("unparseable timestamp %r", value)
        return None


def parse_remote_coordinates(value: Any) -> Coordinates | None:
    """Coordinates from the card's own field: "lat,lng" or {latitude, longitude}."""
    if not value:
        return None
    try:
        if isinstance(value, str):
            if "," not in value:
                return None
            lat, lng = value.split(",", 1)
            return Coordinates(float(lat), float(lng))
        if isinstance(value, dict):
            lat = value.get("latitude", value.get("lat"))
            lng = value.get("longitude", value.get("lng"))
            if lat is None or lng is None:
                return None
            return Coordinates(float(lat), float(lng))
    except (TypeError, ValueError):
        logger.debug("ignoring malformed coordinates %r", value)
    return None


def parse_card(data: dict) -> Card:
    """Build a Card snapshot from an API card object."""
    coords = parse_remote_coordinates(data.get("coordinates"))
    labels = tuple(
        Label(id=str(label["id"]), name=label.get("name") or "", color=label.get("color"))
        for label in data.get("labels") or []
    )
    return Card(
        id=str(data["id"]),
        list_id=str(data.get("idList", "")),
        name=data.get("name") or "",
        desc=data.get("desc") or "",
        pos=float(data.get("pos") or 0),
        labels=labels,
        is_template=bool(data.get("isTemplate")),
        due_complete=bool(data.get("dueComplete")),
        last_activity=parse_timestamp(data.get("dateLastActivity")),
        due=parse_timestamp(data.get("due")),
        short_url=data.get("shortUrl") or "",
        coordinates=coords,
        source="api" if coords else "none",
    )


def parse_list(data: dict) -> TrelloList:
    return TrelloList(id=str(data["id"]), name=data.get("name") or "", color=data.get("color"))


def scopes_from_token(data: dict) -> set[str]:
    """Collect "read" and "write" from a token's permission entries."""
    scopes = set()
    for permission in data.get("permissions") or []:
        if permission.get("read"):
            scopes.add("read")
        if permission.get("write"):
            scopes.add("write")
    return scopes


class TrelloClient:
    """Thin client over the Trello REST API.

    All methods block; use the async_* wrappers from the event loop.
    """

    def __init__(self, api_key: str, token: str, session: requests.Session | None = None, base: str = API_BASE):
        self.api_key = api_key
        self.token = token
        self.session = session or requests.Session()
        self.base = base.rstrip("/")

    def request(self, method: str, path: str, **params) -> Any:
        """Send one request and return the decoded JSON body.

        Raises AuthError, RateLimitError or TrelloError.
        """
        if not self.token:
            raise AuthError("Trello token not configured.")
        query = {"key": self.api_key, "token": self.token}
        query.update({k: v for k, v in params.items() if v is not None})
        logger.debug("%s %s", method, path)
        try:
            response = self.session.request(method, f"{self.base}{path}", params=query, timeout=TIMEOUT)
        except requests.RequestException as exc:
            raise TrelloError(f"Request to {path} failed: {exc}") from exc

        if response.status_code == 429:
            raise RateLimitError("Rate limit exceeded: Trello API requests too fast or frequent.", 429)
        if response.status_code == 401:
            raise AuthError(f"Invalid or expired token ({_error_message(response)})", 401)
        if not response.ok:
            raise TrelloError(_error_message(response) or f"Trello API error: {response.status_code}", response.status_code)
        return response.json()

    # --- boards ---

    def board_cards(self, board_id: str) -> list[Card]:
        data = self.request("GET", f"/boards/{board_id}/cards", fields=CARD_FIELDS)
        return [parse_card(item) for item in data]

    def list_cards(self, list_id: str) -> list[Card]:
        data = self.request("GET", f"/lists/{list_id}/cards", fields=CARD_FIELDS)
        return [parse_card(item) for item in data]

    def board_lists(self, board_id: str) -> list[TrelloList]:
        data = self.request("GET", f"/boards/{board_id}/lists", fields="id,name,color", filter="open")
        return [parse_list(item) for item in data]

    def board_labels(self, board_id: str) -> list[Label]:
        data = self.request("GET", f"/boards/{board_id}/labels", fields="id,name,color")
        return [Label(id=str(item["id"]), name=item.get("name") or "", color=item.get("color")) for item in data]

    # --- members ---

    def me(self) -> dict:
        return self.request("GET", "/members/me", fields="id,username,fullName")

    def my_boards(self) -> list[dict]:
        return self.request("GET", "/members/me/boards", filter="open", fields="id,name,idOrganization,shortUrl")

    def my_organizations(self) -> list[dict]:
        return self.request("GET", "/members/me/organizations", fields="id,displayName,name")

    def my_cards(self) -> list[dict]:
        return self.request(
            "GET",
            "/members/me/cards",
            filter="visible",
            fields=TASK_CARD_FIELDS,
            checklists="all",
            checklist_fields="all",
        )

    # --- tokens and writes ---

    def token_scopes(self) -> set[str]:
        """Scopes granted to the configured token. Failures yield no scopes."""
        try:
            data = self.request("GET", f"/tokens/{self.token}")
        except TrelloError as exc:
            logger.warning("token scope check failed: %s", exc)
            return set()
        return scopes_from_token(data)

    def update_card_coordinates(self, card_id: str, coords: Coordinates) -> None:
        self.request("PUT", f"/cards/{card_id}", coordinates=coords.as_query())

    # --- async wrappers ---

    async def async_board_cards(self, board_id: str) -> list[Card]:
        return await asyncio.to_thread(self.board_cards, board_id)

    async def async_board_lists(self, board_id: str) -> list[TrelloList]:
        return await asyncio.to_thread(self.board_lists, board_id)

    async def async_token_scopes(self) -> set[str]:
        return await asyncio.to_thread(self.token_scopes)

    async def async_update_card_coordinates(self, card_id: str, coords: Coordinates) -> None:
        await asyncio.to_thread(self.update_card_coordinates, card_id, coords)


def _error_message(response: requests.Response) -> str:
    """Prefer the JSON "message" field, falling back to the raw body."""
    try:
        data = response.json()
    except ValueError:
        return response.text.strip()
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return response.text.strip()
