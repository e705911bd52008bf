"""Namespaced repositories over a key/value store.

Each repository owns one key namespace, formatted as "<namespace>/<board_id>",
so no caller ever concatenates keys itself.
"""

import logging

from trellops.models import DEFAULT_LAYOUT, Block, Coordinates, MarkerRule
from trellops.store import KeyValueStore

logger = logging.getLogger(__name__)


def board_key(namespace: str, board_id: str) -> str:
    """Storage key for a board-scoped namespace.

    ("geocode", "abc") → "geocode/abc"
    """
    return f"{namespace}/{board_id}"


class _BoardRepository:
    namespace = ""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def _key(self, board_id: str) -> str:
        return board_key(self.namespace, board_id)

    def _load(self, board_id: str, default):
        value = self.store.get(self._key(board_id))
        return default if value is None else value

    def clear(self, board_id: str) -> None:
        self.store.delete(self._key(board_id))


class GeocodeCache(_BoardRepository):
    """Card ID → coordinates, per board.

    Entries are write-once: a stored entry is only replaced after the
    board's cache has been cleared.
    """

    namespace = "geocode"

    def _entries(self, board_id: str) -> dict:
        entries = self._load(board_id, {})
        if not isinstance(entries, dict):
            logger.warning("ignoring malformed geocode cache for %s", board_id)
            return {}
        return entries

    def all(self, board_id: str) -> dict[str, Coordinates]:
        entries = self._entries(board_id)
        result = {}
        for card_id, raw in entries.items():
            try:
                result[card_id] = Coordinates(float(raw["lat"]), float(raw["lng"]))
            except (KeyError, TypeError, ValueError):
                logger.warning("dropping malformed cache entry %s/%s", board_id, card_id)
        return result

    def get(self, board_id: str, card_id: str) -> Coordinates | None:
        return self.all(board_id).get(card_id)

    def put(self, board_id: str, card_id: str, coords: Coordinates) -> bool:
        """Store coordinates for a card. Returns False if an entry already existed."""
        entries = dict(self._entries(board_id))
        if card_id in entries:
            return False
        entries[card_id] = coords.to_dict()
        self.store.set(self._key(board_id), entries)
        return True

    def count(self, board_id: str) -> int:
        return len(self._entries(board_id))


class LayoutRepository(_BoardRepository):
    """Blocks for a board, falling back to the default layout."""

    namespace = "layout"

    def get(self, board_id: str) -> list[Block]:
        raw = self._load(board_id, None)
        if not raw:
            return [Block.from_dict(b.to_dict()) for b in DEFAULT_LAYOUT]
        return [Block.from_dict(item) for item in raw]

    def set(self, board_id: str, blocks: list[Block]) -> None:
        seen: dict[str, str] = {}
        for block in blocks:
            for list_id in block.list_ids:
                if list_id in seen:
                    raise ValueError(f"List '{list_id}' is in both '{seen[list_id]}' and '{block.id}'")
                seen[list_id] = block.id
        self.store.set(self._key(board_id), [b.to_dict() for b in blocks])


class MarkerRuleRepository(_BoardRepository):
    """Ordered marker rules. Order is priority."""

    namespace = "marker_rules"

    def get(self, board_id: str) -> list[MarkerRule]:
        return [MarkerRule.from_dict(item) for item in self._load(board_id, [])]

    def set(self, board_id: str, rules: list[MarkerRule]) -> None:
        self.store.set(self._key(board_id), [r.to_dict() for r in rules])


class ListColorRepository(_BoardRepository):
    """User-chosen tile colors per list."""

    namespace = "list_colors"

    def get(self, board_id: str) -> dict[str, str]:
        return dict(self._load(board_id, {}))

    def set_color(self, board_id: str, list_id: str, color: str | None) -> None:
        colors = self.get(board_id)
        if color:
            colors[list_id] = color
        else:
            colors.pop(list_id, None)
        self.store.set(self._key(board_id), colors)


class SettingsRepository(_BoardRepository):
    """Raw per-board settings. Coercion and defaults live in trellops.config."""

    namespace = "settings"

    def get(self, board_id: str) -> dict:
        return dict(self._load(board_id, {}))

    def set(self, board_id: str, values: dict) -> None:
        self.store.set(self._key(board_id), values)


class Repositories:
    """All board repositories over one store."""

    def __init__(self, store: KeyValueStore):
        self.store = store
        self.geocode = GeocodeCache(store)
        self.layout = LayoutRepository(store)
        self.marker_rules = MarkerRuleRepository(store)
        self.list_colors = ListColorRepository(store)
        self.settings = SettingsRepository(store)
