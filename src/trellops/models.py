"""Data models for trellops boards."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class Coordinates:
    """A latitude/longitude pair."""

    lat: float
    lng: float

    def as_query(self) -> str:
        return f"{self.lat},{self.lng}"

    def to_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class Label:
    """A label attached to a card."""

    id: str
    name: str = ""
    color: str | None = None


@dataclass(frozen=True)
class Card:
    """A snapshot of one remote card, valid for a single refresh cycle."""

    id: str
    list_id: str
    name: str = ""
    desc: str = ""
    pos: float = 0.0
    labels: tuple[Label, ...] = ()
    is_template: bool = False
    due_complete: bool = False
    last_activity: datetime | None = None
    due: datetime | None = None
    short_url: str = ""
    coordinates: Coordinates | None = None
    source: str = "none"

    @property
    def label_ids(self) -> set[str]:
        return {label.id for label in self.labels}


@dataclass(frozen=True)
class TrelloList:
    """A list (column) on the board."""

    id: str
    name: str = ""
    color: str | None = None


@dataclass
class Block:
    """A user-defined group of lists, persisted per board."""

    id: str
    name: str
    list_ids: list[str] = field(default_factory=list)
    collapsed: bool = False
    ignore_first_card: bool = False
    display_first_card_description: bool = True
    include_on_map: bool = False
    map_icon: str = "map-marker"

    @classmethod
    def from_dict(cls, data: dict) -> "Block":
        """Build a block from stored data, defaulting missing flags."""
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            list_ids=[str(i) for i in data.get("list_ids") or []],
            collapsed=bool(data.get("collapsed", False)),
            ignore_first_card=bool(data.get("ignore_first_card", False)),
            display_first_card_description=data.get("display_first_card_description") is not False,
            include_on_map=data.get("include_on_map") is True,
            map_icon=data.get("map_icon") or "map-marker",
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "list_ids": list(self.list_ids),
            "collapsed": self.collapsed,
            "ignore_first_card": self.ignore_first_card,
            "display_first_card_description": self.display_first_card_description,
            "include_on_map": self.include_on_map,
            "map_icon": self.map_icon,
        }


DEFAULT_LAYOUT = [Block(id="all", name="Default")]


@dataclass(frozen=True)
class MarkerRule:
    """Label-to-variant override. Priority is the rule's position in its sequence."""

    id: str
    label_id: str
    kind: str
    value: str

    @classmethod
    def from_dict(cls, data: dict) -> "MarkerRule":
        kind = data.get("kind", "color")
        if kind not in ("color", "icon"):
            raise ValueError(f"Unknown marker rule kind '{kind}'")
        return cls(id=str(data["id"]), label_id=str(data["label_id"]), kind=kind, value=str(data["value"]))

    def to_dict(self) -> dict:
        return {"id": self.id, "label_id": self.label_id, "kind": self.kind, "value": self.value}


@dataclass(frozen=True)
class Variant:
    """Resolved visual marker variant for a card."""

    color: str
    icon: str
    rule_id: str = "default"


@dataclass(frozen=True)
class Filters:
    """Card filter settings applied before counting."""

    time_window: str = "all"
    exclude_templates: bool = True
    exclude_completed: bool = False


@dataclass(frozen=True)
class TileResult:
    """Count and label for one list's dashboard tile."""

    list_id: str
    count: int
    name: str = ""
    description: str = ""
