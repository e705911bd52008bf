"""Board statistics: created vs completed over time, label and location breakdowns."""

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from trellops.ids import creation_time_of
from trellops.models import Card, Filters
from trellops.timewindows import MONTH_NAMES, now_local, resolve_window

GRANULARITIES = ("day", "hour", "month")
NO_LABEL = "No Label"


@dataclass
class Bucket:
    key: str
    start: datetime
    created: int = 0
    completed: int = 0


@dataclass
class LocationBreakdown:
    mapped: int = 0
    unmapped: int = 0
    per_list: dict[str, int] = field(default_factory=dict)


@dataclass
class Statistics:
    buckets: list[Bucket]
    labels: dict[str, int]
    locations: LocationBreakdown

    def to_dict(self) -> dict:
        return {
            "buckets": [
                {"key": b.key, "start": b.start.isoformat(), "created": b.created, "completed": b.completed}
                for b in self.buckets
            ],
            "labels": dict(self.labels),
            "locations": {
                "mapped": self.locations.mapped,
                "unmapped": self.locations.unmapped,
                "per_list": dict(self.locations.per_list),
            },
        }


def bucket_start(moment: datetime, granularity: str) -> datetime:
    """Truncate moment to the start of its bucket."""
    if granularity == "hour":
        return moment.replace(minute=0, second=0, microsecond=0)
    if granularity == "day":
        return moment.replace(hour=0, minute=0, second=0, microsecond=0)
    if granularity == "month":
        return moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    raise ValueError(f"Unknown granularity '{granularity}'")


def bucket_key(start: datetime, granularity: str) -> str:
    """Display key for a bucket start.

    day → "2024-05-01", hour → "2024-05-01 10:00", month → "May 2024"
    """
    if granularity == "hour":
        return start.strftime("%Y-%m-%d %H:00")
    if granularity == "month":
        return f"{MONTH_NAMES[start.month - 1]} {start.year}"
    return start.strftime("%Y-%m-%d")


def label_combination(card: Card) -> str:
    """Sorted label names (or colors for unnamed labels) joined by " + "."""
    if not card.labels:
        return NO_LABEL
    return " + ".join(sorted(label.name or label.color or label.id for label in card.labels))


def statistics(
    cards: Iterable[Card],
    filters: Filters,
    granularity: str = "day",
    label_ids: set[str] | None = None,
    included_lists: set[str] | None = None,
    now: datetime | None = None,
) -> Statistics:
    """Compute the statistics view.

    Created counts use the time encoded in the card ID, completed counts
    the due date of completed cards; each is bucketed only when its own
    time falls in the filter's window. Templates are excluded when the
    filter says so. First cards are counted like any other card.
    """
    if granularity not in GRANULARITIES:
        raise ValueError(f"Unknown granularity '{granularity}'")
    now = now or now_local()
    window = resolve_window(filters.time_window, now)
    tz = now.tzinfo

    cards = [c for c in cards if not (filters.exclude_templates and c.is_template)]
    if included_lists:
        cards = [c for c in cards if c.list_id in included_lists]

    buckets: dict[datetime, Bucket] = {}

    def bucket_for(moment: datetime) -> Bucket:
        start = bucket_start(moment.astimezone(tz), granularity)
        if start not in buckets:
            buckets[start] = Bucket(key=bucket_key(start, granularity), start=start)
        return buckets[start]

    for card in cards:
        try:
            created = creation_time_of(card.id)
        except ValueError:
            continue
        if window.contains(created):
            bucket_for(created).created += 1
        if card.due_complete and card.due is not None and window.contains(card.due):
            bucket_for(card.due).completed += 1

    labelled = cards
    if label_ids:
        labelled = [c for c in cards if c.label_ids & label_ids]
    labels = dict(Counter(label_combination(c) for c in labelled))

    locations = LocationBreakdown()
    for card in cards:
        if card.coordinates is None:
            locations.unmapped += 1
            continue
        locations.mapped += 1
        locations.per_list[card.list_id] = locations.per_list.get(card.list_id, 0) + 1

    return Statistics(
        buckets=[buckets[start] for start in sorted(buckets)],
        labels=labels,
        locations=locations,
    )
