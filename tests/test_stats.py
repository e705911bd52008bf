"""Tests for board statistics (trellops.stats)."""

from datetime import datetime, timezone

import pytest

from trellops.models import Card, Coordinates, Filters, Label
from trellops.stats import bucket_key, label_combination, statistics

NOW = datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)


def _hex_id(moment: datetime, suffix: str = "0000000000000000") -> str:
    return f"{int(moment.timestamp()):08x}{suffix}"


def _make_card(created: datetime, suffix="0000000000000000", **kwargs):
    return Card(id=_hex_id(created, suffix), list_id=kwargs.pop("list_id", "L1"), **kwargs)


def test_created_and_completed_by_day():
    cards = [
        _make_card(datetime(2024, 5, 1, 9, tzinfo=timezone.utc), "01"),
        _make_card(datetime(2024, 5, 1, 17, tzinfo=timezone.utc), "02"),
        _make_card(
            datetime(2024, 5, 2, 9, tzinfo=timezone.utc),
            "03",
            due_complete=True,
            due=datetime(2024, 5, 3, 10, tzinfo=timezone.utc),
        ),
    ]
    result = statistics(cards, Filters(), "day", now=NOW)
    assert [(b.key, b.created, b.completed) for b in result.buckets] == [
        ("2024-05-01", 2, 0),
        ("2024-05-02", 1, 0),
        ("2024-05-03", 0, 1),
    ]


def test_incomplete_cards_with_due_are_not_completed():
    cards = [_make_card(datetime(2024, 5, 1, tzinfo=timezone.utc), due=datetime(2024, 5, 2, tzinfo=timezone.utc))]
    result = statistics(cards, Filters(), "day", now=NOW)
    assert sum(b.completed for b in result.buckets) == 0


def test_month_and_hour_buckets():
    cards = [
        _make_card(datetime(2024, 3, 5, 10, 15, tzinfo=timezone.utc), "01"),
        _make_card(datetime(2024, 4, 5, 10, 45, tzinfo=timezone.utc), "02"),
    ]
    assert [b.key for b in statistics(cards, Filters(), "month", now=NOW).buckets] == ["Mar 2024", "Apr 2024"]
    assert [b.key for b in statistics(cards, Filters(), "hour", now=NOW).buckets] == [
        "2024-03-05 10:00",
        "2024-04-05 10:00",
    ]


def test_time_window_applies_to_creation_time():
    cards = [
        _make_card(datetime(2024, 5, 15, 1, tzinfo=timezone.utc), "01"),
        _make_card(datetime(2024, 4, 1, tzinfo=timezone.utc), "02"),
    ]
    result = statistics(cards, Filters(time_window="24h"), "day", now=NOW)
    assert sum(b.created for b in result.buckets) == 1


def test_templates_excluded_first_cards_kept():
    cards = [
        _make_card(datetime(2024, 5, 1, tzinfo=timezone.utc), "01", pos=0.0),
        _make_card(datetime(2024, 5, 1, tzinfo=timezone.utc), "02", is_template=True),
    ]
    result = statistics(cards, Filters(), "day", now=NOW)
    assert sum(b.created for b in result.buckets) == 1


def test_included_lists():
    cards = [
        _make_card(datetime(2024, 5, 1, tzinfo=timezone.utc), "01", list_id="L1"),
        _make_card(datetime(2024, 5, 1, tzinfo=timezone.utc), "02", list_id="L2"),
    ]
    result = statistics(cards, Filters(), "day", included_lists={"L2"}, now=NOW)
    assert sum(b.created for b in result.buckets) == 1


def test_label_combinations():
    moment = datetime(2024, 5, 1, tzinfo=timezone.utc)
    cards = [
        _make_card(moment, "01", labels=(Label("b", "Urgent"), Label("a", "Electrical"))),
        _make_card(moment, "02", labels=(Label("a", "Electrical"), Label("b", "Urgent"))),
        _make_card(moment, "03"),
        _make_card(moment, "04", labels=(Label("c", "", "green"),)),
    ]
    result = statistics(cards, Filters(), now=NOW)
    assert result.labels == {"Electrical + Urgent": 2, "No Label": 1, "green": 1}

    filtered = statistics(cards, Filters(), label_ids={"c"}, now=NOW)
    assert filtered.labels == {"green": 1}


def test_label_combination_helper():
    assert label_combination(Card(id="x", list_id="L")) == "No Label"


def test_location_breakdown():
    moment = datetime(2024, 5, 1, tzinfo=timezone.utc)
    cards = [
        _make_card(moment, "01", list_id="L1", coordinates=Coordinates(1, 2)),
        _make_card(moment, "02", list_id="L1", coordinates=Coordinates(1, 2)),
        _make_card(moment, "03", list_id="L2"),
    ]
    loc = statistics(cards, Filters(), now=NOW).locations
    assert (loc.mapped, loc.unmapped, loc.per_list) == (2, 1, {"L1": 2})


def test_unknown_granularity():
    with pytest.raises(ValueError):
        statistics([], Filters(), "week", now=NOW)


def test_bucket_key_formats():
    start = datetime(2024, 12, 1, 7)
    assert bucket_key(start, "day") == "2024-12-01"
    assert bucket_key(start, "month") == "Dec 2024"
