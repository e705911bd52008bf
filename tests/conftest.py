"""Shared fixtures: in-memory store and fake network collaborators."""

from datetime import datetime, timezone

import pytest

from trellops.cache import Repositories
from trellops.geocode import GeocodeError
from trellops.models import Coordinates
from trellops.store import MemoryStore

NOW = datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)


class FakeGeocoder:
    """Geocoder double: answers from a dict, records every query."""

    def __init__(self, answers: dict[str, Coordinates | None] | None = None, fail: set[str] | None = None):
        self.answers = answers or {}
        self.fail = fail or set()
        self.queries: list[str] = []

    def lookup(self, query: str) -> Coordinates | None:
        self.queries.append(query)
        if query in self.fail:
            raise GeocodeError(f"unreachable for {query}")
        return self.answers.get(query)

    async def async_lookup(self, query: str) -> Coordinates | None:
        return self.lookup(query)


class RecordingSleep:
    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def repos(store):
    return Repositories(store)


@pytest.fixture
def fake_geocoder():
    return FakeGeocoder()


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def make_geocoder():
    return FakeGeocoder
