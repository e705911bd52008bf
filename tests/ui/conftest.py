"""Fixtures for UI tests: a refresh session over fake collaborators."""

import pytest

from trellops.models import Block, Card, Coordinates, Label, TrelloList
from trellops.pipeline import GeocodingPipeline
from trellops.refresh import RefreshSession

CARDS = [
    Card("c1", "L1", name="Fix pump", labels=(Label("A", "Urgent"),), coordinates=Coordinates(-37.8, 144.9)),
    Card("c2", "L1", name="Paint fence", coordinates=Coordinates(-37.7, 145.0)),
    Card("c3", "L2", name="Order parts"),
]


class FakeClient:
    async def async_board_lists(self, board_id):
        return [TrelloList("L1", "Jobs", "green"), TrelloList("L2", "Waiting")]

    async def async_board_cards(self, board_id):
        return list(CARDS)

    async def async_token_scopes(self):
        return {"read"}


class NoGeocoder:
    async def async_lookup(self, query):
        return None


async def _no_sleep(seconds):
    pass


@pytest.fixture
def session(repos):
    repos.layout.set("B1", [Block("ops", "Ops", ["L1", "L2"], include_on_map=True)])
    pipeline = GeocodingPipeline("B1", repos.geocode, NoGeocoder(), sleep=_no_sleep)
    return RefreshSession(FakeClient(), repos, pipeline, "B1")
