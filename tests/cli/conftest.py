"""Shared fixtures for CLI tests."""

from argparse import Namespace

import pytest

from trellops.cache import Repositories
from trellops.models import Block, Card, Coordinates, Label, TrelloList
from trellops.store import JsonFileStore

LISTS = [TrelloList("L1", "Jobs", "green"), TrelloList("L2", "On Site"), TrelloList("L3", "Invoicing")]
CARDS = [
    Card("c0", "L1", name="Read me first", pos=0.0),
    Card(
        "c1",
        "L1",
        name="Fix pump",
        pos=1.0,
        desc="12 Smith Street, Richmond VIC 3121",
        labels=(Label("A", "Urgent"),),
    ),
    Card("c2", "L2", name="Install meter", pos=1.0, coordinates=Coordinates(-37.8, 144.9)),
    Card("c4", "L2", name="Replace valve", pos=2.0, coordinates=Coordinates(-37.7, 145.0)),
    Card("c3", "L3", name="Bill Jones", pos=1.0),
    Card("tpl", "L1", name="Template", pos=2.0, is_template=True),
]


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    """A config file pointing at a store under tmp_path, with board B1."""
    for key in ("TRELLO_API_KEY", "TRELLO_TOKEN", "TRELLOPS_BOARD"):
        monkeypatch.delenv(key, raising=False)
    path = tmp_path / "config.yaml"
    path.write_text(f"api-key: key\ntoken: tok\nboard-id: B1\nstore-path: {tmp_path / 'store.json'}\ngeocode-delay: 0\n")
    return path


@pytest.fixture
def open_repos(tmp_path):
    """Open the on-disk store fresh, seeing whatever the CLI wrote."""

    def _open():
        return Repositories(JsonFileStore(tmp_path / "store.json"))

    return _open


@pytest.fixture
def board(open_repos):
    """Board B1 with two blocks: Field (L1, L2, on the map) and Office (L3)."""
    repos = open_repos()
    repos.layout.set(
        "B1",
        [
            Block("field", "Field", ["L1", "L2"], ignore_first_card=True, include_on_map=True),
            Block("office", "Office", ["L3"]),
        ],
    )
    return repos


@pytest.fixture
def fake_trello(monkeypatch):
    """Serve LISTS and CARDS instead of calling the API."""
    monkeypatch.setattr("trellops.trello.TrelloClient.board_lists", lambda self, board_id: list(LISTS))
    monkeypatch.setattr("trellops.trello.TrelloClient.board_cards", lambda self, board_id: list(CARDS))


@pytest.fixture
def make_args(config_file):
    """Namespace with the common options filled in."""

    def _make(**kwargs):
        values = {"config": str(config_file), "board": None, "json": False}
        values.update(kwargs)
        return Namespace(**values)

    return _make
