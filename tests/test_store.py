"""Tests for key/value stores and the namespaced repositories."""

import json

import pytest

from trellops.cache import Repositories, board_key
from trellops.models import Block, Coordinates, MarkerRule
from trellops.store import JsonFileStore, MemoryStore


def test_memory_store_roundtrip():
    store = MemoryStore()
    store.set("a", {"x": 1})
    assert store.get("a") == {"x": 1}
    store.delete("a")
    assert store.get("a", "missing") == "missing"


def test_json_store_persists(tmp_path):
    path = tmp_path / "nested" / "store.json"
    JsonFileStore(path).set("geocode/b1", {"c1": {"lat": 1.0, "lng": 2.0}})
    assert json.loads(path.read_text()) == {"geocode/b1": {"c1": {"lat": 1.0, "lng": 2.0}}}
    assert JsonFileStore(path).get("geocode/b1") == {"c1": {"lat": 1.0, "lng": 2.0}}


def test_json_store_missing_file_is_empty(tmp_path):
    assert JsonFileStore(tmp_path / "none.json").get("x") is None


def test_json_store_corrupt_file_is_empty(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("{not json")
    assert JsonFileStore(path).data == {}


def test_board_key():
    assert board_key("geocode", "abc") == "geocode/abc"


def test_geocode_cache_is_per_board(repos):
    repos.geocode.put("b1", "c1", Coordinates(1.0, 2.0))
    assert repos.geocode.get("b1", "c1") == Coordinates(1.0, 2.0)
    assert repos.geocode.get("b2", "c1") is None


def test_geocode_entries_are_write_once(repos):
    assert repos.geocode.put("b1", "c1", Coordinates(1.0, 2.0))
    assert not repos.geocode.put("b1", "c1", Coordinates(5.0, 5.0))
    assert repos.geocode.get("b1", "c1") == Coordinates(1.0, 2.0)


def test_geocode_clear_only_affects_board(repos):
    repos.geocode.put("b1", "c1", Coordinates(1.0, 2.0))
    repos.geocode.put("b2", "c1", Coordinates(3.0, 4.0))
    repos.geocode.clear("b1")
    assert repos.geocode.all("b1") == {}
    assert repos.geocode.count("b2") == 1


def test_malformed_cache_entry_dropped(store):
    store.set("geocode/b1", {"c1": {"lat": "x"}, "c2": {"lat": 1, "lng": 2}})
    assert Repositories(store).geocode.all("b1") == {"c2": Coordinates(1.0, 2.0)}


def test_non_mapping_cache_treated_as_empty(store):
    store.set("geocode/b1", [1, 2])
    cache = Repositories(store).geocode
    assert cache.all("b1") == {}
    assert cache.get("b1", "c1") is None
    assert cache.count("b1") == 0
    assert cache.put("b1", "c1", Coordinates(1.0, 2.0))
    assert cache.all("b1") == {"c1": Coordinates(1.0, 2.0)}


def test_layout_defaults_to_single_block(repos):
    blocks = repos.layout.get("b1")
    assert [(b.id, b.name) for b in blocks] == [("all", "Default")]


def test_layout_roundtrip(repos):
    blocks = [Block("a", "Ops", ["L1", "L2"], ignore_first_card=True, include_on_map=True)]
    repos.layout.set("b1", blocks)
    assert repos.layout.get("b1") == blocks


def test_layout_rejects_list_in_two_blocks(repos):
    with pytest.raises(ValueError):
        repos.layout.set("b1", [Block("a", "A", ["L1"]), Block("b", "B", ["L1"])])


def test_block_from_dict_defaults():
    block = Block.from_dict({"id": "x", "name": "X"})
    assert block.display_first_card_description is True
    assert block.include_on_map is False
    assert block.map_icon == "map-marker"


def test_marker_rules_keep_order(repos):
    rules = [MarkerRule("r2", "B", "icon", "truck"), MarkerRule("r1", "A", "color", "red")]
    repos.marker_rules.set("b1", rules)
    assert repos.marker_rules.get("b1") == rules


def test_marker_rule_kind_validated():
    with pytest.raises(ValueError):
        MarkerRule.from_dict({"id": "r", "label_id": "A", "kind": "size", "value": "big"})


def test_list_colors(repos):
    repos.list_colors.set_color("b1", "L1", "red")
    assert repos.list_colors.get("b1") == {"L1": "red"}
    repos.list_colors.set_color("b1", "L1", None)
    assert repos.list_colors.get("b1") == {}
