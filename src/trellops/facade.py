"""Aggregation facade: the views the dashboard and map render."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from trellops.classify import block_for_list, classify, ignored_first_card_ids, visible_block_tiles
from trellops.models import Block, Card, Coordinates, Filters, MarkerRule, TileResult, TrelloList, Variant
from trellops.palette import color_for_list, resolve_color
from trellops.pipeline import geocoded_block_ids
from trellops.variants import resolve


@dataclass(frozen=True)
class Tile:
    """A tile result with its display color."""

    result: TileResult
    color: str


@dataclass
class BlockTiles:
    block: Block
    tiles: list[Tile] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(tile.result.count for tile in self.tiles)


@dataclass(frozen=True)
class Marker:
    card: Card
    coordinates: Coordinates
    variant: Variant
    block_id: str


@dataclass
class MapVisibility:
    """Map filter toggles. None means "everything visible" for that axis.

    block_ids defaults to the blocks flagged include_on_map.
    """

    block_ids: set[str] | None = None
    list_ids: set[str] | None = None
    variant_keys: set[str] | None = None


def tile_color(result: TileResult, lists: dict[str, TrelloList], colors: dict[str, str]) -> str:
    """Stored color, then the list's own color, then a color hashed from its name."""
    if result.list_id in colors:
        return resolve_color(colors[result.list_id])
    lst = lists.get(result.list_id)
    remote = resolve_color(lst.color if lst else None)
    if remote:
        return remote
    return color_for_list(result.name or result.list_id)


def dashboard(
    cards: Iterable[Card],
    blocks: list[Block],
    filters: Filters,
    lists: Iterable[TrelloList] = (),
    colors: dict[str, str] | None = None,
    now: datetime | None = None,
) -> list[BlockTiles]:
    """Blocks of colored tiles, in layout order, with empty blocks dropped."""
    lists_by_id = {lst.id: lst for lst in lists}
    tiles = classify(cards, blocks, filters, lists_by_id.values(), now)
    return [
        BlockTiles(block, [Tile(result, tile_color(result, lists_by_id, colors or {})) for result in results])
        for block, results in visible_block_tiles(blocks, tiles)
    ]


def map_markers(
    cards: Iterable[Card],
    blocks: list[Block],
    rules: list[MarkerRule],
    visibility: MapVisibility | None = None,
    exclude_templates: bool = True,
) -> list[Marker]:
    """Markers for geocoded cards passing every map filter."""
    cards = list(cards)
    visibility = visibility or MapVisibility()
    shown_blocks = geocoded_block_ids(blocks, visibility.block_ids)
    skipped_firsts = ignored_first_card_ids(cards, blocks)

    markers = []
    for card in cards:
        if card.coordinates is None:
            continue
        if exclude_templates and card.is_template:
            continue
        if card.id in skipped_firsts:
            continue
        block = block_for_list(blocks, card.list_id)
        if block is None or block.id not in shown_blocks:
            continue
        if visibility.list_ids is not None and card.list_id not in visibility.list_ids:
            continue
        variant = resolve(card, rules)
        if visibility.variant_keys is not None and variant.rule_id not in visibility.variant_keys:
            continue
        markers.append(Marker(card, card.coordinates, variant, block.id))
    return markers


def block_marker_counts(
    cards: Iterable[Card],
    blocks: list[Block],
    exclude_templates: bool = True,
) -> dict[str, int]:
    """Markable cards per block, for the map filter panel.

    Applies the same template and first-card exclusions as map_markers,
    but ignores visibility toggles.
    """
    cards = list(cards)
    skipped_firsts = ignored_first_card_ids(cards, blocks)
    counts = {block.id: 0 for block in blocks}
    for card in cards:
        if card.coordinates is None:
            continue
        if exclude_templates and card.is_template:
            continue
        if card.id in skipped_firsts:
            continue
        block = block_for_list(blocks, card.list_id)
        if block is not None:
            counts[block.id] += 1
    return counts
