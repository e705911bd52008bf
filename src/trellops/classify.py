"""Card classification: filtering, first-card handling and per-list counts."""

from collections.abc import Iterable
from datetime import datetime

from trellops.models import Block, Card, Filters, TileResult, TrelloList
from trellops.timewindows import Window, resolve_window


def union_list_ids(blocks: Iterable[Block]) -> list[str]:
    """All list IDs covered by blocks, in block order, without duplicates."""
    seen: dict[str, None] = {}
    for block in blocks:
        for list_id in block.list_ids:
            seen.setdefault(list_id, None)
    return list(seen)


def block_for_list(blocks: Iterable[Block], list_id: str) -> Block | None:
    """Find the block owning list_id. A list belongs to at most one block."""
    for block in blocks:
        if list_id in block.list_ids:
            return block
    return None


def first_cards(cards: Iterable[Card]) -> dict[str, Card]:
    """Map each list ID to its first card: minimum position, ties broken by ID."""
    firsts: dict[str, Card] = {}
    for card in cards:
        current = firsts.get(card.list_id)
        if current is None or (card.pos, card.id) < (current.pos, current.id):
            firsts[card.list_id] = card
    return firsts


def first_card_ids(cards: Iterable[Card]) -> set[str]:
    """IDs of the first card of every list."""
    return {card.id for card in first_cards(cards).values()}


def ignored_first_card_ids(cards: Iterable[Card], blocks: Iterable[Block]) -> set[str]:
    """IDs of first cards that sit in lists owned by an ignore_first_card block."""
    blocks = list(blocks)
    ignored_lists = {
        list_id for list_id in union_list_ids(blocks) if block_for_list(blocks, list_id).ignore_first_card
    }
    return {card.id for list_id, card in first_cards(cards).items() if list_id in ignored_lists}


def passes_filters(card: Card, filters: Filters, window: Window) -> bool:
    """Apply template, completion and time window exclusion, in that order."""
    if filters.exclude_templates and card.is_template:
        return False
    if filters.exclude_completed and card.due_complete:
        return False
    return window.contains(card.last_activity)


def filter_cards(cards: Iterable[Card], filters: Filters, now: datetime | None = None) -> list[Card]:
    """Cards surviving the exclusion filters."""
    window = resolve_window(filters.time_window, now)
    return [card for card in cards if passes_filters(card, filters, window)]


def classify(
    cards: Iterable[Card],
    blocks: list[Block],
    filters: Filters,
    lists: Iterable[TrelloList] | None = None,
    now: datetime | None = None,
) -> dict[str, TileResult]:
    """Turn a raw card set into one TileResult per list covered by blocks.

    Cards outside the blocks' lists are ignored. Surviving cards are
    counted per list, then each ignore_first_card block removes its
    lists' first card from the count if that card survived filtering,
    and surfaces the first card's name as the description when asked to.
    """
    cards = list(cards)
    covered = union_list_ids(blocks)
    covered_set = set(covered)
    names = {lst.id: lst.name for lst in lists or ()}

    in_scope = [card for card in cards if card.list_id in covered_set]
    survivors = filter_cards(in_scope, filters, now)
    survivor_ids = {card.id for card in survivors}

    counts = dict.fromkeys(covered, 0)
    for card in survivors:
        counts[card.list_id] += 1

    descriptions = dict.fromkeys(covered, "")
    firsts = first_cards(in_scope)
    for list_id in covered:
        block = block_for_list(blocks, list_id)
        first = firsts.get(list_id)
        if not block.ignore_first_card or first is None:
            continue
        if first.id in survivor_ids:
            counts[list_id] = max(counts[list_id] - 1, 0)
        if block.display_first_card_description:
            descriptions[list_id] = first.name

    return {
        list_id: TileResult(
            list_id=list_id,
            count=counts[list_id],
            name=names.get(list_id, ""),
            description=descriptions[list_id],
        )
        for list_id in covered
    }


def visible_block_tiles(blocks: list[Block], tiles: dict[str, TileResult]) -> list[tuple[Block, list[TileResult]]]:
    """Pair each block with its tiles, dropping empty blocks unless collapsed.

    A collapsed block is kept even without tiles so its toggle stays reachable.
    """
    result = []
    for block in blocks:
        block_tiles = [tiles[list_id] for list_id in block.list_ids if list_id in tiles]
        if not block_tiles and not block.collapsed:
            continue
        result.append((block, block_tiles))
    return result
