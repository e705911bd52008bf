"""Sequential, rate-limited geocoding of card descriptions.

The pipeline owns the in-memory card map for one board. A cycle is:
load (apply cached coordinates) → build_queue → run. Switching board
bumps the generation, so lookups started for the old board are dropped
when they complete.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import replace

from trellops import address
from trellops.cache import GeocodeCache
from trellops.classify import block_for_list, ignored_first_card_ids
from trellops.geocode import GeocodeError, Geocoder
from trellops.models import Block, Card, Coordinates

logger = logging.getLogger(__name__)

DEFAULT_DELAY = 1.1

WriteBack = Callable[[str, Coordinates], Awaitable[None]]


def geocoded_block_ids(blocks: Iterable[Block], visible_block_ids: Iterable[str] | None = None) -> set[str]:
    """Blocks whose cards take part in map output.

    Defaults to the blocks flagged include_on_map.
    """
    if visible_block_ids is not None:
        return set(visible_block_ids)
    return {block.id for block in blocks if block.include_on_map}


class GeocodingPipeline:
    """Per-board geocoding queue with a single worker.

    status moves idle → loading → queued → geocoding → idle.
    Only one run() drains the queue at a time; a queue rebuilt mid-run is
    picked up by the worker already running.
    """

    def __init__(
        self,
        board_id: str,
        cache: GeocodeCache,
        geocoder: Geocoder,
        delay: float = DEFAULT_DELAY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        write_back: WriteBack | None = None,
    ):
        self.board_id = board_id
        self.cache = cache
        self.geocoder = geocoder
        self.delay = delay
        self.sleep = sleep
        self.write_back = write_back
        self.generation = 0
        self.status = "idle"
        self.cards: dict[str, Card] = {}
        self.queue: list[str] = []
        self.done = 0
        self._queue_generation = 0
        self._attempted: dict[str, str] = {}
        self._running = False

    @property
    def progress(self) -> tuple[int, int]:
        """(processed, total) for the current queue."""
        return self.done, self.done + len(self.queue)

    @property
    def running(self) -> bool:
        return self._running

    def _settle_status(self) -> None:
        if not self._running:
            self.status = "queued" if self.queue else "idle"

    def load(self, cards: Iterable[Card]) -> None:
        """Replace the card map, enriching cards from the persistent cache."""
        if not self._running:
            self.status = "loading"
        cached = self.cache.all(self.board_id)
        loaded = {}
        for card in cards:
            if card.coordinates is None and card.id in cached:
                card = replace(card, coordinates=cached[card.id], source="cache")
            loaded[card.id] = card
        self.cards = loaded
        self._settle_status()

    def needs_lookup(self, card: Card) -> bool:
        """Card has no coordinates and a description not yet tried this session."""
        if card.coordinates is not None:
            return False
        if not card.desc.strip():
            return False
        return self._attempted.get(card.id) != card.desc

    def build_queue(
        self,
        blocks: list[Block],
        visible_block_ids: Iterable[str] | None = None,
        exclude_templates: bool = True,
    ) -> list[Card]:
        """Queue the cards that should be geocoded and capture the generation."""
        participating = geocoded_block_ids(blocks, visible_block_ids)
        skipped_firsts = ignored_first_card_ids(self.cards.values(), blocks)

        queued = []
        for card in self.cards.values():
            if not self.needs_lookup(card):
                continue
            if exclude_templates and card.is_template:
                continue
            block = block_for_list(blocks, card.list_id)
            if block is None or block.id not in participating:
                continue
            if card.id in skipped_firsts:
                continue
            queued.append(card)

        self.queue = [card.id for card in queued]
        self.done = 0
        self._queue_generation = self.generation
        self._settle_status()
        logger.debug("queued %d cards for geocoding on %s", len(self.queue), self.board_id)
        return queued

    async def run(self) -> int:
        """Work through the queue one lookup at a time. Returns the number of cards geocoded."""
        if self._running:
            logger.debug("geocoding already running for %s", self.board_id)
            return 0
        generation = self._queue_generation
        if generation != self.generation:
            self.queue = []
            return 0

        geocoded = 0
        looked_up = False
        self._running = True
        self.status = "geocoding"
        try:
            while self.queue:
                if self.generation != generation:
                    break
                card_id = self.queue.pop(0)
                card = self.cards.get(card_id)
                if card is None or not self.needs_lookup(card):
                    self.done += 1
                    continue

                self._attempted[card.id] = card.desc
                query = address.extract(card.desc)
                if query is None:
                    logger.debug("no address in card %s", card.id)
                    self.done += 1
                    continue

                if looked_up and self.delay > 0:
                    await self.sleep(self.delay)
                looked_up = True
                try:
                    coords = await self.geocoder.async_lookup(query)
                except GeocodeError as exc:
                    logger.warning("geocoding card %s failed: %s", card.id, exc)
                    self.done += 1
                    continue

                if self.generation != generation:
                    logger.debug("discarding stale result for card %s", card.id)
                    break
                self.done += 1
                if coords is None:
                    logger.debug("no result for card %s (%r)", card.id, query)
                    continue

                await self._store(card, coords)
                geocoded += 1
        finally:
            self._running = False
            self._settle_status()
        return geocoded

    async def _store(self, card: Card, coords: Coordinates) -> None:
        current = self.cards.get(card.id, card)
        self.cards[card.id] = replace(current, coordinates=coords, source="new")
        self.cache.put(self.board_id, card.id, coords)
        if self.write_back is None:
            return
        try:
            await self.write_back(card.id, coords)
        except Exception as exc:
            logger.warning("writing coordinates to card %s failed: %s", card.id, exc)

    def switch_board(self, board_id: str) -> None:
        """Point the pipeline at another board, abandoning queued and in-flight work."""
        self.generation += 1
        self.board_id = board_id
        self.queue = []
        self.done = 0
        self.cards = {}
        self._attempted = {}
        self.status = "idle"

    def reset_cache(self) -> None:
        """Forget every cached and attempted lookup for the current board."""
        self.cache.clear(self.board_id)
        self._attempted = {}
        self.cards = {
            card_id: replace(card, coordinates=None, source="none") if card.source in ("cache", "new") else card
            for card_id, card in self.cards.items()
        }
