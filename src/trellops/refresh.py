"""Periodic board refresh for the dashboard.

Runs: fetch lists+cards → load into the geocoding pipeline → queue.
Geocoding itself runs as a separate activity (geocode), so a slow
queue never delays the next refresh.
"""

import asyncio
import logging
import time

from trellops.cache import Repositories
from trellops.config import BoardSettings, read_board_settings
from trellops.facade import BlockTiles, dashboard
from trellops.models import Card, TrelloList
from trellops.pipeline import GeocodingPipeline
from trellops.trello import AuthError, RateLimitError, TrelloClient, TrelloError

logger = logging.getLogger(__name__)

MIN_EFFECTIVE_INTERVAL = 15
RATE_LIMIT_WARNING = "Trello rate limit reached. Increase the refresh interval."


def effective_interval(seconds: int) -> int:
    """Refresh interval actually used, floored at 15 seconds."""
    return max(int(seconds), MIN_EFFECTIVE_INTERVAL)


class RefreshSession:
    """Owns one board's live state: settings, lists, cards and the pipeline.

    status is one of idle, loading, rate_limited or error; warning holds
    the message shown to the user for the last failed cycle.
    """

    def __init__(
        self,
        client: TrelloClient,
        repos: Repositories,
        pipeline: GeocodingPipeline,
        board_id: str,
        clock=time.monotonic,
    ):
        self.client = client
        self.repos = repos
        self.pipeline = pipeline
        self.board_id = board_id
        self.clock = clock
        self.settings: BoardSettings = read_board_settings(repos, board_id)
        self.lists: list[TrelloList] = []
        self.status = "idle"
        self.warning = ""
        self.last_refresh: float | None = None
        self._cycle = 0
        self._scopes: set[str] | None = None

    @property
    def cards(self) -> list[Card]:
        return list(self.pipeline.cards.values())

    @property
    def interval(self) -> int:
        return effective_interval(self.settings.refresh_seconds)

    def seconds_until_refresh(self) -> int:
        """Countdown to the next refresh. 0 when one is due."""
        if self.last_refresh is None:
            return 0
        remaining = self.interval - (self.clock() - self.last_refresh)
        return max(int(remaining + 0.999), 0)

    def due(self) -> bool:
        return self.status != "loading" and self.seconds_until_refresh() == 0

    def tiles(self) -> list[BlockTiles]:
        return dashboard(
            self.cards,
            self.settings.blocks,
            self.settings.filters,
            self.lists,
            self.repos.list_colors.get(self.board_id),
        )

    def reload_settings(self) -> None:
        self.settings = read_board_settings(self.repos, self.board_id)

    def switch_board(self, board_id: str) -> None:
        """Move to another board. Pending refresh and geocoding results are dropped."""
        self._cycle += 1
        self.board_id = board_id
        self.pipeline.switch_board(board_id)
        self.lists = []
        self.last_refresh = None
        self._scopes = None
        self.status = "idle"
        self.warning = ""
        self.reload_settings()

    async def _configure_write_back(self) -> None:
        if not self.settings.write_back_coordinates:
            self.pipeline.write_back = None
            return
        if self._scopes is None:
            self._scopes = await self.client.async_token_scopes()
        if "write" in self._scopes:
            self.pipeline.write_back = self.client.async_update_card_coordinates
        else:
            logger.warning("token lacks write scope, coordinate write-back disabled")
            self.pipeline.write_back = None

    async def refresh(self) -> bool:
        """Run one refresh cycle. Returns True when fresh data was loaded.

        A cycle superseded by a newer one (or a board switch) drops its results.
        """
        self._cycle += 1
        cycle = self._cycle
        board_id = self.board_id
        self.status = "loading"
        self.last_refresh = self.clock()
        try:
            self.reload_settings()
            lists = await self.client.async_board_lists(board_id)
            cards = await self.client.async_board_cards(board_id)
            if cycle != self._cycle:
                logger.debug("dropping superseded refresh of %s", board_id)
                return False
            await self._configure_write_back()

            self.lists = lists
            self.pipeline.load(cards)
            if self.settings.enable_map_view:
                self.pipeline.build_queue(self.settings.blocks, exclude_templates=self.settings.exclude_templates)
            self.status = "idle"
            self.warning = ""
            return True
        except asyncio.CancelledError:
            raise
        except RateLimitError as exc:
            logger.warning("refresh of %s rate limited: %s", board_id, exc)
            self.status = "rate_limited"
            self.warning = RATE_LIMIT_WARNING
        except AuthError as exc:
            logger.warning("refresh of %s not authorised: %s", board_id, exc)
            self.status = "error"
            self.warning = str(exc)
        except TrelloError as exc:
            logger.warning("refresh of %s failed: %s", board_id, exc)
            self.status = "error"
            self.warning = str(exc)
        except Exception:
            logger.exception("refresh cycle failed")
            self.status = "error"
            self.warning = "Refresh failed, see log."
        return False

    async def geocode(self) -> int:
        """Drain the geocoding queue. Returns the number of cards geocoded."""
        if self.pipeline.running or not self.pipeline.queue:
            return 0
        try:
            return await self.pipeline.run()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("geocoding run failed")
            return 0
