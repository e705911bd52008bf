"""Handler for 'trellops watch' command."""

import asyncio
import logging
import signal

from trellops.cli._common import configure_logging, format_tile_line, load_context
from trellops.geocode import Geocoder
from trellops.pipeline import GeocodingPipeline
from trellops.refresh import RefreshSession

logger = logging.getLogger(__name__)


def watch(args) -> int:
    """Refresh on the board's interval, logging tiles. SIGINT/SIGTERM stops cleanly."""
    configure_logging(args.verbose)
    ctx = load_context(args)
    pipeline = GeocodingPipeline(
        ctx.board_id,
        ctx.repos.geocode,
        Geocoder(ctx.config.user_agent),
        delay=ctx.config.geocode_delay,
    )
    session = RefreshSession(ctx.client(), ctx.repos, pipeline, ctx.board_id)
    return asyncio.run(_watch_loop(session, args.interval))


async def _watch_loop(session: RefreshSession, interval: int | None) -> int:
    running = True

    def _stop(signum, frame):
        nonlocal running
        running = False

    signal.signal(signal.SIGINT, _stop)
    signal.signal(signal.SIGTERM, _stop)

    while running:
        if await session.refresh():
            for bt in session.tiles():
                logger.info("%s (%d)", bt.block.name, bt.total)
                for t in bt.tiles:
                    logger.info(format_tile_line(t.result.name or t.result.list_id, t.result.count, t.result.description))
            geocoded = await session.geocode()
            if geocoded:
                logger.info("geocoded %d cards", geocoded)
        else:
            logger.error("refresh failed: %s", session.warning)

        # Sleep in 1-second increments for responsive shutdown
        for _ in range(interval or session.interval):
            if not running:
                break
            await asyncio.sleep(1)

    logger.info("stopped")
    return 0
