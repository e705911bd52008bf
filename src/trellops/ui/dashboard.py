"""Dashboard screen: blocks of tiles with a refresh countdown."""

import asyncio
import logging

from textual.app import ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.screen import Screen
from textual.widgets import Footer, Static

from trellops.config import write_board_setting
from trellops.refresh import RefreshSession
from trellops.timewindows import format_countdown, next_window, window_title
from trellops.ui.constants import ICON_ERROR, ICON_GEOCODING, ICON_IDLE, ICON_LOADING, ICON_RATE_LIMITED
from trellops.ui.map import MapScreen
from trellops.ui.tiles import BlockWidget

logger = logging.getLogger(__name__)


def status_text(session: RefreshSession) -> str:
    """One-line status: refresh state first, then geocoding progress, then countdown."""
    if session.status == "loading":
        return f"{ICON_LOADING} Refreshing…"
    if session.status == "rate_limited":
        return f"{ICON_RATE_LIMITED} {session.warning}"
    if session.status == "error":
        return f"{ICON_ERROR} {session.warning}"
    pipeline = session.pipeline
    if pipeline.status in ("queued", "geocoding"):
        done, total = pipeline.progress
        return f"{ICON_GEOCODING} Geocoding {done}/{total}"
    return f"{ICON_IDLE} Next refresh in {format_countdown(session.seconds_until_refresh())}"


def header_text(session: RefreshSession, board_name: str = "") -> str:
    name = board_name or session.board_id
    return f"{name} · {window_title(session.settings.time_window)}"


class DashboardScreen(Screen):
    """Main screen showing one tile per list, grouped into blocks."""

    DEFAULT_CSS = """
    #dashboard-header {
        height: 1;
        background: $boost;
    }
    #dashboard-title {
        width: 1fr;
        text-style: bold;
    }
    #dashboard-status {
        width: auto;
    }
    #blocks {
        padding: 1 1;
    }
    """

    BINDINGS = [
        ("r", "refresh", "Refresh"),
        ("w", "next_window", "Time window"),
        ("m", "open_map", "Map"),
        ("q", "quit", "Quit"),
    ]

    def __init__(self, session: RefreshSession, board_name: str = ""):
        super().__init__()
        self.session = session
        self.board_name = board_name
        self._refresh_task: asyncio.Task | None = None
        self._geocode_task: asyncio.Task | None = None
        self._render_lock = asyncio.Lock()

    def compose(self) -> ComposeResult:
        with Horizontal(id="dashboard-header"):
            yield Static(header_text(self.session, self.board_name), id="dashboard-title")
            yield Static(status_text(self.session), id="dashboard-status")
        yield VerticalScroll(id="blocks")
        yield Footer()

    def on_mount(self) -> None:
        self._refresh_tick()
        self.set_interval(1.0, self._refresh_tick)

    def _refresh_tick(self) -> None:
        """Called every 1s. Starts a refresh cycle when the interval has elapsed."""
        self._update_status()
        if self._refresh_task is not None and not self._refresh_task.done():
            return
        if not self.session.due():
            return
        self._refresh_task = asyncio.create_task(self._run_refresh())

    async def _run_refresh(self) -> None:
        loaded = await self.session.refresh()
        self._update_status()
        if not loaded:
            return
        await self.render_blocks()
        if self._geocode_task is None or self._geocode_task.done():
            self._geocode_task = asyncio.create_task(self._run_geocode())

    async def _run_geocode(self) -> None:
        geocoded = await self.session.geocode()
        if geocoded:
            logger.debug("geocoded %d cards", geocoded)
        self._update_status()

    def _update_status(self) -> None:
        self.query_one("#dashboard-status", Static).update(status_text(self.session))
        self.query_one("#dashboard-title", Static).update(header_text(self.session, self.board_name))

    async def render_blocks(self) -> None:
        async with self._render_lock:
            container = self.query_one("#blocks", VerticalScroll)
            await container.remove_children()
            await container.mount_all([BlockWidget(bt) for bt in self.session.tiles()])

    async def on_block_widget_toggle_requested(self, event: BlockWidget.ToggleRequested) -> None:
        session = self.session
        blocks = session.settings.blocks
        for block in blocks:
            if block.id == event.block_id:
                block.collapsed = not block.collapsed
        session.repos.layout.set(session.board_id, blocks)
        session.reload_settings()
        await self.render_blocks()

    async def action_next_window(self) -> None:
        session = self.session
        write_board_setting(session.repos, session.board_id, "time-window", next_window(session.settings.time_window))
        session.reload_settings()
        self._update_status()
        await self.render_blocks()

    def action_refresh(self) -> None:
        if self._refresh_task is not None and not self._refresh_task.done():
            return
        self._refresh_task = asyncio.create_task(self._run_refresh())

    def action_open_map(self) -> None:
        self.app.push_screen(MapScreen(self.session))

    def cancel_tasks(self) -> None:
        for task in (self._refresh_task, self._geocode_task):
            if task is not None:
                task.cancel()

    def action_quit(self) -> None:
        self.cancel_tasks()
        self.app.exit()
