"""Main Textual application for trellops."""

from textual.app import App, ComposeResult
from textual.containers import Vertical
from textual.screen import Screen
from textual.widgets import Static

from trellops.cache import Repositories
from trellops.config import ConfigError, load_config
from trellops.geocode import Geocoder
from trellops.pipeline import GeocodingPipeline
from trellops.refresh import RefreshSession
from trellops.store import JsonFileStore
from trellops.trello import TrelloClient
from trellops.ui.dashboard import DashboardScreen


class MessageScreen(Screen):
    """Full-screen message for setup problems. Any key quits."""

    CSS = """
    MessageScreen {
        align: center middle;
    }
    #message {
        width: 70;
        height: auto;
        border: thick $error;
        background: $surface;
        padding: 1 2;
    }
    """

    BINDINGS = [("q", "app.quit", "Quit"), ("escape", "app.quit", "Quit")]

    def __init__(self, message: str):
        super().__init__()
        self.message = message

    def compose(self) -> ComposeResult:
        with Vertical(id="message"):
            yield Static(self.message)
            yield Static("Press q to quit.")


def build_session(config_path: str | None, board_id: str | None) -> tuple[RefreshSession, str]:
    """Wire config, store, client and pipeline into a refresh session.

    Raises ConfigError when credentials or the board are missing.
    """
    config = load_config(config_path)
    board_id = board_id or config.board_id
    if not config.api_key or not config.token:
        raise ConfigError("Set api_key and token in the config file, or TRELLO_API_KEY and TRELLO_TOKEN.")
    if not board_id:
        raise ConfigError("No board configured. Pass --board or set board_id in the config file.")
    repos = Repositories(JsonFileStore(config.store_path))
    pipeline = GeocodingPipeline(board_id, repos.geocode, Geocoder(config.user_agent), delay=config.geocode_delay)
    client = TrelloClient(config.api_key, config.token)
    return RefreshSession(client, repos, pipeline, board_id), config.board_name


class TrellopsApp(App):
    """Operational dashboard TUI."""

    TITLE = "trellops"
    BINDINGS = [("ctrl+q", "quit", "Quit")]

    def __init__(self, config_path: str | None = None, board_id: str | None = None, session: RefreshSession | None = None):
        super().__init__()
        self.config_path = config_path
        self.board_id = board_id
        self.session = session
        self.board_name = ""

    def on_mount(self) -> None:
        if self.session is None:
            try:
                self.session, self.board_name = build_session(self.config_path, self.board_id)
            except ConfigError as e:
                self.push_screen(MessageScreen(str(e)))
                return
        self.push_screen(DashboardScreen(self.session, self.board_name))

    def action_quit(self) -> None:
        """Cancel background tasks and quit."""
        for screen in self.screen_stack:
            if isinstance(screen, DashboardScreen):
                screen.cancel_tasks()
        self.exit()
