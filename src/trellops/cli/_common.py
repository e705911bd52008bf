"""Shared helpers for CLI command handlers."""

import json
import logging
import sys
from dataclasses import dataclass, replace

from trellops.cache import Repositories
from trellops.config import AppConfig, BoardSettings, ConfigError, load_config, read_board_settings
from trellops.models import Card, TrelloList
from trellops.store import JsonFileStore
from trellops.trello import TrelloClient, TrelloError


@dataclass
class Context:
    """Everything a handler needs for one board."""

    config: AppConfig
    repos: Repositories
    board_id: str

    @property
    def settings(self) -> BoardSettings:
        return read_board_settings(self.repos, self.board_id)

    def client(self) -> TrelloClient:
        return TrelloClient(self.config.api_key, self.config.token)


def load_context(args, need_board: bool = True) -> Context:
    """Load config and store for args. Exit 1 with message on failure."""
    try:
        config = load_config(args.config)
    except ConfigError as e:
        error(str(e), args.json)
    board_id = getattr(args, "board", None) or config.board_id
    if need_board and not board_id:
        error("No board configured. Pass --board or set board_id in the config file.", args.json)
    repos = Repositories(JsonFileStore(config.store_path))
    return Context(config=config, repos=repos, board_id=board_id)


def fetch_board(ctx: Context, json_mode: bool) -> tuple[list[TrelloList], list[Card]]:
    """Fetch lists and cards, with cached coordinates applied. Exit 1 on API errors."""
    client = ctx.client()
    try:
        lists = client.board_lists(ctx.board_id)
        cards = client.board_cards(ctx.board_id)
    except TrelloError as e:
        error(str(e), json_mode)
    cached = ctx.repos.geocode.all(ctx.board_id)
    cards = [
        replace(card, coordinates=cached[card.id], source="cache")
        if card.coordinates is None and card.id in cached
        else card
        for card in cards
    ]
    return lists, cards


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(message)s",
        stream=sys.stderr,
        level=logging.DEBUG if verbose else logging.INFO,
    )


def output_json(data: dict | list) -> None:
    """Write JSON to stdout."""
    print(json.dumps(data, indent=2))


def output_result(data: dict, text: str, json_mode: bool) -> None:
    """Output mutation result as JSON or plain text."""
    if json_mode:
        output_json(data)
    else:
        print(text)


def error(message: str, json_mode: bool) -> None:
    """Print error to stderr and exit 1."""
    if json_mode:
        print(json.dumps({"error": message}), file=sys.stderr)
    else:
        print(f"error: {message}", file=sys.stderr)
    sys.exit(1)


def format_tile_line(name: str, count: int, description: str = "", indent: str = "  ") -> str:
    """Format one tile as a text line."""
    desc = f"  ({description})" if description else ""
    return f"{indent}{name:<24} {count:>4}{desc}"
