"""CLI argument parser and dispatch for trellops."""

import argparse

from trellops.cli.board import map_, stats, tiles
from trellops.cli.layout import layout_color, layout_get, layout_set, rules_get, rules_labels, rules_set
from trellops.cli.settings import cache_reset, config_get, config_set
from trellops.cli.tasks import tasks
from trellops.cli.watch import watch
from trellops.cli.web import web
from trellops.stats import GRANULARITIES
from trellops.timewindows import TIME_WINDOWS


def _common_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", default=None, help="Config file (default: ~/.config/trellops/config.yaml)")
    common.add_argument("--board", default=None, help="Board ID (default: board_id from config)")
    common.add_argument("--json", action="store_true", help="Machine-readable JSON output")
    return common


def build_tui_parser() -> argparse.ArgumentParser:
    """Parser for the bare 'trellops' invocation that launches the dashboard."""
    return argparse.ArgumentParser(prog="trellops", parents=[_common_parser()])


def build_parser() -> argparse.ArgumentParser:
    """Build the full CLI argument parser."""
    common = _common_parser()

    parser = argparse.ArgumentParser(
        prog="trellops",
        description="Operational dashboard over a Trello board",
        parents=[common],
    )

    nouns = parser.add_subparsers(dest="noun")

    # --- tiles ---
    tiles_p = nouns.add_parser("tiles", help="Show dashboard tiles", parents=[common])
    tiles_p.add_argument("--window", choices=list(TIME_WINDOWS), help="Override the board's time window")
    tiles_p.set_defaults(func=tiles)

    # --- map ---
    map_p = nouns.add_parser("map", help="List map markers", parents=[common])
    map_p.add_argument("--geocode", action="store_true", help="Geocode missing cards first")
    map_p.add_argument("--block", action="append", help="Only show this block (repeatable)")
    map_p.add_argument("--list", action="append", help="Only show this list (repeatable)")
    map_p.add_argument("--variant", action="append", help="Only show this rule ID, or 'default' (repeatable)")
    map_p.set_defaults(func=map_)

    # --- stats ---
    stats_p = nouns.add_parser("stats", help="Show board statistics", parents=[common])
    stats_p.add_argument("--granularity", choices=GRANULARITIES, default="day", help="Bucket size (default: day)")
    stats_p.add_argument("--window", choices=list(TIME_WINDOWS), help="Override the board's time window")
    stats_p.add_argument("--label", action="append", help="Only count cards with this label ID (repeatable)")
    stats_p.add_argument("--list", action="append", help="Only include this list (repeatable)")
    stats_p.set_defaults(func=stats)

    # --- tasks ---
    tasks_p = nouns.add_parser("tasks", help="Show your tasks across boards", parents=[common])
    tasks_p.add_argument("--no-assigned", action="store_true", help="Hide cards with checklist items assigned to you")
    tasks_p.add_argument("--no-member", action="store_true", help="Hide cards you are a member of")
    tasks_p.add_argument("--done", action="store_true", help="Include completed tasks")
    tasks_p.add_argument("--workspace", action="append", help="Only this workspace ID (repeatable)")
    tasks_p.add_argument("--only-board", dest="board_filter", action="append", help="Only this board ID (repeatable)")
    tasks_p.add_argument("--sort", choices=("board", "due"), default="board", help="Sort order (default: board)")
    tasks_p.set_defaults(func=tasks)

    # --- layout ---
    layout_p = nouns.add_parser("layout", help="Block layout", parents=[common])
    layout_verbs = layout_p.add_subparsers(dest="verb")

    layout_get_p = layout_verbs.add_parser("get", help="Dump blocks as YAML", parents=[common])
    layout_get_p.set_defaults(func=layout_get)

    layout_set_p = layout_verbs.add_parser("set", help="Write blocks from YAML on stdin", parents=[common])
    layout_set_p.set_defaults(func=layout_set)

    layout_color_p = layout_verbs.add_parser("color", help="Set or clear a list's tile color", parents=[common])
    layout_color_p.add_argument("list_id", help="List ID")
    layout_color_p.add_argument("color", nargs="?", help="Color name or hex (omit to clear)")
    layout_color_p.set_defaults(func=layout_color)

    # layout with no verb = get
    layout_p.set_defaults(func=layout_get)

    # --- rules ---
    rules_p = nouns.add_parser("rules", help="Marker rules", parents=[common])
    rules_verbs = rules_p.add_subparsers(dest="verb")

    rules_get_p = rules_verbs.add_parser("get", help="Dump marker rules as YAML", parents=[common])
    rules_get_p.set_defaults(func=rules_get)

    rules_set_p = rules_verbs.add_parser("set", help="Write marker rules from YAML on stdin", parents=[common])
    rules_set_p.set_defaults(func=rules_set)

    rules_labels_p = rules_verbs.add_parser("labels", help="List the board's label IDs", parents=[common])
    rules_labels_p.set_defaults(func=rules_labels)

    rules_p.set_defaults(func=rules_get)

    # --- config ---
    config_p = nouns.add_parser("config", help="Board settings", parents=[common])
    config_verbs = config_p.add_subparsers(dest="verb")

    config_get_p = config_verbs.add_parser("get", help="Show settings", parents=[common])
    config_get_p.add_argument("key", nargs="?", help="Setting name, e.g. refresh-interval")
    config_get_p.set_defaults(func=config_get)

    config_set_p = config_verbs.add_parser("set", help="Change a setting", parents=[common])
    config_set_p.add_argument("key", help="Setting name, e.g. refresh-interval")
    config_set_p.add_argument("value", help="New value")
    config_set_p.set_defaults(func=config_set)

    config_p.set_defaults(func=config_get, key=None)

    # --- cache ---
    cache_p = nouns.add_parser("cache", help="Geocode cache", parents=[common])
    cache_verbs = cache_p.add_subparsers(dest="verb")

    cache_reset_p = cache_verbs.add_parser("reset", help="Clear cached locations for the board", parents=[common])
    cache_reset_p.set_defaults(func=cache_reset)

    # --- watch ---
    watch_p = nouns.add_parser("watch", help="Refresh continuously, logging tiles", parents=[common])
    watch_p.add_argument("--interval", type=int, help="Seconds between refreshes (default: board setting)")
    watch_p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    watch_p.set_defaults(func=watch)

    # --- web ---
    web_p = nouns.add_parser("web", help="Serve the dashboard in a browser", parents=[common])
    web_p.add_argument("--host", default="localhost", help="Bind address (default: localhost)")
    web_p.add_argument("--port", type=int, default=8617, help="Port (default: 8617)")
    web_p.set_defaults(func=web)

    return parser
