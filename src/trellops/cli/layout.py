"""Handlers for 'trellops layout' and 'rules' commands.

Blocks and marker rules are edited as YAML documents: get dumps,
set reads the whole document from stdin.
"""

import sys

import yaml

from trellops.cli._common import error, load_context, output_json, output_result
from trellops.models import Block, MarkerRule
from trellops.trello import TrelloError


def _read_yaml_list(json_mode: bool) -> list[dict]:
    try:
        data = yaml.safe_load(sys.stdin.read())
    except yaml.YAMLError as e:
        error(f"Invalid YAML: {e}", json_mode)
    if data is None:
        return []
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        error("Expected a YAML list of mappings.", json_mode)
    return data


def layout_get(args) -> int:
    """Dump the board's blocks as YAML."""
    ctx = load_context(args)
    blocks = [b.to_dict() for b in ctx.repos.layout.get(ctx.board_id)]
    if args.json:
        output_json(blocks)
    else:
        sys.stdout.write(yaml.safe_dump(blocks, sort_keys=False))
    return 0


def layout_set(args) -> int:
    """Replace the board's blocks from YAML on stdin."""
    ctx = load_context(args)
    try:
        blocks = [Block.from_dict(item) for item in _read_yaml_list(args.json)]
        ctx.repos.layout.set(ctx.board_id, blocks)
    except (KeyError, ValueError) as e:
        error(f"Invalid layout: {e}", args.json)
    output_result({"blocks": len(blocks)}, f"saved {len(blocks)} blocks", args.json)
    return 0


def layout_color(args) -> int:
    """Set (or with no color, clear) a list's tile color."""
    ctx = load_context(args)
    ctx.repos.list_colors.set_color(ctx.board_id, args.list_id, args.color)
    text = f"{args.list_id} → {args.color}" if args.color else f"{args.list_id} color cleared"
    output_result({"list_id": args.list_id, "color": args.color}, text, args.json)
    return 0


def rules_get(args) -> int:
    """Dump the board's marker rules, highest priority first."""
    ctx = load_context(args)
    rules = [r.to_dict() for r in ctx.repos.marker_rules.get(ctx.board_id)]
    if args.json:
        output_json(rules)
    else:
        sys.stdout.write(yaml.safe_dump(rules, sort_keys=False))
    return 0


def rules_set(args) -> int:
    """Replace the board's marker rules from YAML on stdin. Order is priority."""
    ctx = load_context(args)
    try:
        rules = [MarkerRule.from_dict(item) for item in _read_yaml_list(args.json)]
    except (KeyError, ValueError) as e:
        error(f"Invalid rules: {e}", args.json)
    ids = [r.id for r in rules]
    if len(ids) != len(set(ids)):
        error("Rule IDs must be unique.", args.json)
    if "default" in ids:
        error("'default' is reserved for the default marker.", args.json)
    ctx.repos.marker_rules.set(ctx.board_id, rules)
    output_result({"rules": len(rules)}, f"saved {len(rules)} rules", args.json)
    return 0


def rules_labels(args) -> int:
    """List the board's labels, for writing rules against their IDs."""
    ctx = load_context(args)
    try:
        labels = ctx.client().board_labels(ctx.board_id)
    except TrelloError as e:
        error(str(e), args.json)
    if args.json:
        output_json([{"id": label.id, "name": label.name, "color": label.color} for label in labels])
        return 0
    for label in labels:
        print(f"{label.id}  {label.name or '-':<24} {label.color or ''}")
    return 0
