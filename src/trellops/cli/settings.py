"""Handlers for 'trellops config' and 'cache' commands."""

from trellops.cli._common import error, load_context, output_json, output_result
from trellops.config import BOARD_DEFAULTS, ConfigError, cli_key, python_key, write_board_setting


def config_get(args) -> int:
    """Show board settings, or one setting when a key is given."""
    ctx = load_context(args)
    settings = ctx.settings
    values = {key: getattr(settings, python_key(key)) for key in BOARD_DEFAULTS}

    if args.key:
        if args.key not in values:
            error(f"Unknown setting '{args.key}'. Known: {', '.join(BOARD_DEFAULTS)}", args.json)
        if args.json:
            output_json({args.key: values[args.key]})
        else:
            print(_format_value(values[args.key]))
        return 0

    if args.json:
        output_json(values)
    else:
        for key, value in values.items():
            print(f"{key} = {_format_value(value)}")
    return 0


def config_set(args) -> int:
    """Set one board setting."""
    ctx = load_context(args)
    key = cli_key(args.key)
    try:
        value = write_board_setting(ctx.repos, ctx.board_id, key, args.value)
    except ConfigError as e:
        error(str(e), args.json)
    output_result({key: value}, f"{key} = {_format_value(value)}", args.json)
    return 0


def cache_reset(args) -> int:
    """Clear the board's geocode cache."""
    ctx = load_context(args)
    cleared = ctx.repos.geocode.count(ctx.board_id)
    ctx.repos.geocode.clear(ctx.board_id)
    output_result({"cleared": cleared}, f"cleared {cleared} cached locations", args.json)
    return 0


def _format_value(value) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)
