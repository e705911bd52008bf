"""Handlers for 'trellops tiles', 'map' and 'stats' commands."""

import asyncio
import logging
from dataclasses import replace

from trellops.cli._common import error, fetch_board, format_tile_line, load_context, output_json
from trellops.facade import BlockTiles, MapVisibility, block_marker_counts, dashboard, map_markers
from trellops.geocode import Geocoder
from trellops.pipeline import GeocodingPipeline
from trellops.stats import statistics
from trellops.timewindows import TIME_WINDOWS, window_title
from trellops.variants import icon_glyph, marker_hex

logger = logging.getLogger(__name__)


def _filters(args, settings):
    filters = settings.filters
    window = getattr(args, "window", None)
    if window:
        if window not in TIME_WINDOWS:
            error(f"Unknown time window '{window}'. Known: {', '.join(TIME_WINDOWS)}", args.json)
        filters = replace(filters, time_window=window)
    return filters


def tiles_to_dict(blocks: list[BlockTiles]) -> list[dict]:
    return [
        {
            "id": bt.block.id,
            "name": bt.block.name,
            "collapsed": bt.block.collapsed,
            "total": bt.total,
            "tiles": [
                {
                    "list_id": t.result.list_id,
                    "name": t.result.name,
                    "count": t.result.count,
                    "description": t.result.description,
                    "color": t.color,
                }
                for t in bt.tiles
            ],
        }
        for bt in blocks
    ]


def tiles(args) -> int:
    """Show dashboard tiles: one count per list, grouped by block."""
    ctx = load_context(args)
    settings = ctx.settings
    filters = _filters(args, settings)
    lists, cards = fetch_board(ctx, args.json)
    blocks = dashboard(cards, settings.blocks, filters, lists, ctx.repos.list_colors.get(ctx.board_id))

    if args.json:
        output_json({"window": filters.time_window, "blocks": tiles_to_dict(blocks)})
        return 0

    print(window_title(filters.time_window))
    for bt in blocks:
        marker = "+" if bt.block.collapsed else "-"
        print(f"{marker} {bt.block.name} ({bt.total})")
        if bt.block.collapsed:
            continue
        for t in bt.tiles:
            print(format_tile_line(t.result.name or t.result.list_id, t.result.count, t.result.description))
    return 0


def _write_back(ctx):
    """Coordinate writer for the pipeline, or None when write-back is off or not permitted."""
    if not ctx.settings.write_back_coordinates:
        return None
    client = ctx.client()
    if "write" not in client.token_scopes():
        logger.warning("token lacks write scope, coordinate write-back disabled")
        return None
    return client.async_update_card_coordinates


def map_(args) -> int:
    """List map markers, optionally geocoding missing cards first."""
    ctx = load_context(args)
    settings = ctx.settings
    lists, cards = fetch_board(ctx, args.json)

    if args.geocode:
        pipeline = GeocodingPipeline(
            ctx.board_id,
            ctx.repos.geocode,
            Geocoder(ctx.config.user_agent),
            delay=ctx.config.geocode_delay,
            write_back=_write_back(ctx),
        )
        pipeline.load(cards)
        pipeline.build_queue(settings.blocks, args.block or None, settings.exclude_templates)
        asyncio.run(pipeline.run())
        cards = list(pipeline.cards.values())

    visibility = MapVisibility(
        block_ids=set(args.block) if args.block else None,
        list_ids=set(args.list) if args.list else None,
        variant_keys=set(args.variant) if args.variant else None,
    )
    markers = map_markers(cards, settings.blocks, settings.marker_rules, visibility, settings.exclude_templates)
    counts = block_marker_counts(cards, settings.blocks, settings.exclude_templates)
    names = {lst.id: lst.name for lst in lists}

    if args.json:
        output_json(
            {
                "markers": [
                    {
                        "card_id": m.card.id,
                        "name": m.card.name,
                        "list": names.get(m.card.list_id, m.card.list_id),
                        "block": m.block_id,
                        "lat": m.coordinates.lat,
                        "lng": m.coordinates.lng,
                        "color": m.variant.color,
                        "icon": m.variant.icon,
                        "rule": m.variant.rule_id,
                        "url": m.card.short_url,
                    }
                    for m in markers
                ],
                "block_counts": counts,
            }
        )
        return 0

    if not markers:
        print("no markers")
    for m in markers:
        glyph = icon_glyph(m.variant.icon)
        print(
            f"{glyph} {m.coordinates.lat:>10.5f} {m.coordinates.lng:>11.5f}  "
            f"{m.card.name}  [{names.get(m.card.list_id, m.card.list_id)}] {marker_hex(m.variant.color)}"
        )
    return 0


def stats(args) -> int:
    """Show created/completed buckets, label combinations and mapping coverage."""
    ctx = load_context(args)
    filters = _filters(args, ctx.settings)
    lists, cards = fetch_board(ctx, args.json)
    try:
        result = statistics(
            cards,
            filters,
            args.granularity,
            label_ids=set(args.label) if args.label else None,
            included_lists=set(args.list) if args.list else None,
        )
    except ValueError as e:
        error(str(e), args.json)

    if args.json:
        output_json(result.to_dict())
        return 0

    names = {lst.id: lst.name for lst in lists}
    print(f"{'period':<18} created completed")
    for b in result.buckets:
        print(f"{b.key:<18} {b.created:>7} {b.completed:>9}")
    print()
    print("labels")
    for combo, count in sorted(result.labels.items(), key=lambda kv: (-kv[1], kv[0])):
        print(f"  {combo:<30} {count:>4}")
    print()
    loc = result.locations
    print(f"mapped {loc.mapped}, unmapped {loc.unmapped}")
    for list_id, count in loc.per_list.items():
        print(f"  {names.get(list_id, list_id):<30} {count:>4}")
    return 0
