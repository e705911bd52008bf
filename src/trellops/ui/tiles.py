"""Tile and block widgets for the dashboard."""

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.message import Message
from textual.widgets import Static

from trellops.facade import BlockTiles, Tile
from trellops.ui.constants import ICON_COLLAPSED, ICON_EXPANDED


def build_tile_text(tile: Tile) -> Text:
    """Rich text for one tile: big count, list name, optional description."""
    text = Text(justify="center")
    text.append(f"{tile.result.count}\n", style=f"bold {tile.color}")
    text.append(tile.result.name or tile.result.list_id, style="bold")
    if tile.result.description:
        text.append(f"\n{tile.result.description}", style="italic dim")
    return text


def build_block_title(block_tiles: BlockTiles) -> Text:
    icon = ICON_COLLAPSED if block_tiles.block.collapsed else ICON_EXPANDED
    text = Text(f"{icon} {block_tiles.block.name}", style="bold")
    text.append(f"  ({block_tiles.total})", style="dim")
    return text


class TileWidget(Static):
    """One list's count."""

    DEFAULT_CSS = """
    TileWidget {
        width: 24;
        height: 5;
        border: round $primary;
        content-align: center middle;
        margin: 0 1 0 0;
    }
    """

    def __init__(self, tile: Tile, **kwargs) -> None:
        super().__init__(build_tile_text(tile), **kwargs)
        self.tile = tile


class BlockWidget(Vertical):
    """A block header and its row of tiles. Clicking the header toggles collapse."""

    DEFAULT_CSS = """
    BlockWidget {
        height: auto;
        margin: 0 0 1 0;
    }
    BlockWidget .block-title {
        height: 1;
    }
    BlockWidget .tiles {
        height: auto;
    }
    """

    class ToggleRequested(Message):
        def __init__(self, block_id: str) -> None:
            super().__init__()
            self.block_id = block_id

    def __init__(self, block_tiles: BlockTiles, **kwargs) -> None:
        super().__init__(**kwargs)
        self.block_tiles = block_tiles

    def compose(self) -> ComposeResult:
        yield Static(build_block_title(self.block_tiles), classes="block-title")
        if self.block_tiles.block.collapsed:
            return
        with Horizontal(classes="tiles"):
            for tile in self.block_tiles.tiles:
                yield TileWidget(tile)

    def on_click(self, event) -> None:
        event.stop()
        self.post_message(self.ToggleRequested(self.block_tiles.block.id))
