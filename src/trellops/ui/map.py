"""Map screen: geocoded cards as a marker list, filterable by variant."""

import asyncio

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.screen import Screen
from textual.widgets import Footer, SelectionList, Static

from trellops.facade import MapVisibility, Marker, block_marker_counts, map_markers
from trellops.models import MarkerRule
from trellops.refresh import RefreshSession
from trellops.variants import DEFAULT_VARIANT, icon_glyph, marker_hex, variant_keys


def variant_label(key: str, rules: list[MarkerRule]) -> str:
    """Filter panel label for a variant key."""
    if key == DEFAULT_VARIANT.rule_id:
        return "Default"
    for rule in rules:
        if rule.id == key:
            return f"{rule.kind}: {rule.value}"
    return key


def group_markers(markers: list[Marker], keys: list[str]) -> dict[str, list[Marker]]:
    """Markers grouped by variant key, in rule priority order, empty groups dropped."""
    groups: dict[str, list[Marker]] = {key: [] for key in keys}
    for marker in markers:
        groups.setdefault(marker.variant.rule_id, []).append(marker)
    return {key: items for key, items in groups.items() if items}


def marker_text(marker: Marker, list_names: dict[str, str]) -> Text:
    text = Text()
    text.append(f"{icon_glyph(marker.variant.icon)} ", style=marker_hex(marker.variant.color))
    text.append(marker.card.name or marker.card.id, style="bold")
    text.append(f"  {list_names.get(marker.card.list_id, marker.card.list_id)}", style="dim")
    text.append(f"  {marker.coordinates.lat:.5f}, {marker.coordinates.lng:.5f}", style="dim")
    return text


class MapScreen(Screen):
    """Marker list for the board's geocoded cards."""

    DEFAULT_CSS = """
    #map-filters {
        width: 32;
        border-right: solid $primary;
    }
    #map-markers {
        width: 1fr;
        padding: 0 1;
    }
    .variant-heading {
        text-style: bold;
        margin: 1 0 0 0;
    }
    """

    BINDINGS = [
        ("escape", "close", "Back"),
        ("g", "geocode", "Geocode now"),
    ]

    def __init__(self, session: RefreshSession):
        super().__init__()
        self.session = session
        self.visible_variants: set[str] | None = None
        self._geocode_task: asyncio.Task | None = None

    def compose(self) -> ComposeResult:
        rules = self.session.settings.marker_rules
        with Horizontal():
            yield SelectionList[str](
                *[(variant_label(key, rules), key, True) for key in variant_keys(rules)],
                id="map-filters",
            )
            yield VerticalScroll(id="map-markers")
        yield Footer()

    async def on_mount(self) -> None:
        await self.render_markers()
        self.set_interval(2.0, self.render_markers)

    def markers(self) -> list[Marker]:
        settings = self.session.settings
        return map_markers(
            self.session.cards,
            settings.blocks,
            settings.marker_rules,
            MapVisibility(variant_keys=self.visible_variants),
            settings.exclude_templates,
        )

    async def render_markers(self) -> None:
        settings = self.session.settings
        names = {lst.id: lst.name for lst in self.session.lists}
        keys = variant_keys(settings.marker_rules)
        widgets: list[Static] = []
        counts = block_marker_counts(self.session.cards, settings.blocks, settings.exclude_templates)
        summary = ", ".join(f"{b.name}: {counts[b.id]}" for b in settings.blocks if b.include_on_map)
        widgets.append(Static(summary or "No blocks are shown on the map.", classes="map-summary"))
        for key, markers in group_markers(self.markers(), keys).items():
            widgets.append(Static(variant_label(key, settings.marker_rules), classes="variant-heading"))
            widgets.extend(Static(marker_text(m, names)) for m in markers)
        container = self.query_one("#map-markers", VerticalScroll)
        await container.remove_children()
        await container.mount_all(widgets)

    async def on_selection_list_selected_changed(self, event: SelectionList.SelectedChanged) -> None:
        self.visible_variants = set(event.selection_list.selected)
        await self.render_markers()

    def action_geocode(self) -> None:
        settings = self.session.settings
        if not self.session.pipeline.running:
            self.session.pipeline.build_queue(settings.blocks, exclude_templates=settings.exclude_templates)
        if self._geocode_task is None or self._geocode_task.done():
            self._geocode_task = asyncio.create_task(self._run_geocode())

    async def _run_geocode(self) -> None:
        await self.session.geocode()
        await self.render_markers()

    def action_close(self) -> None:
        self.app.pop_screen()
