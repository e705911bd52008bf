"""Marker variant resolution from ordered label rules."""

from collections.abc import Sequence

from trellops.models import Card, MarkerRule, Variant

DEFAULT_COLOR = "blue"
DEFAULT_ICON = "map-marker"
DEFAULT_VARIANT = Variant(color=DEFAULT_COLOR, icon=DEFAULT_ICON)

MARKER_COLORS: dict[str, str] = {
    "blue": "#3388ff",
    "red": "#ff6b6b",
    "green": "#51cf66",
    "orange": "#ffa94d",
    "yellow": "#ffd43b",
    "grey": "#868e96",
    "black": "#343a40",
}

# Keyword families, checked in order against the icon name.
_ICON_FAMILIES: list[tuple[tuple[str, ...], str]] = [
    (("truck", "delivery", "car", "en route"), "\U0001f69a"),  # 🚚
    (("wrench", "tool", "onsite", "on site"), "\U0001f527"),  # 🔧
    (("check",), "\u2705"),  # ✅
    (("exclamation",), "\u2757"),  # ❗
]
_DEFAULT_GLYPH = "\U0001f4cd"  # 📍


def resolve(card: Card, rules: Sequence[MarkerRule]) -> Variant:
    """Resolve the variant for card. The first rule matching one of its labels wins.

    The winning rule overrides either the color or the icon; the other
    attribute keeps its default. With no match the default variant applies.
    """
    label_ids = card.label_ids
    for rule in rules:
        if rule.label_id not in label_ids:
            continue
        if rule.kind == "icon":
            return Variant(color=DEFAULT_COLOR, icon=rule.value, rule_id=rule.id)
        return Variant(color=rule.value, icon=DEFAULT_ICON, rule_id=rule.id)
    return DEFAULT_VARIANT


def variant_keys(rules: Sequence[MarkerRule]) -> list[str]:
    """All toggleable variant keys: one per rule plus the default."""
    return [rule.id for rule in rules] + [DEFAULT_VARIANT.rule_id]


def marker_hex(color: str) -> str:
    """Hex for a named marker color. Unknown names are passed through as literal colors."""
    return MARKER_COLORS.get(color, color)


def icon_glyph(icon: str) -> str:
    """Terminal glyph for an icon name, matched by keyword family."""
    name = (icon or "").lower()
    for keywords, glyph in _ICON_FAMILIES:
        if any(k in name for k in keywords):
            return glyph
    return _DEFAULT_GLYPH
