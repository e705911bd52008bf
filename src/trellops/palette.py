"""Tile color palette and list color hashing."""

import hashlib

# Trello's named list colors, mapped to terminal-friendly hex.
NAMED_COLORS: dict[str, str] = {
    "green": "#2e8b57",
    "yellow": "#ccaa00",
    "orange": "#dd6600",
    "red": "#cc0000",
    "purple": "#7b68ee",
    "blue": "#2266cc",
    "sky": "#4499cc",
    "lime": "#44cc44",
    "pink": "#cc6699",
    "black": "#343a40",
}

# Fallback tile colors for lists without a stored or remote color.
TILE_COLORS: list[str] = [
    "#0079bf",
    "#519839",
    "#d29034",
    "#b04632",
    "#89609e",
    "#cd5a91",
    "#00aecc",
    "#4bbf6b",
    "#838c91",
    "#6b4f9e",
]


def color_for_list(name: str) -> str:
    """Deterministic hex color from a list name, using the md5 byte sum."""
    h = hashlib.md5(name.encode()).hexdigest()
    index = sum(int(h[i : i + 2], 16) for i in range(0, 32, 2))
    return TILE_COLORS[index % len(TILE_COLORS)]


def resolve_color(color: str | None) -> str | None:
    """Hex for a named color, passing hex strings through. None stays None."""
    if not color:
        return None
    return NAMED_COLORS.get(color, color)
