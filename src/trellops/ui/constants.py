"""Icons and glyphs used across the dashboard."""

ICON_IDLE = "✅"
ICON_LOADING = "🔄"
ICON_RATE_LIMITED = "⏳"
ICON_ERROR = "⚠️"
ICON_GEOCODING = "🌍"
ICON_COLLAPSED = "▸"
ICON_EXPANDED = "▾"
