"""Zone rendering styles."""

from __future__ import annotations

HIGHLIGHT_STYLE = {
    "weight": 5,
    "color": "#666",
    "dashArray": "",
    "fillOpacity": 0.7,
}


def zone_style(feature: dict) -> dict:
    """Default style for a zone feature, filled with its own color."""
    return {
        "fillColor": (feature.get("properties") or {}).get("color"),
        "opacity": 1,
        "color": "white",
        "dashArray": 3,
        "fillOpacity": 0.6,
    }
