"""Build GeoJSON FeatureCollections from queued zones.

Uses only plain dicts; the result is handed straight to the widget.
"""

from __future__ import annotations

from typing import Any, Iterable

from mapsync.layers.zone import ZoneFeature

POLYGON = "Polygon"
MULTI_POLYGON = "MultiPolygon"


def classify_points(points: Any) -> str:
    """Decide whether ``points`` describes a Polygon or a MultiPolygon.

    A MultiPolygon is a sequence of rings, so its first element is itself a
    sequence of coordinate pairs: ``points[0][0]`` is a list. Anything else,
    including empty or non-indexable input, is treated as a single ring.

    A single polygon whose first vertex happens to be nested is classified as
    a MultiPolygon.
    """
    try:
        return MULTI_POLYGON if isinstance(points[0][0], (list, tuple)) else POLYGON
    except (IndexError, KeyError, TypeError):
        return POLYGON


def zone_to_feature(zone: ZoneFeature) -> dict:
    """Convert a ZoneFeature to a GeoJSON Feature dict."""
    geometry_type = zone.shape if zone.shape in (POLYGON, MULTI_POLYGON) else classify_points(zone.points)
    if geometry_type == MULTI_POLYGON:
        coordinates = [[ring] for ring in zone.points]
    else:
        coordinates = [zone.points]
    return {
        "type": "Feature",
        "properties": {
            "id": str(zone.zone_id),
            "color": zone.color,
            "tooltip": zone.tooltip,
        },
        "geometry": {
            "type": geometry_type,
            "coordinates": coordinates,
        },
    }


def build_feature_collection(zones: Iterable[ZoneFeature]) -> dict:
    """Build one FeatureCollection from zones, keeping their order.

    Args:
        zones: Queued zones, in insertion order.

    Returns:
        Dict representing a GeoJSON FeatureCollection.
    """
    return {
        "type": "FeatureCollection",
        "features": [zone_to_feature(zone) for zone in zones],
    }
