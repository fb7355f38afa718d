"""ZoneFeature and GeometryLayer dataclasses for the zone drawing system.

Zone coordinates are passed through untouched: whatever pair order the
controller sends is what the widget receives.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from mapsync.widget.base import GeoJSONLayerHandle


@dataclass
class ZoneFeature:
    """A single zone queued for the next geometry flush.

    Attributes:
        zone_id: Controller-side identifier, echoed back on click.
        points: One ring ``[[a, b], ...]`` or several rings
            ``[[[a, b], ...], ...]``.
        tooltip: Text shown in the info panel while hovered.
        color: Fill color.
        shape: Optional explicit geometry type ("Polygon" or "MultiPolygon").
            When None the type is inferred from ``points``.
    """

    zone_id: Any
    points: Any
    tooltip: str = ""
    color: str = ""
    shape: Optional[str] = None


@dataclass
class GeometryLayer:
    """The rendered collection of zones for one map.

    Attributes:
        collection: The GeoJSON FeatureCollection that was rendered.
        handle: The widget's handle to the rendered layer.
    """

    collection: dict
    handle: GeoJSONLayerHandle
    _properties: dict[str, dict] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        for feature in self.collection.get("features", []):
            props = feature.get("properties") or {}
            self._properties[str(props.get("id"))] = props

    @property
    def feature_count(self) -> int:
        return len(self.collection.get("features", []))

    def properties(self, feature_id: str) -> Optional[dict]:
        return self._properties.get(feature_id)

    def remove(self) -> None:
        self.handle.remove()
