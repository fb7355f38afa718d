"""Map widget interface and the remote (client-mirrored) widget."""

from mapsync.widget.base import (
    Bounds,
    FeatureHandlers,
    LatLng,
    MapConfig,
    MapWidget,
    bounds_from_json,
    lat_lng_from_json,
)
from mapsync.widget.remote import RemoteMapWidget

__all__ = [
    "Bounds",
    "FeatureHandlers",
    "LatLng",
    "MapConfig",
    "MapWidget",
    "RemoteMapWidget",
    "bounds_from_json",
    "lat_lng_from_json",
]
