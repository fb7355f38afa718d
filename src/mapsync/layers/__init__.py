"""Zone drawing — ZoneFeature/GeometryLayer models, GeoJSON building, batching."""

from mapsync.layers.batch import GeometryBatch
from mapsync.layers.geojson import build_feature_collection, classify_points
from mapsync.layers.zone import GeometryLayer, ZoneFeature

__all__ = [
    "GeometryBatch",
    "GeometryLayer",
    "ZoneFeature",
    "build_feature_collection",
    "classify_points",
]
