"""Tests for GeoJSON building — shape classification and feature layout."""

from __future__ import annotations

import pytest

from mapsync.layers.geojson import (
    MULTI_POLYGON,
    POLYGON,
    build_feature_collection,
    classify_points,
    zone_to_feature,
)
from mapsync.layers.zone import ZoneFeature

pytestmark = pytest.mark.unit

RING = [[0, 0], [0, 1], [1, 1]]


class TestClassifyPoints:
    def test_flat_ring_is_polygon(self):
        assert classify_points(RING) == POLYGON

    def test_sequence_of_rings_is_multipolygon(self):
        assert classify_points([RING]) == MULTI_POLYGON
        assert classify_points([RING, [[5, 5], [5, 6], [6, 6]]]) == MULTI_POLYGON

    def test_tuples_count_as_sequences(self):
        assert classify_points([((0, 0), (0, 1), (1, 1))]) == MULTI_POLYGON

    @pytest.mark.parametrize("points", [[], None, 5, [5], [{"lat": 0, "lng": 0}]])
    def test_unindexable_or_empty_falls_back_to_polygon(self, points):
        assert classify_points(points) == POLYGON


class TestZoneToFeature:
    def test_polygon_wraps_single_ring(self):
        feature = zone_to_feature(ZoneFeature(1, RING, "t", "red"))
        assert feature["type"] == "Feature"
        assert feature["geometry"] == {"type": "Polygon", "coordinates": [RING]}

    def test_multipolygon_wraps_each_ring(self):
        rings = [RING, [[5, 5], [5, 6], [6, 6]]]
        feature = zone_to_feature(ZoneFeature(2, rings, "t", "red"))
        assert feature["geometry"]["type"] == "MultiPolygon"
        assert feature["geometry"]["coordinates"] == [[RING], [[[5, 5], [5, 6], [6, 6]]]]

    def test_properties_stringify_zone_id(self):
        feature = zone_to_feature(ZoneFeature(42, RING, "North field", "#ff0000"))
        assert feature["properties"] == {"id": "42", "color": "#ff0000", "tooltip": "North field"}

    def test_explicit_shape_overrides_heuristic(self):
        feature = zone_to_feature(ZoneFeature(1, [RING], "t", "red", shape="Polygon"))
        assert feature["geometry"] == {"type": "Polygon", "coordinates": [[RING]]}

    def test_unknown_explicit_shape_is_ignored(self):
        feature = zone_to_feature(ZoneFeature(1, RING, "t", "red", shape="Circle"))
        assert feature["geometry"]["type"] == "Polygon"


class TestBuildFeatureCollection:
    def test_keeps_insertion_order(self):
        zones = [ZoneFeature(i, RING, f"z{i}", "red") for i in (3, 1, 2)]
        collection = build_feature_collection(zones)
        assert collection["type"] == "FeatureCollection"
        assert [f["properties"]["id"] for f in collection["features"]] == ["3", "1", "2"]

    def test_empty_collection(self):
        assert build_feature_collection([]) == {"type": "FeatureCollection", "features": []}
