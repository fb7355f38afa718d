"""Tests for GeometryBatch — queueing, atomic flush, hover and click handling."""

from __future__ import annotations

import pytest

from mapsync.layers.batch import GeometryBatch
from mapsync.layers.style import HIGHLIGHT_STYLE

pytestmark = pytest.mark.unit

RING = [[0, 0], [0, 1], [1, 1]]


@pytest.fixture
def batch(widget, emit):
    return GeometryBatch("m1", widget, emit)


class TestQueue:
    def test_add_queues_without_rendering(self, batch, widget):
        batch.add(1, RING, "t", "red")
        assert len(batch.queue) == 1
        assert widget.layers == []

    def test_add_does_not_validate_points(self, batch):
        batch.add(1, "not a ring", "t", "red")
        assert batch.queue[0].points == "not a ring"


class TestFlush:
    def test_three_adds_then_flush_render_one_layer(self, batch, widget):
        for zone_id in (1, 2, 3):
            batch.add(zone_id, RING, f"zone {zone_id}", "red")
        layer = batch.flush()
        assert len(widget.visible_layers) == 1
        assert layer.feature_count == 3
        ids = [f["properties"]["id"] for f in widget.visible_layers[0].collection["features"]]
        assert ids == ["1", "2", "3"]
        assert batch.queue == []

    def test_empty_flush_clears_previous_layer(self, batch, widget):
        for zone_id in (1, 2, 3):
            batch.add(zone_id, RING, "t", "red")
        first = batch.flush()
        second = batch.flush()
        assert first.handle.removed is True
        assert len(widget.visible_layers) == 1
        assert widget.visible_layers[0].collection == {"type": "FeatureCollection", "features": []}
        assert second.feature_count == 0

    def test_never_two_layers_visible(self, batch, widget):
        for n in range(5):
            batch.add(n, RING, "t", "red")
            batch.flush()
            assert len(widget.visible_layers) == 1

    def test_polygon_and_multipolygon_classification(self, batch, widget):
        batch.add(1, [[0, 0], [0, 1], [1, 1]], "t", "red")
        batch.add(2, [[[0, 0], [0, 1], [1, 1]]], "t", "red")
        batch.flush()
        features = widget.visible_layers[0].collection["features"]
        assert features[0]["geometry"]["type"] == "Polygon"
        assert features[1]["geometry"]["type"] == "MultiPolygon"

    def test_render_failure_clears_queue_and_is_not_raised(self, batch, widget, emitted):
        batch.add(1, RING, "t", "red")
        batch.flush()
        widget.fail_render = True
        batch.add(2, [["bad"]], "t", "red")
        assert batch.flush() is None
        assert batch.queue == []
        assert batch.current_layer is None
        # Previous layer is still removed; nothing sent to the controller
        assert widget.visible_layers == []
        assert emitted == []

    def test_flush_after_failure_does_not_resubmit(self, batch, widget):
        widget.fail_render = True
        batch.add(1, RING, "t", "red")
        batch.flush()
        widget.fail_render = False
        batch.flush()
        assert widget.visible_layers[0].collection["features"] == []

    def test_unbuildable_multipolygon_is_dropped(self, batch, widget):
        batch.add(1, 7, "t", "red", shape="MultiPolygon")
        assert batch.flush() is None
        assert batch.queue == []

    def test_default_style_uses_zone_color(self, batch, widget):
        batch.add(1, RING, "t", "#00ff00")
        batch.flush()
        layer = widget.visible_layers[0]
        style = layer.style(layer.collection["features"][0])
        assert style == {
            "fillColor": "#00ff00",
            "opacity": 1,
            "color": "white",
            "dashArray": 3,
            "fillOpacity": 0.6,
        }

    def test_close_removes_layer_and_queue(self, batch, widget):
        batch.add(1, RING, "t", "red")
        batch.flush()
        batch.add(2, RING, "t", "red")
        batch.close()
        assert widget.visible_layers == []
        assert batch.queue == []


class TestFeatureInteraction:
    @pytest.fixture
    def layer(self, batch, widget):
        batch.add(7, RING, "Zone seven", "blue")
        batch.flush()
        return widget.visible_layers[0]

    def test_hover_highlights_and_shows_info(self, layer, widget):
        layer.handlers.on_hover("7")
        assert layer.styles["7"] == HIGHLIGHT_STYLE
        assert layer.front == ["7"]
        assert widget.info == {"id": "7", "color": "blue", "tooltip": "Zone seven"}

    def test_hover_out_resets_and_clears_info(self, layer, widget):
        layer.handlers.on_hover("7")
        layer.handlers.on_hover_out("7")
        assert layer.styles["7"] is None
        assert widget.info is None

    def test_click_emits_zone_click(self, layer, emitted):
        layer.handlers.on_click("7")
        assert emitted == [("onDidClickZone", {"id": "m1", "zoneId": "7"})]
