"""Tests for MarkerSetReconciler — wholesale replacement, icons, popups."""

from __future__ import annotations

import pytest

from mapsync.errors import CoordinateError
from mapsync.session.markers import IconDefinition, Marker, MarkerSetReconciler

pytestmark = pytest.mark.unit


ICONS = {"pin": IconDefinition("pin", {"iconUrl": "pin.png", "iconSize": [24, 24]})}


@pytest.fixture
def reconciler(widget):
    return MarkerSetReconciler("m1", widget, ICONS.get)


M1 = {"lat": 48.85, "lng": 2.35, "label": "Paris", "icon": "pin"}
M2 = {"lat": 45.76, "lng": 4.83, "label": "Lyon"}


class TestMarkerParsing:
    def test_from_dict(self):
        marker = Marker.from_dict(M1)
        assert marker == Marker(48.85, 2.35, "Paris", "pin")

    def test_missing_label_becomes_empty(self):
        assert Marker.from_dict({"lat": 1, "lng": 2}).label == ""

    @pytest.mark.parametrize("raw", [
        {"lat": 1},
        {"lat": "1", "lng": 2},
        {"lat": None, "lng": 2},
        [1, 2],
        None,
    ])
    def test_malformed_coordinates_raise(self, raw):
        with pytest.raises(CoordinateError):
            Marker.from_dict(raw)


class TestMarkerSetReconciler:
    def test_replace_renders_one_marker_per_entry(self, reconciler, widget):
        reconciler.replace([M1, M2])
        assert len(widget.visible_markers) == 2
        assert [m.label for m in widget.visible_markers] == ["Paris", "Lyon"]
        assert widget.visible_markers[0].position.lat == 48.85
        assert len(reconciler) == 2

    def test_replace_with_empty_leaves_no_markers(self, reconciler, widget):
        reconciler.replace([M1, M2])
        reconciler.replace([])
        assert widget.visible_markers == []
        assert reconciler.markers == []

    def test_replace_removes_every_previous_marker(self, reconciler, widget):
        reconciler.replace([M1, M2])
        first = list(widget.markers)
        reconciler.replace([M2])
        assert all(m.removed for m in first)
        assert len(widget.visible_markers) == 1

    def test_known_icon_passes_options(self, reconciler, widget):
        reconciler.replace([M1])
        assert widget.visible_markers[0].icon == {"iconUrl": "pin.png", "iconSize": [24, 24]}

    def test_unknown_icon_uses_default(self, reconciler, widget):
        reconciler.replace([{"lat": 1, "lng": 2, "label": "x", "icon": "missing"}])
        assert len(widget.visible_markers) == 1
        assert widget.visible_markers[0].icon is None

    def test_hover_opens_popup(self, reconciler, widget):
        reconciler.replace([M1, M2])
        widget.visible_markers[1].fire("mouseover")
        assert widget.visible_markers[1].popup_open is True
        assert widget.visible_markers[0].popup_open is False

    def test_malformed_entry_keeps_current_markers(self, reconciler, widget):
        reconciler.replace([M1])
        with pytest.raises(CoordinateError):
            reconciler.replace([M2, {"lat": "bad", "lng": 0}])
        assert len(widget.visible_markers) == 1
        assert widget.visible_markers[0].label == "Paris"

    def test_clear(self, reconciler, widget):
        reconciler.replace([M1, M2])
        reconciler.clear()
        assert widget.visible_markers == []
        assert len(reconciler) == 0
