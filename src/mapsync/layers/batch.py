"""GeometryBatch — queue zones, then redraw them all as one layer.

Zones arrive one message at a time; nothing is drawn until the controller
sends a flush. A flush swaps the previous layer for the new one, so a map
never shows two zone layers at once.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from loguru import logger

from mapsync.comms.envelope import ON_DID_CLICK_ZONE
from mapsync.layers.geojson import build_feature_collection
from mapsync.layers.style import HIGHLIGHT_STYLE, zone_style
from mapsync.layers.zone import GeometryLayer, ZoneFeature
from mapsync.widget.base import FeatureHandlers, MapWidget

EmitFn = Callable[[str, dict], None]


class GeometryBatch:
    """Buffers zone additions for one map and commits them on flush."""

    def __init__(self, map_id: str, widget: MapWidget, emit: EmitFn) -> None:
        self._map_id = map_id
        self._widget = widget
        self._emit = emit
        self._queue: list[ZoneFeature] = []
        self._current: Optional[GeometryLayer] = None
        self._handlers = FeatureHandlers(
            on_hover=self._highlight,
            on_hover_out=self._reset_highlight,
            on_click=self._click,
        )

    @property
    def queue(self) -> list[ZoneFeature]:
        return list(self._queue)

    @property
    def current_layer(self) -> Optional[GeometryLayer]:
        return self._current

    def add(
        self,
        zone_id: Any,
        points: Any,
        tooltip: str = "",
        color: str = "",
        shape: Optional[str] = None,
    ) -> None:
        """Queue a zone for the next flush. ``points`` is not validated."""
        self._queue.append(ZoneFeature(zone_id, points, tooltip, color, shape))

    def flush(self) -> Optional[GeometryLayer]:
        """Replace the rendered zones with everything queued so far.

        The queue is emptied whether or not rendering succeeds. A render
        failure is logged and leaves the map with no zone layer.

        Returns:
            The new GeometryLayer, or None if rendering failed.
        """
        try:
            collection = build_feature_collection(self._queue)
        except (TypeError, ValueError) as e:
            logger.warning(f"Map {self._map_id}: could not build zone collection: {e}")
            collection = None
        finally:
            self._queue = []

        self._remove_current()
        if collection is None:
            return None

        try:
            handle = self._widget.add_geojson(collection, zone_style, self._handlers)
        except Exception as e:
            logger.warning(
                f"Map {self._map_id}: failed to render "
                f"{len(collection['features'])} zones: {e}"
            )
            return None

        self._current = GeometryLayer(collection=collection, handle=handle)
        logger.debug(f"Map {self._map_id}: rendered {self._current.feature_count} zones")
        return self._current

    def close(self) -> None:
        self._queue = []
        self._remove_current()

    def _remove_current(self) -> None:
        layer = self._current
        self._current = None
        if layer is not None:
            layer.remove()

    # -- per-feature pointer handlers ------------------------------------

    def _highlight(self, feature_id: str) -> None:
        layer = self._current
        if layer is None:
            return
        layer.handle.set_style(feature_id, dict(HIGHLIGHT_STYLE))
        layer.handle.bring_to_front(feature_id)
        self._widget.set_info(layer.properties(feature_id))

    def _reset_highlight(self, feature_id: str) -> None:
        layer = self._current
        if layer is None:
            return
        layer.handle.reset_style(feature_id)
        self._widget.set_info(None)

    def _click(self, feature_id: str) -> None:
        self._emit(ON_DID_CLICK_ZONE, {"id": self._map_id, "zoneId": feature_id})
