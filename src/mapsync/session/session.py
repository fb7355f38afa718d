"""MapSession — the live state of one rendered map."""

from __future__ import annotations

from typing import Any, Callable, Optional

from loguru import logger

from mapsync.comms.envelope import ON_DID_CLICK_MAP, ON_DID_LOAD
from mapsync.layers.batch import GeometryBatch
from mapsync.layers.zone import GeometryLayer
from mapsync.session.debounce import CallLaterFn
from mapsync.session.markers import IconLookup, Marker, MarkerSetReconciler
from mapsync.session.view import DEFAULT_VIEW_DEBOUNCE_MS, ViewStateReporter
from mapsync.widget.base import Bounds, LatLng, MapConfig, MapWidget

EmitFn = Callable[[str, dict], None]

DEFAULT_LEGEND = "Légende"


class MapSession:
    """Owns one map widget and keeps it in sync with the controller.

    On construction the session installs the tile layer, an (initially
    hidden) info panel and the legend, then wires the widget's ready, click
    and view-change events to outbound messages.

    Args:
        config: Parsed ``initialize`` payload.
        widget: The widget drawing this map.
        emit: ``(message, data)`` callback for outbound events.
        icons: Icon lookup used when placing markers.
        view_debounce_ms: Quiet period before a view change is reported.
        legend_placeholder: Legend text shown until the first legend update.
        call_later: Timer scheduler for the view debouncer.
    """

    def __init__(
        self,
        config: MapConfig,
        widget: MapWidget,
        emit: EmitFn,
        icons: IconLookup,
        *,
        view_debounce_ms: int = DEFAULT_VIEW_DEBOUNCE_MS,
        legend_placeholder: str = DEFAULT_LEGEND,
        call_later: Optional[CallLaterFn] = None,
    ) -> None:
        self.config = config
        self.widget = widget
        self._emit = emit
        self.legend_content = legend_placeholder
        self.loading = False
        self.loaded = False
        self.closed = False

        if config.tile_url:
            widget.add_tile_layer(config.tile_url, config.tile_options)
        widget.set_info(None)
        widget.set_legend(legend_placeholder)

        self._view = ViewStateReporter(
            self.id, widget, emit, delay_ms=view_debounce_ms, call_later=call_later
        )
        self._geometry = GeometryBatch(self.id, widget, emit)
        self._markers = MarkerSetReconciler(self.id, widget, icons)

        widget.on("click", self._on_map_click)
        widget.when_ready(self._on_ready)

    @property
    def id(self) -> str:
        return self.config.map_id

    @property
    def view(self) -> ViewStateReporter:
        return self._view

    @property
    def geometry_queue(self) -> list:
        return self._geometry.queue

    @property
    def current_layer(self) -> Optional[GeometryLayer]:
        return self._geometry.current_layer

    @property
    def markers(self) -> list[Marker]:
        return self._markers.markers

    # -- viewport ----------------------------------------------------------

    def set_view(self, center: LatLng, zoom: float) -> None:
        self.widget.set_view(center, zoom)

    def set_zoom(self, zoom: float) -> None:
        self.widget.set_zoom(zoom)

    def fit_bounds(self, bounds: Bounds) -> None:
        self.widget.fit_bounds(bounds)

    # -- content -----------------------------------------------------------

    def update_markers(self, markers: list[Any]) -> list[Marker]:
        return self._markers.replace(markers)

    def update_legend(self, content: str) -> None:
        self.legend_content = content
        self.widget.set_legend(content)

    def add_zone(
        self,
        zone_id: Any,
        points: Any,
        tooltip: str = "",
        color: str = "",
        shape: Optional[str] = None,
    ) -> None:
        self._geometry.add(zone_id, points, tooltip, color, shape)

    def flush_zones(self) -> Optional[GeometryLayer]:
        return self._geometry.flush()

    def show_loading(self) -> None:
        self.loading = True
        self.widget.set_loading(True)

    def hide_loading(self) -> None:
        self.loading = False
        self.widget.set_loading(False)

    # -- lifecycle ---------------------------------------------------------

    def close(self) -> None:
        """Release the view timer, zone layer and markers."""
        if self.closed:
            return
        self.closed = True
        self._view.close()
        self._geometry.close()
        self._markers.clear()
        logger.debug(f"Map {self.id}: session closed")

    def _on_ready(self) -> None:
        if self.loaded or self.closed:
            return
        self.loaded = True
        logger.info(f"Map {self.id}: loaded")
        self._emit(ON_DID_LOAD, {"id": self.id})

    def _on_map_click(self, event: dict) -> None:
        if self.closed:
            return
        latlng = event["latlng"]
        self._emit(ON_DID_CLICK_MAP, {"id": self.id, "lat": latlng.lat, "lng": latlng.lng})
