"""ViewState reporting — tell the controller where the map settled."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from loguru import logger

from mapsync.comms.envelope import ON_DID_CHANGE_VIEW
from mapsync.session.debounce import CallLaterFn, Debouncer
from mapsync.widget.base import MapWidget

DEFAULT_VIEW_DEBOUNCE_MS = 200

EmitFn = Callable[[str, dict], None]


@dataclass(frozen=True)
class ViewState:
    """Snapshot of a widget's viewport."""

    north_lat: float
    south_lat: float
    east_lng: float
    west_lng: float
    zoom_level: float

    @classmethod
    def from_widget(cls, widget: MapWidget) -> "ViewState":
        bounds = widget.get_bounds()
        return cls(
            north_lat=bounds.north,
            south_lat=bounds.south,
            east_lng=bounds.east,
            west_lng=bounds.west,
            zoom_level=widget.get_zoom(),
        )

    def to_message(self, map_id: str) -> dict:
        return {
            "id": map_id,
            "northLat": self.north_lat,
            "eastLng": self.east_lng,
            "southLat": self.south_lat,
            "westLng": self.west_lng,
            "zoomLevel": self.zoom_level,
        }


class ViewStateReporter:
    """Debounces widget pan/zoom events into single onDidChangeView reports."""

    def __init__(
        self,
        map_id: str,
        widget: MapWidget,
        emit: EmitFn,
        *,
        delay_ms: int = DEFAULT_VIEW_DEBOUNCE_MS,
        call_later: Optional[CallLaterFn] = None,
    ) -> None:
        self._map_id = map_id
        self._widget = widget
        self._emit = emit
        self._debouncer = Debouncer(delay_ms, self.report, call_later=call_later)
        self._closed = False
        widget.on("zoomend", self._on_view_change)
        widget.on("moveend", self._on_view_change)

    @property
    def pending(self) -> bool:
        return self._debouncer.pending

    def _on_view_change(self, _event: dict) -> None:
        if not self._closed:
            self._debouncer.trigger()

    def report(self) -> ViewState:
        """Read the widget's viewport now and send it to the controller."""
        state = ViewState.from_widget(self._widget)
        logger.debug(f"Map {self._map_id}: view settled at zoom {state.zoom_level}")
        self._emit(ON_DID_CHANGE_VIEW, state.to_message(self._map_id))
        return state

    def close(self) -> None:
        self._closed = True
        self._debouncer.cancel()
