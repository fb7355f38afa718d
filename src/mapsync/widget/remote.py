"""RemoteMapWidget — server-side mirror of a map drawn by a client surface.

Every render call becomes a command dict handed to ``send``; the surface
applies it to its real map and reports pointer and viewport events back
through ``dispatch``. The mirror keeps the last viewport the surface
reported, so reads never wait on the client, and enough of its drawn state
to replay the whole map to a surface that (re)connects late.
"""

from __future__ import annotations

import itertools
from collections import defaultdict
from typing import Any, Callable, Optional

from loguru import logger

from mapsync.errors import MapSyncError, RenderError
from mapsync.widget.base import (
    Bounds,
    EventHandler,
    FeatureHandlers,
    LatLng,
    MapConfig,
    bounds_from_json,
    lat_lng_from_json,
)

SendFn = Callable[[dict], None]

_VIEW_EVENTS = ("moveend", "zoomend")


def _is_coordinate_pair(value: Any) -> bool:
    return (
        isinstance(value, (list, tuple))
        and len(value) >= 2
        and all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in value[:2])
    )


def _check_ring(ring: Any) -> None:
    if not isinstance(ring, (list, tuple)) or not all(_is_coordinate_pair(p) for p in ring):
        raise RenderError(f"Invalid polygon ring: {ring!r}")


def validate_collection(collection: dict) -> None:
    """Reject polygon geometry the surface cannot draw.

    Raises:
        RenderError: If a Polygon/MultiPolygon has a ring that is not a
            sequence of numeric coordinate pairs.
    """
    for feature in collection.get("features", []):
        geometry = feature.get("geometry") or {}
        geom_type = geometry.get("type")
        coordinates = geometry.get("coordinates")
        if geom_type == "Polygon":
            polygons = [coordinates]
        elif geom_type == "MultiPolygon":
            polygons = coordinates
        else:
            raise RenderError(f"Unsupported geometry type: {geom_type!r}")
        if not isinstance(polygons, (list, tuple)):
            raise RenderError(f"Invalid {geom_type} coordinates")
        for polygon in polygons:
            if not isinstance(polygon, (list, tuple)):
                raise RenderError(f"Invalid {geom_type} coordinates")
            for ring in polygon:
                _check_ring(ring)
class RemoteGeoJSONLayer:
    """Handle to a GeoJSON layer drawn by the surface."""

    def __init__(
        self,
        widget: "RemoteMapWidget",
        layer_id: str,
        handlers: FeatureHandlers,
        command: dict,
    ) -> None:
        self._widget = widget
        self.layer_id = layer_id
        self.handlers = handlers
        self.command = command
        self.removed = False

    def remove(self) -> None:
        if self.removed:
            return
        self.removed = True
        self._widget._drop_layer(self.layer_id)
        self._widget._send("removeLayer", layerId=self.layer_id)

    def set_style(self, feature_id: str, style: dict) -> None:
        self._widget._send("setFeatureStyle", layerId=self.layer_id, featureId=feature_id, style=style)

    def reset_style(self, feature_id: str) -> None:
        self._widget._send("resetFeatureStyle", layerId=self.layer_id, featureId=feature_id)

    def bring_to_front(self, feature_id: str) -> None:
        self._widget._send("bringToFront", layerId=self.layer_id, featureId=feature_id)


class RemoteMarker:
    """Handle to a marker drawn by the surface."""

    def __init__(self, widget: "RemoteMapWidget", marker_id: str, command: dict) -> None:
        self._widget = widget
        self.marker_id = marker_id
        self.command = command
        self.removed = False
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)

    def remove(self) -> None:
        if self.removed:
            return
        self.removed = True
        self._widget._drop_marker(self.marker_id)
        self._widget._send("removeMarker", markerId=self.marker_id)

    def open_popup(self) -> None:
        self._widget._send("openPopup", markerId=self.marker_id)

    def on(self, event: str, handler: EventHandler) -> None:
        self._handlers[event].append(handler)

    def fire(self, event: str, payload: dict) -> None:
        for handler in list(self._handlers.get(event, ())):
            handler(payload)


class RemoteMapWidget:
    """MapWidget implementation that drives a map living in a client surface."""

    def __init__(self, config: MapConfig, send: SendFn) -> None:
        self.config = config
        self._send_fn = send
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self._ready_callbacks: list[Callable[[], None]] = []
        self._ready = False
        self._ids = itertools.count(1)
        self._layers: dict[str, RemoteGeoJSONLayer] = {}
        self._markers: dict[str, RemoteMarker] = {}

        center = config.options.get("center")
        self._center: Optional[LatLng] = center if isinstance(center, LatLng) else None
        zoom = config.options.get("zoom", 0)
        self._zoom: float = float(zoom) if isinstance(zoom, (int, float)) else 0.0
        self._bounds: Optional[Bounds] = None

        # Drawn state, replayed by snapshot()
        self._tile_layers: list[dict] = []
        self._viewport: Optional[dict] = None
        self._controls: dict[str, dict] = {}

        self._send("create", **config.to_dict())

    @property
    def map_id(self) -> str:
        return self.config.map_id

    @property
    def ready(self) -> bool:
        return self._ready

    @property
    def layer_count(self) -> int:
        return len(self._layers)

    @property
    def marker_count(self) -> int:
        return len(self._markers)

    def snapshot(self) -> list[dict]:
        """Commands that redraw the map as it currently stands.

        Sent to a surface when it connects, so a reloaded or second surface
        gets the tile layers, viewport, controls, zone layer and markers
        without the controller resending anything.
        """
        commands = [self._command("create", **self.config.to_dict())]
        commands.extend(self._tile_layers)
        if self._viewport is not None:
            commands.append(self._viewport)
        commands.extend(self._controls.values())
        commands.extend(layer.command for layer in self._layers.values())
        commands.extend(marker.command for marker in self._markers.values())
        return [dict(command) for command in commands]

    # -- view ------------------------------------------------------------

    def set_view(self, center: LatLng, zoom: float) -> None:
        self._center = center
        self._zoom = zoom
        self._bounds = None
        self._viewport = self._send("setView", center=center.to_dict(), zoom=zoom)

    def set_zoom(self, zoom: float) -> None:
        self._zoom = zoom
        self._bounds = None
        self._viewport = self._send("setZoom", zoom=zoom)

    def fit_bounds(self, bounds: Bounds) -> None:
        self._bounds = bounds
        self._viewport = self._send("fitBounds", bounds=bounds.to_dict())

    def get_bounds(self) -> Bounds:
        """Last known viewport rectangle.

        ``set_view`` and ``set_zoom`` forget the previous rectangle until the
        surface reports a new one; in between, the bounds collapse to the
        center point.
        """
        if self._bounds is not None:
            return self._bounds
        if self._center is not None:
            c = self._center
            return Bounds(south=c.lat, west=c.lng, north=c.lat, east=c.lng)
        return Bounds(0.0, 0.0, 0.0, 0.0)

    def get_zoom(self) -> float:
        return self._zoom

    # -- events ----------------------------------------------------------

    def on(self, event: str, handler: EventHandler) -> None:
        self._handlers[event].append(handler)

    def when_ready(self, callback: Callable[[], None]) -> None:
        if self._ready:
            callback()
            return
        self._ready_callbacks.append(callback)

    def dispatch(self, event: dict) -> None:
        """Apply one event reported by the surface.

        Unknown events, and events aimed at layers or markers that have been
        removed, are ignored.

        Raises:
            CoordinateError: If a viewport or click event carries malformed
                coordinates.
        """
        name = event.get("event")
        if name == "ready":
            self._mark_ready()
        elif name in _VIEW_EVENTS:
            if event.get("bounds") is not None:
                self._bounds = bounds_from_json(event["bounds"])
                self._viewport = self._command("fitBounds", bounds=self._bounds.to_dict())
            if isinstance(event.get("zoom"), (int, float)):
                self._zoom = float(event["zoom"])
            self._fire(name, event)
        elif name == "click":
            latlng = lat_lng_from_json(event.get("latlng"))
            self._fire("click", {"latlng": latlng})
        elif name == "feature":
            self._dispatch_feature(event)
        elif name == "marker":
            marker = self._markers.get(str(event.get("markerId")))
            if marker is not None:
                marker.fire(event.get("type", ""), event)
        else:
            logger.debug(f"Map {self.map_id}: ignoring surface event {name!r}")

    def _dispatch_feature(self, event: dict) -> None:
        layer = self._layers.get(str(event.get("layerId")))
        if layer is None:
            return
        feature_id = str(event.get("featureId"))
        kind = event.get("type")
        if kind == "mouseover":
            layer.handlers.on_hover(feature_id)
        elif kind == "mouseout":
            layer.handlers.on_hover_out(feature_id)
        elif kind == "click":
            layer.handlers.on_click(feature_id)

    def _mark_ready(self) -> None:
        if self._ready:
            return
        self._ready = True
        callbacks, self._ready_callbacks = self._ready_callbacks, []
        for callback in callbacks:
            callback()

    def _fire(self, event: str, payload: dict) -> None:
        for handler in list(self._handlers.get(event, ())):
            handler(payload)

    # -- layers ----------------------------------------------------------

    def add_tile_layer(self, url: str, options: dict) -> None:
        self._tile_layers.append(self._send("addTileLayer", url=url, options=options))

    def add_geojson(
        self,
        collection: dict,
        style: Callable[[dict], dict],
        handlers: FeatureHandlers,
    ) -> RemoteGeoJSONLayer:
        validate_collection(collection)
        layer_id = f"geojson-{next(self._ids)}"
        styles = {
            str((f.get("properties") or {}).get("id")): style(f)
            for f in collection.get("features", [])
        }
        command = self._command("addGeoJSON", layerId=layer_id, data=collection, styles=styles)
        layer = RemoteGeoJSONLayer(self, layer_id, handlers, command)
        self._layers[layer_id] = layer
        self._deliver(command)
        return layer

    def add_marker(self, position: LatLng, label: str, icon: Optional[dict]) -> RemoteMarker:
        marker_id = f"marker-{next(self._ids)}"
        command = self._command(
            "addMarker",
            markerId=marker_id,
            latlng=position.to_dict(),
            label=label,
            icon=icon,
        )
        marker = RemoteMarker(self, marker_id, command)
        self._markers[marker_id] = marker
        self._deliver(command)
        return marker

    def _drop_layer(self, layer_id: str) -> None:
        self._layers.pop(layer_id, None)

    def _drop_marker(self, marker_id: str) -> None:
        self._markers.pop(marker_id, None)

    # -- controls --------------------------------------------------------

    def set_legend(self, content: str) -> None:
        self._controls["setLegend"] = self._send("setLegend", content=content)

    def set_info(self, properties: Optional[dict]) -> None:
        self._controls["setInfo"] = self._send("setInfo", properties=properties)

    def set_loading(self, visible: bool) -> None:
        self._controls["setLoading"] = self._send("setLoading", visible=visible)

    def _command(self, command: str, **fields: Any) -> dict:
        payload = {"command": command, "mapId": self.map_id}
        payload.update(fields)
        return payload

    def _send(self, command: str, **fields: Any) -> dict:
        payload = self._command(command, **fields)
        self._deliver(payload)
        return payload

    def _deliver(self, payload: dict) -> None:
        try:
            self._send_fn(payload)
        except MapSyncError:
            raise
        except Exception as e:
            logger.warning(f"Map {self.map_id}: failed to send {payload['command']!r} to surface: {e}")
