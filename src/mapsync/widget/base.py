"""Map widget interface and coordinate value types.

The widget is whatever actually draws the map (tiles, pan/zoom, layers).
Sessions only talk to it through the protocols below, so projection math
and tile handling stay on the widget side.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol

from mapsync.errors import CoordinateError

EventHandler = Callable[[dict], None]


@dataclass(frozen=True)
class LatLng:
    lat: float
    lng: float

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class Bounds:
    """A lat/lng rectangle."""

    south: float
    west: float
    north: float
    east: float

    def to_dict(self) -> dict:
        return {
            "south": self.south,
            "west": self.west,
            "north": self.north,
            "east": self.east,
        }


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def lat_lng_from_json(obj: Any) -> LatLng:
    """Convert a ``{"lat": .., "lng": ..}`` object to a LatLng.

    Raises:
        CoordinateError: If either member is missing or not a number.
    """
    if (
        not isinstance(obj, dict)
        or not _is_number(obj.get("lat"))
        or not _is_number(obj.get("lng"))
    ):
        raise CoordinateError(f"Could not convert {obj!r} to a LatLng")
    return LatLng(float(obj["lat"]), float(obj["lng"]))


def _pair_to_lat_lng(pair: Any) -> LatLng:
    if isinstance(pair, dict):
        return lat_lng_from_json(pair)
    if (
        isinstance(pair, (list, tuple))
        and len(pair) >= 2
        and _is_number(pair[0])
        and _is_number(pair[1])
    ):
        return LatLng(float(pair[0]), float(pair[1]))
    raise CoordinateError(f"Could not convert {pair!r} to a LatLng")


def bounds_from_json(obj: Any) -> Bounds:
    """Convert wire bounds to a Bounds.

    Accepts ``[[south, west], [north, east]]`` (corners as pairs or LatLng
    objects), ``{"southWest": .., "northEast": ..}`` or
    ``{"south", "west", "north", "east"}``.

    Raises:
        CoordinateError: If the corners cannot be read.
    """
    if isinstance(obj, dict):
        if "southWest" in obj and "northEast" in obj:
            sw = _pair_to_lat_lng(obj["southWest"])
            ne = _pair_to_lat_lng(obj["northEast"])
        elif all(_is_number(obj.get(k)) for k in ("south", "west", "north", "east")):
            return Bounds(
                float(obj["south"]), float(obj["west"]),
                float(obj["north"]), float(obj["east"]),
            )
        else:
            raise CoordinateError(f"Could not convert {obj!r} to Bounds")
    elif isinstance(obj, (list, tuple)) and len(obj) == 2:
        sw = _pair_to_lat_lng(obj[0])
        ne = _pair_to_lat_lng(obj[1])
    else:
        raise CoordinateError(f"Could not convert {obj!r} to Bounds")
    return Bounds(south=sw.lat, west=sw.lng, north=ne.lat, east=ne.lng)


@dataclass
class MapConfig:
    """Everything needed to build one map widget.

    Attributes:
        map_id: Id the controller uses for this map.
        tile_url: Tile layer URL template.
        height: Display height hint for the surface (passed through).
        options: Widget options; ``center`` is a LatLng when present.
        tile_options: Options for the tile layer.
    """

    map_id: str
    tile_url: str = ""
    height: Any = None
    options: dict = field(default_factory=dict)
    tile_options: dict = field(default_factory=dict)

    @classmethod
    def from_message(cls, data: dict) -> "MapConfig":
        """Build a MapConfig from an ``initialize`` payload.

        Raises:
            CoordinateError: If ``options.center`` is present but malformed.
        """
        options = dict(data.get("options") or {})
        if options.get("center") is not None:
            options["center"] = lat_lng_from_json(options["center"])
        return cls(
            map_id=data.get("mapId"),
            tile_url=data.get("layer") or "",
            height=data.get("height"),
            options=options,
            tile_options=dict(data.get("layerOptions") or {}),
        )

    def to_dict(self) -> dict:
        options = dict(self.options)
        if isinstance(options.get("center"), LatLng):
            options["center"] = options["center"].to_dict()
        return {
            "mapId": self.map_id,
            "height": self.height,
            "options": options,
        }


@dataclass(frozen=True)
class FeatureHandlers:
    """Pointer callbacks attached to every feature of a GeoJSON layer.

    Each callback receives the feature id (the ``id`` property).
    """

    on_hover: Callable[[str], None]
    on_hover_out: Callable[[str], None]
    on_click: Callable[[str], None]


class GeoJSONLayerHandle(Protocol):
    def remove(self) -> None: ...

    def set_style(self, feature_id: str, style: dict) -> None: ...

    def reset_style(self, feature_id: str) -> None: ...

    def bring_to_front(self, feature_id: str) -> None: ...


class MarkerHandle(Protocol):
    def remove(self) -> None: ...

    def open_popup(self) -> None: ...

    def on(self, event: str, handler: EventHandler) -> None: ...


class MapWidget(Protocol):
    """What a MapSession needs from the thing that draws the map."""

    def set_view(self, center: LatLng, zoom: float) -> None: ...

    def set_zoom(self, zoom: float) -> None: ...

    def fit_bounds(self, bounds: Bounds) -> None: ...

    def get_bounds(self) -> Bounds: ...

    def get_zoom(self) -> float: ...

    def on(self, event: str, handler: EventHandler) -> None: ...

    def when_ready(self, callback: Callable[[], None]) -> None: ...

    def add_tile_layer(self, url: str, options: dict) -> None: ...

    def add_geojson(
        self,
        collection: dict,
        style: Callable[[dict], dict],
        handlers: FeatureHandlers,
    ) -> GeoJSONLayerHandle: ...

    def add_marker(
        self, position: LatLng, label: str, icon: Optional[dict]
    ) -> MarkerHandle: ...

    def set_legend(self, content: str) -> None: ...

    def set_info(self, properties: Optional[dict]) -> None: ...

    def set_loading(self, visible: bool) -> None: ...
