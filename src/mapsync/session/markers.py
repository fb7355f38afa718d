"""MarkerSet reconciliation — every update replaces the whole marker set."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from loguru import logger

from mapsync.widget.base import LatLng, MapWidget, MarkerHandle, lat_lng_from_json


@dataclass(frozen=True)
class IconDefinition:
    """Render options for a marker icon, registered by the controller."""

    icon_id: Any
    options: dict


@dataclass(frozen=True)
class Marker:
    lat: float
    lng: float
    label: str = ""
    icon: Any = None

    @classmethod
    def from_dict(cls, raw: Any) -> "Marker":
        """Build a Marker from a ``{lat, lng, label, icon}`` object.

        Raises:
            CoordinateError: If lat/lng are missing or not numbers.
        """
        position = lat_lng_from_json(raw)
        label = raw.get("label")
        return cls(
            lat=position.lat,
            lng=position.lng,
            label="" if label is None else str(label),
            icon=raw.get("icon"),
        )


IconLookup = Callable[[Any], Optional[IconDefinition]]


class MarkerSetReconciler:
    """Owns one map's markers and swaps them wholesale on every update."""

    def __init__(self, map_id: str, widget: MapWidget, icons: IconLookup) -> None:
        self._map_id = map_id
        self._widget = widget
        self._icons = icons
        self._markers: list[tuple[Marker, MarkerHandle]] = []

    @property
    def markers(self) -> list[Marker]:
        return [marker for marker, _handle in self._markers]

    def __len__(self) -> int:
        return len(self._markers)

    def replace(self, markers: Iterable[Any]) -> list[Marker]:
        """Make the visible marker set exactly ``markers``.

        Entries are parsed before anything is removed, so a malformed entry
        leaves the current markers untouched.

        Raises:
            CoordinateError: If any entry has malformed coordinates.
        """
        parsed = [m if isinstance(m, Marker) else Marker.from_dict(m) for m in markers]
        self.clear()
        for marker in parsed:
            handle = self._widget.add_marker(
                LatLng(marker.lat, marker.lng), marker.label, self._resolve_icon(marker.icon)
            )
            handle.on("mouseover", lambda _event, h=handle: h.open_popup())
            self._markers.append((marker, handle))
        logger.debug(f"Map {self._map_id}: {len(self._markers)} markers rendered")
        return self.markers

    def clear(self) -> None:
        markers, self._markers = self._markers, []
        for _marker, handle in markers:
            handle.remove()

    def _resolve_icon(self, icon_id: Any) -> Optional[dict]:
        if icon_id is None:
            return None
        icon = self._icons(icon_id)
        if icon is None:
            logger.debug(f"Map {self._map_id}: unknown icon {icon_id!r}, using default")
            return None
        return dict(icon.options)
