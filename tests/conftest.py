"""Shared fixtures for mapsync tests.

Provides a recording in-memory map widget and a manual clock that stands in
for the event loop's ``call_later``.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Callable, Optional

import pytest

from mapsync.comms.event_bus import EventBus
from mapsync.errors import RenderError
from mapsync.session.registry import SessionRegistry
from mapsync.widget.base import Bounds, FeatureHandlers, LatLng, MapConfig


class _Timer:
    def __init__(self, due: float, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualClock:
    """Deterministic replacement for ``loop.call_later``."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: list[_Timer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> _Timer:
        timer = _Timer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[_Timer]:
        return [t for t in self.timers if not t.cancelled and t.due > self.now]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = sorted(
                (t for t in self.timers if not t.cancelled and t.due <= target),
                key=lambda t: t.due,
            )
            if not due:
                break
            timer = due[0]
            self.timers.remove(timer)
            self.now = timer.due
            timer.callback()
        self.now = target


class FakeLayer:
    def __init__(self, collection: dict, style: Callable[[dict], dict], handlers: FeatureHandlers) -> None:
        self.collection = collection
        self.style = style
        self.handlers = handlers
        self.removed = False
        self.styles: dict[str, Optional[dict]] = {}
        self.front: list[str] = []

    def remove(self) -> None:
        self.removed = True

    def set_style(self, feature_id: str, style: dict) -> None:
        self.styles[feature_id] = style

    def reset_style(self, feature_id: str) -> None:
        self.styles[feature_id] = None

    def bring_to_front(self, feature_id: str) -> None:
        self.front.append(feature_id)


class FakeMarker:
    def __init__(self, position: LatLng, label: str, icon: Optional[dict]) -> None:
        self.position = position
        self.label = label
        self.icon = icon
        self.removed = False
        self.popup_open = False
        self.handlers: dict[str, list] = defaultdict(list)

    def remove(self) -> None:
        self.removed = True

    def open_popup(self) -> None:
        self.popup_open = True

    def on(self, event: str, handler) -> None:
        self.handlers[event].append(handler)

    def fire(self, event: str) -> None:
        for handler in self.handlers[event]:
            handler({})


class FakeWidget:
    """In-memory MapWidget that records what it was asked to draw."""

    def __init__(self, config: Optional[MapConfig] = None) -> None:
        self.config = config
        self.bounds = Bounds(0.0, 0.0, 0.0, 0.0)
        self.zoom = 0.0
        self.center: Optional[LatLng] = None
        self.handlers: dict[str, list] = defaultdict(list)
        self.ready_callbacks: list = []
        self.layers: list[FakeLayer] = []
        self.markers: list[FakeMarker] = []
        self.tile_layers: list[tuple[str, dict]] = []
        self.legend: Optional[str] = None
        self.info: Optional[dict] = "unset"
        self.loading: Optional[bool] = None
        self.fail_render = False

    # view
    def set_view(self, center, zoom):
        self.center = center
        self.zoom = zoom

    def set_zoom(self, zoom):
        self.zoom = zoom

    def fit_bounds(self, bounds):
        self.bounds = bounds

    def get_bounds(self):
        return self.bounds

    def get_zoom(self):
        return self.zoom

    # events
    def on(self, event, handler):
        self.handlers[event].append(handler)

    def when_ready(self, callback):
        self.ready_callbacks.append(callback)

    def fire(self, event: str, payload: Optional[dict] = None) -> None:
        for handler in list(self.handlers[event]):
            handler(payload or {})

    def make_ready(self) -> None:
        for callback in list(self.ready_callbacks):
            callback()

    def pan(self, south, west, north, east, zoom=None) -> None:
        """Simulate the user dragging the map."""
        self.bounds = Bounds(south, west, north, east)
        if zoom is not None:
            self.zoom = zoom
        self.fire("moveend")

    # layers
    def add_tile_layer(self, url, options):
        self.tile_layers.append((url, options))

    def add_geojson(self, collection, style, handlers):
        if self.fail_render:
            raise RenderError("renderer rejected the collection")
        layer = FakeLayer(collection, style, handlers)
        self.layers.append(layer)
        return layer

    def add_marker(self, position, label, icon):
        marker = FakeMarker(position, label, icon)
        self.markers.append(marker)
        return marker

    @property
    def visible_layers(self) -> list[FakeLayer]:
        return [layer for layer in self.layers if not layer.removed]

    @property
    def visible_markers(self) -> list[FakeMarker]:
        return [marker for marker in self.markers if not marker.removed]

    # controls
    def set_legend(self, content):
        self.legend = content

    def set_info(self, properties):
        self.info = properties

    def set_loading(self, visible):
        self.loading = visible


def drain(q) -> list:
    """Pull everything currently queued without waiting."""
    items = []
    while not q.empty():
        items.append(q.get_nowait())
    return items


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def widget() -> FakeWidget:
    return FakeWidget()


@pytest.fixture
def emitted() -> list:
    return []


@pytest.fixture
def emit(emitted: list):
    def _emit(message: str, data: dict) -> None:
        emitted.append((message, data))

    return _emit


@pytest.fixture
def widgets() -> dict:
    """Widgets built by the registry fixture, keyed by map id."""
    return {}


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def registry(widgets: dict, event_bus: EventBus, clock: ManualClock) -> SessionRegistry:
    def factory(config: MapConfig) -> FakeWidget:
        w = FakeWidget(config)
        widgets[config.map_id] = w
        return w

    return SessionRegistry(factory, event_bus=event_bus, call_later=clock.call_later)


@pytest.fixture
def outbox(event_bus: EventBus):
    """Subscriber queue on the registry's event bus."""
    return event_bus.subscribe()


@pytest.fixture
def drain_outbox(outbox):
    return lambda: drain(outbox)
