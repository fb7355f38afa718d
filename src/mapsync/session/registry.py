"""SessionRegistry — routes controller envelopes to map sessions.

Manages the icon definitions and the MapSession objects for one process,
caches the current step id, and publishes every outbound event on an
EventBus. Nothing here is global: the host builds one registry and keeps it
for as long as it runs.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from loguru import logger

from mapsync.comms import envelope as tags
from mapsync.comms.envelope import Envelope
from mapsync.comms.event_bus import EventBus
from mapsync.session.debounce import CallLaterFn
from mapsync.session.markers import IconDefinition
from mapsync.session.session import DEFAULT_LEGEND, MapSession
from mapsync.session.view import DEFAULT_VIEW_DEBOUNCE_MS
from mapsync.widget.base import MapConfig, MapWidget, bounds_from_json, lat_lng_from_json

WidgetFactory = Callable[[MapConfig], MapWidget]
Handler = Callable[[dict], None]
SessionHandler = Callable[[MapSession, dict], None]


class SessionRegistry:
    """Entry point for every inbound controller message.

    Args:
        widget_factory: Builds the widget for a newly initialized map.
        event_bus: Where outbound envelopes are published. A private bus is
            created when omitted.
        namespace: Tag prefix stripped from inbound and added to outbound
            messages ("" for bare tags).
        view_debounce_ms: Quiet period for view-change reports.
        legend_placeholder: Legend text before the first legend update.
        call_later: Timer scheduler handed to every session.
    """

    def __init__(
        self,
        widget_factory: WidgetFactory,
        *,
        event_bus: Optional[EventBus] = None,
        namespace: str = "",
        view_debounce_ms: int = DEFAULT_VIEW_DEBOUNCE_MS,
        legend_placeholder: str = DEFAULT_LEGEND,
        call_later: Optional[CallLaterFn] = None,
    ) -> None:
        self._widget_factory = widget_factory
        self.event_bus = event_bus if event_bus is not None else EventBus()
        self.namespace = namespace
        self._view_debounce_ms = view_debounce_ms
        self._legend_placeholder = legend_placeholder
        self._call_later = call_later

        self._sessions: dict[str, MapSession] = {}
        self._icons: dict[Any, IconDefinition] = {}
        self._current_step: Any = None

        self._global_handlers: dict[str, Handler] = {
            tags.ENTER_STEP: self._handle_enter_step,
            tags.ICON_CREATE: self._handle_icon_create,
            tags.INITIALIZE: self._handle_initialize,
        }
        self._session_handlers: dict[str, SessionHandler] = {
            tags.MAP_VIEW: lambda s, d: s.set_view(lat_lng_from_json(d.get("center")), d.get("zoom")),
            tags.MAP_ZOOM: lambda s, d: s.set_zoom(d.get("zoom")),
            tags.MAP_FIT: lambda s, d: s.fit_bounds(bounds_from_json(d.get("bounds"))),
            tags.MARKERS_UPDATE: lambda s, d: s.update_markers(d.get("markers") or []),
            tags.LEGEND_UPDATE: lambda s, d: s.update_legend(d.get("content", "")),
            tags.GEOJSON_ADD: lambda s, d: s.add_zone(
                d.get("zoneId"), d.get("points"), d.get("tooltip", ""), d.get("color", ""), d.get("shape")
            ),
            tags.GEOJSON_FLUSH: lambda s, d: s.flush_zones(),
            tags.LOADING_SHOW: lambda s, d: s.show_loading(),
            tags.LOADING_HIDE: lambda s, d: s.hide_loading(),
            tags.LOADING_HIDE_ALIAS: lambda s, d: s.hide_loading(),
        }

    # -- lookups -----------------------------------------------------------

    @property
    def map_ids(self) -> list[str]:
        return list(self._sessions)

    @property
    def current_step(self) -> Any:
        return self._current_step

    def get_session(self, map_id: Any) -> Optional[MapSession]:
        return self._sessions.get(map_id)

    def get_icon(self, icon_id: Any) -> Optional[IconDefinition]:
        return self._icons.get(icon_id)

    # -- inbound -----------------------------------------------------------

    def handle(self, envelope: Envelope) -> None:
        """Apply one inbound envelope.

        Messages for unknown maps and messages with unknown tags are dropped.

        Raises:
            CoordinateError: If the payload carries a malformed coordinate.
        """
        message = envelope.message
        data = envelope.data or {}

        handler = self._global_handlers.get(message)
        if handler is not None:
            handler(data)
            return

        session_handler = self._session_handlers.get(message)
        if session_handler is None:
            logger.debug(f"Ignoring unknown message {message!r}")
            return

        session = self._sessions.get(data.get("mapId"))
        if session is None:
            logger.debug(f"Dropping {message!r} for unknown map {data.get('mapId')!r}")
            return
        session_handler(session, data)

    def handle_raw(self, raw: Any) -> None:
        """Decode a JSON-like dict as an envelope and apply it."""
        self.handle(Envelope.from_dict(raw, self.namespace))

    def enter_step(self, step_id: Any) -> None:
        """Record that the step source advanced and tell the controller."""
        logger.debug(f"Sending {tags.ON_DID_ENTER_STEP} for step {step_id!r}")
        self._current_step = step_id
        self.emit(tags.ON_DID_ENTER_STEP, {"stepId": step_id})

    def _handle_enter_step(self, _data: dict) -> None:
        if self._current_step is None:
            return
        logger.debug("Re-sending current step on request")
        self.emit(tags.ON_DID_ENTER_STEP, {"stepId": self._current_step})

    def _handle_icon_create(self, data: dict) -> None:
        icon_id = data.get("iconId")
        self._icons[icon_id] = IconDefinition(icon_id=icon_id, options=dict(data.get("options") or {}))
        logger.debug(f"Icon {icon_id!r} registered")

    def _handle_initialize(self, data: dict) -> None:
        config = MapConfig.from_message(data)
        if config.map_id is None:
            logger.warning("Ignoring initialize without a mapId")
            return
        previous = self._sessions.pop(config.map_id, None)
        if previous is not None:
            logger.warning(f"Map {config.map_id} initialized twice, replacing the previous session")
            previous.close()

        widget = self._widget_factory(config)
        session = MapSession(
            config,
            widget,
            self.emit,
            self.get_icon,
            view_debounce_ms=self._view_debounce_ms,
            legend_placeholder=self._legend_placeholder,
            call_later=self._call_later,
        )
        self._sessions[config.map_id] = session
        logger.info(f"Map {config.map_id} initialized ({len(self._sessions)} active)")

    # -- outbound ----------------------------------------------------------

    def emit(self, message: str, data: dict) -> None:
        self.event_bus.publish(Envelope(message=message, data=data))

    # -- lifecycle ---------------------------------------------------------

    def close(self) -> None:
        """Close every session."""
        sessions, self._sessions = list(self._sessions.values()), {}
        for session in sessions:
            session.close()
        logger.info(f"Session registry closed ({len(sessions)} maps)")
