"""WebSocket endpoints for the controller and the client surfaces."""

import asyncio
import json
from typing import Set

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from loguru import logger

from mapsync.comms.envelope import Envelope
from mapsync.comms.event_bus import EventBus
from mapsync.errors import CoordinateError, EnvelopeError, MapSyncError
from mapsync.session.registry import SessionRegistry
from mapsync_server.surfaces import SurfaceHub

router = APIRouter(prefix="/ws", tags=["websocket"])

ERROR_MESSAGE = "error"


class ConnectionManager:
    """Manages controller WebSocket connections."""

    def __init__(self):
        self.active_connections: Set[WebSocket] = set()
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket):
        """Accept and register a new WebSocket connection."""
        await websocket.accept()
        async with self._lock:
            self.active_connections.add(websocket)
        logger.info(f"Controller connected. Total connections: {len(self.active_connections)}")

    async def disconnect(self, websocket: WebSocket):
        """Remove a WebSocket connection."""
        async with self._lock:
            self.active_connections.discard(websocket)
        logger.info(f"Controller disconnected. Total connections: {len(self.active_connections)}")

    async def broadcast(self, message: dict):
        """Broadcast a message to all connected controllers."""
        if not self.active_connections:
            return

        message_str = json.dumps(message)
        disconnected = set()

        async with self._lock:
            for connection in self.active_connections:
                try:
                    await connection.send_text(message_str)
                except Exception as e:
                    logger.warning(f"Failed to send to controller: {e}")
                    disconnected.add(connection)

            self.active_connections -= disconnected

    async def send_to(self, websocket: WebSocket, message: dict):
        """Send a message to a specific client."""
        try:
            await websocket.send_text(json.dumps(message))
        except Exception as e:
            logger.warning(f"Failed to send to websocket: {e}")


# Controller connections for this process
manager = ConnectionManager()


async def relay_outbound(event_bus: EventBus, namespace: str = ""):
    """Forward every outbound envelope on the bus to all controllers.

    Runs until cancelled.
    """
    q = event_bus.subscribe()
    try:
        while True:
            envelope = await q.get()
            await manager.broadcast(envelope.to_dict(namespace))
    finally:
        event_bus.unsubscribe(q)


def error_envelope(reason: str, namespace: str = "") -> dict:
    return Envelope(ERROR_MESSAGE, {"reason": reason}).to_dict(namespace)


async def handle_controller_message(websocket: WebSocket, registry: SessionRegistry, text: str):
    """Decode one controller message and apply it to the registry.

    A message that cannot be decoded or applied is answered with an error
    envelope; the connection stays open.
    """
    try:
        envelope = Envelope.from_json(text, registry.namespace)
    except EnvelopeError as e:
        logger.warning(f"Rejected controller message: {e}")
        await manager.send_to(websocket, error_envelope(str(e), registry.namespace))
        return

    try:
        registry.handle(envelope)
    except CoordinateError as e:
        logger.error(f"Malformed coordinates in {envelope.message!r}: {e}")
        await manager.send_to(websocket, error_envelope(str(e), registry.namespace))
    except (MapSyncError, TypeError, ValueError) as e:
        logger.warning(f"Could not apply {envelope.message!r}: {e}")
        await manager.send_to(websocket, error_envelope(str(e), registry.namespace))


@router.websocket("/controller")
async def websocket_controller(websocket: WebSocket):
    """WebSocket endpoint for the controller: envelopes in, events out."""
    registry: SessionRegistry = websocket.app.state.registry
    await manager.connect(websocket)
    try:
        while True:
            text = await websocket.receive_text()
            await handle_controller_message(websocket, registry, text)
    except WebSocketDisconnect:
        pass
    finally:
        await manager.disconnect(websocket)


def handle_surface_event(hub: SurfaceHub, map_id: str, text: str) -> None:
    """Dispatch one surface event to the map's widget."""
    try:
        event = json.loads(text)
    except json.JSONDecodeError:
        logger.warning(f"Surface for map {map_id} sent invalid JSON")
        return
    if not isinstance(event, dict):
        return

    widget = hub.get_widget(map_id)
    if widget is None:
        logger.debug(f"Dropping surface event for unknown map {map_id}")
        return
    try:
        widget.dispatch(event)
    except (MapSyncError, TypeError, ValueError) as e:
        logger.warning(f"Surface for map {map_id} sent a bad {event.get('event')!r} event: {e}")


async def _pump_commands(websocket: WebSocket, commands: asyncio.Queue):
    while True:
        command = await commands.get()
        await websocket.send_text(json.dumps(command))


@router.websocket("/surface/{map_id}")
async def websocket_surface(websocket: WebSocket, map_id: str):
    """WebSocket endpoint for a client surface drawing one map.

    The surface first receives a replay of the map's current state, then
    every new render command.
    """
    hub: SurfaceHub = websocket.app.state.surfaces
    await websocket.accept()
    commands = hub.attach(map_id)
    logger.info(f"Surface connected for map {map_id} ({hub.surface_count(map_id)} attached)")

    sender = asyncio.create_task(_pump_commands(websocket, commands))
    try:
        while True:
            text = await websocket.receive_text()
            handle_surface_event(hub, map_id, text)
    except WebSocketDisconnect:
        logger.info(f"Surface disconnected for map {map_id}")
    finally:
        sender.cancel()
        hub.detach(map_id, commands)
