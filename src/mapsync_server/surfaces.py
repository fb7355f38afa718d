"""SurfaceHub — connects RemoteMapWidgets to the client surfaces drawing them.

Every surface connection gets its own bounded command queue. On attach the
queue is seeded with the widget's snapshot, so a surface that connects late
or reloads starts from the map as it currently stands; after that it
receives each new render command for its map id.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from loguru import logger

from mapsync.widget.base import MapConfig
from mapsync.widget.remote import RemoteMapWidget


class SurfaceHub:
    """Registry of remote widgets and the surface queues fed by them."""

    def __init__(self, buffer_size: int = 1000) -> None:
        self._buffer_size = buffer_size
        self._widgets: dict[str, RemoteMapWidget] = {}
        self._surfaces: dict[str, list[asyncio.Queue]] = {}

    def create_widget(self, config: MapConfig) -> RemoteMapWidget:
        """Widget factory for the SessionRegistry."""
        map_id = str(config.map_id)
        widget = RemoteMapWidget(config, lambda command: self._enqueue(map_id, command))
        self._widgets[map_id] = widget
        return widget

    def get_widget(self, map_id: str) -> Optional[RemoteMapWidget]:
        return self._widgets.get(map_id)

    def attach(self, map_id: str) -> asyncio.Queue:
        """Open a command queue for one surface connection.

        The queue starts with the current snapshot of the map, if the map
        has been initialized.
        """
        q: asyncio.Queue = asyncio.Queue(maxsize=self._buffer_size)
        widget = self._widgets.get(map_id)
        if widget is not None:
            for command in widget.snapshot():
                self._put(map_id, q, command)
        self._surfaces.setdefault(map_id, []).append(q)
        logger.debug(f"Surface attached to map {map_id} ({q.qsize()} commands replayed)")
        return q

    def detach(self, map_id: str, q: asyncio.Queue) -> None:
        queues = self._surfaces.get(map_id, [])
        if q in queues:
            queues.remove(q)
        if not queues:
            self._surfaces.pop(map_id, None)

    def surface_count(self, map_id: str) -> int:
        return len(self._surfaces.get(map_id, ()))

    def _enqueue(self, map_id: str, command: dict) -> None:
        for q in self._surfaces.get(map_id, ()):
            self._put(map_id, q, command)

    def _put(self, map_id: str, q: asyncio.Queue, command: dict) -> None:
        try:
            q.put_nowait(command)
        except asyncio.QueueFull:
            dropped = q.get_nowait()
            logger.warning(
                f"Surface buffer full for map {map_id}, dropped {dropped.get('command')!r}"
            )
            q.put_nowait(command)
