"""EventBus — bounded pub/sub for outbound envelopes.

The SessionRegistry publishes every outbound envelope here; transports (the
controller websocket, tests) subscribe and drain their own queue. Everything
runs on one event loop, so subscriber queues are asyncio queues fed with
``put_nowait``.
"""

from __future__ import annotations

import asyncio

from mapsync.comms.envelope import Envelope


class EventBus:
    """Simple pub/sub for pushing envelopes to subscribers."""

    def __init__(self, maxsize: int = 100) -> None:
        self._maxsize = maxsize
        self._subscribers: list[asyncio.Queue] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> asyncio.Queue:
        """Subscribe to envelopes. Returns a Queue that receives all of them."""
        q: asyncio.Queue = asyncio.Queue(maxsize=self._maxsize)
        self._subscribers.append(q)
        return q

    def unsubscribe(self, q: asyncio.Queue) -> None:
        try:
            self._subscribers.remove(q)
        except ValueError:
            pass

    def publish(self, envelope: Envelope) -> None:
        for q in self._subscribers:
            try:
                q.put_nowait(envelope)
            except asyncio.QueueFull:
                # Drop oldest so the newest view/click state always gets through
                try:
                    q.get_nowait()
                except asyncio.QueueEmpty:
                    pass
                q.put_nowait(envelope)
