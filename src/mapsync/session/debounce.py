"""Debouncer — run a callback once a burst of triggers has gone quiet."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional

CallLaterFn = Callable[[float, Callable[[], None]], Any]


def loop_call_later(delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
    """Schedule ``callback`` on the running event loop."""
    return asyncio.get_running_loop().call_later(delay, callback)


class Debouncer:
    """Delay-coalescing timer with at most one pending firing.

    Every ``trigger()`` cancels the pending firing (if any) and schedules a
    new one ``delay_ms`` later, so the callback only runs after a full quiet
    period.

    Args:
        delay_ms: Quiet period in milliseconds.
        callback: Called with no arguments when the timer fires.
        call_later: ``(delay_seconds, fn) -> handle`` scheduler; the handle
            must have ``cancel()``. Defaults to the running asyncio loop.
    """

    def __init__(
        self,
        delay_ms: int,
        callback: Callable[[], None],
        *,
        call_later: Optional[CallLaterFn] = None,
    ) -> None:
        self.delay_ms = max(0, int(delay_ms))
        self._callback = callback
        self._call_later = call_later or loop_call_later
        self._handle: Any = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self) -> None:
        self.cancel()
        self._handle = self._call_later(self.delay_ms / 1000.0, self._fire)

    def cancel(self) -> None:
        handle = self._handle
        self._handle = None
        if handle is not None:
            handle.cancel()

    def _fire(self) -> None:
        self._handle = None
        self._callback()
