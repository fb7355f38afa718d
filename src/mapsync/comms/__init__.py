"""Controller messaging — envelope codec and outbound EventBus."""

from mapsync.comms.envelope import Envelope
from mapsync.comms.event_bus import EventBus

__all__ = ["Envelope", "EventBus"]
