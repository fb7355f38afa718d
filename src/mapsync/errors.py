"""Exception hierarchy for the map synchronization engine."""

from __future__ import annotations


class MapSyncError(Exception):
    """Base class for all mapsync errors."""


class CoordinateError(MapSyncError, ValueError):
    """A coordinate object is missing a numeric latitude or longitude.

    Raised out of message handling: the controller broke the protocol
    contract and the message cannot be applied.
    """


class EnvelopeError(MapSyncError, ValueError):
    """An inbound envelope could not be decoded."""


class RenderError(MapSyncError):
    """The map widget refused to render something it was given."""
