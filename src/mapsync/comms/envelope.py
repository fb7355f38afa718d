"""Envelope codec — the tagged message-plus-payload unit exchanged with the controller.

Wire form is a JSON object ``{"message": str, "data": object}``. Tags may
carry a namespace prefix (``leaflet/map/view``); the namespace is stripped on
the way in and added on the way out.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from mapsync.errors import EnvelopeError

# Inbound: global (control-plane) tags
ENTER_STEP = "enterStep"
ICON_CREATE = "icon/create"
INITIALIZE = "initialize"

# Inbound: map-scoped tags
MAP_VIEW = "map/view"
MAP_ZOOM = "map/zoom"
MAP_FIT = "map/fit"
MARKERS_UPDATE = "markers/update"
LEGEND_UPDATE = "legend/update"
GEOJSON_ADD = "geojson/add"
GEOJSON_FLUSH = "geojson/flush"
LOADING_SHOW = "loading/show"
LOADING_HIDE = "loading/false"
LOADING_HIDE_ALIAS = "loading/hide"

# Outbound
ON_DID_ENTER_STEP = "onDidEnterStep"
ON_DID_LOAD = "onDidLoad"
ON_DID_CHANGE_VIEW = "onDidChangeView"
ON_DID_CLICK_MAP = "onDidClickMap"
ON_DID_CLICK_ZONE = "onDidClickZone"


@dataclass(frozen=True)
class Envelope:
    """A single tagged message.

    Attributes:
        message: The message tag, without namespace.
        data: The payload object.
    """

    message: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self, namespace: str = "") -> dict:
        return {"message": qualify(self.message, namespace), "data": self.data}

    def to_json(self, namespace: str = "") -> str:
        return json.dumps(self.to_dict(namespace))

    @classmethod
    def from_dict(cls, raw: Any, namespace: str = "") -> "Envelope":
        """Build an Envelope from a decoded JSON object.

        Args:
            raw: The decoded object.
            namespace: Namespace prefix to strip from the tag, if present.

        Raises:
            EnvelopeError: If ``raw`` is not a well-formed envelope.
        """
        if not isinstance(raw, dict):
            raise EnvelopeError(f"Envelope must be an object, got {type(raw).__name__}")
        message = raw.get("message")
        if not isinstance(message, str) or not message:
            raise EnvelopeError("Envelope is missing a string 'message' tag")
        data = raw.get("data")
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise EnvelopeError(f"Envelope 'data' for {message!r} must be an object")
        return cls(message=unqualify(message, namespace), data=data)

    @classmethod
    def from_json(cls, text: str, namespace: str = "") -> "Envelope":
        try:
            raw = json.loads(text)
        except (json.JSONDecodeError, TypeError) as e:
            raise EnvelopeError(f"Invalid JSON: {e}") from e
        return cls.from_dict(raw, namespace)


def qualify(message: str, namespace: str) -> str:
    """Prefix a bare tag with ``namespace/`` (no-op for an empty namespace)."""
    if not namespace:
        return message
    return f"{namespace}/{message}"


def unqualify(message: str, namespace: str) -> str:
    """Strip a leading ``namespace/`` from a tag. Bare tags pass through."""
    if namespace and message.startswith(namespace + "/"):
        return message[len(namespace) + 1:]
    return message
