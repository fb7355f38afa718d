"""mapsync — keeps client-rendered map views in step with a controller.

The engine is split into:
- comms: envelope codec and the outbound EventBus
- layers: zone features, GeoJSON building and the geometry batch
- widget: the map widget interface and a remote (client-mirrored) widget
- session: debouncer, view reporter, marker reconciler, MapSession, registry
"""

from mapsync.errors import CoordinateError, EnvelopeError, MapSyncError, RenderError
from mapsync.session.registry import SessionRegistry

__version__ = "0.1.0"

__all__ = [
    "CoordinateError",
    "EnvelopeError",
    "MapSyncError",
    "RenderError",
    "SessionRegistry",
    "__version__",
]
