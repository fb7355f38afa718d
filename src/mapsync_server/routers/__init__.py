"""API routers."""

from mapsync_server.routers.api import router as api_router
from mapsync_server.routers.ws import router as ws_router

__all__ = ["api_router", "ws_router"]
