"""MAPSYNC - map session synchronization server.

Main FastAPI application.
"""

import asyncio
import contextlib
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from mapsync import __version__
from mapsync.comms.event_bus import EventBus
from mapsync.session.registry import SessionRegistry
from mapsync_server.config import settings
from mapsync_server.routers import api_router, ws_router
from mapsync_server.routers.ws import relay_outbound
from mapsync_server.surfaces import SurfaceHub


def _configure_logging() -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if settings.debug else "INFO")


def create_registry(surfaces: SurfaceHub) -> SessionRegistry:
    """Build the process-wide registry from settings."""
    return SessionRegistry(
        surfaces.create_widget,
        event_bus=EventBus(maxsize=settings.outbound_queue_size),
        namespace=settings.message_namespace,
        view_debounce_ms=settings.view_debounce_ms,
        legend_placeholder=settings.legend_placeholder,
    )


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("=" * 60)
    logger.info(f"  {settings.app_name} v{__version__} - INITIALIZING")
    logger.info("=" * 60)

    surfaces = SurfaceHub(buffer_size=settings.surface_buffer_size)
    registry = create_registry(surfaces)
    app.state.surfaces = surfaces
    app.state.registry = registry

    relay = asyncio.create_task(
        relay_outbound(registry.event_bus, settings.message_namespace)
    )
    namespace = settings.message_namespace or "(none)"
    logger.info(
        f"Session registry ready (namespace={namespace}, "
        f"view debounce={settings.view_debounce_ms}ms)"
    )

    logger.info("=" * 60)
    logger.info(f"  {settings.app_name} ONLINE")
    logger.info("=" * 60)

    yield

    logger.info(f"{settings.app_name} shutting down...")
    relay.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await relay
    registry.close()


_configure_logging()

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Map session synchronization server",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(ws_router)
app.include_router(api_router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "operational",
        "version": __version__,
        "system": settings.app_name,
    }


@app.get("/api/status")
async def status():
    """System status endpoint."""
    registry: SessionRegistry = app.state.registry
    return {
        "name": settings.app_name,
        "version": __version__,
        "maps": [str(map_id) for map_id in registry.map_ids],
        "current_step": registry.current_step,
    }


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port)
