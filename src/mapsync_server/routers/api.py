"""HTTP endpoints — step source and map inspection."""

from __future__ import annotations

from typing import Union

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field

from mapsync.session.registry import SessionRegistry

router = APIRouter(prefix="/api", tags=["maps"])


class StepRequest(BaseModel):
    """The step source entered a new step."""

    model_config = ConfigDict(populate_by_name=True)

    step_id: Union[int, str] = Field(alias="stepId")


class MapSummary(BaseModel):
    """Current state of one map session."""

    id: str
    loaded: bool
    loading: bool
    legend: str
    queued_zones: int
    rendered_zones: int
    markers: int


def _registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


@router.post("/steps")
async def enter_step(body: StepRequest, request: Request):
    """Relay a step-entry event to the controller."""
    _registry(request).enter_step(body.step_id)
    return {"stepId": body.step_id}


@router.get("/maps")
async def list_maps(request: Request):
    return {"maps": [str(map_id) for map_id in _registry(request).map_ids]}


@router.get("/maps/{map_id}", response_model=MapSummary)
async def get_map(map_id: str, request: Request):
    registry = _registry(request)
    # Controllers may use numeric ids; paths are always strings
    session = next(
        (registry.get_session(mid) for mid in registry.map_ids if str(mid) == map_id),
        None,
    )
    if session is None:
        raise HTTPException(status_code=404, detail=f"Map not found: {map_id}")
    layer = session.current_layer
    return MapSummary(
        id=str(session.id),
        loaded=session.loaded,
        loading=session.loading,
        legend=session.legend_content,
        queued_zones=len(session.geometry_queue),
        rendered_zones=layer.feature_count if layer is not None else 0,
        markers=len(session.markers),
    )
