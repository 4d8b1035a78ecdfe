"""Arcane energy building endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Path
from fastapi.responses import JSONResponse

from arcane_backend.api.dependencies import ProductionEngineDep
from arcane_backend.api.models import ActionResponse
from arcane_backend.api.services import render_result
from arcane_backend.game_logic.state import MAX_PRODUCER_LEVEL

router = APIRouter(prefix="/user", tags=["arcane-energy"])

UserIdPath = Annotated[str, Path(min_length=1, max_length=64)]
LevelPath = Annotated[int, Path(ge=1, le=MAX_PRODUCER_LEVEL)]


@router.post("/{user_id}/add", response_model=ActionResponse)
def add_building(user_id: UserIdPath, engine: ProductionEngineDep) -> JSONResponse:
    """Give the user a level-1 Arcane Energy building."""

    return render_result(engine.add(user_id))


@router.post("/{user_id}/start", response_model=ActionResponse)
def start_production(user_id: UserIdPath, engine: ProductionEngineDep) -> JSONResponse:
    """Pay the activation cost and start a production cycle."""

    return render_result(engine.activate(user_id))


@router.post("/{user_id}/collect", response_model=ActionResponse)
def collect_energy(user_id: UserIdPath, engine: ProductionEngineDep) -> JSONResponse:
    """Collect the finished production cycle."""

    return render_result(engine.collect(user_id))


@router.post("/{user_id}/upgrade", response_model=ActionResponse)
def upgrade_building(user_id: UserIdPath, engine: ProductionEngineDep) -> JSONResponse:
    """Upgrade the building by one level."""

    return render_result(engine.upgrade(user_id))


@router.post("/{user_id}/upgrade/{level}", response_model=ActionResponse)
def upgrade_building_to_level(
    user_id: UserIdPath, level: LevelPath, engine: ProductionEngineDep
) -> JSONResponse:
    """Upgrade the building directly to *level*."""

    return render_result(engine.upgrade_to_level(user_id, level))


@router.get("/{user_id}/status", response_model=ActionResponse)
def building_status(user_id: UserIdPath, engine: ProductionEngineDep) -> JSONResponse:
    """Describe the building and its production stage."""

    return render_result(engine.status(user_id))
