"""Creature upgrade-milestone (merge) endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Path, Query
from fastapi.responses import JSONResponse

from arcane_backend.api.dependencies import MergeEngineDep
from arcane_backend.api.models import ActionResponse, CreaturePairRequest
from arcane_backend.api.services import render_result

router = APIRouter(prefix="/api/creatures", tags=["creatures"])

UserIdPath = Annotated[str, Path(min_length=1, max_length=64)]


@router.put("/{user_id}/upgrade-milestone", response_model=ActionResponse)
def upgrade_milestone(
    user_id: UserIdPath, payload: CreaturePairRequest, engine: MergeEngineDep
) -> JSONResponse:
    """Start a merge, or complete it when the wait allows."""

    result = engine.start_or_advance(
        user_id, payload.creature1_id, payload.creature2_id
    )
    return render_result(result)


@router.get("/check-upgrade-progress/{user_id}", response_model=ActionResponse)
def check_upgrade_progress(
    user_id: UserIdPath,
    engine: MergeEngineDep,
    creature1_id: Annotated[str, Query(alias="creature1Id", min_length=1)],
    creature2_id: Annotated[str, Query(alias="creature2Id", min_length=1)],
) -> JSONResponse:
    """Poll merge progress without completing it."""

    return render_result(engine.check_progress(user_id, creature1_id, creature2_id))


@router.post("/{user_id}/collect-upgrade", response_model=ActionResponse)
def collect_upgrade(
    user_id: UserIdPath, payload: CreaturePairRequest, engine: MergeEngineDep
) -> JSONResponse:
    """Collect a merge whose wait has elapsed."""

    result = engine.collect_upgrade(
        user_id, payload.creature1_id, payload.creature2_id
    )
    return render_result(result)


@router.post("/speed-up-upgrade/{user_id}", response_model=ActionResponse)
def speed_up_upgrade(
    user_id: UserIdPath, payload: CreaturePairRequest, engine: MergeEngineDep
) -> JSONResponse:
    """Spend gems to finish the merge wait immediately."""

    result = engine.speed_up(user_id, payload.creature1_id, payload.creature2_id)
    return render_result(result)
