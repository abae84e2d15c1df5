"""Blocker endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from mission_control.api.deps import get_blocker_repository
from mission_control.api.middleware.user_auth import AuthenticatedUser, get_current_user
from mission_control.api.models import CreateBlockerRequest, UpdateBlockerRequest
from mission_control.projects.models import BlockerStatus
from mission_control.projects.repository import BlockerRepository

router = APIRouter(prefix="/api/blockers", tags=["blockers"])


@router.get("")
async def list_blockers(
    project_id: str = Query(..., min_length=1),
    status: BlockerStatus | None = Query(None),
    user: AuthenticatedUser = Depends(get_current_user),
    blockers: BlockerRepository = Depends(get_blocker_repository),
) -> list[dict[str, Any]]:
    return [b.model_dump(mode="json") for b in blockers.list_by_project(project_id, status)]


@router.post("", status_code=201)
async def create_blocker(
    request: CreateBlockerRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    blockers: BlockerRepository = Depends(get_blocker_repository),
) -> dict[str, Any]:
    blocker = blockers.create(request.project_id, request.title, request.waiting_on)
    return blocker.model_dump(mode="json")


@router.patch("")
async def update_blocker(
    request: UpdateBlockerRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    blockers: BlockerRepository = Depends(get_blocker_repository),
) -> dict[str, Any]:
    """Open or resolve a blocker."""
    blocker = blockers.update_status(request.id, request.status)
    return blocker.model_dump(mode="json")
