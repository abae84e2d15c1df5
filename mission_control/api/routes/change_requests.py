"""Change request endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from mission_control.api.deps import get_change_request_repository
from mission_control.api.middleware.user_auth import AuthenticatedUser, get_current_user
from mission_control.api.models import CreateChangeRequestRequest, UpdateChangeRequestRequest
from mission_control.projects.repository import ChangeRequestRepository

router = APIRouter(prefix="/api/change-requests", tags=["change-requests"])


@router.get("")
async def list_change_requests(
    project_id: str = Query(..., min_length=1),
    user: AuthenticatedUser = Depends(get_current_user),
    change_requests: ChangeRequestRepository = Depends(get_change_request_repository),
) -> list[dict[str, Any]]:
    return [cr.model_dump(mode="json") for cr in change_requests.list_by_project(project_id)]


@router.post("", status_code=201)
async def create_change_request(
    request: CreateChangeRequestRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    change_requests: ChangeRequestRepository = Depends(get_change_request_repository),
) -> dict[str, Any]:
    change_request = change_requests.create(
        project_id=request.project_id,
        title=request.title,
        description=request.description,
        status=request.status,
        hours_impact=request.hours_impact,
    )
    return change_request.model_dump(mode="json")


@router.patch("")
async def update_change_request(
    request: UpdateChangeRequestRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    change_requests: ChangeRequestRepository = Depends(get_change_request_repository),
) -> dict[str, Any]:
    """Approve or reject a change request, optionally revising its hours."""
    change_request = change_requests.update(
        request.id, status=request.status, hours_impact=request.hours_impact
    )
    return change_request.model_dump(mode="json")
