"""
Project API endpoints for the admin panel.

Create, list, inspect, update and delete projects.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from mission_control.api.deps import (
    get_blocker_repository,
    get_change_request_repository,
    get_project_repository,
)
from mission_control.api.middleware.user_auth import AuthenticatedUser, get_current_user
from mission_control.api.models import CreateProjectRequest, UpdateProjectRequest
from mission_control.observability.logging import get_logger
from mission_control.observability.telemetry import log_event
from mission_control.projects.repository import (
    BlockerRepository,
    ChangeRequestRepository,
    ProjectRepository,
)

router = APIRouter(prefix="/api/projects", tags=["projects"])
logger = get_logger(__name__)


@router.get("")
async def list_projects(
    user: AuthenticatedUser = Depends(get_current_user),
    projects: ProjectRepository = Depends(get_project_repository),
) -> list[dict[str, Any]]:
    """List all projects, newest first."""
    return [p.model_dump(mode="json") for p in projects.list_all()]


# Plain def: password hashing blocks, so these run in the threadpool
@router.post("", status_code=201)
def create_project(
    request: CreateProjectRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    projects: ProjectRepository = Depends(get_project_repository),
) -> dict[str, str]:
    """
    Create a project with status ``active``.

    The client slug is lowercased; a slug that is already taken returns 409.
    """
    project = projects.create(
        name=request.name,
        client_slug=request.client_slug,
        client_name=request.client_name,
        client_password=request.client_password,
    )
    log_event("project.created", project_id=project.id, user_id=user.id)
    return {"id": project.id}


@router.patch("")
def update_project(
    request: UpdateProjectRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    projects: ProjectRepository = Depends(get_project_repository),
) -> dict[str, Any]:
    """Update timeline, budget, milestone, status or client fields."""
    project = projects.update(request.id, request.updates())
    return project.model_dump(mode="json")


@router.get("/{project_id}")
async def get_project(
    project_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    projects: ProjectRepository = Depends(get_project_repository),
    blockers: BlockerRepository = Depends(get_blocker_repository),
    change_requests: ChangeRequestRepository = Depends(get_change_request_repository),
) -> dict[str, Any]:
    """Project detail with its blockers and change requests."""
    project = projects.require(project_id)
    return {
        "project": project.model_dump(mode="json"),
        "budget_percent": project.budget_percent,
        "blockers": [b.model_dump(mode="json") for b in blockers.list_by_project(project_id)],
        "changeRequests": [
            cr.model_dump(mode="json") for cr in change_requests.list_by_project(project_id)
        ],
    }


@router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    projects: ProjectRepository = Depends(get_project_repository),
) -> dict[str, bool]:
    projects.delete(project_id)
    log_event("project.deleted", project_id=project_id, user_id=user.id)
    return {"success": True}
