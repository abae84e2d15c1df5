"""Project client records. Passwords are write-only."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from mission_control.api.deps import get_client_repository
from mission_control.api.middleware.user_auth import AuthenticatedUser, get_current_user
from mission_control.api.models import CreateClientRequest
from mission_control.projects.repository import ProjectClientRepository

router = APIRouter(prefix="/api/clients", tags=["clients"])


@router.get("")
async def list_clients(
    project_id: str = Query(..., min_length=1),
    user: AuthenticatedUser = Depends(get_current_user),
    clients: ProjectClientRepository = Depends(get_client_repository),
) -> list[dict[str, Any]]:
    return [c.model_dump(mode="json") for c in clients.list_by_project(project_id)]


# Plain def: password hashing blocks
@router.post("", status_code=201)
def create_client(
    request: CreateClientRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    clients: ProjectClientRepository = Depends(get_client_repository),
) -> dict[str, Any]:
    client = clients.create(
        project_id=request.project_id,
        name=request.name,
        password=request.password,
        email=request.email,
    )
    return client.model_dump(mode="json")


@router.delete("")
async def delete_client(
    id: str = Query(..., min_length=1),
    user: AuthenticatedUser = Depends(get_current_user),
    clients: ProjectClientRepository = Depends(get_client_repository),
) -> dict[str, bool]:
    clients.delete(id)
    return {"success": True}
