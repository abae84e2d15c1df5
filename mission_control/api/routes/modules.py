"""Module (task board column) endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from mission_control.api.deps import get_module_repository
from mission_control.api.middleware.user_auth import AuthenticatedUser, get_current_user
from mission_control.api.models import CreateModuleRequest
from mission_control.projects.models import QA_CHECK_KEYS, Module
from mission_control.projects.repository import ModuleRepository

router = APIRouter(prefix="/api/modules", tags=["modules"])


def module_to_dict(module: Module) -> dict[str, Any]:
    """Module with its tasks, each carrying QA progress out of the full checklist."""
    return {
        **module.model_dump(mode="json", exclude={"tasks"}),
        "tasks": [
            {
                **task.model_dump(mode="json"),
                "qa_passed": task.qa_passed,
                "qa_total": len(QA_CHECK_KEYS),
            }
            for task in module.tasks
        ],
    }


@router.get("")
async def list_modules(
    project_id: str = Query(..., min_length=1),
    user: AuthenticatedUser = Depends(get_current_user),
    modules: ModuleRepository = Depends(get_module_repository),
) -> list[dict[str, Any]]:
    """Modules ordered by position, each with its tasks ordered by position."""
    return [module_to_dict(m) for m in modules.list_with_tasks(project_id)]


@router.post("", status_code=201)
async def create_module(
    request: CreateModuleRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    modules: ModuleRepository = Depends(get_module_repository),
) -> dict[str, Any]:
    """Append a module to the end of the project's board."""
    module = modules.create(request.project_id, request.name)
    return module_to_dict(module)


@router.delete("/{module_id}")
async def delete_module(
    module_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    modules: ModuleRepository = Depends(get_module_repository),
) -> dict[str, bool]:
    """Delete a module and every task in it."""
    modules.delete(module_id)
    return {"success": True}
