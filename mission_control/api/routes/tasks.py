"""Task endpoints: create, update status / PR link / QA checklist, delete."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from mission_control.api.deps import get_task_repository
from mission_control.api.middleware.user_auth import AuthenticatedUser, get_current_user
from mission_control.api.models import CreateTaskRequest, UpdateTaskRequest
from mission_control.errors import ValidationError
from mission_control.projects.repository import TaskRepository

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


@router.post("", status_code=201)
async def create_task(
    request: CreateTaskRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    tasks: TaskRepository = Depends(get_task_repository),
) -> dict[str, Any]:
    """Create a backlog task at the top of its module."""
    task = tasks.create(request.module_id, request.project_id, request.title)
    return task.model_dump(mode="json")


@router.patch("/{task_id}")
async def update_task(
    task_id: str,
    request: UpdateTaskRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    tasks: TaskRepository = Depends(get_task_repository),
) -> dict[str, Any]:
    """
    Update any of ``qa_checks``, ``status`` and ``pr_url``.

    Only fields present in the body are written; ``pr_url: null`` clears the
    link. A body with none of the three fields is rejected.
    """
    provided = request.model_fields_set & {"qa_checks", "status", "pr_url"}
    if not provided:
        raise ValidationError("No valid fields to update")

    task = tasks.update(
        task_id,
        status=request.status,
        pr_url=request.pr_url,
        qa_checks=request.qa_checks,
        clear_pr_url="pr_url" in provided and request.pr_url is None,
    )
    return {"task": task.model_dump(mode="json")}


@router.delete("/{task_id}")
async def delete_task(
    task_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    tasks: TaskRepository = Depends(get_task_repository),
) -> dict[str, bool]:
    tasks.delete(task_id)
    return {"success": True}
