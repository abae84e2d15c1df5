"""AI project-health summary endpoint."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request

from mission_control.api.deps import get_summary_service
from mission_control.api.middleware.user_auth import get_optional_user
from mission_control.api.routes.client_portal import client_session
from mission_control.errors import UnauthorizedError
from mission_control.projects.summary import SummaryService

router = APIRouter(prefix="/api/summary", tags=["summary"])


async def require_summary_access(project_id: str, request: Request) -> None:
    """
    Allow a client signed in to this project, or an admin user.

    The client session is checked first, so a signed-in client never waits on
    (or fails with) the auth provider.
    """
    if client_session(request) == project_id:
        return
    if await get_optional_user(request) is None:
        raise UnauthorizedError("Unauthorized")


# Plain def: the model call blocks, so FastAPI runs this in its threadpool
@router.get("/{project_id}", dependencies=[Depends(require_summary_access)])
def get_project_summary(
    project_id: str,
    summaries: SummaryService = Depends(get_summary_service),
) -> dict[str, Any]:
    """
    Cached or freshly generated health summary for a project.

    Generation failures return the previous summary marked stale, or
    ``summary: null``; they never fail the request.
    """
    return summaries.get_summary(project_id).to_dict()
