"""
Public client dashboard endpoints.

A client signs in with the project's shared password and receives an
HTTP-only ``client_session`` cookie holding the project id. The dashboard
endpoint only serves the project named by both the URL slug and the cookie.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request, Response

from mission_control.api.deps import get_project_service
from mission_control.api.models import ClientLoginRequest
from mission_control.config import CLIENT_SESSION_COOKIE, CLIENT_SESSION_MAX_AGE, is_production
from mission_control.errors import UnauthorizedError
from mission_control.observability.logging import get_logger
from mission_control.observability.telemetry import log_event
from mission_control.projects.models import Project
from mission_control.projects.service import ProjectService

router = APIRouter(prefix="/api/client", tags=["client"])
logger = get_logger(__name__)


def client_session(request: Request) -> str | None:
    """Project id from the client session cookie, if any."""
    return request.cookies.get(CLIENT_SESSION_COOKIE) or None


# Plain def: bcrypt blocks, so FastAPI runs this in its threadpool
@router.post("/auth")
def client_login(
    request: ClientLoginRequest,
    response: Response,
    service: ProjectService = Depends(get_project_service),
) -> dict[str, Any]:
    """
    Check the client password for a project slug.

    On success sets the ``client_session`` cookie for 24 hours. Unknown slug
    and wrong password both return 401 without a cookie.
    """
    project = service.authenticate_client(request.slug, request.password)

    response.set_cookie(
        key=CLIENT_SESSION_COOKIE,
        value=project.id,
        max_age=CLIENT_SESSION_MAX_AGE,
        path="/",
        httponly=True,
        samesite="lax",
        secure=is_production(),
    )
    log_event("client.login", project_id=project.id)
    return {"success": True, "projectId": project.id}


@router.post("/logout")
async def client_logout(response: Response) -> dict[str, bool]:
    response.delete_cookie(key=CLIENT_SESSION_COOKIE, path="/")
    return {"success": True}


@router.get("/{slug}")
async def client_project_name(
    slug: str,
    service: ProjectService = Depends(get_project_service),
) -> dict[str, Any]:
    """Project display name for the login page."""
    project = service.get_project_by_slug(slug)
    return {"name": project.name, "client_name": project.client_name}


def _session_project(request: Request, slug: str, service: ProjectService) -> Project:
    project_id = client_session(request)
    if not project_id:
        raise UnauthorizedError("Unauthorized")

    project = service.projects.get_by_id(project_id)
    if project is None or project.client_slug != slug.strip().lower():
        raise UnauthorizedError("Unauthorized")
    return project


@router.get("/{slug}/dashboard")
async def client_dashboard(
    slug: str,
    request: Request,
    service: ProjectService = Depends(get_project_service),
) -> dict[str, Any]:
    """Everything the client dashboard shows, for the signed-in project."""
    project = _session_project(request, slug, service)
    return service.get_client_dashboard(project).to_dict()
