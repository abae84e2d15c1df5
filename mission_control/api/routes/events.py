"""
Event feed endpoints.

Events are append-only rows written by integrations (GitHub, Sentry, Vercel,
Better Uptime). The admin panel reads them newest first.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from mission_control.api.deps import get_event_repository
from mission_control.api.middleware.user_auth import AuthenticatedUser, get_current_user
from mission_control.api.models import CreateEventRequest
from mission_control.observability.telemetry import counter
from mission_control.projects.repository import EventRepository

router = APIRouter(prefix="/api/events", tags=["events"])


@router.get("")
async def list_events(
    project_id: str = Query(..., alias="projectId", min_length=1),
    limit: int | None = Query(None, ge=1, le=500),
    user: AuthenticatedUser = Depends(get_current_user),
    events: EventRepository = Depends(get_event_repository),
) -> dict[str, list[dict[str, Any]]]:
    return {
        "events": [
            {**e.model_dump(mode="json"), "link": e.link}
            for e in events.list_recent(project_id, limit=limit)
        ]
    }


@router.post("", status_code=201)
async def record_event(
    request: CreateEventRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    events: EventRepository = Depends(get_event_repository),
) -> dict[str, Any]:
    event = events.create(
        project_id=request.project_id,
        provider=request.provider,
        event_type=request.event_type,
        severity=request.severity,
        title=request.title,
        metadata=request.metadata,
    )
    counter(f"events.{event.provider.value}")
    return event.model_dump(mode="json")
