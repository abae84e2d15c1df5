"""
FastAPI dependencies that hand out the process-wide handles.

``create_app`` stores the Database, summary service and auth client on
``app.state`` during startup; handlers receive them through these getters.
"""

from __future__ import annotations

from fastapi import Request

from mission_control.infrastructure.database import Database
from mission_control.projects.repository import (
    BlockerRepository,
    ChangeRequestRepository,
    EventRepository,
    ModuleRepository,
    ProjectClientRepository,
    ProjectRepository,
    TaskRepository,
)
from mission_control.projects.service import ProjectService
from mission_control.projects.summary import SummaryService


def get_db(request: Request) -> Database:
    return request.app.state.db


def get_summary_service(request: Request) -> SummaryService:
    return request.app.state.summary_service


def get_project_service(request: Request) -> ProjectService:
    return ProjectService(get_db(request))


def get_project_repository(request: Request) -> ProjectRepository:
    return ProjectRepository(get_db(request))


def get_module_repository(request: Request) -> ModuleRepository:
    return ModuleRepository(get_db(request))


def get_task_repository(request: Request) -> TaskRepository:
    return TaskRepository(get_db(request))


def get_blocker_repository(request: Request) -> BlockerRepository:
    return BlockerRepository(get_db(request))


def get_change_request_repository(request: Request) -> ChangeRequestRepository:
    return ChangeRequestRepository(get_db(request))


def get_event_repository(request: Request) -> EventRepository:
    return EventRepository(get_db(request))


def get_client_repository(request: Request) -> ProjectClientRepository:
    return ProjectClientRepository(get_db(request))
