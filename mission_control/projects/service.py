"""Project service layer: facade between API routes and repositories.

Assembles the client dashboard payload and checks client credentials.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any

from mission_control.config import DASHBOARD_EVENT_LIMIT
from mission_control.errors import NotFoundError, UnauthorizedError
from mission_control.infrastructure.database import Database
from mission_control.observability.logging import get_logger
from mission_control.observability.telemetry import counter
from mission_control.projects.metrics import ProjectMetrics, compute_metrics
from mission_control.projects.models import (
    Blocker,
    BlockerStatus,
    ChangeRequest,
    Event,
    Module,
    Project,
    utc_now,
)
from mission_control.projects.repository import (
    BlockerRepository,
    ChangeRequestRepository,
    EventRepository,
    ModuleRepository,
    ProjectRepository,
)
from mission_control.utils.crypto import verify_password

logger = get_logger(__name__)


@dataclass
class ClientDashboard:
    """Everything the public client dashboard renders."""

    project: Project
    events: list[Event]
    modules: list[Module]
    metrics: ProjectMetrics
    blockers: list[Blocker]
    change_requests: list[ChangeRequest]
    budget_percent: int | None
    days_remaining: int | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "project": self.project.model_dump(mode="json"),
            "events": [e.model_dump(mode="json") for e in self.events],
            "modules": [
                {**m.model_dump(mode="json"), "tasks": [_task_dict(t) for t in m.tasks]}
                for m in self.modules
            ],
            "metrics": self.metrics.to_dict(),
            "blockers": [b.model_dump(mode="json") for b in self.blockers],
            "changeRequests": [cr.model_dump(mode="json") for cr in self.change_requests],
            "budget_percent": self.budget_percent,
            "days_remaining": self.days_remaining,
        }


def _task_dict(task: Any) -> dict[str, Any]:
    return {**task.model_dump(mode="json"), "qa_passed": task.qa_passed}


class ProjectService:
    """Read-side operations spanning several tables."""

    def __init__(self, db: Database) -> None:
        self.projects = ProjectRepository(db)
        self.modules = ModuleRepository(db)
        self.blockers = BlockerRepository(db)
        self.change_requests = ChangeRequestRepository(db)
        self.events = EventRepository(db)

    def authenticate_client(self, slug: str, password: str) -> Project:
        """
        Check a client dashboard password.

        Raises:
            UnauthorizedError: Unknown slug or wrong password (same message for both)
        """
        project = self.projects.get_by_slug(slug.strip())
        if project is None or not verify_password(password, project.client_password):
            counter("client.login_failed")
            raise UnauthorizedError("Invalid password")

        counter("client.login_success")
        logger.info("Client login for project %s", project.id)
        return project

    def get_project_by_slug(self, slug: str) -> Project:
        project = self.projects.get_by_slug(slug.strip())
        if project is None:
            raise NotFoundError("Project not found")
        return project

    def get_client_dashboard(self, project: Project, today: date | None = None) -> ClientDashboard:
        """
        Load and derive everything shown on the client dashboard.

        Metrics are computed over the same recent-event window that is shown.
        """
        today = today or utc_now().date()
        events = self.events.list_recent(project.id, limit=DASHBOARD_EVENT_LIMIT)
        modules = self.modules.list_with_tasks(project.id)
        tasks = [task for module in modules for task in module.tasks]

        return ClientDashboard(
            project=project,
            events=events,
            modules=modules,
            metrics=compute_metrics(events, tasks),
            blockers=self.blockers.list_by_project(project.id, status=BlockerStatus.OPEN),
            change_requests=self.change_requests.list_by_project(project.id),
            budget_percent=project.budget_percent,
            days_remaining=project.days_remaining(today),
        )
