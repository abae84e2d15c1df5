"""
Repositories - CRUD operations for the Mission Control tables.

Each repository receives the ``Database`` handle explicitly. SQLite errors are
translated into the error taxonomy in ``mission_control.errors``:
unique violations on ``projects.client_slug`` become ConflictError, foreign
key violations become NotFoundError, everything else becomes StorageError
carrying the underlying message. Nothing is retried.
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

from mission_control.errors import ConflictError, NotFoundError, StorageError, ValidationError
from mission_control.infrastructure.database import Database
from mission_control.observability.logging import get_logger
from mission_control.observability.telemetry import counter
from mission_control.projects.models import (
    Blocker,
    BlockerStatus,
    ChangeRequest,
    ChangeRequestStatus,
    Event,
    EventProvider,
    EventSeverity,
    Module,
    Project,
    ProjectClient,
    ProjectStatus,
    Task,
    TaskStatus,
    WaitingOn,
    utc_now,
)
from mission_control.utils.crypto import hash_password

logger = get_logger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


def _now_iso() -> str:
    return utc_now().isoformat()


@contextmanager
def storage_errors(
    action: str, missing: str = "Project not found"
) -> Generator[None, None, None]:
    """
    Translate sqlite3 errors raised inside the block.

    A foreign key failure becomes a 404 with ``missing`` as the message.
    """
    try:
        yield
    except sqlite3.IntegrityError as e:
        message = str(e)
        if "projects.client_slug" in message:
            counter("storage.slug_conflict")
            raise ConflictError(
                "That client slug is already taken. Choose a different one."
            ) from e
        if "FOREIGN KEY" in message:
            logger.info("Foreign key failure while trying to %s: %s", action, e)
            raise NotFoundError(missing) from e
        counter("storage.error")
        logger.error("Integrity error while trying to %s: %s", action, e)
        raise StorageError(message) from e
    except sqlite3.Error as e:
        counter("storage.error")
        logger.error("Database error while trying to %s: %s", action, e)
        raise StorageError(str(e)) from e


class BaseRepository:
    def __init__(self, db: Database) -> None:
        self.db = db


class ProjectRepository(BaseRepository):
    """CRUD for the projects table, plus the AI summary cache columns."""

    UPDATABLE_FIELDS = (
        "name",
        "status",
        "client_name",
        "start_date",
        "target_end_date",
        "budget_hours",
        "used_hours",
        "next_milestone",
        "next_milestone_date",
    )

    def create(
        self,
        name: str,
        client_slug: str,
        client_name: str | None = None,
        client_password: str | None = None,
    ) -> Project:
        """
        Create a new active project.

        Raises:
            ConflictError: If the client slug is already used (no row inserted)

        Side Effects:
            - Inserts row into projects table
        """
        project = Project(
            id=_new_id(),
            name=name,
            status=ProjectStatus.ACTIVE,
            client_name=client_name,
            client_slug=client_slug.strip().lower(),
            client_password=hash_password(client_password) if client_password else None,
        )

        with storage_errors("create project"), self.db.transaction() as conn:
            conn.execute(
                """
                INSERT INTO projects (
                    id, name, status, client_name, client_slug, client_password,
                    budget_hours, used_hours, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, 0, 0, ?)
                """,
                (
                    project.id,
                    project.name,
                    project.status.value,
                    project.client_name,
                    project.client_slug,
                    project.client_password,
                    project.created_at.isoformat(),
                ),
            )

        logger.info("Created project %s (slug=%s)", project.id, project.client_slug)
        return project

    def get_by_id(self, project_id: str) -> Project | None:
        with storage_errors("load project"):
            row = self.db.fetch_one("SELECT * FROM projects WHERE id = ?", (project_id,))
        return Project.from_db_row(row) if row else None

    def get_by_slug(self, client_slug: str) -> Project | None:
        with storage_errors("load project"):
            row = self.db.fetch_one(
                "SELECT * FROM projects WHERE client_slug = ?", (client_slug.lower(),)
            )
        return Project.from_db_row(row) if row else None

    def require(self, project_id: str) -> Project:
        project = self.get_by_id(project_id)
        if project is None:
            raise NotFoundError("Project not found")
        return project

    def list_all(self) -> list[Project]:
        with storage_errors("list projects"):
            rows = self.db.fetch_all("SELECT * FROM projects ORDER BY created_at DESC")
        return [Project.from_db_row(row) for row in rows]

    def update(self, project_id: str, updates: dict[str, Any]) -> Project:
        """
        Update whitelisted project fields.

        Args:
            project_id: Project to update
            updates: Column -> value; ``client_password`` is hashed before storage

        Raises:
            NotFoundError: If the project does not exist
        """
        values: dict[str, Any] = {}
        for field, value in updates.items():
            if field == "client_password":
                values[field] = hash_password(value) if value else None
            elif field in self.UPDATABLE_FIELDS:
                values[field] = value.value if isinstance(value, ProjectStatus) else value
            else:
                raise ValidationError(f"Field '{field}' cannot be updated")

        if not values:
            raise ValidationError("No valid fields to update")

        # Column names come from the whitelist above, never from the request
        assignments = ", ".join(f"{column} = :{column}" for column in values)
        with storage_errors("update project"), self.db.transaction() as conn:
            cursor = conn.execute(
                f"UPDATE projects SET {assignments} WHERE id = :id",
                {**values, "id": project_id},
            )
            if cursor.rowcount == 0:
                raise NotFoundError("Project not found")

        return self.require(project_id)

    def save_summary(self, project_id: str, summary: str, generated_at: datetime) -> None:
        """
        Overwrite the cached AI summary. Last write wins; no version check.

        Side Effects:
            - Updates ai_summary and ai_summary_generated_at on the project row
        """
        with storage_errors("save summary"), self.db.transaction() as conn:
            conn.execute(
                "UPDATE projects SET ai_summary = ?, ai_summary_generated_at = ? WHERE id = ?",
                (summary, generated_at.isoformat(), project_id),
            )

    def delete(self, project_id: str) -> None:
        """Delete a project and (via cascade) everything it owns."""
        with storage_errors("delete project"), self.db.transaction() as conn:
            cursor = conn.execute("DELETE FROM projects WHERE id = ?", (project_id,))
            if cursor.rowcount == 0:
                raise NotFoundError("Project not found")
        logger.info("Deleted project %s", project_id)


class ModuleRepository(BaseRepository):
    def create(self, project_id: str, name: str) -> Module:
        """
        Create a module at the end of the project's module list.

        The position is allocated and the row inserted in a single statement,
        so two concurrent creates cannot read the same max position.

        Raises:
            NotFoundError: If the project does not exist
        """
        module_id = _new_id()
        with storage_errors("create module"), self.db.transaction() as conn:
            # Take the write lock before reading MAX(position)
            conn.execute("BEGIN IMMEDIATE")
            conn.execute(
                """
                INSERT INTO modules (id, project_id, name, position, created_at)
                SELECT ?, ?, ?, COALESCE(MAX(position) + 1, 0), ?
                FROM modules WHERE project_id = ?
                """,
                (module_id, project_id, name, _now_iso(), project_id),
            )
            row = conn.execute("SELECT * FROM modules WHERE id = ?", (module_id,)).fetchone()

        logger.info("Created module %s in project %s", module_id, project_id)
        return Module.from_db_row(dict(row))

    def get_by_id(self, module_id: str) -> Module | None:
        with storage_errors("load module"):
            row = self.db.fetch_one("SELECT * FROM modules WHERE id = ?", (module_id,))
        return Module.from_db_row(row) if row else None

    def list_with_tasks(self, project_id: str) -> list[Module]:
        """Modules ordered by position, each with its tasks ordered by position."""
        with storage_errors("list modules"):
            module_rows = self.db.fetch_all(
                "SELECT * FROM modules WHERE project_id = ? ORDER BY position ASC, created_at ASC",
                (project_id,),
            )
            task_rows = self.db.fetch_all(
                "SELECT * FROM tasks WHERE project_id = ? ORDER BY position ASC, created_at ASC",
                (project_id,),
            )

        tasks_by_module: dict[str, list[Task]] = {}
        for row in task_rows:
            task = Task.from_db_row(row)
            tasks_by_module.setdefault(task.module_id, []).append(task)

        return [
            Module.from_db_row({**row, "tasks": tasks_by_module.get(row["id"], [])})
            for row in module_rows
        ]

    def delete(self, module_id: str) -> None:
        """Delete a module; its tasks go with it (ON DELETE CASCADE)."""
        with storage_errors("delete module"), self.db.transaction() as conn:
            cursor = conn.execute("DELETE FROM modules WHERE id = ?", (module_id,))
            if cursor.rowcount == 0:
                raise NotFoundError("Module not found")
        logger.info("Deleted module %s", module_id)


class TaskRepository(BaseRepository):
    def create(self, module_id: str, project_id: str, title: str) -> Task:
        """
        Create a backlog task at position 0.

        Raises:
            NotFoundError: If the module does not exist
            ValidationError: If the module belongs to a different project
        """
        task = Task(
            id=_new_id(),
            module_id=module_id,
            project_id=project_id,
            title=title,
            status=TaskStatus.BACKLOG,
            position=0,
        )

        with storage_errors("create task"), self.db.transaction() as conn:
            owner = conn.execute(
                "SELECT project_id FROM modules WHERE id = ?", (module_id,)
            ).fetchone()
            if owner is None:
                raise NotFoundError("Module not found")
            if owner["project_id"] != project_id:
                raise ValidationError("Module does not belong to this project")

            conn.execute(
                """
                INSERT INTO tasks (
                    id, module_id, project_id, title, status, pr_url, position, qa_checks, created_at
                ) VALUES (?, ?, ?, ?, ?, NULL, ?, '{}', ?)
                """,
                (
                    task.id,
                    task.module_id,
                    task.project_id,
                    task.title,
                    task.status.value,
                    task.position,
                    task.created_at.isoformat(),
                ),
            )

        logger.info("Created task %s in module %s", task.id, module_id)
        return task

    def get_by_id(self, task_id: str) -> Task | None:
        with storage_errors("load task"):
            row = self.db.fetch_one("SELECT * FROM tasks WHERE id = ?", (task_id,))
        return Task.from_db_row(row) if row else None

    def list_by_project(self, project_id: str) -> list[Task]:
        with storage_errors("list tasks"):
            rows = self.db.fetch_all(
                "SELECT * FROM tasks WHERE project_id = ? ORDER BY position ASC, created_at ASC",
                (project_id,),
            )
        return [Task.from_db_row(row) for row in rows]

    def update(
        self,
        task_id: str,
        status: TaskStatus | None = None,
        pr_url: str | None = None,
        qa_checks: dict[str, bool] | None = None,
        clear_pr_url: bool = False,
    ) -> Task:
        """
        Update status, PR URL and/or QA checklist.

        Raises:
            ValidationError: If nothing to update
            NotFoundError: If the task does not exist
        """
        values: dict[str, Any] = {}
        if status is not None:
            values["status"] = TaskStatus(status).value
        if pr_url is not None or clear_pr_url:
            values["pr_url"] = pr_url
        if qa_checks is not None:
            values["qa_checks"] = json.dumps(qa_checks, sort_keys=True)

        if not values:
            raise ValidationError("No valid fields to update")

        assignments = ", ".join(f"{column} = :{column}" for column in values)
        with storage_errors("update task"), self.db.transaction() as conn:
            cursor = conn.execute(
                f"UPDATE tasks SET {assignments} WHERE id = :id", {**values, "id": task_id}
            )
            if cursor.rowcount == 0:
                raise NotFoundError("Task not found")
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()

        return Task.from_db_row(dict(row))

    def delete(self, task_id: str) -> None:
        with storage_errors("delete task"), self.db.transaction() as conn:
            cursor = conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
            if cursor.rowcount == 0:
                raise NotFoundError("Task not found")


class BlockerRepository(BaseRepository):
    def create(self, project_id: str, title: str, waiting_on: WaitingOn) -> Blocker:
        blocker = Blocker(
            id=_new_id(),
            project_id=project_id,
            title=title,
            waiting_on=waiting_on,
            status=BlockerStatus.OPEN,
        )
        with storage_errors("create blocker"), self.db.transaction() as conn:
            conn.execute(
                """
                INSERT INTO blockers (id, project_id, title, waiting_on, status, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    blocker.id,
                    blocker.project_id,
                    blocker.title,
                    blocker.waiting_on.value,
                    blocker.status.value,
                    blocker.created_at.isoformat(),
                ),
            )
        return blocker

    def update_status(self, blocker_id: str, status: BlockerStatus) -> Blocker:
        with storage_errors("update blocker"), self.db.transaction() as conn:
            cursor = conn.execute(
                "UPDATE blockers SET status = ? WHERE id = ?",
                (BlockerStatus(status).value, blocker_id),
            )
            if cursor.rowcount == 0:
                raise NotFoundError("Blocker not found")
            row = conn.execute("SELECT * FROM blockers WHERE id = ?", (blocker_id,)).fetchone()
        return Blocker.from_db_row(dict(row))

    def list_by_project(
        self, project_id: str, status: BlockerStatus | None = None
    ) -> list[Blocker]:
        """Blockers for a project, newest first, optionally filtered by status."""
        with storage_errors("list blockers"):
            if status is not None:
                rows = self.db.fetch_all(
                    """
                    SELECT * FROM blockers WHERE project_id = ? AND status = ?
                    ORDER BY created_at DESC
                    """,
                    (project_id, BlockerStatus(status).value),
                )
            else:
                rows = self.db.fetch_all(
                    "SELECT * FROM blockers WHERE project_id = ? ORDER BY created_at DESC",
                    (project_id,),
                )
        return [Blocker.from_db_row(row) for row in rows]


class ChangeRequestRepository(BaseRepository):
    def create(
        self,
        project_id: str,
        title: str,
        description: str | None = None,
        status: ChangeRequestStatus = ChangeRequestStatus.PENDING,
        hours_impact: float = 0,
    ) -> ChangeRequest:
        change_request = ChangeRequest(
            id=_new_id(),
            project_id=project_id,
            title=title,
            description=description,
            status=status,
            hours_impact=hours_impact,
        )
        with storage_errors("create change request"), self.db.transaction() as conn:
            conn.execute(
                """
                INSERT INTO change_requests (
                    id, project_id, title, description, status, hours_impact, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    change_request.id,
                    change_request.project_id,
                    change_request.title,
                    change_request.description,
                    change_request.status.value,
                    change_request.hours_impact,
                    change_request.created_at.isoformat(),
                ),
            )
        return change_request

    def update(
        self,
        change_request_id: str,
        status: ChangeRequestStatus | None = None,
        hours_impact: float | None = None,
    ) -> ChangeRequest:
        values: dict[str, Any] = {}
        if status is not None:
            values["status"] = ChangeRequestStatus(status).value
        if hours_impact is not None:
            values["hours_impact"] = hours_impact
        if not values:
            raise ValidationError("No valid fields to update")

        assignments = ", ".join(f"{column} = :{column}" for column in values)
        with storage_errors("update change request"), self.db.transaction() as conn:
            cursor = conn.execute(
                f"UPDATE change_requests SET {assignments} WHERE id = :id",
                {**values, "id": change_request_id},
            )
            if cursor.rowcount == 0:
                raise NotFoundError("Change request not found")
            row = conn.execute(
                "SELECT * FROM change_requests WHERE id = ?", (change_request_id,)
            ).fetchone()
        return ChangeRequest.from_db_row(dict(row))

    def list_by_project(self, project_id: str) -> list[ChangeRequest]:
        with storage_errors("list change requests"):
            rows = self.db.fetch_all(
                "SELECT * FROM change_requests WHERE project_id = ? ORDER BY created_at DESC",
                (project_id,),
            )
        return [ChangeRequest.from_db_row(row) for row in rows]


class EventRepository(BaseRepository):
    """Append-only access to events_cache."""

    def create(
        self,
        project_id: str,
        provider: EventProvider,
        event_type: str,
        severity: EventSeverity,
        title: str,
        metadata: dict[str, Any] | None = None,
        created_at: datetime | None = None,
    ) -> Event:
        event = Event(
            id=_new_id(),
            project_id=project_id,
            provider=provider,
            event_type=event_type,
            severity=severity,
            title=title,
            metadata=metadata or {},
            created_at=created_at or utc_now(),
        )
        with storage_errors("record event"), self.db.transaction() as conn:
            conn.execute(
                """
                INSERT INTO events_cache (
                    id, project_id, provider, event_type, severity, title, metadata, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    event.id,
                    event.project_id,
                    event.provider.value,
                    event.event_type,
                    event.severity.value,
                    event.title,
                    json.dumps(event.metadata),
                    event.created_at.isoformat(),
                ),
            )
        return event

    def list_recent(self, project_id: str, limit: int | None = None) -> list[Event]:
        """Events for a project, newest first."""
        with storage_errors("list events"):
            if limit is not None:
                rows = self.db.fetch_all(
                    """
                    SELECT * FROM events_cache WHERE project_id = ?
                    ORDER BY created_at DESC, rowid DESC LIMIT ?
                    """,
                    (project_id, limit),
                )
            else:
                rows = self.db.fetch_all(
                    """
                    SELECT * FROM events_cache WHERE project_id = ?
                    ORDER BY created_at DESC, rowid DESC
                    """,
                    (project_id,),
                )
        return [Event.from_db_row(row) for row in rows]


class ProjectClientRepository(BaseRepository):
    def create(
        self, project_id: str, name: str, password: str, email: str | None = None
    ) -> ProjectClient:
        client = ProjectClient(
            id=_new_id(),
            project_id=project_id,
            name=name,
            email=email,
            password=hash_password(password),
        )
        with storage_errors("create client"), self.db.transaction() as conn:
            conn.execute(
                """
                INSERT INTO project_clients (id, project_id, name, email, password, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    client.id,
                    client.project_id,
                    client.name,
                    client.email,
                    client.password,
                    client.created_at.isoformat(),
                ),
            )
        return client

    def list_by_project(self, project_id: str) -> list[ProjectClient]:
        with storage_errors("list clients"):
            rows = self.db.fetch_all(
                """
                SELECT id, project_id, name, email, created_at FROM project_clients
                WHERE project_id = ? ORDER BY created_at DESC
                """,
                (project_id,),
            )
        return [ProjectClient.from_db_row(row) for row in rows]

    def delete(self, client_id: str) -> None:
        with storage_errors("delete client"), self.db.transaction() as conn:
            cursor = conn.execute("DELETE FROM project_clients WHERE id = ?", (client_id,))
            if cursor.rowcount == 0:
                raise NotFoundError("Client not found")
