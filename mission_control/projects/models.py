"""
Domain models for Mission Control projects.

Rows from the projects, modules, tasks, blockers, change_requests,
events_cache and project_clients tables. Status-like columns are closed
enumerations: an unknown value fails validation instead of falling back to a
default.
"""

from __future__ import annotations

import json
from datetime import UTC, date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_now() -> datetime:
    """Return current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Parse an ISO timestamp into UTC, assuming UTC when no offset is present."""
    if value is None or value == "":
        return None
    parsed = value if isinstance(value, datetime) else datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _load_json_object(value: Any) -> dict[str, Any]:
    if value is None or value == "":
        return {}
    if isinstance(value, dict):
        return value
    loaded = json.loads(value)
    return loaded if isinstance(loaded, dict) else {}


class ProjectStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class TaskStatus(str, Enum):
    """Where a task sits on the board."""

    BACKLOG = "backlog"
    IN_DEV = "in_dev"
    IN_QA = "in_qa"
    APPROVED = "approved"
    DEPLOYED = "deployed"
    FAILED = "failed"


class BlockerStatus(str, Enum):
    OPEN = "open"
    RESOLVED = "resolved"


class WaitingOn(str, Enum):
    CLIENT = "client"
    TEAM = "team"


class ChangeRequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class EventProvider(str, Enum):
    GITHUB = "github"
    SENTRY = "sentry"
    VERCEL = "vercel"
    BETTERUPTIME = "betteruptime"


class EventSeverity(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


TASK_STATUS_LABELS: dict[TaskStatus, str] = {
    TaskStatus.BACKLOG: "Backlog",
    TaskStatus.IN_DEV: "In Dev",
    TaskStatus.IN_QA: "In QA",
    TaskStatus.APPROVED: "Approved",
    TaskStatus.DEPLOYED: "Deployed",
    TaskStatus.FAILED: "Failed",
}

# The fixed QA checklist every task is reviewed against
QA_CHECK_ITEMS: dict[str, str] = {
    "feature_works": "Feature works as described",
    "no_console_errors": "No console errors",
    "mobile_responsive": "Mobile responsive",
    "loading_states": "Loading states implemented",
    "error_states": "Error states handled",
    "no_hardcoded_data": "No hardcoded test data",
    "env_vars_correct": "Environment variables used correctly",
    "rls_checked": "Row-level access policies checked",
    "api_status_codes": "API routes return correct status codes",
    "no_any_types": "No untyped escape hatches",
    "eslint_passes": "Lint passes",
    "tested_production": "Tested on production URL",
}
QA_CHECK_KEYS: tuple[str, ...] = tuple(QA_CHECK_ITEMS)


def _require_exhaustive(mapping: dict[Any, Any], enum_cls: type[Enum]) -> None:
    missing = [member for member in enum_cls if member not in mapping]
    if missing:
        raise RuntimeError(f"{enum_cls.__name__} mapping is missing {missing}")


_require_exhaustive(TASK_STATUS_LABELS, TaskStatus)


def task_status_label(status: TaskStatus | str) -> str:
    """Display label for a task status. Raises ValueError for unknown statuses."""
    return TASK_STATUS_LABELS[TaskStatus(status)]


def validate_qa_checks(checks: dict[str, Any]) -> dict[str, bool]:
    """
    Validate a QA checklist mapping.

    Raises:
        ValueError: On keys outside the fixed checklist or non-boolean values
    """
    unknown = sorted(key for key in checks if key not in QA_CHECK_ITEMS)
    if unknown:
        raise ValueError(f"Unknown QA check keys: {', '.join(unknown)}")
    for key, value in checks.items():
        if not isinstance(value, bool):
            raise ValueError(f"QA check '{key}' must be true or false")
    return dict(checks)


class Project(BaseModel):
    """A client project. ``client_password`` holds a bcrypt hash."""

    model_config = ConfigDict(frozen=False)

    id: str
    name: str
    status: ProjectStatus = ProjectStatus.ACTIVE
    client_name: str | None = None
    client_slug: str
    client_password: str | None = Field(default=None, exclude=True)
    start_date: date | None = None
    target_end_date: date | None = None
    budget_hours: float = 0
    used_hours: float = 0
    next_milestone: str | None = None
    next_milestone_date: date | None = None
    ai_summary: str | None = None
    ai_summary_generated_at: datetime | None = None
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("budget_hours", "used_hours", mode="before")
    @classmethod
    def _hours_default(cls, v: Any) -> Any:
        return 0 if v is None else v

    @field_validator("ai_summary_generated_at", "created_at", mode="before")
    @classmethod
    def _parse_timestamps(cls, v: Any) -> Any:
        return parse_timestamp(v)

    @property
    def budget_percent(self) -> int | None:
        """Used hours as a whole percentage of the budget; None without a budget."""
        if not self.budget_hours:
            return None
        return round_half_up(self.used_hours / self.budget_hours * 100)

    def days_remaining(self, today: date) -> int | None:
        """Days until the target end date (negative when overdue)."""
        if self.target_end_date is None:
            return None
        return (self.target_end_date - today).days

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> Project:
        return cls(**row)


class Task(BaseModel):
    id: str
    module_id: str
    project_id: str
    title: str
    status: TaskStatus = TaskStatus.BACKLOG
    pr_url: str | None = None
    position: int = 0
    qa_checks: dict[str, bool] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_created(cls, v: Any) -> Any:
        return parse_timestamp(v)

    @property
    def qa_passed(self) -> int:
        return sum(1 for value in self.qa_checks.values() if value)

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> Task:
        data = dict(row)
        data["qa_checks"] = _load_json_object(data.get("qa_checks"))
        return cls(**data)


class Module(BaseModel):
    id: str
    project_id: str
    name: str
    position: int = 0
    tasks: list[Task] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_created(cls, v: Any) -> Any:
        return parse_timestamp(v)

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> Module:
        return cls(**row)


class Blocker(BaseModel):
    id: str
    project_id: str
    title: str
    waiting_on: WaitingOn
    status: BlockerStatus = BlockerStatus.OPEN
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_created(cls, v: Any) -> Any:
        return parse_timestamp(v)

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> Blocker:
        return cls(**row)


class ChangeRequest(BaseModel):
    id: str
    project_id: str
    title: str
    description: str | None = None
    status: ChangeRequestStatus = ChangeRequestStatus.PENDING
    hours_impact: float = 0
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_created(cls, v: Any) -> Any:
        return parse_timestamp(v)

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> ChangeRequest:
        return cls(**row)


class Event(BaseModel):
    """An integration event (deploy, uptime check, error report...)."""

    id: str
    project_id: str
    provider: EventProvider
    event_type: str
    severity: EventSeverity
    title: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_created(cls, v: Any) -> Any:
        return parse_timestamp(v)

    @property
    def link(self) -> str | None:
        """First link found in the metadata, if any."""
        for key in ("url", "issue_url", "repo_url"):
            value = self.metadata.get(key)
            if isinstance(value, str) and value:
                return value
        return None

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> Event:
        data = dict(row)
        data["metadata"] = _load_json_object(data.get("metadata"))
        return cls(**data)


class ProjectClient(BaseModel):
    """A named client login record. The password hash is never serialized."""

    id: str
    project_id: str
    name: str
    email: str | None = None
    password: str | None = Field(default=None, exclude=True)
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_created(cls, v: Any) -> Any:
        return parse_timestamp(v)

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> ProjectClient:
        return cls(**row)


def round_half_up(value: float, ndigits: int = 0) -> float | int:
    """Round halves away from zero for positive values (0.5 -> 1, 72.25 -> 72.3).

    ``round()`` uses banker's rounding, which would report 62.5% as 62.
    """
    quantum = Decimal(1).scaleb(-ndigits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if ndigits == 0 else float(rounded)
