"""Request models for the Mission Control API"""

from __future__ import annotations

from datetime import date
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

from mission_control.projects.models import (
    BlockerStatus,
    ChangeRequestStatus,
    EventProvider,
    EventSeverity,
    ProjectStatus,
    TaskStatus,
    WaitingOn,
    validate_qa_checks,
)

# Required text: surrounding whitespace stripped, empty rejected
RequiredStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def _blank_to_none(v: Any) -> Any:
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


class CreateProjectRequest(BaseModel):
    name: RequiredStr
    client_slug: RequiredStr
    client_name: str | None = None
    client_password: str | None = None

    @field_validator("client_name", "client_password", mode="before")
    @classmethod
    def _optional_text(cls, v: Any) -> Any:
        return _blank_to_none(v)


class UpdateProjectRequest(BaseModel):
    """Partial update; only fields present in the body are written."""

    id: RequiredStr
    name: RequiredStr | None = None
    status: ProjectStatus | None = None
    client_name: str | None = None
    client_password: str | None = None
    start_date: date | None = None
    target_end_date: date | None = None
    budget_hours: float | None = Field(default=None, ge=0)
    used_hours: float | None = Field(default=None, ge=0)
    next_milestone: str | None = None
    next_milestone_date: date | None = None

    @field_validator("client_name", "client_password", "next_milestone", mode="before")
    @classmethod
    def _optional_text(cls, v: Any) -> Any:
        return _blank_to_none(v)

    def updates(self) -> dict[str, Any]:
        data = self.model_dump(mode="json", exclude={"id"}, exclude_unset=True)
        # name and status are NOT NULL columns; an explicit null means "leave as is"
        for column in ("name", "status"):
            if data.get(column) is None:
                data.pop(column, None)
        return data


class CreateModuleRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    project_id: RequiredStr = Field(alias="projectId")
    name: RequiredStr


class CreateTaskRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    module_id: RequiredStr = Field(alias="moduleId")
    project_id: RequiredStr = Field(alias="projectId")
    title: RequiredStr


class UpdateTaskRequest(BaseModel):
    qa_checks: dict[str, bool] | None = None
    status: TaskStatus | None = None
    pr_url: str | None = None

    @field_validator("qa_checks", mode="before")
    @classmethod
    def _known_checks(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return validate_qa_checks(v)
        return v

    @field_validator("pr_url", mode="before")
    @classmethod
    def _optional_url(cls, v: Any) -> Any:
        return _blank_to_none(v)


class CreateBlockerRequest(BaseModel):
    project_id: RequiredStr
    title: RequiredStr
    waiting_on: WaitingOn


class UpdateBlockerRequest(BaseModel):
    id: RequiredStr
    status: BlockerStatus


class CreateChangeRequestRequest(BaseModel):
    project_id: RequiredStr
    title: RequiredStr
    description: str | None = None
    status: ChangeRequestStatus = ChangeRequestStatus.PENDING
    hours_impact: float = 0

    @field_validator("description", mode="before")
    @classmethod
    def _optional_text(cls, v: Any) -> Any:
        return _blank_to_none(v)


class UpdateChangeRequestRequest(BaseModel):
    id: RequiredStr
    status: ChangeRequestStatus
    hours_impact: float | None = None


class CreateClientRequest(BaseModel):
    project_id: RequiredStr
    name: RequiredStr
    password: RequiredStr
    email: str | None = None

    @field_validator("email", mode="before")
    @classmethod
    def _optional_text(cls, v: Any) -> Any:
        return _blank_to_none(v)


class CreateEventRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    project_id: RequiredStr = Field(alias="projectId")
    provider: EventProvider
    event_type: RequiredStr
    severity: EventSeverity
    title: RequiredStr
    metadata: dict[str, Any] = Field(default_factory=dict)


class ClientLoginRequest(BaseModel):
    slug: RequiredStr
    password: str = Field(min_length=1)
