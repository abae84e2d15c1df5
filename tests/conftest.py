"""
Pytest configuration for Mission Control tests

Provides a temporary SQLite database, a stub summary generator and an API
client with admin authentication disabled.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date

import pytest
from fastapi.testclient import TestClient

from mission_control.api.app import create_app
from mission_control.api.middleware.user_auth import AuthProviderClient
from mission_control.errors import SummaryGenerationError
from mission_control.infrastructure.database import Database
from mission_control.observability import telemetry
from mission_control.projects.repository import ProjectRepository


class StubSummaryGenerator:
    """Records prompts; returns canned text or raises when ``fail`` is set."""

    def __init__(self, text: str = "Project is on track.") -> None:
        self.text = text
        self.fail = False
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.fail:
            raise SummaryGenerationError("model unavailable")
        return self.text


@pytest.fixture(autouse=True)
def reset_telemetry() -> Iterator[None]:
    telemetry.reset()
    yield
    telemetry.reset()


@pytest.fixture
def db(tmp_path) -> Iterator[Database]:
    database = Database(tmp_path / "mission_control.db", pool_size=2)
    database.init_schema()
    yield database
    database.close()


@pytest.fixture
def generator() -> StubSummaryGenerator:
    return StubSummaryGenerator()


@pytest.fixture
def app(tmp_path, generator):
    return create_app(
        db_path=tmp_path / "api.db",
        summary_generator=generator,
        auth=AuthProviderClient(disabled=True),
    )


@pytest.fixture
def client(app) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def api_db(client) -> Database:
    """The database behind ``client``."""
    return client.app.state.db


@pytest.fixture
def project(api_db):
    """A project with a dashboard password, budget and timeline."""
    projects = ProjectRepository(api_db)
    created = projects.create(
        name="Acme Portal",
        client_slug="acme",
        client_name="Acme Corp",
        client_password="s3cret",
    )
    return projects.update(
        created.id,
        {
            "budget_hours": 60,
            "used_hours": 45,
            "start_date": date(2026, 9, 1).isoformat(),
            "target_end_date": date(2026, 12, 1).isoformat(),
            "next_milestone": "Beta launch",
            "next_milestone_date": date(2026, 11, 1).isoformat(),
        },
    )
