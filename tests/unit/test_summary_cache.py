"""Tests for the AI summary cache gate and persister"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from mission_control.errors import NotFoundError
from mission_control.observability.telemetry import get_counter
from mission_control.projects.models import Project
from mission_control.projects.repository import ProjectRepository
from mission_control.projects.summary import SummaryService, is_fresh

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=UTC)


@pytest.fixture
def projects(db):
    return ProjectRepository(db)


@pytest.fixture
def service(db, generator):
    return SummaryService(db, generator)


def seed_summary(projects, minutes_ago: int) -> Project:
    project = projects.create(name="Acme Portal", client_slug="acme")
    projects.save_summary(project.id, "Cached summary.", NOW - timedelta(minutes=minutes_ago))
    return projects.require(project.id)


class TestIsFresh:
    def test_missing_summary_is_stale(self):
        project = Project(id="p1", name="P", client_slug="p")
        assert not is_fresh(project, NOW)

    def test_summary_without_timestamp_is_stale(self):
        project = Project(id="p1", name="P", client_slug="p", ai_summary="Old")
        assert not is_fresh(project, NOW)

    def test_boundary(self):
        project = Project(
            id="p1",
            name="P",
            client_slug="p",
            ai_summary="Text",
            ai_summary_generated_at=NOW - timedelta(minutes=30),
        )
        assert not is_fresh(project, NOW)
        assert is_fresh(project, NOW - timedelta(seconds=1))


class TestGetSummary:
    def test_29_minutes_old_is_served_from_cache(self, service, projects, generator):
        """Test that a summary generated 29 minutes ago is returned with cached=true"""
        project = seed_summary(projects, minutes_ago=29)

        result = service.get_summary(project.id, now=NOW)

        assert result.summary == "Cached summary."
        assert result.cached is True
        assert result.stale is False
        assert generator.prompts == []
        assert get_counter("summary.cache_hit") == 1

    def test_31_minutes_old_is_regenerated(self, service, projects, generator):
        """Test that a summary generated 31 minutes ago triggers regeneration"""
        project = seed_summary(projects, minutes_ago=31)

        result = service.get_summary(project.id, now=NOW)

        assert result.summary == "Project is on track."
        assert result.cached is False
        assert result.generated_at == NOW
        assert len(generator.prompts) == 1
        assert "Project: Acme Portal" in generator.prompts[0]

        stored = projects.require(project.id)
        assert stored.ai_summary == "Project is on track."
        assert stored.ai_summary_generated_at == NOW

    def test_empty_summary_generates(self, service, projects, generator):
        project = projects.create(name="Fresh", client_slug="fresh")

        result = service.get_summary(project.id, now=NOW)

        assert result.summary == "Project is on track."
        assert len(generator.prompts) == 1

    def test_failure_returns_stale_summary(self, service, projects, generator):
        """Test that a failed regeneration keeps and returns the previous summary"""
        project = seed_summary(projects, minutes_ago=45)
        generator.fail = True

        result = service.get_summary(project.id, now=NOW)

        assert result.summary == "Cached summary."
        assert result.cached is True
        assert result.stale is True
        assert result.generated_at == NOW - timedelta(minutes=45)
        assert projects.require(project.id).ai_summary_generated_at == NOW - timedelta(minutes=45)
        assert get_counter("summary.generation_failed") == 1

    def test_failure_without_previous_summary_is_unavailable(self, service, projects, generator):
        project = projects.create(name="Fresh", client_slug="fresh")
        generator.fail = True

        result = service.get_summary(project.id, now=NOW)

        assert result.to_dict() == {
            "summary": None,
            "cached": False,
            "stale": False,
            "generated_at": None,
        }

    def test_no_generator_configured(self, db, projects):
        project = seed_summary(projects, minutes_ago=90)
        service = SummaryService(db, generator=None)

        result = service.get_summary(project.id, now=NOW)

        assert result.summary == "Cached summary."
        assert result.stale is True

    def test_last_write_wins(self, service, projects, generator):
        """Test that each regeneration overwrites the stored summary unconditionally"""
        project = projects.create(name="Acme Portal", client_slug="acme")

        service.get_summary(project.id, now=NOW - timedelta(hours=2))
        generator.text = "Second take."
        service.get_summary(project.id, now=NOW)

        stored = projects.require(project.id)
        assert stored.ai_summary == "Second take."
        assert stored.ai_summary_generated_at == NOW

    def test_unknown_project(self, service):
        with pytest.raises(NotFoundError):
            service.get_summary("missing", now=NOW)
