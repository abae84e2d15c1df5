"""Tests for project domain models"""

from __future__ import annotations

import json
from datetime import UTC, date, datetime

import pytest
from pydantic import ValidationError

from mission_control.projects.models import (
    QA_CHECK_KEYS,
    Event,
    Project,
    Task,
    TaskStatus,
    parse_timestamp,
    round_half_up,
    task_status_label,
    validate_qa_checks,
)


def make_project(**overrides) -> Project:
    fields = {"id": "p1", "name": "Acme", "client_slug": "acme"}
    fields.update(overrides)
    return Project(**fields)


class TestBudgetAndTimeline:
    def test_budget_percent(self):
        """Test that 45 of 60 hours is 75%"""
        assert make_project(used_hours=45, budget_hours=60).budget_percent == 75

    def test_budget_percent_rounds_half_up(self):
        assert make_project(used_hours=1, budget_hours=8).budget_percent == 13

    def test_no_budget(self):
        assert make_project(used_hours=5, budget_hours=0).budget_percent is None

    def test_null_hours_from_db_are_zero(self):
        project = Project.from_db_row(
            {"id": "p1", "name": "Acme", "client_slug": "acme", "budget_hours": None, "used_hours": None}
        )
        assert project.used_hours == 0

    def test_days_remaining(self):
        project = make_project(target_end_date=date(2026, 10, 27))
        assert project.days_remaining(date(2026, 10, 17)) == 10
        assert project.days_remaining(date(2026, 10, 30)) == -3
        assert make_project().days_remaining(date(2026, 10, 17)) is None


class TestStatuses:
    def test_unknown_task_status_rejected(self):
        with pytest.raises(ValidationError):
            Task(id="t", module_id="m", project_id="p", title="T", status="done")

    def test_every_status_has_a_label(self):
        assert {task_status_label(s) for s in TaskStatus} >= {"Backlog", "In QA", "Deployed"}

    def test_label_for_unknown_status_raises(self):
        with pytest.raises(ValueError):
            task_status_label("shipped")


class TestQaChecks:
    def test_checklist_has_twelve_items(self):
        assert len(QA_CHECK_KEYS) == 12

    def test_accepts_known_keys(self):
        assert validate_qa_checks({"feature_works": True}) == {"feature_works": True}

    def test_rejects_unknown_key(self):
        with pytest.raises(ValueError, match="vibes"):
            validate_qa_checks({"vibes": True})

    def test_rejects_non_boolean(self):
        with pytest.raises(ValueError):
            validate_qa_checks({"feature_works": "yes"})

    def test_task_from_db_row_parses_json(self):
        task = Task.from_db_row(
            {
                "id": "t",
                "module_id": "m",
                "project_id": "p",
                "title": "T",
                "status": "in_qa",
                "qa_checks": json.dumps({"feature_works": True, "eslint_passes": False}),
            }
        )
        assert task.qa_passed == 1


class TestEvent:
    def test_link_from_metadata(self):
        event = Event.from_db_row(
            {
                "id": "e",
                "project_id": "p",
                "provider": "sentry",
                "event_type": "issue",
                "severity": "error",
                "title": "TypeError",
                "metadata": json.dumps({"issue_url": "https://sentry.io/issues/1"}),
                "created_at": "2026-10-01T10:00:00+00:00",
            }
        )
        assert event.link == "https://sentry.io/issues/1"

    def test_no_link(self):
        event = Event(
            id="e", project_id="p", provider="github", event_type="push", severity="info", title="x"
        )
        assert event.link is None


def test_parse_timestamp_assumes_utc():
    assert parse_timestamp("2026-10-17T12:00:00") == datetime(2026, 10, 17, 12, tzinfo=UTC)
    assert parse_timestamp("2026-10-17T14:00:00+02:00") == datetime(2026, 10, 17, 12, tzinfo=UTC)
    assert parse_timestamp(None) is None


def test_round_half_up():
    assert round_half_up(62.5) == 63
    assert round_half_up(72.25, 1) == 72.3
    assert round_half_up(66.666, 1) == 66.7
