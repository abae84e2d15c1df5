"""Tests for the project health prompt builder"""

from __future__ import annotations

from datetime import UTC, date, datetime

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
    Task,
    TaskStatus,
    WaitingOn,
)
from mission_control.projects.prompt import build_health_prompt, format_hours

TODAY = date(2026, 10, 17)


def make_project(**overrides) -> Project:
    fields = {
        "id": "p1",
        "name": "Acme Portal",
        "client_name": "Acme Corp",
        "client_slug": "acme",
        "start_date": date(2026, 9, 1),
        "target_end_date": date(2026, 10, 27),
        "budget_hours": 60,
        "used_hours": 45,
        "next_milestone": "Beta launch",
        "next_milestone_date": date(2026, 11, 1),
    }
    fields.update(overrides)
    return Project(**fields)


def make_event(event_id: str, day: int, title: str) -> Event:
    return Event(
        id=event_id,
        project_id="p1",
        provider=EventProvider.VERCEL,
        event_type="deployment",
        severity=EventSeverity.SUCCESS,
        title=title,
        created_at=datetime(2026, 10, day, 12, 0, tzinfo=UTC),
    )


def make_module() -> Module:
    tasks = [
        Task(id="t1", module_id="m1", project_id="p1", title="Login", status=TaskStatus.DEPLOYED),
        Task(id="t2", module_id="m1", project_id="p1", title="Signup", status=TaskStatus.IN_QA),
        Task(id="t3", module_id="m1", project_id="p1", title="Reset", status=TaskStatus.DEPLOYED),
    ]
    return Module(id="m1", project_id="p1", name="Auth", position=0, tasks=tasks)


def build(**overrides) -> str:
    args = {
        "project": make_project(),
        "events": [],
        "modules": [],
        "blockers": [],
        "change_requests": [],
        "today": TODAY,
    }
    args.update(overrides)
    return build_health_prompt(**args)


class TestBuildHealthPrompt:
    def test_header_fields(self):
        prompt = build()
        assert "Project: Acme Portal" in prompt
        assert "Client: Acme Corp" in prompt
        assert "Status: active" in prompt
        assert prompt.endswith("Write a 2-3 sentence summary of project health.")

    def test_timeline_and_budget(self):
        prompt = build()
        assert "Timeline: started 2026-09-01, target end 2026-10-27 (10 days remaining)" in prompt
        assert "Budget: 45 of 60 hours used (75%)" in prompt
        assert "Next milestone: Beta launch on 2026-11-01" in prompt

    def test_overdue_project(self):
        prompt = build(project=make_project(target_end_date=date(2026, 10, 14)))
        assert "(3 days overdue)" in prompt

    def test_missing_client_and_budget(self):
        prompt = build(project=make_project(client_name=None, budget_hours=0, used_hours=3))
        assert "Client: N/A" in prompt
        assert "Budget: no budget set (3 hours used)" in prompt

    def test_only_open_blockers_are_listed(self):
        blockers = [
            Blocker(id="b1", project_id="p1", title="Need API keys", waiting_on=WaitingOn.CLIENT),
            Blocker(
                id="b2",
                project_id="p1",
                title="Old issue",
                waiting_on=WaitingOn.TEAM,
                status=BlockerStatus.RESOLVED,
            ),
        ]
        prompt = build(blockers=blockers)
        assert "Open blockers (1):\n- Need API keys (waiting on client)" in prompt
        assert "Old issue" not in prompt

    def test_approved_change_requests_are_summed(self):
        change_requests = [
            ChangeRequest(id="c1", project_id="p1", title="Dark mode", hours_impact=6,
                          status=ChangeRequestStatus.APPROVED),
            ChangeRequest(id="c2", project_id="p1", title="Export", hours_impact=2.5,
                          status=ChangeRequestStatus.APPROVED),
            ChangeRequest(id="c3", project_id="p1", title="Chat", hours_impact=40,
                          status=ChangeRequestStatus.PENDING),
        ]
        prompt = build(change_requests=change_requests)
        assert "Approved change requests: 2 (8.5 hours added)" in prompt

    def test_events_are_chronological(self):
        """Test that newest-first input is rendered oldest first"""
        events = [make_event("e2", 12, "Second deploy"), make_event("e1", 10, "First deploy")]
        prompt = build(events=events)
        first = prompt.index("First deploy")
        second = prompt.index("Second deploy")
        assert first < second
        assert "2026-10-10 vercel - deployment - success - First deploy" in prompt

    def test_no_events(self):
        assert "No recent events." in build()

    def test_module_tallies_follow_status_order(self):
        prompt = build(modules=[make_module()])
        assert "Auth: 3 tasks (1 In QA, 2 Deployed)" in prompt

    def test_empty_module(self):
        module = Module(id="m2", project_id="p1", name="Billing", position=1)
        assert "Billing: 0 tasks (no tasks)" in build(modules=[module])

    def test_deterministic(self):
        """Test that identical input produces an identical prompt"""
        events = [make_event("e1", 10, "First deploy")]
        assert build(events=events, modules=[make_module()]) == build(
            events=list(events), modules=[make_module()]
        )


def test_format_hours():
    assert format_hours(12.0) == "12"
    assert format_hours(12.5) == "12.5"
