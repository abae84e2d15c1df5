"""
Project health metrics.

Derived numbers shown on the client dashboard, computed from a project's
recent events and its tasks. Pure functions: no storage access, identical
input rows always give identical output.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, dataclass
from typing import Any

from mission_control.projects.models import Event, EventSeverity, Task, round_half_up

UPTIME_EVENT_TYPE = "uptime"
DEPLOYMENT_EVENT_TYPE = "deployment"


@dataclass(frozen=True)
class ProjectMetrics:
    """Dashboard metrics. Percentages are None when there is nothing to measure."""

    error_count: int
    uptime_percent: float | None
    qa_pass_rate: int | None
    deploy_count: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def uptime_percent(events: Iterable[Event]) -> float | None:
    """Share of successful uptime checks, one decimal place.

    Returns None when there are no uptime events; an empty set is not 0% uptime.
    """
    checks = [e for e in events if e.event_type == UPTIME_EVENT_TYPE]
    if not checks:
        return None
    successes = sum(1 for e in checks if e.severity == EventSeverity.SUCCESS)
    return round_half_up(successes / len(checks) * 100, 1)


def qa_pass_rate(tasks: Iterable[Task]) -> int | None:
    """Percentage of reviewed tasks whose recorded QA checks all pass.

    Only tasks with at least one recorded check count as reviewed.
    """
    reviewed = [t for t in tasks if t.qa_checks]
    if not reviewed:
        return None
    fully_passed = sum(1 for t in reviewed if all(t.qa_checks.values()))
    return round_half_up(fully_passed / len(reviewed) * 100)


def compute_metrics(events: Iterable[Event], tasks: Iterable[Task]) -> ProjectMetrics:
    """
    Compute dashboard metrics for one project.

    Args:
        events: Recent events for the project (caller bounds the window)
        tasks: All tasks across the project's modules

    Returns:
        ProjectMetrics
    """
    events = list(events)
    tasks = list(tasks)

    return ProjectMetrics(
        error_count=sum(1 for e in events if e.severity == EventSeverity.ERROR),
        uptime_percent=uptime_percent(events),
        qa_pass_rate=qa_pass_rate(tasks),
        deploy_count=sum(1 for e in events if e.event_type == DEPLOYMENT_EVENT_TYPE),
    )
