"""
Project health prompt builder.

Turns project rows into the user prompt sent to the summary model. Output is a
pure function of the input rows and ``today``, so it can be asserted on in
tests even though the model's reply is not deterministic.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from datetime import date

from mission_control.llm.prompts import get_health_prompt
from mission_control.projects.models import (
    Blocker,
    BlockerStatus,
    ChangeRequest,
    ChangeRequestStatus,
    Event,
    Module,
    Project,
    TaskStatus,
    task_status_label,
)


def format_hours(hours: float) -> str:
    """12.0 -> '12', 12.5 -> '12.5'"""
    return f"{hours:g}"


def _timeline_line(project: Project, today: date) -> str:
    start = project.start_date.isoformat() if project.start_date else "not set"
    days = project.days_remaining(today)
    if days is None:
        return f"started {start}, no target end date"

    end = project.target_end_date.isoformat()
    if days > 0:
        remaining = f"{days} days remaining"
    elif days == 0:
        remaining = "due today"
    else:
        remaining = f"{-days} days overdue"
    return f"started {start}, target end {end} ({remaining})"


def _budget_line(project: Project) -> str:
    percent = project.budget_percent
    if percent is None:
        return f"no budget set ({format_hours(project.used_hours)} hours used)"
    return (
        f"{format_hours(project.used_hours)} of {format_hours(project.budget_hours)} "
        f"hours used ({percent}%)"
    )


def _milestone_line(project: Project) -> str:
    if not project.next_milestone:
        return "none"
    if project.next_milestone_date:
        return f"{project.next_milestone} on {project.next_milestone_date.isoformat()}"
    return project.next_milestone


def _events_block(events: Sequence[Event]) -> str:
    if not events:
        return "No recent events."
    ordered = sorted(events, key=lambda e: (e.created_at, e.id))
    return "\n".join(
        f"{e.created_at.date().isoformat()} {e.provider.value} - {e.event_type} - "
        f"{e.severity.value} - {e.title}"
        for e in ordered
    )


def _modules_block(modules: Sequence[Module]) -> str:
    if not modules:
        return "No modules or tasks yet."

    lines = []
    for module in sorted(modules, key=lambda m: (m.position, m.name)):
        tally = Counter(task.status for task in module.tasks)
        # Enum order keeps the tally stable regardless of task order
        status_str = ", ".join(
            f"{tally[status]} {task_status_label(status)}"
            for status in TaskStatus
            if tally[status]
        )
        lines.append(f"{module.name}: {len(module.tasks)} tasks ({status_str or 'no tasks'})")
    return "\n".join(lines)


def build_health_prompt(
    project: Project,
    events: Sequence[Event],
    modules: Sequence[Module],
    blockers: Sequence[Blocker],
    change_requests: Sequence[ChangeRequest],
    today: date,
) -> str:
    """
    Build the user prompt for a project health summary.

    Args:
        project: The project row
        events: Recent events, any order (rendered oldest first)
        modules: Modules with their tasks loaded
        blockers: All blockers; only open ones are included
        change_requests: All change requests; only approved ones are counted
        today: Date used for days-remaining

    Returns:
        Prompt string
    """
    open_blockers = [b for b in blockers if b.status == BlockerStatus.OPEN]
    blockers_block = (
        "\n".join(f"- {b.title} (waiting on {b.waiting_on.value})" for b in open_blockers)
        if open_blockers
        else "None."
    )

    approved = [cr for cr in change_requests if cr.status == ChangeRequestStatus.APPROVED]
    approved_hours = sum(cr.hours_impact for cr in approved)

    return get_health_prompt(
        name=project.name,
        client_name=project.client_name or "N/A",
        status=project.status.value,
        timeline=_timeline_line(project, today),
        budget=_budget_line(project),
        milestone=_milestone_line(project),
        blocker_count=str(len(open_blockers)),
        blockers=blockers_block,
        change_request_count=str(len(approved)),
        change_request_hours=format_hours(approved_hours),
        events=_events_block(events),
        modules=_modules_block(modules),
    )
