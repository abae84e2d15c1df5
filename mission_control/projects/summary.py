"""
AI project-health summary: cache gate, regeneration and persistence.

Each project row carries one cached summary plus the time it was generated.
A summary younger than the TTL is served as-is. An older or missing one is
regenerated from the project's current rows and written back unconditionally,
so concurrent stale requests may both regenerate (last write wins).

Generation failures never propagate: the previous summary is returned marked
stale, or an explicit unavailable result when there was none.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from mission_control.config import SUMMARY_CACHE_TTL_MINUTES, SUMMARY_EVENT_LIMIT
from mission_control.errors import SummaryGenerationError
from mission_control.infrastructure.database import Database
from mission_control.llm.gemini import SummaryGenerator
from mission_control.observability.logging import get_logger
from mission_control.observability.telemetry import counter, log_event
from mission_control.projects.models import Project, utc_now
from mission_control.projects.prompt import build_health_prompt
from mission_control.projects.repository import (
    BlockerRepository,
    ChangeRequestRepository,
    EventRepository,
    ModuleRepository,
    ProjectRepository,
)

logger = get_logger(__name__)

DEFAULT_TTL = timedelta(minutes=SUMMARY_CACHE_TTL_MINUTES)


@dataclass(frozen=True)
class SummaryResult:
    """What the summary endpoint returns. ``summary`` is None when unavailable."""

    summary: str | None
    cached: bool
    stale: bool
    generated_at: datetime | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary,
            "cached": self.cached,
            "stale": self.stale,
            "generated_at": self.generated_at.isoformat() if self.generated_at else None,
        }


def is_fresh(project: Project, now: datetime, ttl: timedelta = DEFAULT_TTL) -> bool:
    """True when the project has a summary generated less than ``ttl`` before ``now``."""
    if not project.ai_summary or project.ai_summary_generated_at is None:
        return False
    return now - project.ai_summary_generated_at < ttl


def _fallback(project: Project) -> SummaryResult:
    if project.ai_summary:
        return SummaryResult(
            summary=project.ai_summary,
            cached=True,
            stale=True,
            generated_at=project.ai_summary_generated_at,
        )
    return SummaryResult(summary=None, cached=False, stale=False, generated_at=None)


class SummaryService:
    """Serves cached summaries and regenerates stale ones."""

    def __init__(
        self,
        db: Database,
        generator: SummaryGenerator | None,
        ttl: timedelta = DEFAULT_TTL,
    ) -> None:
        self.generator = generator
        self.ttl = ttl
        self.projects = ProjectRepository(db)
        self.modules = ModuleRepository(db)
        self.blockers = BlockerRepository(db)
        self.change_requests = ChangeRequestRepository(db)
        self.events = EventRepository(db)

    def build_prompt(self, project: Project, now: datetime) -> str:
        """Load the project's current rows and render the health prompt."""
        return build_health_prompt(
            project=project,
            events=self.events.list_recent(project.id, limit=SUMMARY_EVENT_LIMIT),
            modules=self.modules.list_with_tasks(project.id),
            blockers=self.blockers.list_by_project(project.id),
            change_requests=self.change_requests.list_by_project(project.id),
            today=now.date(),
        )

    def get_summary(self, project_id: str, now: datetime | None = None) -> SummaryResult:
        """
        Return the project's summary, regenerating it when stale.

        Args:
            project_id: Project to summarize
            now: Reference time (defaults to current UTC time)

        Returns:
            SummaryResult

        Raises:
            NotFoundError: If the project does not exist

        Side Effects:
            - Calls the summary generator when the cache is stale
            - Writes ai_summary / ai_summary_generated_at on success
        """
        now = now or utc_now()
        project = self.projects.require(project_id)

        if is_fresh(project, now, self.ttl):
            counter("summary.cache_hit")
            return SummaryResult(
                summary=project.ai_summary,
                cached=True,
                stale=False,
                generated_at=project.ai_summary_generated_at,
            )

        counter("summary.cache_miss")
        if self.generator is None:
            logger.warning("No summary generator configured; serving cached summary")
            return _fallback(project)

        prompt = self.build_prompt(project, now)
        try:
            summary = self.generator.generate(prompt)
        except SummaryGenerationError as e:
            counter("summary.generation_failed")
            log_event("summary.generation_failed", project_id=project_id, error=str(e))
            return _fallback(project)

        self.projects.save_summary(project_id, summary, now)
        log_event("summary.regenerated", project_id=project_id, chars=len(summary))
        return SummaryResult(summary=summary, cached=False, stale=False, generated_at=now)
