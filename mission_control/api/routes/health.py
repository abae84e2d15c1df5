"""Health check endpoints for the Mission Control API.

- /health - Service health including LLM readiness
- /health/db - Database connection pool health
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends, Request

from mission_control.api.deps import get_db
from mission_control.config import APP_VERSION
from mission_control.infrastructure.database import Database

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(request: Request) -> dict[str, Any]:
    """Service status, version and whether a summary generator is configured."""
    return {
        "status": "healthy",
        "service": "Mission Control API",
        "version": APP_VERSION,
        "timestamp": datetime.now(UTC).isoformat(),
        "llm": {"ready": request.app.state.summary_service.generator is not None},
    }


@router.get("/health/db")
async def database_health(db: Database = Depends(get_db)) -> dict[str, Any]:
    """
    Connection pool health metrics.

    Alerts if pool usage exceeds 80%.
    """
    stats = db.pool_stats()
    usage_percent = stats["usage_percent"]

    return {
        "status": "degraded" if usage_percent > 80 else "healthy",
        "pool": stats,
        "warning": "Pool usage high" if usage_percent > 80 else None,
    }

