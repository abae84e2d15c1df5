"""Mission Control - client project status dashboard for the agency"""

from __future__ import annotations

__version__ = "1.0.0"


# Lazy imports so that lightweight modules (metrics, prompts) load without FastAPI
def __getattr__(name: str):
    """
    Lazy imports to avoid loading the web stack when only importing domain logic.
    """
    if name == "create_app":
        from mission_control.api.app import create_app

        return create_app

    if name in ("compute_metrics", "ProjectMetrics"):
        from mission_control.projects import metrics

        if name == "compute_metrics":
            return metrics.compute_metrics
        return metrics.ProjectMetrics

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)


__all__ = [
    "create_app",
    "compute_metrics",
    "ProjectMetrics",
]
