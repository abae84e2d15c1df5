"""Centralized configuration for the Mission Control backend.

Typed constants for environment, database, auth provider, LLM, summary
caching and API settings. Environment variable overrides use safe defaults so
the app starts without extra env configuration.
"""

from __future__ import annotations

import os
from pathlib import Path

# --- App ---
APP_VERSION: str = "1.0.0"
PACKAGE_ROOT = Path(__file__).parent
ENV: str = os.getenv("MC_ENV", "development")


def is_production() -> bool:
    """Check if running in production"""
    return ENV == "production"


def is_development() -> bool:
    """Check if running in development"""
    return ENV == "development"


# --- Logging ---
LOG_LEVEL: str = os.getenv("MC_LOG_LEVEL", "INFO").upper()
LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


# --- Database ---
DB_PATH: Path = Path(os.getenv("MC_DB_PATH", str(PACKAGE_ROOT / "data" / "mission_control.db")))
DB_POOL_SIZE: int = int(os.getenv("MC_DB_POOL_SIZE", "5"))
DB_POOL_TIMEOUT: float = float(os.getenv("MC_DB_POOL_TIMEOUT", "5.0"))
DB_CONNECT_TIMEOUT: float = float(os.getenv("MC_DB_CONNECT_TIMEOUT", "30.0"))
DB_TEMP_CONN_MAX: int = int(os.getenv("MC_DB_TEMP_CONN_MAX", "10"))

# --- Auth provider (Supabase-compatible) ---
AUTH_URL: str = os.getenv("MC_AUTH_URL", "")
AUTH_API_KEY: str = os.getenv("MC_AUTH_API_KEY", "")
AUTH_DISABLED: bool = os.getenv("MC_AUTH_DISABLED", "false").lower() in ("true", "1", "yes")
AUTH_CACHE_TTL_SECONDS: int = int(os.getenv("MC_AUTH_CACHE_TTL", "300"))
AUTH_CACHE_MAX_SIZE: int = 1000
AUTH_TIMEOUT_SECONDS: float = 10.0
AUTH_COOKIE_NAME: str = "sb-access-token"

# --- Client dashboard session ---
CLIENT_SESSION_COOKIE: str = "client_session"
CLIENT_SESSION_MAX_AGE: int = int(os.getenv("CLIENT_SESSION_MAX_AGE", "86400"))  # 24 hours

# --- LLM (Gemini) ---
GOOGLE_CLOUD_PROJECT: str | None = os.getenv("GOOGLE_CLOUD_PROJECT")
GOOGLE_API_KEY: str | None = os.getenv("GOOGLE_API_KEY")
GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash-001")
GEMINI_LOCATION: str = os.getenv("GEMINI_LOCATION", "us-central1")
LLM_TIMEOUT_SECONDS: int = int(os.getenv("MC_LLM_TIMEOUT", "30"))
LLM_MAX_TOKENS: int = int(os.getenv("MC_LLM_MAX_TOKENS", "200"))

# --- Summary ---
SUMMARY_CACHE_TTL_MINUTES: int = int(os.getenv("SUMMARY_CACHE_TTL_MINUTES", "30"))
SUMMARY_EVENT_LIMIT: int = 20
DASHBOARD_EVENT_LIMIT: int = int(os.getenv("DASHBOARD_EVENT_LIMIT", "10"))

# --- API ---
ALLOWED_ORIGINS: list[str] = [
    origin.strip()
    for origin in os.getenv("MC_ALLOWED_ORIGINS", "").split(",")
    if origin.strip()
]
DEV_ORIGINS: list[str] = [
    "http://localhost:3000",
    "http://localhost:8000",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:8000",
]
API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "8000"))
