"""
Database schema initialization for Mission Control.

Contains the SQL schema and validation logic, kept apart from database.py.
"""

from __future__ import annotations

import sqlite3

from mission_control.observability.logging import get_logger

logger = get_logger(__name__)

REQUIRED_TABLES = (
    "projects",
    "modules",
    "tasks",
    "blockers",
    "change_requests",
    "events_cache",
    "project_clients",
)


def init_database(conn: sqlite3.Connection) -> None:
    """
    Initialize database with schema (idempotent)

    Safe to run multiple times - uses CREATE TABLE IF NOT EXISTS.

    Side Effects:
    - Creates tables if they don't exist
    - Creates indexes for query performance
    """
    conn.executescript("""
        CREATE TABLE IF NOT EXISTS projects (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'active',
            client_name TEXT,
            client_slug TEXT NOT NULL UNIQUE,
            client_password TEXT,
            start_date TEXT,
            target_end_date TEXT,
            budget_hours REAL DEFAULT 0,
            used_hours REAL DEFAULT 0,
            next_milestone TEXT,
            next_milestone_date TEXT,
            ai_summary TEXT,
            ai_summary_generated_at TEXT,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS modules (
            id TEXT PRIMARY KEY,
            project_id TEXT NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
            name TEXT NOT NULL,
            position INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS tasks (
            id TEXT PRIMARY KEY,
            module_id TEXT NOT NULL REFERENCES modules(id) ON DELETE CASCADE,
            project_id TEXT NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
            title TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'backlog',
            pr_url TEXT,
            position INTEGER NOT NULL DEFAULT 0,
            qa_checks TEXT NOT NULL DEFAULT '{}',
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS blockers (
            id TEXT PRIMARY KEY,
            project_id TEXT NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
            title TEXT NOT NULL,
            waiting_on TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'open',
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS change_requests (
            id TEXT PRIMARY KEY,
            project_id TEXT NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
            title TEXT NOT NULL,
            description TEXT,
            status TEXT NOT NULL DEFAULT 'pending',
            hours_impact REAL NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );

        -- Append-only; written by external integrations
        CREATE TABLE IF NOT EXISTS events_cache (
            id TEXT PRIMARY KEY,
            project_id TEXT NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
            provider TEXT NOT NULL,
            event_type TEXT NOT NULL,
            severity TEXT NOT NULL,
            title TEXT NOT NULL,
            metadata TEXT NOT NULL DEFAULT '{}',
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS project_clients (
            id TEXT PRIMARY KEY,
            project_id TEXT NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
            name TEXT NOT NULL,
            email TEXT,
            password TEXT NOT NULL,
            created_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_modules_project_position
        ON modules(project_id, position);

        CREATE INDEX IF NOT EXISTS idx_tasks_module_position
        ON tasks(module_id, position);

        CREATE INDEX IF NOT EXISTS idx_blockers_project_status
        ON blockers(project_id, status);

        CREATE INDEX IF NOT EXISTS idx_change_requests_project
        ON change_requests(project_id, created_at);

        CREATE INDEX IF NOT EXISTS idx_events_project_created
        ON events_cache(project_id, created_at);

        CREATE INDEX IF NOT EXISTS idx_project_clients_project
        ON project_clients(project_id);
    """)
    conn.commit()


def validate_schema(conn: sqlite3.Connection) -> bool:
    """
    Validate database has expected schema

    Returns:
        True if valid

    Raises:
        ValueError: If tables are missing
    """
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
    existing = {row[0] for row in cursor.fetchall()}

    missing = [table for table in REQUIRED_TABLES if table not in existing]
    if missing:
        raise ValueError(f"Missing required tables: {', '.join(missing)}")

    logger.debug("Schema validation passed (%d tables)", len(REQUIRED_TABLES))
    return True
