"""Tests for the SQLite database handle"""

from __future__ import annotations

import sqlite3

import pytest

from mission_control.infrastructure.database import Database
from mission_control.observability.telemetry import get_counter


def test_schema_has_required_tables(db):
    assert db.validate_schema() is True


def test_validate_schema_reports_missing_tables(tmp_path):
    database = Database(tmp_path / "empty.db", pool_size=1)
    try:
        with pytest.raises(ValueError, match="projects"):
            database.validate_schema()
    finally:
        database.close()


def test_init_schema_is_idempotent(db):
    db.init_schema()
    assert db.validate_schema() is True


def test_transaction_rolls_back_on_error(db):
    with pytest.raises(sqlite3.IntegrityError):
        with db.transaction() as conn:
            conn.execute(
                "INSERT INTO projects (id, name, status, client_slug, created_at) "
                "VALUES ('p1', 'A', 'active', 'dup', '2026-10-01T00:00:00+00:00')"
            )
            conn.execute(
                "INSERT INTO projects (id, name, status, client_slug, created_at) "
                "VALUES ('p2', 'B', 'active', 'dup', '2026-10-01T00:00:00+00:00')"
            )

    assert db.fetch_one("SELECT COUNT(*) AS n FROM projects")["n"] == 0
    assert get_counter("database.rollback") == 1


def test_foreign_keys_enforced(db):
    with pytest.raises(sqlite3.IntegrityError):
        with db.transaction() as conn:
            conn.execute(
                "INSERT INTO modules (id, project_id, name, position, created_at) "
                "VALUES ('m1', 'missing', 'Auth', 0, '2026-10-01T00:00:00+00:00')"
            )


def test_pool_stats(db):
    stats = db.pool_stats()
    assert stats["pool_size"] == 2
    assert stats["available"] == 2
    assert stats["closed"] is False


def test_pool_hands_out_temporary_connection_when_exhausted(tmp_path, monkeypatch):
    monkeypatch.setattr("mission_control.infrastructure.database.DB_POOL_TIMEOUT", 0.01)
    database = Database(tmp_path / "pool.db", pool_size=1)
    try:
        with database.connection():
            with database.connection() as second:
                assert second.execute("SELECT 1").fetchone()[0] == 1
                assert database.pool.temp_conn_count == 1
        assert database.pool.temp_conn_count == 0
    finally:
        database.close()
