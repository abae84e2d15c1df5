"""Database access for Mission Control

One SQLite database holds every table (projects, modules, tasks, blockers,
change_requests, events_cache, project_clients).

Provides:
- Connection pooling (reuses connections across requests)
- Transaction context manager (commit on success, rollback on error)
- Schema initialization and validation
- Pool health metrics

The ``Database`` handle is created once at application startup and passed to
repositories explicitly; there is no module-level connection singleton.
Database calls are never retried: a failure is surfaced to the caller.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from queue import Empty, Full, Queue
from threading import Lock
from typing import Any

from mission_control.config import (
    DB_CONNECT_TIMEOUT,
    DB_POOL_SIZE,
    DB_POOL_TIMEOUT,
    DB_TEMP_CONN_MAX,
)
from mission_control.observability.logging import get_logger
from mission_control.observability.telemetry import counter, log_event

logger = get_logger(__name__)


class DatabaseConnectionPool:
    """
    Thread-safe connection pool for SQLite

    Maintains a pool of reusable database connections.
    Connections are configured with WAL mode and foreign keys enabled.
    """

    def __init__(self, db_path: Path, pool_size: int = DB_POOL_SIZE) -> None:
        self.db_path = db_path
        self.pool_size = pool_size
        self.pool: Queue[sqlite3.Connection] = Queue(maxsize=pool_size)
        self.lock = Lock()
        self.closed = False
        self.temp_conn_count = 0
        self.temp_conn_max = DB_TEMP_CONN_MAX
        self._temporary: set[int] = set()
        self._initialize_pool()

    def _create_connection(self) -> sqlite3.Connection:
        """
        Create a configured SQLite connection

        Side Effects:
            - Opens database connection
            - Executes PRAGMA statements (journal_mode, synchronous, foreign_keys)
        """
        conn = sqlite3.connect(
            str(self.db_path),
            timeout=DB_CONNECT_TIMEOUT,
            check_same_thread=False,  # handlers run in a threadpool
        )
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        # Cascading deletes (module -> tasks, project -> children) rely on this
        conn.execute("PRAGMA foreign_keys=ON")
        conn.row_factory = sqlite3.Row
        return conn

    def _initialize_pool(self) -> None:
        for _ in range(self.pool_size):
            try:
                self.pool.put(self._create_connection())
            except sqlite3.Error as e:
                logger.warning("Failed to create pooled connection: %s", e)

    def get_connection(self) -> sqlite3.Connection:
        """
        Get connection from pool

        Returns:
            sqlite3.Connection from pool (or a temporary one if the pool is exhausted)

        Raises:
            RuntimeError: If pool closed or temporary connection limit exceeded
        """
        if self.closed:
            raise RuntimeError("Connection pool has been closed")

        try:
            return self.pool.get(block=True, timeout=DB_POOL_TIMEOUT)
        except Empty:
            with self.lock:
                if self.temp_conn_count >= self.temp_conn_max:
                    logger.critical(
                        "Temporary connection limit reached: %d/%d (pool_size=%d)",
                        self.temp_conn_count,
                        self.temp_conn_max,
                        self.pool_size,
                    )
                    msg = (
                        "Database connection pool exhausted and temporary "
                        f"connection limit reached. pool_size={self.pool_size}, "
                        f"temp_conn_max={self.temp_conn_max}."
                    )
                    raise RuntimeError(msg) from None

                self.temp_conn_count += 1
                temp_count = self.temp_conn_count

            logger.error(
                "Connection pool exhausted (pool_size=%d). Creating temporary connection %d/%d.",
                self.pool_size,
                temp_count,
                self.temp_conn_max,
            )
            log_event(
                "database.pool_exhausted",
                pool_size=self.pool_size,
                temp_conn_count=temp_count,
                severity="error",
            )

            conn = self._create_connection()
            with self.lock:
                self._temporary.add(id(conn))
            return conn

    def return_connection(self, conn: sqlite3.Connection) -> None:
        """
        Return connection to pool

        Side Effects:
            - Closes temporary connections and decrements temp_conn_count
            - Returns pooled connections to the pool for reuse
        """
        with self.lock:
            is_temp = id(conn) in self._temporary
            if is_temp:
                self._temporary.discard(id(conn))
                self.temp_conn_count -= 1

        if self.closed or is_temp:
            conn.close()
            return

        try:
            self.pool.put_nowait(conn)
        except Full:
            logger.warning("Failed to return connection to pool (pool full), closing")
            conn.close()

    def close_all(self) -> None:
        """Close all pooled connections."""
        self.closed = True
        while not self.pool.empty():
            try:
                self.pool.get_nowait().close()
            except Empty:
                break


class Database:
    """
    Explicit database handle.

    Created at startup (see ``mission_control.api.app.create_app``), reused by
    every request and closed on shutdown.

    Usage:
        db = Database(Path("mission_control.db"))
        db.init_schema()
        with db.connection() as conn:
            conn.execute("SELECT * FROM projects")
    """

    def __init__(self, db_path: Path, pool_size: int = DB_POOL_SIZE) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.pool = DatabaseConnectionPool(self.db_path, pool_size=pool_size)

    def init_schema(self) -> None:
        """Create tables and indexes (idempotent)."""
        from mission_control.infrastructure.database_schema import init_database

        with self.connection() as conn:
            init_database(conn)
        logger.info("Database initialized: %s", self.db_path)

    def validate_schema(self) -> bool:
        """
        Raises:
            ValueError: If tables are missing
        """
        from mission_control.infrastructure.database_schema import validate_schema

        with self.connection() as conn:
            return validate_schema(conn)

    @contextmanager
    def connection(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Get pooled database connection (context manager)

        Usage:
            with db.connection() as conn:
                rows = conn.execute("SELECT * FROM projects").fetchall()
            # Connection automatically returned to pool
        """
        conn = self.pool.get_connection()
        try:
            yield conn
        finally:
            self.pool.return_connection(conn)

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Context manager for database transactions

        Automatically commits on success, rolls back on error.

        Usage:
            with db.transaction() as conn:
                conn.execute("INSERT INTO modules ...")
                conn.execute("UPDATE projects ...")
        """
        with self.connection() as conn:
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                counter("database.rollback")
                raise

    def fetch_all(self, query: str, params: tuple[Any, ...] | dict[str, Any] = ()) -> list[dict[str, Any]]:
        with self.connection() as conn:
            rows = conn.execute(query, params).fetchall()
        return [dict(row) for row in rows]

    def fetch_one(self, query: str, params: tuple[Any, ...] | dict[str, Any] = ()) -> dict[str, Any] | None:
        with self.connection() as conn:
            row = conn.execute(query, params).fetchone()
        return dict(row) if row else None

    def pool_stats(self) -> dict[str, Any]:
        """
        Get connection pool health metrics

        Returns:
            dict with pool size, available connections, and usage stats
        """
        available = self.pool.pool.qsize()
        in_use = self.pool.pool_size - available
        usage_percent = (in_use / self.pool.pool_size) * 100 if self.pool.pool_size > 0 else 0

        return {
            "pool_size": self.pool.pool_size,
            "available": available,
            "in_use": in_use,
            "usage_percent": round(usage_percent, 1),
            "closed": self.pool.closed,
        }

    def close(self) -> None:
        self.pool.close_all()
        logger.info("Database connections closed: %s", self.db_path)
