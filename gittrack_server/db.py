"""DuckDB connection manager for the GitTrack server.

This module provides connection management and schema initialization for the
GitTrack configuration database backed by DuckDB.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

import duckdb

from gittrack_core.config import DEFAULT_DB_PATH

SCHEMA = "gittrack"
_SENTINEL_TABLE = "repository"


def get_db_path() -> str:
    """Get the database path from environment or use default.

    Returns:
        Database file path, or ":memory:" for in-memory database.
    """
    return os.getenv("GITTRACK_DB_PATH", DEFAULT_DB_PATH)


def get_connection(db_path: str | None = None) -> duckdb.DuckDBPyConnection:
    """Get a DuckDB connection and ensure schema is initialized.

    Args:
        db_path: Optional database path. If None, uses get_db_path().
                Use ":memory:" for in-memory database.

    Returns:
        DuckDB connection with schema initialized.
    """
    if db_path is None:
        db_path = get_db_path()

    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = duckdb.connect(db_path)

    if not _schema_exists(conn):
        init_schema(conn)

    return conn


def _schema_exists(conn: duckdb.DuckDBPyConnection) -> bool:
    """Check if the gittrack schema and its sentinel table exist."""
    try:
        result = conn.execute(
            "SELECT COUNT(*) FROM information_schema.tables "
            "WHERE table_schema = ? AND table_name = ?",
            [SCHEMA, _SENTINEL_TABLE],
        ).fetchone()
        return result is not None and result[0] > 0
    except duckdb.Error:
        return False


def init_schema(conn: duckdb.DuckDBPyConnection) -> None:
    """Initialize the database schema from schema.sql.

    Args:
        conn: DuckDB connection.
    """
    schema_path = Path(__file__).parent / "schema.sql"
    conn.execute(schema_path.read_text())


@contextmanager
def connection(
    db_path: str | None = None,
) -> Generator[duckdb.DuckDBPyConnection, None, None]:
    """Context manager for DuckDB connections.

    Args:
        db_path: Optional database path. If None, uses get_db_path().

    Yields:
        DuckDB connection with schema initialized.

    Example:
        >>> with connection() as conn:
        ...     conn.execute("SELECT * FROM gittrack.repository")
    """
    conn = get_connection(db_path)
    try:
        yield conn
    finally:
        conn.close()
