"""DuckDB implementation of the StoreAdapter protocol.

Maps each Entity/Event type to a table in the ``gittrack`` schema. Columns
are named after dataclass fields; enums are stored by value and dict fields
as JSON text.
"""

from __future__ import annotations

import json
import logging
from builtins import list as builtin_list
from dataclasses import fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any, TypeVar

import duckdb

from gittrack_core.types import (
    Entity,
    ErrorLogEvent,
    Event,
    EventChannelRecord,
    LogLevel,
    PerformanceEvent,
    RepositoryRecord,
    ServerRecord,
    ServerStatus,
    SystemLogEvent,
    TrackedBranchRecord,
)

from . import db

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)
Ev = TypeVar("Ev", bound=Event)

_ENTITY_TABLES: dict[type, str] = {
    ServerRecord: "server",
    RepositoryRecord: "repository",
    TrackedBranchRecord: "tracked_branch",
    EventChannelRecord: "repository_event_channel",
}

_EVENT_TABLES: dict[type, str] = {
    ErrorLogEvent: "error_log",
    SystemLogEvent: "system_log",
    PerformanceEvent: "performance_log",
}

_JSON_COLUMNS = frozenset({"config", "context", "details"})
_ENUM_COLUMNS: dict[str, type[Enum]] = {"status": ServerStatus, "level": LogLevel}


def _utcnow() -> datetime:
    # DuckDB TIMESTAMP is zone-less; everything is stored as naive UTC.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _encode(column: str, value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if column in _JSON_COLUMNS:
        return json.dumps(value if value is not None else {})
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _decode(column: str, value: Any) -> Any:
    if column in _JSON_COLUMNS:
        return json.loads(value) if value else {}
    if column in _ENUM_COLUMNS and value is not None:
        return _ENUM_COLUMNS[column](value)
    return value


class DuckDBStore:
    """StoreAdapter backed by a single DuckDB connection.

    Every public method is a single statement (or a read followed by a
    single write), so each call is atomic on its own.
    """

    def __init__(
        self,
        path: str | None = None,
        conn: duckdb.DuckDBPyConnection | None = None,
    ) -> None:
        self._path = path
        self._conn = conn if conn is not None else db.get_connection(path)

    def close(self) -> None:
        self._conn.close()

    # ------------------------------------------------------------
    # Table helpers
    # ------------------------------------------------------------

    @staticmethod
    def _table(record_type: type, tables: dict[type, str]) -> str:
        try:
            return f"{db.SCHEMA}.{tables[record_type]}"
        except KeyError:
            raise TypeError(f"No table registered for {record_type.__name__}") from None

    @staticmethod
    def _columns(record_type: type) -> builtin_list[str]:
        return [f.name for f in fields(record_type)]

    def _where(
        self, record_type: type, filters: dict[str, Any]
    ) -> tuple[str, builtin_list[Any]]:
        columns = set(self._columns(record_type))
        clauses: builtin_list[str] = []
        params: builtin_list[Any] = []

        for key, value in filters.items():
            if key == "since":
                clauses.append("created_at >= ?")
                params.append(_encode("created_at", value))
                continue
            if key not in columns:
                raise ValueError(f"Unknown filter {key!r} for {record_type.__name__}")

            if isinstance(value, (list, tuple, set, frozenset)):
                values = builtin_list(value)
                if not values:
                    clauses.append("FALSE")
                    continue
                placeholders = ", ".join("?" for _ in values)
                clauses.append(f"{key} IN ({placeholders})")
                params.extend(_encode(key, v) for v in values)
            elif value is None:
                clauses.append(f"{key} IS NULL")
            else:
                clauses.append(f"{key} = ?")
                params.append(_encode(key, value))

        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, params

    def _hydrate(self, record_type: type, columns: builtin_list[str], row: tuple) -> Any:
        values = {c: _decode(c, v) for c, v in zip(columns, row)}
        return record_type(**values)

    # ------------------------------------------------------------
    # Entities
    # ------------------------------------------------------------

    def get(self, entity_type: type[E], id: str) -> E | None:
        table = self._table(entity_type, _ENTITY_TABLES)
        columns = self._columns(entity_type)
        row = self._conn.execute(
            f"SELECT {', '.join(columns)} FROM {table} WHERE id = ?", [id]
        ).fetchone()
        return self._hydrate(entity_type, columns, row) if row else None

    def list(self, entity_type: type[E], **filters: Any) -> builtin_list[E]:
        table = self._table(entity_type, _ENTITY_TABLES)
        columns = self._columns(entity_type)
        where, params = self._where(entity_type, filters)
        rows = self._conn.execute(
            f"SELECT {', '.join(columns)} FROM {table}{where} "
            f"ORDER BY created_at, id",
            params,
        ).fetchall()
        return [self._hydrate(entity_type, columns, row) for row in rows]

    def count(self, entity_type: type[E], **filters: Any) -> int:
        table = self._table(entity_type, _ENTITY_TABLES)
        where, params = self._where(entity_type, filters)
        result = self._conn.execute(f"SELECT COUNT(*) FROM {table}{where}", params).fetchone()
        return int(result[0]) if result else 0

    def _insert_row(self, record: Entity) -> None:
        table = self._table(type(record), _ENTITY_TABLES)
        now = _utcnow()
        if record.created_at is None:
            record.created_at = now
        record.modified_at = now

        columns = self._columns(type(record))
        values = [_encode(c, getattr(record, c)) for c in columns]
        self._conn.execute(
            f"INSERT INTO {table} ({', '.join(columns)}) "
            f"VALUES ({', '.join('?' for _ in columns)})",
            values,
        )

    def save(self, record: Entity) -> str:
        entity_type = type(record)
        table = self._table(entity_type, _ENTITY_TABLES)
        columns = self._columns(entity_type)

        row = self._conn.execute(
            f"SELECT {', '.join(columns)} FROM {table} WHERE id = ?", [record.id]
        ).fetchone()
        if row is None:
            self._insert_row(record)
            return record.id

        # Only touch changed columns so unique indexes are not rewritten needlessly.
        existing = dict(zip(columns, row))
        record.modified_at = _utcnow()
        if record.created_at is None:
            record.created_at = existing["created_at"]

        changes = {}
        for column in columns:
            if column in ("id", "created_at"):
                continue
            value = _encode(column, getattr(record, column))
            if value != existing[column]:
                changes[column] = value

        assignments = ", ".join(f"{c} = ?" for c in changes)
        self._conn.execute(
            f"UPDATE {table} SET {assignments} WHERE id = ?",
            [*changes.values(), record.id],
        )
        return record.id

    def insert(self, record: Entity) -> bool:
        try:
            self._insert_row(record)
        except duckdb.ConstraintException:
            logger.debug(f"Insert of {type(record).__name__} {record.id} hit an existing row")
            return False
        return True

    def delete(self, entity_type: type[E], id: str) -> None:
        table = self._table(entity_type, _ENTITY_TABLES)
        self._conn.execute(f"DELETE FROM {table} WHERE id = ?", [id])

    def increment_messages_sent(self, server_id: str, amount: int = 1) -> None:
        self._conn.execute(
            f"UPDATE {db.SCHEMA}.server "
            f"SET messages_sent = messages_sent + ?, modified_at = ? WHERE id = ?",
            [amount, _utcnow(), server_id],
        )

    # ------------------------------------------------------------
    # Events
    # ------------------------------------------------------------

    def append(self, event: Event) -> None:
        table = self._table(type(event), _EVENT_TABLES)
        columns = self._columns(type(event))
        values = []
        for column in columns:
            value = getattr(event, column)
            if column == "created_at" and value is None:
                value = _utcnow()
            values.append(_encode(column, value))
        self._conn.execute(
            f"INSERT INTO {table} ({', '.join(columns)}) "
            f"VALUES ({', '.join('?' for _ in columns)})",
            values,
        )

    def events(self, event_type: type[Ev], **filters: Any) -> builtin_list[Ev]:
        table = self._table(event_type, _EVENT_TABLES)
        columns = self._columns(event_type)
        where, params = self._where(event_type, filters)
        rows = self._conn.execute(
            f"SELECT {', '.join(columns)} FROM {table}{where} ORDER BY created_at",
            params,
        ).fetchall()
        return [self._hydrate(event_type, columns, row) for row in rows]

    def storage_info(self) -> dict[str, str | int]:
        """Return storage metadata for health checks."""
        return {"backend": "duckdb", "path": self._path or db.get_db_path()}
