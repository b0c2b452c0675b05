"""Storage adapter protocol.

Implemented by: gittrack_server.store.DuckDBStore (reference), or any
persistence backend.

Responsible for persisting and retrieving GitTrack configuration records
and appending diagnostics. The adapter maps Entity/Event types to its
backend's storage model. The caller never sees SQL, table names, or
connection details.

Design:
    store.get(RepositoryRecord, "abc-123")                      -> RepositoryRecord | None
    store.list(TrackedBranchRecord, repository_id="abc-123")    -> list[TrackedBranchRecord]
    store.list(RepositoryRecord, url=["https://x/y", "https://x/y.git"])
    store.save(repository)                                      -> "abc-123"
    store.insert(event_channel)                                 -> False if it already exists
    store.append(error_event)                                   -> None
    store.increment_messages_sent("server-1", 2)                -> None
"""

from __future__ import annotations

from builtins import list as builtin_list
from typing import Any, Protocol, TypeVar, runtime_checkable

from gittrack_core.types import Entity, Event

E = TypeVar("E", bound=Entity)
Ev = TypeVar("Ev", bound=Event)


@runtime_checkable
class StoreAdapter(Protocol):
    """Persists and retrieves GitTrack records.

    Principles:
    - Entities (get/list/save/insert/delete): mutable configuration records.
    - Events (append): immutable, append-only diagnostics. Never update or delete.
    - Uniqueness rules (one repository per server and URL, one tracked branch
      per repository/pattern/channel, one event mapping per repository and
      event type, one server per guild) are enforced by the adapter.
    - Each call is atomic on its own; there are no multi-call transactions.
    - Timestamps are UTC, set by the adapter if not provided.
    """

    def get(self, entity_type: type[E], id: str) -> E | None:
        """Retrieve a single entity by ID.

        Returns:
            The entity instance, or None if not found.
        """
        ...

    def list(self, entity_type: type[E], **filters: Any) -> list[E]:
        """List entities matching filters, oldest first.

        Args:
            entity_type: The Entity subclass to list.
            **filters: Field-value pairs, combined with AND. A list or tuple
                value matches any of its members (an empty list matches
                nothing).

        Returns:
            List of matching entities. Empty list if none match.
        """
        ...

    def save(self, record: Entity) -> str:
        """Save an entity (insert or update by id).

        Sets created_at on insert and modified_at always.

        Raises:
            Exception: If the write would violate a uniqueness rule.

        Returns:
            The entity's id.
        """
        ...

    def insert(self, record: Entity) -> bool:
        """Insert an entity unless it collides with an existing one.

        Returns:
            True if inserted, False if the id or a uniqueness rule already
            matched an existing record (nothing is written).
        """
        ...

    def delete(self, entity_type: type[E], id: str) -> None:
        """Physically remove an entity. Missing ids are ignored."""
        ...

    def count(self, entity_type: type[E], **filters: Any) -> int:
        """Count entities matching filters (same semantics as list)."""
        ...

    def append(self, event: Event) -> None:
        """Append an immutable diagnostic event.

        Sets created_at automatically if not provided.
        """
        ...

    def events(self, event_type: type[Ev], **filters: Any) -> builtin_list[Ev]:
        """Query appended events, ordered by created_at ascending.

        Args:
            event_type: The Event subclass to query.
            **filters: Field-value pairs, plus ``since=datetime``.
        """
        ...

    def increment_messages_sent(self, server_id: str, amount: int = 1) -> None:
        """Atomically add ``amount`` to a server's messages_sent counter."""
        ...
