"""Shared test fixtures for GitTrack tests.

Provides a dict-backed store, a fake chat adapter and sample records.
"""

from __future__ import annotations

import itertools
from datetime import datetime, timezone
from typing import Any

import pytest

from gittrack_core.config import GitTrackConfig, LimitsConfig
from gittrack_core.types import (
    Entity,
    Event,
    EventChannelRecord,
    RepositoryContext,
    RepositoryRecord,
    SentMessage,
    ServerRecord,
    TrackedBranchRecord,
)
from gittrack_server.adapters import AdapterRegistry

# Mirrors the unique constraints in schema.sql.
UNIQUE_KEYS: dict[type, tuple[str, ...]] = {
    ServerRecord: ("guild_id",),
    RepositoryRecord: ("server_id", "url"),
    TrackedBranchRecord: ("repository_id", "branch_pattern", "channel_id"),
    EventChannelRecord: ("repository_id", "event_type"),
}


class MockStore:
    """Mock StoreAdapter implementation for testing.

    Stores entities in dicts, events in lists, supports basic filtering,
    list-valued (IN) filters and the same unique keys as the DuckDB schema.
    """

    def __init__(self) -> None:
        self._entities: dict[type[Entity], dict[str, Entity]] = {}
        self._events: list[Event] = []
        self.increments: list[tuple[str, int]] = []

    @staticmethod
    def _matches(record: Any, filters: dict[str, Any]) -> bool:
        for key, value in filters.items():
            if key == "since":
                if record.created_at and record.created_at < value:
                    return False
                continue
            actual = getattr(record, key)
            if isinstance(value, (list, tuple, set, frozenset)):
                if actual not in value:
                    return False
            elif actual != value:
                return False
        return True

    def get(self, entity_type: type[Entity], id: str) -> Entity | None:
        """Retrieve a single entity by ID."""
        return self._entities.get(entity_type, {}).get(id)

    def list(self, entity_type: type[Entity], **filters: Any) -> list[Entity]:
        """List entities matching filters, in insertion order."""
        return [
            e
            for e in self._entities.get(entity_type, {}).values()
            if self._matches(e, filters)
        ]

    def _conflicts(self, record: Entity) -> bool:
        keys = UNIQUE_KEYS.get(type(record))
        if not keys:
            return False
        wanted = {k: getattr(record, k) for k in keys}
        return any(
            existing.id != record.id and self._matches(existing, wanted)
            for existing in self._entities.get(type(record), {}).values()
        )

    def save(self, record: Entity) -> str:
        """Save an entity (insert or update)."""
        if self._conflicts(record):
            raise ValueError(f"Unique constraint violated by {record!r}")
        now = datetime.now(timezone.utc)
        if record.created_at is None:
            record.created_at = now
        record.modified_at = now
        self._entities.setdefault(type(record), {})[record.id] = record
        return record.id

    def insert(self, record: Entity) -> bool:
        """Insert unless the id or a unique key already exists."""
        if record.id in self._entities.get(type(record), {}) or self._conflicts(record):
            return False
        self.save(record)
        return True

    def delete(self, entity_type: type[Entity], id: str) -> None:
        """Physically delete an entity."""
        self._entities.get(entity_type, {}).pop(id, None)

    def count(self, entity_type: type[Entity], **filters: Any) -> int:
        """Count entities matching filters."""
        return len(self.list(entity_type, **filters))

    def append(self, event: Event) -> None:
        """Append an immutable event."""
        self._events.append(event)

    def events(self, event_type: type[Event], **filters: Any) -> list[Event]:
        """Query appended events."""
        return [
            e
            for e in self._events
            if isinstance(e, event_type) and self._matches(e, filters)
        ]

    def increment_messages_sent(self, server_id: str, amount: int = 1) -> None:
        """Bump a server's counter."""
        server = self.get(ServerRecord, server_id)
        if server is not None:
            server.messages_sent += amount
        self.increments.append((server_id, amount))


class FakeChannel:
    """Records messages instead of posting them."""

    _ids = itertools.count(1)

    def __init__(self, channel_id: str, text_based: bool = True) -> None:
        self.id = channel_id
        self.text_based = text_based
        self.sent: list[list[dict[str, Any]]] = []
        self.fail_with: Exception | None = None

    def is_text_based(self) -> bool:
        return self.text_based

    async def send(
        self,
        content: str | None = None,
        *,
        embeds: list[dict[str, Any]] | None = None,
    ) -> SentMessage:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append(list(embeds or []))
        return SentMessage(id=f"msg-{next(self._ids)}", channel_id=self.id)

    @property
    def titles(self) -> list[str]:
        return [embed.get("title", "") for message in self.sent for embed in message]


class FakeChat:
    """ChatAdapter serving FakeChannels; unknown ids resolve to None."""

    def __init__(self) -> None:
        self.channels: dict[str, FakeChannel] = {}
        self.fetched: list[str] = []

    def add(self, channel_id: str, text_based: bool = True) -> FakeChannel:
        channel = FakeChannel(channel_id, text_based)
        self.channels[channel_id] = channel
        return channel

    async def fetch_channel(self, channel_id: str) -> FakeChannel | None:
        self.fetched.append(channel_id)
        return self.channels.get(channel_id)


@pytest.fixture
def mock_store() -> MockStore:
    """Provide a fresh MockStore instance."""
    return MockStore()


@pytest.fixture
def fake_chat() -> FakeChat:
    """Provide a chat adapter with a default channel already registered."""
    chat = FakeChat()
    chat.add("chan-default")
    return chat


@pytest.fixture
def config() -> GitTrackConfig:
    """Configuration with a small channel limit and a known global secret."""
    cfg = GitTrackConfig()
    cfg.limits = LimitsConfig(max_repositories=2, max_channels=None)
    cfg.webhook.global_secret = "global-secret"
    cfg.webhook.public_url = "https://hooks.example.com/github-webhook"
    return cfg


@pytest.fixture
def registry(mock_store: MockStore, fake_chat: FakeChat, config: GitTrackConfig) -> AdapterRegistry:
    """AdapterRegistry wired to the mock store and fake chat."""
    return AdapterRegistry(store=mock_store, chat=fake_chat, config=config)


@pytest.fixture
def server(mock_store: MockStore) -> ServerRecord:
    """A stored, active server."""
    record = ServerRecord(id="server-1", guild_id="guild-1", name="Test Guild")
    mock_store.save(record)
    return record


@pytest.fixture
def repository(mock_store: MockStore, server: ServerRecord) -> RepositoryRecord:
    """A stored repository with its own secret and a default channel."""
    record = RepositoryRecord(
        id="repo-1",
        server_id=server.id,
        url="https://github.com/octo/widgets",
        notification_channel_id="chan-default",
        webhook_secret="repo-secret",
    )
    mock_store.save(record)
    return record


@pytest.fixture
def context(repository: RepositoryRecord, server: ServerRecord) -> RepositoryContext:
    """Validated repository context for handler tests."""
    return RepositoryContext(repository=repository, server=server)


@pytest.fixture
def repo_payload() -> dict[str, Any]:
    """The ``repository`` and ``sender`` blocks every GitHub payload carries."""
    return {
        "repository": {
            "name": "widgets",
            "full_name": "octo/widgets",
            "html_url": "https://github.com/octo/widgets",
            "stargazers_count": 42,
        },
        "sender": {
            "login": "octocat",
            "avatar_url": "https://avatars.example.com/octocat",
            "html_url": "https://github.com/octocat",
        },
    }
