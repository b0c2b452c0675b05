"""Tests for the DuckDB StoreAdapter implementation."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from gittrack_core.adapters.store import StoreAdapter
from gittrack_core.config import GitTrackConfig
from gittrack_core.types import (
    ErrorLogEvent,
    EventChannelRecord,
    LogLevel,
    RepositoryRecord,
    ServerRecord,
    ServerStatus,
    SystemLogEvent,
    TrackedBranchRecord,
)
from gittrack_server.store import DuckDBStore


@pytest.fixture
def store():
    """In-memory DuckDBStore."""
    duck = DuckDBStore(path=":memory:")
    yield duck
    duck.close()


@pytest.fixture
def seeded(store):
    store.save(ServerRecord(id="server-1", guild_id="guild-1", name="Guild"))
    store.save(
        RepositoryRecord(
            id="repo-1",
            server_id="server-1",
            url="https://github.com/octo/widgets",
            notification_channel_id="chan-1",
            webhook_secret="s3cret",
        )
    )
    return store


def test_implements_protocol(store):
    assert isinstance(store, StoreAdapter)


def test_default_file_path(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    duck = DuckDBStore(path=GitTrackConfig.from_env({}).store.path)
    try:
        duck.save(ServerRecord(id="server-1", guild_id="guild-1"))
        assert duck.get(ServerRecord, "server-1").guild_id == "guild-1"
    finally:
        duck.close()


class TestEntities:
    """Test entity persistence."""

    def test_round_trip_with_enum(self, seeded):
        server = seeded.get(ServerRecord, "server-1")

        assert server.guild_id == "guild-1"
        assert server.status is ServerStatus.ACTIVE
        assert server.messages_sent == 0
        assert server.created_at is not None

    def test_get_missing(self, store):
        assert store.get(RepositoryRecord, "nope") is None

    def test_update(self, seeded):
        repo = seeded.get(RepositoryRecord, "repo-1")
        repo.notification_channel_id = "chan-2"
        seeded.save(repo)

        assert seeded.get(RepositoryRecord, "repo-1").notification_channel_id == "chan-2"

    def test_json_config(self, seeded):
        seeded.save(
            EventChannelRecord(
                id="ec-1",
                repository_id="repo-1",
                event_type="issues",
                config={"actionsEnabled": {"opened": True}, "explicitChannel": False},
            )
        )

        mapping = seeded.get(EventChannelRecord, "ec-1")
        assert mapping.config == {"actionsEnabled": {"opened": True}, "explicitChannel": False}
        assert mapping.channel_id == "default"

    def test_list_filters(self, seeded):
        seeded.save(
            RepositoryRecord(id="repo-2", server_id="server-1", url="https://github.com/octo/two")
        )

        in_filter = seeded.list(
            RepositoryRecord, url=["https://github.com/octo/widgets", "https://x/y"]
        )
        assert [r.id for r in in_filter] == ["repo-1"]
        assert seeded.list(RepositoryRecord, url=[]) == []
        assert seeded.count(RepositoryRecord, server_id="server-1") == 2

    def test_none_filter_matches_null(self, seeded):
        seeded.save(
            TrackedBranchRecord(id="tb-1", repository_id="repo-1", branch_pattern="main")
        )
        assert [t.id for t in seeded.list(TrackedBranchRecord, channel_id=None)] == ["tb-1"]

    def test_unknown_filter_rejected(self, seeded):
        with pytest.raises(ValueError):
            seeded.list(RepositoryRecord, colour="blue")

    def test_delete(self, seeded):
        seeded.delete(RepositoryRecord, "repo-1")
        seeded.delete(RepositoryRecord, "repo-1")
        assert seeded.get(RepositoryRecord, "repo-1") is None

    def test_increment_messages_sent(self, seeded):
        seeded.increment_messages_sent("server-1", 2)
        seeded.increment_messages_sent("server-1")
        assert seeded.get(ServerRecord, "server-1").messages_sent == 3


class TestUniqueness:
    """Test that uniqueness rules are enforced by the store."""

    def test_insert_duplicate_mapping_returns_false(self, seeded):
        first = EventChannelRecord(id="ec-1", repository_id="repo-1", event_type="star")
        second = EventChannelRecord(id="ec-2", repository_id="repo-1", event_type="star")

        assert seeded.insert(first) is True
        assert seeded.insert(second) is False
        assert seeded.count(EventChannelRecord) == 1

    def test_insert_duplicate_id_returns_false(self, seeded):
        again = ServerRecord(id="server-1", guild_id="guild-other")
        assert seeded.insert(again) is False

    def test_duplicate_repository_url_per_server(self, seeded):
        with pytest.raises(Exception):
            seeded.save(
                RepositoryRecord(
                    id="repo-dup", server_id="server-1", url="https://github.com/octo/widgets"
                )
            )

    def test_same_url_on_another_server(self, seeded):
        seeded.save(ServerRecord(id="server-2", guild_id="guild-2"))
        seeded.save(
            RepositoryRecord(
                id="repo-2", server_id="server-2", url="https://github.com/octo/widgets"
            )
        )
        assert seeded.count(RepositoryRecord, url="https://github.com/octo/widgets") == 2


class TestEvents:
    """Test append-only diagnostics."""

    def test_append_and_query(self, store):
        store.append(
            ErrorLogEvent(
                entity_id="server-1",
                event_type="webhook_error",
                message="boom",
                context={"eventType": "push"},
            )
        )
        store.append(
            SystemLogEvent(
                entity_id="server-1",
                event_type="unhandled_event",
                category="webhook",
                message="Unhandled webhook event: gollum",
                ip_address="10.0.0.1",
            )
        )

        errors = store.events(ErrorLogEvent, entity_id="server-1")
        assert len(errors) == 1
        assert errors[0].level is LogLevel.ERROR
        assert errors[0].context == {"eventType": "push"}
        assert errors[0].created_at is not None

        notices = store.events(SystemLogEvent)
        assert notices[0].ip_address == "10.0.0.1"
        assert notices[0].level is LogLevel.INFO

    def test_since_filter(self, store):
        old = datetime.now(timezone.utc) - timedelta(days=2)
        store.append(ErrorLogEvent(entity_id="s", event_type="e", message="old", created_at=old))
        store.append(ErrorLogEvent(entity_id="s", event_type="e", message="new"))

        recent = store.events(
            ErrorLogEvent, since=datetime.now(timezone.utc) - timedelta(hours=1)
        )
        assert [e.message for e in recent] == ["new"]

    def test_storage_info(self, store):
        assert store.storage_info() == {"backend": "duckdb", "path": ":memory:"}
