"""Operational query layer: the semantic layer over StoreAdapter.

Provides typed, named queries used by the HTTP metrics endpoint, the status
command and the webhook authenticator. Callers get domain objects back,
never raw rows or SQL.

Usage:
    queries = OperationalQueries(store)
    counts = queries.message_counts()
    overview = queries.server_overview("server-1")
    candidates = queries.repositories_for_url("https://github.com/o/r")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from gittrack_core.adapters.store import StoreAdapter
from gittrack_core.types import (
    ErrorLogEvent,
    EventChannelRecord,
    RepositoryContext,
    RepositoryRecord,
    ServerRecord,
    TrackedBranchRecord,
)


# ============================================================
# Query result types
# ============================================================


@dataclass(frozen=True)
class MessageCount:
    """Messages delivered for one guild."""

    guild_id: str
    messages_sent: int


@dataclass(frozen=True)
class RepositorySummary:
    """A repository with everything routed from it."""

    repository: RepositoryRecord
    tracked_branches: list[TrackedBranchRecord] = field(default_factory=list)
    event_channels: list[EventChannelRecord] = field(default_factory=list)


@dataclass(frozen=True)
class ServerOverview:
    """Configuration snapshot of one server."""

    server: ServerRecord
    repositories: list[RepositorySummary] = field(default_factory=list)

    @property
    def branch_channels(self) -> set[str]:
        return {
            tb.channel_id
            for summary in self.repositories
            for tb in summary.tracked_branches
            if tb.channel_id
        }


# ============================================================
# URL helpers
# ============================================================


def standardize_url(url: str) -> str:
    """Strip a trailing slash and ``.git`` suffix (in either order)."""
    url = url.strip()
    if url.endswith("/"):
        url = url[:-1]
    if url.endswith(".git"):
        url = url[:-4]
    if url.endswith("/"):
        url = url[:-1]
    return url


def url_variants(url: str) -> list[str]:
    """Every stored form a repository URL may take.

    ``https://github.com/o/r``, ``https://github.com/o/r.git`` and their
    trailing-slash forms all refer to the same repository.
    """
    base = standardize_url(url)
    variants = [url, base, f"{base}.git", f"{base}/", f"{base}.git/"]
    return list(dict.fromkeys(variants))


# ============================================================
# Queries
# ============================================================


class OperationalQueries:
    """Named queries over a StoreAdapter."""

    def __init__(self, store: StoreAdapter) -> None:
        self._store = store

    def message_counts(self) -> list[MessageCount]:
        """Per-guild delivered message counters."""
        return [
            MessageCount(guild_id=s.guild_id, messages_sent=s.messages_sent)
            for s in self._store.list(ServerRecord)
        ]

    def server_by_guild(self, guild_id: str) -> ServerRecord | None:
        servers = self._store.list(ServerRecord, guild_id=guild_id)
        return servers[0] if servers else None

    def repository_for_server(
        self, server_id: str, url: str
    ) -> RepositoryRecord | None:
        """The server's repository stored under any variant of ``url``."""
        repos = self._store.list(
            RepositoryRecord, server_id=server_id, url=url_variants(url)
        )
        return repos[0] if repos else None

    def repositories_for_url(self, url: str) -> list[RepositoryContext]:
        """Every server's configuration of ``url``, with its server attached.

        One GitHub repository may be tracked by several unrelated servers,
        each with its own webhook secret.
        """
        contexts = []
        for repo in self._store.list(RepositoryRecord, url=url_variants(url)):
            server = self._store.get(ServerRecord, repo.server_id)
            if server is not None:
                contexts.append(RepositoryContext(repository=repo, server=server))
        return contexts

    def repository_summary(self, repository: RepositoryRecord) -> RepositorySummary:
        return RepositorySummary(
            repository=repository,
            tracked_branches=self._store.list(
                TrackedBranchRecord, repository_id=repository.id
            ),
            event_channels=self._store.list(
                EventChannelRecord, repository_id=repository.id
            ),
        )

    def server_overview(self, server_id: str) -> ServerOverview | None:
        """Repositories, tracked branches and event mappings of a server."""
        server = self._store.get(ServerRecord, server_id)
        if server is None:
            return None
        repos = self._store.list(RepositoryRecord, server_id=server_id)
        return ServerOverview(
            server=server,
            repositories=[self.repository_summary(r) for r in repos],
        )

    def recent_errors(
        self, server_id: str | None = None, since: datetime | None = None
    ) -> list[ErrorLogEvent]:
        """Persisted webhook/command errors, optionally for one server."""
        filters: dict[str, object] = {}
        if server_id is not None:
            filters["entity_id"] = server_id
        if since is not None:
            filters["since"] = since
        return self._store.events(ErrorLogEvent, **filters)
