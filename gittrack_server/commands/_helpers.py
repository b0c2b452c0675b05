"""Shared helpers for configuration commands.

Lookups, URL validation and cascading deletes used by more than one
command module.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

from gittrack_core.queries import OperationalQueries, standardize_url
from gittrack_core.types import (
    EventChannelRecord,
    RepositoryRecord,
    ServerRecord,
    ServerStatus,
    TrackedBranchRecord,
)

if TYPE_CHECKING:
    from gittrack_core.adapters.store import StoreAdapter

    from gittrack_server.adapters import AdapterRegistry

logger = logging.getLogger(__name__)

# First path segments on github.com that are not repository owners.
RESERVED_OWNERS = frozenset(
    {"organizations", "orgs", "users", "settings", "explore", "trending"}
)


def failure(error: str, **extra: Any) -> dict:
    """Standard result for a user-correctable command failure."""
    return {"success": False, "error": error, **extra}


def require_store(registry: AdapterRegistry | None) -> StoreAdapter:
    """Return the registry's store, falling back to the global registry."""
    if registry is None:
        from gittrack_server.adapters import get_adapter_registry

        registry = get_adapter_registry()
    if registry.store is None:
        raise RuntimeError("No store configured")
    return registry.store


def validate_repository_url(url: str) -> str | None:
    """Return an error message for an unusable repository URL, else None."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return "Invalid repository URL format. Please provide a valid URL."

    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return "Invalid repository URL. Please use an HTTP or HTTPS URL."
    if "github.com" not in (parsed.hostname or ""):
        return "Please provide a valid GitHub repository URL."

    parts = [p for p in parsed.path.split("/") if p]
    if len(parts) < 2:
        return (
            "Invalid GitHub URL. Please provide a complete repository URL "
            "(e.g., https://github.com/username/repository)"
        )
    if parsed.path.endswith(".git"):
        return (
            "Please provide the repository URL without the .git suffix "
            "(e.g., https://github.com/username/repository)"
        )
    if parts[0].lower() in RESERVED_OWNERS:
        return (
            "Invalid GitHub URL. Please provide a direct repository URL "
            "(e.g., https://github.com/username/repository)"
        )
    return None


def ensure_server(store: StoreAdapter, guild_id: str, name: str = "") -> ServerRecord:
    """Upsert the server for a guild, refreshing its name when given."""
    existing = OperationalQueries(store).server_by_guild(guild_id)
    if existing is not None:
        if name and existing.name != name:
            existing.name = name
            store.save(existing)
        return existing

    server = ServerRecord(
        id=str(uuid.uuid4()),
        guild_id=guild_id,
        name=name,
        status=ServerStatus.ACTIVE,
    )
    if store.insert(server):
        logger.info(f"Registered server for guild {guild_id}")
        return server

    existing = OperationalQueries(store).server_by_guild(guild_id)
    if existing is None:
        raise RuntimeError(f"Could not register guild {guild_id}")
    return existing


def find_repository(
    store: StoreAdapter, guild_id: str, url: str
) -> tuple[ServerRecord | None, RepositoryRecord | None]:
    """Look up a guild's server and its repository stored under ``url``."""
    queries = OperationalQueries(store)
    server = queries.server_by_guild(guild_id)
    if server is None:
        return None, None
    return server, queries.repository_for_server(server.id, standardize_url(url))


def delete_repository(store: StoreAdapter, repository: RepositoryRecord) -> dict[str, int]:
    """Delete a repository together with its tracked branches and mappings."""
    branches = store.list(TrackedBranchRecord, repository_id=repository.id)
    for branch in branches:
        store.delete(TrackedBranchRecord, branch.id)

    mappings = store.list(EventChannelRecord, repository_id=repository.id)
    for mapping in mappings:
        store.delete(EventChannelRecord, mapping.id)

    store.delete(RepositoryRecord, repository.id)
    logger.info(
        f"Deleted repository {repository.url} with {len(branches)} branch(es) "
        f"and {len(mappings)} event mapping(s)"
    )
    return {"tracked_branches": len(branches), "event_channels": len(mappings)}
