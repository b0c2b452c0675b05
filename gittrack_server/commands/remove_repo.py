"""Repository removal command implementation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ._helpers import delete_repository, find_repository, failure, require_store

if TYPE_CHECKING:
    from gittrack_server.adapters import AdapterRegistry


async def execute(
    guild_id: str,
    repository_url: str,
    registry: AdapterRegistry | None = None,
) -> dict:
    """Remove a repository with its tracked branches and event mappings."""
    store = require_store(registry)
    _, repository = find_repository(store, guild_id, repository_url)
    if repository is None:
        return failure(f"Repository {repository_url} is not configured on this server.")

    removed = delete_repository(store, repository)
    return {"success": True, "repository": repository.url, **removed}
