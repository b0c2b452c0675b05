"""Branch unlinking command implementation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from gittrack_core.branches import WILDCARD, describe
from gittrack_core.types import TrackedBranchRecord

from ._helpers import find_repository, failure, require_store

if TYPE_CHECKING:
    from gittrack_server.adapters import AdapterRegistry

logger = logging.getLogger(__name__)


async def execute(
    guild_id: str,
    repository_url: str,
    branch_pattern: str,
    channel_id: str | None = None,
    registry: AdapterRegistry | None = None,
) -> dict:
    """Stop tracking a branch pattern.

    ``*`` removes every tracked branch of the repository. Passing a channel
    limits the removal to links into that channel.

    Args:
        guild_id: Discord guild the command ran in.
        repository_url: Configured repository URL.
        branch_pattern: Pattern to remove, or ``*`` for all.
        channel_id: Optional channel scope.
        registry: Optional adapter registry for dependency injection.

    Returns:
        Dict with the number of links removed, or ``success: False``.
    """
    store = require_store(registry)
    _, repository = find_repository(store, guild_id, repository_url)
    if repository is None:
        return failure(f"Repository {repository_url} is not linked to this server.")

    filters: dict[str, Any] = {"repository_id": repository.id}
    if branch_pattern != WILDCARD:
        filters["branch_pattern"] = branch_pattern
    if channel_id:
        filters["channel_id"] = channel_id

    matches = store.list(TrackedBranchRecord, **filters)
    if not matches:
        return failure(
            f"No tracking configurations found to remove for repository {repository.url}.",
            branch_pattern=branch_pattern,
            channel_id=channel_id,
        )

    for tracked in matches:
        store.delete(TrackedBranchRecord, tracked.id)

    logger.info(f"Unlinked {len(matches)} tracked branch(es) from {repository.url}")
    return {
        "success": True,
        "repository": repository.url,
        "branch_pattern": branch_pattern,
        "description": describe(branch_pattern),
        "channel_id": channel_id,
        "removed": len(matches),
    }
