"""Default notification channel command implementation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ._helpers import find_repository, failure, require_store

if TYPE_CHECKING:
    from gittrack_server.adapters import AdapterRegistry

logger = logging.getLogger(__name__)


async def execute(
    guild_id: str,
    repository_url: str,
    channel_id: str,
    registry: AdapterRegistry | None = None,
) -> dict:
    """Change the channel a repository's general notifications go to.

    Args:
        guild_id: Discord guild the command ran in.
        repository_url: Configured repository URL.
        channel_id: New default channel.
        registry: Optional adapter registry for dependency injection.

    Returns:
        Dict with the previous and new channel ids.
    """
    store = require_store(registry)
    _, repository = find_repository(store, guild_id, repository_url)
    if repository is None:
        return failure(
            f"Repository {repository_url} is not configured on this server. "
            f"Use `/setup` first."
        )

    previous = repository.notification_channel_id
    repository.notification_channel_id = channel_id
    store.save(repository)

    logger.info(f"Default channel of {repository.url} set to {channel_id}")
    return {
        "success": True,
        "repository": repository.url,
        "previous_channel_id": previous,
        "channel_id": channel_id,
    }
