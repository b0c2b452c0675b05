"""Per-event channel override command implementation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from gittrack_core.routing import DEFAULT_ACTIONS, get_or_create_mapping

from ._helpers import find_repository, failure, require_store

if TYPE_CHECKING:
    from gittrack_server.adapters import AdapterRegistry

logger = logging.getLogger(__name__)


async def execute(
    guild_id: str,
    repository_url: str,
    event_type: str,
    channel_id: str,
    registry: AdapterRegistry | None = None,
) -> dict:
    """Route one non-branch event type of a repository to a channel.

    The mapping is marked as explicitly set, so it keeps its channel even
    when that channel is also the repository default.

    Args:
        guild_id: Discord guild the command ran in.
        repository_url: Configured repository URL.
        event_type: Routable GitHub event name (``issues``, ``release``, ...).
        channel_id: Channel receiving this event type.
        registry: Optional adapter registry for dependency injection.

    Returns:
        Dict with the stored mapping, or ``success: False`` with an error.
    """
    if event_type not in DEFAULT_ACTIONS:
        return failure(
            "Invalid event type. Choose one of: " + ", ".join(sorted(DEFAULT_ACTIONS))
        )

    store = require_store(registry)
    server, repository = find_repository(store, guild_id, repository_url)
    if server is None:
        return failure("Please set up a repository first using the /setup command.")
    if repository is None:
        return failure(f"Repository {repository_url} not found on this server.")

    mapping = get_or_create_mapping(store, repository.id, event_type)
    mapping.channel_id = channel_id
    mapping.config = {**(mapping.config or {}), "explicitChannel": True}
    store.save(mapping)

    logger.info(f"Routed {event_type} of {repository.url} to channel {channel_id}")
    return {
        "success": True,
        "repository": repository.url,
        "event_type": event_type,
        "channel_id": channel_id,
    }
