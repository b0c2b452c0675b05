"""Remove a per-event routing mapping."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from gittrack_core.routing import find_mapping
from gittrack_core.types import EventChannelRecord

from ._helpers import find_repository, failure, require_store

if TYPE_CHECKING:
    from gittrack_server.adapters import AdapterRegistry

logger = logging.getLogger(__name__)


async def execute(
    guild_id: str,
    repository_url: str,
    event_type: str,
    registry: AdapterRegistry | None = None,
) -> dict:
    """Delete the mapping so the event type falls back to the default channel.

    The next delivery of the event re-provisions the default mapping.
    """
    store = require_store(registry)
    _, repository = find_repository(store, guild_id, repository_url)
    if repository is None:
        return failure(f"Repository {repository_url} not found on this server.")

    mapping = find_mapping(store, repository.id, event_type)
    if mapping is None:
        return failure(f"No routing configured for `{event_type}` on {repository.url}.")

    store.delete(EventChannelRecord, mapping.id)
    logger.info(f"Removed {event_type} routing for {repository.url}")
    return {"success": True, "repository": repository.url, "event_type": event_type}
