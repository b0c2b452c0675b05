"""Server reset command implementation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from gittrack_core.queries import OperationalQueries
from gittrack_core.types import RepositoryRecord

from ._helpers import delete_repository, failure, require_store

if TYPE_CHECKING:
    from gittrack_server.adapters import AdapterRegistry

logger = logging.getLogger(__name__)


async def execute(guild_id: str, registry: AdapterRegistry | None = None) -> dict:
    """Delete every repository configured on a server.

    The server record itself (and its message counter) is kept.

    Args:
        guild_id: Discord guild to reset.
        registry: Optional adapter registry for dependency injection.

    Returns:
        Dict with counts of removed repositories, branches and mappings.
    """
    store = require_store(registry)
    server = OperationalQueries(store).server_by_guild(guild_id)
    if server is None:
        return failure("This server has no GitTrack configuration to reset.")

    totals = {"repositories": 0, "tracked_branches": 0, "event_channels": 0}
    for repository in store.list(RepositoryRecord, server_id=server.id):
        removed = delete_repository(store, repository)
        totals["repositories"] += 1
        totals["tracked_branches"] += removed["tracked_branches"]
        totals["event_channels"] += removed["event_channels"]

    logger.info(f"Reset guild {guild_id}: {totals}")
    return {"success": True, **totals}
