"""Guild lifecycle: registration, departure and startup reconciliation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from gittrack_core.queries import OperationalQueries
from gittrack_core.types import ServerRecord, ServerStatus

from ._helpers import ensure_server, require_store

if TYPE_CHECKING:
    from gittrack_server.adapters import AdapterRegistry

logger = logging.getLogger(__name__)


async def register_guild(
    guild_id: str, name: str = "", registry: AdapterRegistry | None = None
) -> dict:
    """Upsert a guild the bot has joined and mark it active."""
    store = require_store(registry)
    server = ensure_server(store, guild_id, name)
    if server.status is not ServerStatus.ACTIVE:
        server.status = ServerStatus.ACTIVE
        store.save(server)
    logger.info(f"Registered/updated server: {name or guild_id} ({guild_id})")
    return {"success": True, "guild_id": guild_id, "status": server.status.value}


async def mark_guild_inactive(guild_id: str, registry: AdapterRegistry | None = None) -> dict:
    """Flag a guild the bot has left. Its configuration is kept."""
    store = require_store(registry)
    server = OperationalQueries(store).server_by_guild(guild_id)
    if server is None:
        return {"success": False, "error": f"Unknown guild {guild_id}"}
    server.status = ServerStatus.INACTIVE
    store.save(server)
    logger.info(f"Marked server as inactive: {server.name or guild_id} ({guild_id})")
    return {"success": True, "guild_id": guild_id, "status": server.status.value}


async def sync_guild_status(
    current_guilds: dict[str, str], registry: AdapterRegistry | None = None
) -> dict:
    """Reconcile stored servers with the guilds the bot is in right now.

    Args:
        current_guilds: Guild id -> name for every guild the bot is in.
        registry: Optional adapter registry for dependency injection.

    Returns:
        Dict with counts of registered, reactivated and deactivated servers.
    """
    store = require_store(registry)
    stored = {s.guild_id: s for s in store.list(ServerRecord)}
    registered = reactivated = deactivated = 0

    for guild_id, name in current_guilds.items():
        server = stored.get(guild_id)
        if server is None:
            ensure_server(store, guild_id, name)
            registered += 1
        elif server.status is not ServerStatus.ACTIVE or (name and server.name != name):
            if server.status is not ServerStatus.ACTIVE:
                reactivated += 1
            server.status = ServerStatus.ACTIVE
            server.name = name or server.name
            store.save(server)

    for guild_id, server in stored.items():
        if guild_id not in current_guilds and server.status is ServerStatus.ACTIVE:
            server.status = ServerStatus.INACTIVE
            store.save(server)
            deactivated += 1

    logger.info(
        f"Guild sync: {registered} registered, {reactivated} reactivated, "
        f"{deactivated} deactivated"
    )
    return {
        "success": True,
        "registered": registered,
        "reactivated": reactivated,
        "deactivated": deactivated,
    }
