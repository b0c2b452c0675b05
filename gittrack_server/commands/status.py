"""Server status command implementation."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from gittrack_core.branches import describe
from gittrack_core.limits import check_channel_limit, check_repository_limit
from gittrack_core.queries import OperationalQueries, RepositorySummary
from gittrack_core.routing import effective_channel, merge_actions

from ._helpers import failure

if TYPE_CHECKING:
    from gittrack_server.adapters import AdapterRegistry


def _repository_status(summary: RepositorySummary) -> dict:
    repo = summary.repository
    return {
        "url": repo.url,
        "default_channel_id": repo.notification_channel_id,
        "tracked_branches": [
            {
                "pattern": tb.branch_pattern,
                "description": describe(tb.branch_pattern),
                "channel_id": tb.channel_id or repo.notification_channel_id,
            }
            for tb in summary.tracked_branches
        ],
        "event_channels": [
            {
                "event_type": m.event_type,
                "channel_id": effective_channel(m, repo.notification_channel_id),
                "explicit": (m.config or {}).get("explicitChannel") is True,
                "actions_enabled": merge_actions(
                    m.event_type, (m.config or {}).get("actionsEnabled")
                ),
            }
            for m in summary.event_channels
        ],
    }


async def execute(guild_id: str, registry: AdapterRegistry | None = None) -> dict:
    """Summarise a server's repositories, routing, limits and message count.

    Args:
        guild_id: Discord guild to describe.
        registry: Optional adapter registry for dependency injection.

    Returns:
        Dict with one entry per repository plus usage against the limits.
    """
    from gittrack_server.adapters import get_adapter_registry

    registry = registry or get_adapter_registry()
    store = registry.store
    queries = OperationalQueries(store)

    server = queries.server_by_guild(guild_id)
    if server is None:
        return failure("No repositories are configured on this server. Use `/setup` to add one.")

    overview = queries.server_overview(server.id)
    limits = registry.config.limits
    repo_limit = check_repository_limit(store, server.id, limits)
    channel_limit = check_channel_limit(store, server.id, limits)
    max_channels = None if math.isinf(channel_limit.max_allowed) else int(channel_limit.max_allowed)

    return {
        "success": True,
        "guild_id": server.guild_id,
        "name": server.name,
        "status": server.status.value,
        "messages_sent": server.messages_sent,
        "repositories": [_repository_status(s) for s in overview.repositories] if overview else [],
        "repository_usage": {
            "current": repo_limit.current_count,
            "max": repo_limit.max_allowed,
        },
        "channel_usage": {
            "current": len(overview.branch_channels) if overview else 0,
            "max": max_channels,
        },
    }
