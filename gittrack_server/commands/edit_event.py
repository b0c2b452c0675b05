"""Event action toggle command implementation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from gittrack_core.routing import DEFAULT_ACTIONS, get_or_create_mapping, merge_actions

from ._helpers import find_repository, failure, require_store

if TYPE_CHECKING:
    from gittrack_server.adapters import AdapterRegistry

logger = logging.getLogger(__name__)


async def execute(
    guild_id: str,
    repository_url: str,
    event_type: str,
    action: str,
    enabled: bool | None = None,
    registry: AdapterRegistry | None = None,
) -> dict:
    """Switch one action of an event type on or off.

    Args:
        guild_id: Discord guild the command ran in.
        repository_url: Configured repository URL.
        event_type: Routable GitHub event name.
        action: Action key, e.g. ``opened`` or ``comments``.
        enabled: New value; None toggles the current effective value.
        registry: Optional adapter registry for dependency injection.

    Returns:
        Dict with the full effective ``actionsEnabled`` map after the change.
    """
    if event_type not in DEFAULT_ACTIONS:
        return failure(
            "Invalid event type. Choose one of: " + ", ".join(sorted(DEFAULT_ACTIONS))
        )

    store = require_store(registry)
    _, repository = find_repository(store, guild_id, repository_url)
    if repository is None:
        return failure(f"Repository {repository_url} not found on this server.")

    mapping = get_or_create_mapping(store, repository.id, event_type)
    config = dict(mapping.config or {})
    actions = merge_actions(event_type, config.get("actionsEnabled"))

    new_value = (not actions.get(action, False)) if enabled is None else enabled
    actions[action] = new_value
    config["actionsEnabled"] = actions
    mapping.config = config
    store.save(mapping)

    logger.info(
        f"{'Enabled' if new_value else 'Disabled'} {event_type}.{action} for {repository.url}"
    )
    return {
        "success": True,
        "repository": repository.url,
        "event_type": event_type,
        "action": action,
        "enabled": new_value,
        "actions_enabled": actions,
    }
