"""Branch linking command implementation."""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from gittrack_core.branches import WILDCARD, describe, is_valid_pattern
from gittrack_core.limits import channels_in_use, check_channel_limit, check_repository_limit
from gittrack_core.types import TrackedBranchRecord

from ._helpers import find_repository, failure, require_store

if TYPE_CHECKING:
    from gittrack_server.adapters import AdapterRegistry

logger = logging.getLogger(__name__)

INVALID_PATTERN_HELP = (
    "Invalid branch pattern. Valid patterns include:\n"
    "• `*` - Track all branches\n"
    "• `main` - Track a specific branch\n"
    '• `features/*` - Track all branches starting with "features/"\n'
    '• `!main` - Track every branch except "main"\n'
    '• `!release/*` - Track every branch not starting with "release/"\n\n'
    "Branch names can only contain letters, numbers, hyphens, underscores, "
    "dots, and slashes."
)


async def execute(
    guild_id: str,
    repository_url: str,
    branch_pattern: str,
    channel_id: str,
    registry: AdapterRegistry | None = None,
) -> dict:
    """Track a branch pattern of a configured repository in a channel.

    Linking ``*`` replaces the specific patterns already tracked in that
    channel. A specific pattern is refused where ``*`` already covers the
    channel.

    Args:
        guild_id: Discord guild the command ran in.
        repository_url: Repository previously configured with setup.
        branch_pattern: Exact name, ``*``, ``prefix/*`` or a negation.
        channel_id: Channel receiving the branch's notifications.
        registry: Optional adapter registry for dependency injection.

    Returns:
        Dict describing the new link, or ``success: False`` with an error.
    """
    if not is_valid_pattern(branch_pattern):
        return failure(INVALID_PATTERN_HELP)

    from gittrack_server.adapters import get_adapter_registry

    registry = registry or get_adapter_registry()
    store = require_store(registry)
    limits = registry.config.limits

    server, repository = find_repository(store, guild_id, repository_url)
    if repository is None:
        if server is not None:
            repo_limit = check_repository_limit(store, server.id, limits)
            if repo_limit.is_at_limit:
                return failure(
                    f"You've reached the maximum number of repositories "
                    f"({repo_limit.max_allowed}) allowed on this server. Please remove "
                    f"an existing repository with `/remove-repo` before setting up a new one."
                )
        return failure(
            f"Repository not found. Please run `/setup {repository_url}` first "
            f"to configure the webhook."
        )

    in_use = channels_in_use(store, repository.server_id)
    if channel_id not in in_use:
        channel_limit = check_channel_limit(
            store, repository.server_id, limits, include_new_channel_id=channel_id
        )
        if channel_limit.is_at_limit:
            existing = ", ".join(f"<#{c}>" for c in sorted(in_use))
            return failure(
                f"The server allows branch notifications to be sent to a maximum of "
                f"{int(channel_limit.max_allowed)} distinct channels. This server is "
                f"already using {channel_limit.current_count}/"
                f"{int(channel_limit.max_allowed)} channels for branch notifications"
                f"{': ' + existing if existing else ''}.\n\nYou can either use one of "
                f"these existing channels or contact an administrator to increase the limit.",
                channels_in_use=sorted(in_use),
            )

    in_channel = store.list(
        TrackedBranchRecord, repository_id=repository.id, channel_id=channel_id
    )
    patterns = {tb.branch_pattern for tb in in_channel}
    replaced = 0

    if branch_pattern == WILDCARD:
        if WILDCARD in patterns:
            return failure(
                f"All branches are already being tracked for repository "
                f"<{repository.url}> in channel <#{channel_id}>."
            )
        for tracked in in_channel:
            store.delete(TrackedBranchRecord, tracked.id)
            replaced += 1
    else:
        if WILDCARD in patterns:
            return failure(
                f"All branches of <{repository.url}> are already tracked in "
                f"<#{channel_id}>. Unlink `*` first to track specific branches there."
            )
        if branch_pattern in patterns:
            return failure(
                f"Branch `{branch_pattern}` is already being tracked for repository "
                f"<{repository.url}> in channel <#{channel_id}>."
            )

    tracked = TrackedBranchRecord(
        id=str(uuid.uuid4()),
        repository_id=repository.id,
        branch_pattern=branch_pattern,
        channel_id=channel_id,
    )
    if not store.insert(tracked):
        return failure(f"Branch `{branch_pattern}` is already linked to <#{channel_id}>.")

    logger.info(
        f"Linked {branch_pattern} of {repository.url} to channel {channel_id} "
        f"(replaced {replaced})"
    )
    return {
        "success": True,
        "repository": repository.url,
        "branch_pattern": branch_pattern,
        "description": describe(branch_pattern),
        "channel_id": channel_id,
        "replaced": replaced,
    }
