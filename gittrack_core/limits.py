"""Per-server resource limits.

Two budgets are tracked:

- repositories: plain count of RepositoryRecord rows for the server.
- notification channels: distinct channels explicitly targeted by a
  TrackedBranchRecord. A repository default channel only counts once some
  tracked branch names it explicitly.

At delivery time a breach is advisory (warn, then send). At configuration
time a breach for a channel not yet in use blocks the change.
"""

from __future__ import annotations

import logging
import math

from gittrack_core.adapters.store import StoreAdapter
from gittrack_core.config import LimitsConfig
from gittrack_core.types import (
    ChannelLimit,
    RepositoryLimit,
    RepositoryRecord,
    TrackedBranchRecord,
)

logger = logging.getLogger(__name__)


def check_repository_limit(
    store: StoreAdapter, server_id: str, limits: LimitsConfig
) -> RepositoryLimit:
    """Compare a server's repository count with its maximum.

    Args:
        store: StoreAdapter instance.
        server_id: Server to check.
        limits: Configured limits.

    Returns:
        RepositoryLimit. On store failure, reports an empty, not-at-limit server.
    """
    max_allowed = limits.max_repositories
    try:
        current = store.count(RepositoryRecord, server_id=server_id)
    except Exception:
        logger.exception(f"Error checking repository limit for server {server_id}")
        return RepositoryLimit(
            is_at_limit=False,
            current_count=0,
            max_allowed=max_allowed,
            remaining=max_allowed,
        )

    return RepositoryLimit(
        is_at_limit=current >= max_allowed,
        current_count=current,
        max_allowed=max_allowed,
        remaining=max(0, max_allowed - current),
    )


def channels_in_use(
    store: StoreAdapter, server_id: str, exclude_channel_id: str | None = None
) -> set[str]:
    """Distinct channels explicitly targeted by the server's tracked branches."""
    repository_ids = [r.id for r in store.list(RepositoryRecord, server_id=server_id)]
    if not repository_ids:
        return set()

    branches = store.list(TrackedBranchRecord, repository_id=repository_ids)
    return {
        b.channel_id
        for b in branches
        if b.channel_id and b.channel_id != exclude_channel_id
    }


def check_channel_limit(
    store: StoreAdapter,
    server_id: str,
    limits: LimitsConfig,
    exclude_channel_id: str | None = None,
    include_new_channel_id: str | None = None,
) -> ChannelLimit:
    """Compare a server's distinct branch channels with its maximum.

    Args:
        store: StoreAdapter instance.
        server_id: Server to check.
        limits: Configured limits.
        exclude_channel_id: Channel to leave out of the count (e.g. one
            about to be unlinked).
        include_new_channel_id: Channel about to be added. Counted only if
            it is not already in explicit use.

    Returns:
        ChannelLimit where ``is_at_limit`` means the potential count exceeds
        the maximum. Unlimited servers are never at the limit. On store
        failure, reports not-at-limit.
    """
    if limits.max_channels is None:
        return ChannelLimit(
            is_at_limit=False,
            current_count=0,
            max_allowed=math.inf,
            potential_count=0,
            remaining=math.inf,
        )

    max_allowed = limits.max_channels
    try:
        in_use = channels_in_use(store, server_id, exclude_channel_id)
    except Exception:
        logger.exception(f"Error checking channel limit for server {server_id}")
        return ChannelLimit(
            is_at_limit=False,
            current_count=0,
            max_allowed=max_allowed,
            potential_count=0,
            remaining=max_allowed,
        )

    current = len(in_use)
    potential = current
    if include_new_channel_id and include_new_channel_id not in in_use:
        potential += 1

    logger.debug(
        f"Channel limit check for server {server_id}: "
        f"{current} in use, {potential} potential, max {max_allowed}"
    )

    return ChannelLimit(
        is_at_limit=potential > max_allowed,
        current_count=current,
        max_allowed=max_allowed,
        potential_count=potential,
        remaining=max(0, max_allowed - current),
    )
