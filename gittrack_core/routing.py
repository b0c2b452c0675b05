"""Event routing for non-branch GitHub events.

Each (repository, event type) pair has at most one EventChannelRecord. The
first time an event type arrives for a repository a mapping is provisioned
with the default action table, so a repository that never configured an
event still gets notified for its common actions.

``resolve_routing`` reads AND writes. Treat it as get-or-create.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from gittrack_core.adapters.store import StoreAdapter
from gittrack_core.types import (
    DEFAULT_CHANNEL,
    PENDING_CHANNEL,
    EventChannelRecord,
    EventRouting,
)

logger = logging.getLogger(__name__)

# Built-in action defaults per event type. Comments are opt-in everywhere.
DEFAULT_ACTIONS: dict[str, dict[str, bool]] = {
    "issues": {
        "opened": True,
        "closed": True,
        "reopened": True,
        "edited": True,
        "labeled": True,
        "assigned": True,
        "comments": False,
    },
    "pull_request": {
        "opened": True,
        "closed": True,
        "reopened": True,
        "comments": False,
    },
    "release": {"published": True},
    "star": {"created": True, "deleted": True},
    "fork": {"created": True},
    "create": {"created": True},
    "delete": {"deleted": True},
    "milestone": {"created": True, "opened": True, "closed": True},
    "ping": {"ping": True},
    "workflow_run": {"completed": True, "requested": False},
    "workflow_job": {
        "queued": False,
        "in_progress": False,
        "completed": True,
        "waiting": False,
    },
    "check_run": {
        "created": False,
        "requested": False,
        "rerequested": False,
        "completed": True,
    },
    "check_suite": {"requested": False, "rerequested": False, "completed": True},
}


def default_actions(event_type: str) -> dict[str, bool]:
    """Return a fresh copy of the default action table for an event type.

    Unknown event types get an empty table: every action is disabled
    unless a stored configuration enables it.
    """
    return dict(DEFAULT_ACTIONS.get(event_type, {}))


def merge_actions(event_type: str, stored: Any) -> dict[str, bool]:
    """Overlay stored ``actionsEnabled`` values on the defaults.

    Stored booleans win. Non-boolean stored values are ignored so a
    malformed blob cannot switch anything on by accident.
    """
    merged = default_actions(event_type)
    if isinstance(stored, dict):
        for action, enabled in stored.items():
            if isinstance(enabled, bool):
                merged[str(action)] = enabled
    return merged


def default_config(event_type: str) -> dict[str, Any]:
    """Configuration blob for a freshly provisioned mapping."""
    return {"actionsEnabled": default_actions(event_type), "explicitChannel": False}


def find_mapping(
    store: StoreAdapter, repository_id: str, event_type: str
) -> EventChannelRecord | None:
    """Return the existing mapping for (repository, event type), if any."""
    mappings = store.list(
        EventChannelRecord, repository_id=repository_id, event_type=event_type
    )
    return mappings[0] if mappings else None


def get_or_create_mapping(
    store: StoreAdapter, repository_id: str, event_type: str
) -> EventChannelRecord:
    """Find the mapping for (repository, event type), provisioning it if absent.

    The store rejects a second mapping for the same pair, so a concurrent
    provisioning loses the insert and reads the winner's row instead.
    """
    existing = find_mapping(store, repository_id, event_type)
    if existing is not None:
        return existing

    mapping = EventChannelRecord(
        id=str(uuid.uuid4()),
        repository_id=repository_id,
        event_type=event_type,
        channel_id=DEFAULT_CHANNEL,
        config=default_config(event_type),
    )
    if store.insert(mapping):
        logger.info(
            f"Provisioned default {event_type} routing for repository {repository_id}"
        )
        return mapping

    existing = find_mapping(store, repository_id, event_type)
    if existing is None:
        raise RuntimeError(
            f"Could not provision {event_type} routing for repository {repository_id}"
        )
    return existing


def effective_channel(
    mapping: EventChannelRecord, fallback_channel_id: str | None
) -> str:
    """Resolve the channel a mapping delivers to.

    The "default" sentinel, or a non-explicit copy of the fallback, follows
    the repository default; anything else is used as stored.
    """
    fallback = fallback_channel_id or PENDING_CHANNEL
    explicit = (mapping.config or {}).get("explicitChannel") is True

    if mapping.channel_id == DEFAULT_CHANNEL or (
        not explicit and mapping.channel_id == fallback_channel_id
    ):
        return fallback
    return mapping.channel_id or fallback


def resolve_routing(
    store: StoreAdapter,
    repository_id: str,
    event_type: str,
    fallback_channel_id: str | None = None,
) -> EventRouting:
    """Get-or-create the routing for a non-branch event.

    Args:
        store: StoreAdapter instance.
        repository_id: Repository receiving the event.
        event_type: GitHub event name (``X-GitHub-Event``).
        fallback_channel_id: The repository's default notification channel.

    Returns:
        EventRouting with the effective channel (``"pending"`` when nothing
        is configured) and the stored config with ``actionsEnabled`` merged
        over the defaults. If the store fails, the fallback channel with
        ``config=None``.
    """
    try:
        mapping = get_or_create_mapping(store, repository_id, event_type)
    except Exception:
        logger.exception(
            f"Routing lookup failed for {event_type} on repository {repository_id}"
        )
        return EventRouting(channel_id=fallback_channel_id or PENDING_CHANNEL)

    stored = mapping.config or {}
    config = dict(stored)
    config["actionsEnabled"] = merge_actions(event_type, stored.get("actionsEnabled"))
    config["explicitChannel"] = stored.get("explicitChannel") is True

    return EventRouting(
        channel_id=effective_channel(mapping, fallback_channel_id),
        config=config,
    )
