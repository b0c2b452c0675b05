"""Check run and check suite handlers.

Both try branch fan-out through the suite's head branch first. A tracked
branch without its own channel uses the routed channel; with no matching
tracked branch at all the routed channel gets a single message.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from gittrack_core.types import HandlerResult

from gittrack_server import embeds
from gittrack_server.handlers._delivery import (
    Delivery,
    action_allowed,
    delivered,
    skipped,
)

logger = logging.getLogger(__name__)

COMPLETED = frozenset({"completed"})


async def _deliver_by_branch(
    event_type: str,
    label: str,
    branch: str | None,
    build: Callable[[dict[str, Any], str | None], dict[str, Any]],
    payload: dict[str, Any],
    delivery: Delivery,
) -> HandlerResult:
    action = payload.get("action", "")
    if action != "completed":
        return skipped(f"{label} event acknowledged.")

    routing = delivery.route(event_type)
    if not action_allowed(routing, action, COMPLETED):
        return skipped(f"{label} action '{action}' disabled by config.")

    if branch:
        channels = delivery.branch_channels(branch, fallback_channel_id=routing.channel_id)
        if channels:
            message = await delivery.fan_out(channels, [build(payload, branch)])
            return delivered(label, message)
        logger.debug(f"No tracked branch matches {branch}; using routed channel")

    message = await delivery.send(routing.channel_id, [build(payload, None)])
    return delivered(label, message)


async def handle_run(payload: dict[str, Any], delivery: Delivery) -> HandlerResult:
    check_suite = payload["check_run"].get("check_suite") or {}
    return await _deliver_by_branch(
        "check_run",
        "Check run",
        check_suite.get("head_branch"),
        embeds.check_run_embed,
        payload,
        delivery,
    )


async def handle_suite(payload: dict[str, Any], delivery: Delivery) -> HandlerResult:
    return await _deliver_by_branch(
        "check_suite",
        "Check suite",
        payload["check_suite"].get("head_branch"),
        embeds.check_suite_embed,
        payload,
        delivery,
    )
