"""Pull request, review and review comment handlers.

All three route through the ``pull_request`` mapping. Review comments and
comment-only reviews are delivered only when ``comments`` is switched on.
"""

from __future__ import annotations

import logging
from typing import Any

from gittrack_core.types import HandlerResult

from gittrack_server import embeds
from gittrack_server.handlers._delivery import (
    Delivery,
    delivered,
    explicitly_disabled,
    skipped,
)

logger = logging.getLogger(__name__)

EVENT_TYPE = "pull_request"


async def handle(payload: dict[str, Any], delivery: Delivery) -> HandlerResult:
    action = payload.get("action", "")
    routing = delivery.route(EVENT_TYPE)
    if explicitly_disabled(routing, action):
        return skipped(f"Pull request action '{action}' disabled by config.")

    message = await delivery.send(routing.channel_id, [embeds.pull_request_embed(payload)])
    return delivered("Pull request", message)


async def handle_review(payload: dict[str, Any], delivery: Delivery) -> HandlerResult:
    """Deliver a submitted review; comment-only reviews need ``comments``."""
    action = payload.get("action", "")
    if action != "submitted":
        return skipped(f"PR review {action} event acknowledged.")

    routing = delivery.route(EVENT_TYPE)
    state = (payload["review"].get("state") or "").lower()
    if state == "commented" and not routing.action_enabled("comments"):
        return skipped("PR review comments disabled by config.")

    logger.info(
        f"PR review ({state}) on #{payload['pull_request']['number']} "
        f"in {payload['repository']['html_url']}"
    )
    message = await delivery.send(routing.channel_id, [embeds.review_embed(payload)])
    return delivered("PR review", message)


async def handle_review_comment(payload: dict[str, Any], delivery: Delivery) -> HandlerResult:
    action = payload.get("action", "")
    if action != "created":
        return skipped(f"PR review comment {action} event acknowledged.")

    routing = delivery.route(EVENT_TYPE)
    if not routing.action_enabled("comments"):
        return skipped("PR comments disabled by config.")

    message = await delivery.send(routing.channel_id, [embeds.review_comment_embed(payload)])
    return delivered("PR review comment", message)
