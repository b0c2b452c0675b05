"""Issue and issue comment handlers."""

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


async def handle(payload: dict[str, Any], delivery: Delivery) -> HandlerResult:
    action = payload.get("action", "")
    routing = delivery.route("issues")
    if explicitly_disabled(routing, action):
        return skipped(f"Issue action '{action}' disabled by config.")

    message = await delivery.send(routing.channel_id, [embeds.issue_embed(payload)])
    return delivered("Issue", message)


async def handle_comment(payload: dict[str, Any], delivery: Delivery) -> HandlerResult:
    """Deliver a new comment on an issue or pull request.

    Comments on pull requests follow the ``pull_request`` mapping, the rest
    follow ``issues``. Either way ``comments`` must be switched on.
    """
    is_pr = bool(payload["issue"].get("pull_request"))
    kind = "Pull Request" if is_pr else "Issue"
    action = payload.get("action", "")
    if action != "created":
        return skipped(f"{kind} comment {action} event acknowledged.")

    routing = delivery.route("pull_request" if is_pr else "issues")
    if not routing.action_enabled("comments"):
        return skipped(f"{kind} comments disabled by config.")

    message = await delivery.send(routing.channel_id, [embeds.issue_comment_embed(payload)])
    return delivered(f"{kind} comment", message)
