"""Push event handler: fans out to every matching tracked branch."""

from __future__ import annotations

import logging
from typing import Any

from gittrack_core.types import HandlerResult

from gittrack_server import embeds
from gittrack_server.handlers._delivery import Delivery, branch_from_ref, delivered, skipped

logger = logging.getLogger(__name__)


async def handle(payload: dict[str, Any], delivery: Delivery) -> HandlerResult:
    """Deliver a push to each tracked branch whose pattern matches.

    Args:
        payload: GitHub ``push`` payload.
        delivery: Send path for the validated repository.

    Returns:
        HandlerResult carrying the last message delivered, if any.
    """
    branch = branch_from_ref(payload.get("ref"))
    if branch is None:
        return skipped("Could not determine branch name.")

    channels = delivery.branch_channels(branch)
    if not channels:
        return skipped("No configurations for this push on the authenticated server.")

    logger.info(
        f"Push to {branch} of {payload['repository']['html_url']} "
        f"matches {len(channels)} tracked branch(es)"
    )
    message = await delivery.fan_out(channels, [embeds.push_embed(payload, branch)])
    return delivered("Push", message)
