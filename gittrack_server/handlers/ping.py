"""Ping handler: confirms webhook setup in the repository's channel."""

from __future__ import annotations

import logging
from typing import Any

from gittrack_core.types import HandlerResult

from gittrack_server import embeds
from gittrack_server.handlers._delivery import Delivery, delivered, skipped

logger = logging.getLogger(__name__)


async def handle(payload: dict[str, Any], delivery: Delivery) -> HandlerResult:
    """Send the confirmation and the branch-linking guide as two messages.

    Goes to the repository default channel and bypasses the channel limit
    check, so setup can always be confirmed.
    """
    channel_id = delivery.context.default_channel_id
    if not channel_id:
        logger.warning(
            f"Ping event for {payload['repository']['html_url']}, "
            f"but repository notification channel is pending"
        )
        return skipped("Ping event ack, channel pending.")

    confirmation, guide = embeds.ping_embeds(payload)
    message = await delivery.send(channel_id, [confirmation], enforce_limit=False)
    if message is None:
        return skipped("Ping acknowledged, nothing delivered.")

    await delivery.send(channel_id, [guide], enforce_limit=False)
    return delivered("Ping", message)
