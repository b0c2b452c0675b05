"""Milestone event handler."""

from __future__ import annotations

import logging
from typing import Any

from gittrack_core.types import HandlerResult

from gittrack_server import embeds
from gittrack_server.handlers._delivery import Delivery, delivered, skipped

logger = logging.getLogger(__name__)

NOTABLE_ACTIONS = frozenset({"created", "opened", "closed"})


async def handle(payload: dict[str, Any], delivery: Delivery) -> HandlerResult:
    """Deliver milestone changes.

    An action present in ``actionsEnabled`` follows its flag; any other
    action delivers only if it is one of created, opened or closed.
    """
    action = payload.get("action", "")
    logger.info(
        f'Milestone "{payload["milestone"]["title"]}" {action} '
        f"in {payload['repository']['html_url']}"
    )

    routing = delivery.route("milestone")
    actions = (routing.config or {}).get("actionsEnabled") or {}
    if action in actions:
        if actions[action] is not True:
            return skipped(f"Milestone action '{action}' disabled by config.")
    elif action not in NOTABLE_ACTIONS:
        return skipped(f"Milestone {action} event acknowledged.")

    message = await delivery.send(routing.channel_id, [embeds.milestone_embed(payload)])
    return delivered("Milestone", message)
