"""Repository-level events: star, release, fork, create and delete."""

from __future__ import annotations

from typing import Any, Callable

from gittrack_core.types import HandlerResult

from gittrack_server import embeds
from gittrack_server.handlers._delivery import (
    Delivery,
    delivered,
    explicitly_disabled,
    skipped,
)

RELEASE_ACTIONS = frozenset({"published", "released"})


async def _deliver(
    event_type: str,
    action: str,
    label: str,
    build: Callable[[dict[str, Any]], dict[str, Any]],
    payload: dict[str, Any],
    delivery: Delivery,
) -> HandlerResult:
    routing = delivery.route(event_type)
    if explicitly_disabled(routing, action):
        return skipped(f"{label} action '{action}' disabled by config.")
    message = await delivery.send(routing.channel_id, [build(payload)])
    return delivered(label, message)


async def handle_star(payload: dict[str, Any], delivery: Delivery) -> HandlerResult:
    action = payload.get("action", "")
    # Unstarring is silent.
    if action != "created":
        return skipped(f"Star {action} event acknowledged.")
    return await _deliver("star", action, "Star", embeds.star_embed, payload, delivery)


async def handle_release(payload: dict[str, Any], delivery: Delivery) -> HandlerResult:
    action = payload.get("action", "")
    if action not in RELEASE_ACTIONS:
        return skipped(f"Release {action} event acknowledged.")
    return await _deliver("release", action, "Release", embeds.release_embed, payload, delivery)


async def handle_fork(payload: dict[str, Any], delivery: Delivery) -> HandlerResult:
    return await _deliver("fork", "created", "Fork", embeds.fork_embed, payload, delivery)


async def handle_create(payload: dict[str, Any], delivery: Delivery) -> HandlerResult:
    return await _deliver("create", "created", "Create", embeds.create_embed, payload, delivery)


async def handle_delete(payload: dict[str, Any], delivery: Delivery) -> HandlerResult:
    return await _deliver("delete", "deleted", "Delete", embeds.delete_embed, payload, delivery)
