"""Shared delivery helpers for event handlers.

A Delivery is created per webhook request. It carries the validated
repository context and the adapters, and owns the send path: channel
resolution, the advisory channel-limit warning, the send itself and the
message counter.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable

from gittrack_core.branches import find_matching
from gittrack_core.limits import check_channel_limit
from gittrack_core.routing import resolve_routing
from gittrack_core.types import (
    DEFAULT_CHANNEL,
    PENDING_CHANNEL,
    EventRouting,
    HandlerResult,
    RepositoryContext,
    SentMessage,
    TrackedBranchRecord,
)

from gittrack_server import embeds

if TYPE_CHECKING:
    from gittrack_server.adapters import AdapterRegistry

logger = logging.getLogger(__name__)

BRANCH_REF_PREFIX = "refs/heads/"


def branch_from_ref(ref: str | None) -> str | None:
    """``refs/heads/feature/x`` -> ``feature/x``; None for tags and other refs."""
    if ref and ref.startswith(BRANCH_REF_PREFIX):
        return ref[len(BRANCH_REF_PREFIX) :]
    return None


def skipped(message: str) -> HandlerResult:
    """Acknowledge an event without delivering anything."""
    return HandlerResult(status_code=200, message=message)


def explicitly_disabled(routing: EventRouting, action: str) -> bool:
    """Whether the stored configuration switches ``action`` off.

    Used for events that deliver unless told otherwise. Absent keys and
    degraded routing (no config) do not disable anything.
    """
    if not routing.config:
        return False
    actions = routing.config.get("actionsEnabled") or {}
    return actions.get(action) is False


def action_allowed(routing: EventRouting, action: str, fallback: frozenset[str]) -> bool:
    """Opt-in action check: the merged config decides, else ``fallback``."""
    if routing.config is None:
        return action in fallback
    return routing.action_enabled(action)


class Delivery:
    """Per-request send path bound to one validated repository."""

    def __init__(self, context: RepositoryContext, registry: AdapterRegistry) -> None:
        self.context = context
        self.registry = registry
        self._warned_channels: set[str] = set()

    @property
    def store(self) -> Any:
        return self.registry.store

    @property
    def repository_id(self) -> str:
        return self.context.repository.id

    @property
    def server_id(self) -> str:
        return self.context.server.id

    # ------------------------------------------------------------
    # Channel resolution
    # ------------------------------------------------------------

    def route(self, event_type: str) -> EventRouting:
        """Get-or-create routing for a non-branch event of this repository."""
        return resolve_routing(
            self.store,
            self.repository_id,
            event_type,
            self.context.default_channel_id,
        )

    def tracked_branches(self, branch_name: str) -> list[TrackedBranchRecord]:
        """Tracked branch rows of this repository whose pattern matches."""
        tracked = self.store.list(TrackedBranchRecord, repository_id=self.repository_id)
        return find_matching(tracked, branch_name)

    def branch_channels(
        self, branch_name: str, fallback_channel_id: str | None = None
    ) -> list[str]:
        """One channel per matching tracked branch, in match order.

        A tracked branch without its own channel uses ``fallback_channel_id``,
        else the repository default, else the "pending" sentinel.
        """
        fallback = fallback_channel_id or self.context.default_channel_id
        return [
            tracked.channel_id or fallback or PENDING_CHANNEL
            for tracked in self.tracked_branches(branch_name)
        ]

    # ------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------

    async def send(
        self,
        channel_id: str | None,
        message_embeds: list[dict[str, Any]],
        enforce_limit: bool = True,
    ) -> SentMessage | None:
        """Deliver one message and count it.

        Args:
            channel_id: Target channel; sentinels and None skip delivery.
            message_embeds: Embeds making up the message.
            enforce_limit: Whether to run the advisory channel-limit check
                (which may post a warning first). Ping skips it.

        Returns:
            The sent message, or None when nothing was delivered. Delivery
            failures are logged, never raised.
        """
        if not channel_id or channel_id in (PENDING_CHANNEL, DEFAULT_CHANNEL):
            logger.warning(
                f"Notification channel pending for repository "
                f"{self.context.repository.url} on server {self.context.server.guild_id}"
            )
            return None

        chat = self.registry.chat
        if chat is None:
            logger.warning(f"No chat adapter configured; dropping message for {channel_id}")
            return None

        if enforce_limit:
            await self._warn_if_over_limit(channel_id)

        try:
            channel = await chat.fetch_channel(channel_id)
            if channel is None or not channel.is_text_based():
                logger.warning(f"Channel {channel_id} is missing or not text-based")
                return None
            message = await channel.send(embeds=message_embeds)
        except Exception:
            logger.exception(f"Error sending message to channel {channel_id}")
            return None

        self._count_sent()
        return message

    async def fan_out(
        self, channel_ids: Iterable[str], message_embeds: list[dict[str, Any]]
    ) -> SentMessage | None:
        """Send the same message to each channel in turn.

        A failure on one channel does not stop the others. Returns the last
        message delivered.
        """
        last: SentMessage | None = None
        for channel_id in channel_ids:
            message = await self.send(channel_id, message_embeds)
            if message is not None:
                last = message
        return last

    def _count_sent(self) -> None:
        try:
            self.store.increment_messages_sent(self.server_id, 1)
        except Exception:
            logger.exception(f"Failed to increment messages_sent for server {self.server_id}")

    async def _warn_if_over_limit(self, channel_id: str) -> None:
        if channel_id in self._warned_channels:
            return

        limit = check_channel_limit(
            self.store, self.server_id, self.registry.config.limits
        )
        if not limit.is_at_limit:
            return

        self._warned_channels.add(channel_id)
        logger.warning(
            f"Server {self.context.server.guild_id} is exceeding the channel limit "
            f"({limit.current_count}/{limit.max_allowed})"
        )
        try:
            channel = await self.registry.chat.fetch_channel(channel_id)
            if channel is not None and channel.is_text_based():
                await channel.send(
                    embeds=[embeds.channel_limit_warning(limit.current_count, limit.max_allowed)]
                )
                logger.info(f"Sent channel limit warning to channel {channel_id}")
        except Exception:
            logger.exception(f"Error sending channel limit warning to {channel_id}")


def delivered(label: str, message: SentMessage | None) -> HandlerResult:
    """Result for a handler that attempted delivery."""
    if message is None:
        return HandlerResult(status_code=200, message=f"{label} event processed, nothing delivered.")
    return HandlerResult(
        status_code=200,
        message=f"{label} event processed successfully.",
        channel_id=message.channel_id,
        message_id=message.id,
    )
