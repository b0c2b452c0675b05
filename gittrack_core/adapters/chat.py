"""Chat adapter protocol.

Implemented by: gittrack_server.discord_client (reference), or any
messaging platform with addressable channels.

Responsible for resolving channel ids and delivering formatted
notifications. Embeds are plain dicts in the Discord embed shape
(title, description, url, color, fields, author, footer, timestamp).
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from gittrack_core.types import SentMessage


@runtime_checkable
class Channel(Protocol):
    """A resolved destination for notifications."""

    id: str

    def is_text_based(self) -> bool:
        """Whether messages can be posted to this channel."""
        ...

    async def send(
        self,
        content: str | None = None,
        *,
        embeds: list[dict[str, Any]] | None = None,
    ) -> SentMessage:
        """Post a message.

        Raises:
            Exception: Any transport or permission failure. Callers catch.
        """
        ...


@runtime_checkable
class ChatAdapter(Protocol):
    """Looks up channels by id.

    Design principles:
    - A missing or forbidden channel resolves to None, never raises.
    - Sending may raise; delivery code treats that as "no delivery".
    """

    async def fetch_channel(self, channel_id: str) -> Channel | None:
        """Resolve a channel id.

        Args:
            channel_id: Platform channel identifier.

        Returns:
            The channel, or None if it does not exist or is not visible.
        """
        ...
