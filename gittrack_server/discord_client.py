"""Discord REST API chat adapter.

Implements the ChatAdapter protocol over Discord's HTTP API (v10) with a
shared aiohttp session and a bot token. Only the three calls GitTrack needs
are wrapped: fetch a channel, post a message, list the bot's guilds.
"""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from gittrack_core.config import DiscordConfig
from gittrack_core.types import SentMessage

logger = logging.getLogger(__name__)

# Channel types that accept messages: guild text, DM, guild voice, group DM,
# announcement, the three thread types and stage voice.
TEXT_CHANNEL_TYPES = frozenset({0, 1, 2, 3, 5, 10, 11, 12, 13})


class DiscordAPIError(Exception):
    """Non-success response from the Discord API."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(f"Discord API error {status}: {message}")
        self.status = status


class DiscordChannel:
    """A channel resolved through the REST API."""

    def __init__(self, client: DiscordClient, data: dict[str, Any]) -> None:
        self._client = client
        self.id: str = str(data["id"])
        self.type: int = int(data.get("type", -1))
        self.name: str = data.get("name") or ""
        self.guild_id: str | None = data.get("guild_id")

    def is_text_based(self) -> bool:
        return self.type in TEXT_CHANNEL_TYPES

    async def send(
        self,
        content: str | None = None,
        *,
        embeds: list[dict[str, Any]] | None = None,
    ) -> SentMessage:
        body: dict[str, Any] = {}
        if content:
            body["content"] = content
        if embeds:
            body["embeds"] = embeds
        data = await self._client.request(
            "POST", f"/channels/{self.id}/messages", json=body
        )
        return SentMessage(id=str(data["id"]), channel_id=self.id)

    def __repr__(self) -> str:
        return f"DiscordChannel(id={self.id!r}, type={self.type})"


class DiscordClient:
    """ChatAdapter for Discord.

    Usage:
        client = DiscordClient(config.discord)
        await client.start()
        channel = await client.fetch_channel("123")
        await client.close()
    """

    def __init__(
        self,
        config: DiscordConfig,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        self._session = session
        self._owns_session = session is None

    async def start(self) -> aiohttp.ClientSession:
        """Open the HTTP session (idempotent) and return it."""
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._config.request_timeout),
                headers={
                    "Authorization": f"Bot {self._config.token}",
                    "User-Agent": "GitTrack (https://github.com, 0.1.0)",
                },
            )
            self._owns_session = True
            logger.info("Discord REST session opened")
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            logger.info("Discord REST session closed")
        self._session = None

    async def request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Perform an API call and return the decoded JSON body.

        Raises:
            DiscordAPIError: On any non-2xx response.
            aiohttp.ClientError: On transport failures.
        """
        session = await self.start()
        url = f"{self._config.api_base}{path}"
        async with session.request(method, url, **kwargs) as resp:
            if resp.status >= 400:
                text = await resp.text()
                raise DiscordAPIError(resp.status, text[:200])
            if resp.status == 204:
                return None
            return await resp.json()

    async def fetch_channel(self, channel_id: str) -> DiscordChannel | None:
        """Resolve a channel, or None if it is gone or not visible to the bot."""
        try:
            data = await self.request("GET", f"/channels/{channel_id}")
        except DiscordAPIError as e:
            if e.status in (403, 404):
                logger.warning(f"Channel {channel_id} unavailable (HTTP {e.status})")
                return None
            raise
        return DiscordChannel(self, data)

    async def fetch_guilds(self) -> dict[str, str]:
        """Id -> name of every guild the bot is currently a member of."""
        guilds: dict[str, str] = {}
        after: str | None = None
        while True:
            params = {"limit": "200"}
            if after:
                params["after"] = after
            page = await self.request("GET", "/users/@me/guilds", params=params)
            if not page:
                break
            guilds.update((str(g["id"]), g.get("name") or "") for g in page)
            if len(page) < 200:
                break
            after = str(page[-1]["id"])
        return guilds
