"""Daemon runner for the GitTrack webhook service.

Opens the Discord REST session, reconciles guild status, then serves the
webhook endpoint in the same asyncio event loop until interrupted.
"""

from __future__ import annotations

import asyncio
import logging
import sys

from aiohttp import web

from .adapters import get_adapter_registry
from .commands.guilds import sync_guild_status
from .discord_client import DiscordClient
from .rest_server import create_app

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def start_daemon() -> None:
    """Start the full daemon: chat client + webhook server.

    Reads configuration from environment variables (see GitTrackConfig):
    - DISCORD_TOKEN: Discord bot token (required)
    - GITTRACK_HOST / PORT: bind address and port (default: 0.0.0.0:3000)
    - GITTRACK_DB_PATH: DuckDB database path
    - GITHUB_WEBHOOK_SECRET: fallback webhook secret
    """
    registry = get_adapter_registry()
    config = registry.config

    if not config.discord.token:
        logger.error("DISCORD_TOKEN environment variable is required")
        sys.exit(1)

    logger.info("Starting GitTrack daemon")
    logger.info(f"Webhook server: http://{config.server.host}:{config.server.port}")
    if not config.webhook.public_url:
        logger.warning("Neither WEBHOOK_URL nor PUBLIC_URL is set; setup cannot show a payload URL")

    chat = registry.chat
    if isinstance(chat, DiscordClient):
        await chat.start()
        try:
            guilds = await chat.fetch_guilds()
            logger.info(f"Bot is in {len(guilds)} servers")
            await sync_guild_status(guilds, registry=registry)
        except Exception:
            logger.exception("Failed to reconcile guild status")

    app = create_app(registry)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, config.server.host, config.server.port)
    await site.start()
    logger.info(f"Webhook server started on http://{config.server.host}:{config.server.port}")

    # Run until cancelled (Ctrl+C)
    logger.info("Daemon running. Press Ctrl+C to stop.")
    try:
        await asyncio.Event().wait()
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info("Received interrupt signal, shutting down...")
    finally:
        logger.info("Stopping webhook server...")
        await runner.cleanup()

        if isinstance(chat, DiscordClient):
            logger.info("Closing Discord session...")
            await chat.close()

        if registry.github is not None:
            await registry.github.close()

        if registry.store is not None and hasattr(registry.store, "close"):
            registry.store.close()

        logger.info("Daemon stopped")


def run_daemon() -> None:
    """Entry point for daemon mode."""
    try:
        asyncio.run(start_daemon())
    except KeyboardInterrupt:
        # Already handled in start_daemon
        pass
