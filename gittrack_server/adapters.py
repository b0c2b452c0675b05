"""Adapter registry for dependency injection into handlers and commands.

This module provides a registry that holds all adapter instances used by
the GitTrack server: the store, the chat platform client and the optional
GitHub API helper, plus the loaded configuration.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from gittrack_core.config import GitTrackConfig

if TYPE_CHECKING:
    from gittrack_core.adapters.chat import ChatAdapter
    from gittrack_core.adapters.store import StoreAdapter
    from gittrack_server.github_client import GitHubClient

logger = logging.getLogger(__name__)


@dataclass
class AdapterRegistry:
    """Holds adapter instances for dependency injection.

    Attributes:
        store: Configuration store (DuckDB, etc).
        chat: Chat platform client (Discord, etc).
        github: GitHub REST helper, optional.
        config: Runtime configuration.
    """

    store: StoreAdapter | None = None
    chat: ChatAdapter | None = None
    github: GitHubClient | None = None
    config: GitTrackConfig = field(default_factory=GitTrackConfig)


_registry: AdapterRegistry | None = None


def get_adapter_registry() -> AdapterRegistry:
    """Get or create the global adapter registry from the environment.

    Returns:
        AdapterRegistry with a DuckDB store, Discord client and GitHub client.
    """
    global _registry

    if _registry is not None:
        return _registry

    from gittrack_server.discord_client import DiscordClient
    from gittrack_server.github_client import GitHubClient
    from gittrack_server.store import DuckDBStore

    config = GitTrackConfig.from_env()
    registry = AdapterRegistry(config=config)

    registry.store = DuckDBStore(path=config.store.path)
    logger.info(f"Initialized DuckDBStore at {config.store.path}")

    if config.discord.token:
        registry.chat = DiscordClient(config.discord)
        logger.info("Initialized DiscordClient")
    else:
        logger.warning("DISCORD_TOKEN not set, notifications cannot be delivered")

    registry.github = GitHubClient(config.github)

    _registry = registry
    return registry


def set_adapter_registry(registry: AdapterRegistry | None) -> None:
    """Replace (or clear) the global registry."""
    global _registry
    _registry = registry
