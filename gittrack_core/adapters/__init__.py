"""Adapter protocol interfaces for GitTrack.

Each protocol defines a capability boundary that a backend implements:

    gittrack_server.store.DuckDBStore             → StoreAdapter
    gittrack_server.discord_client.DiscordClient  → ChatAdapter

Protocols use structural subtyping (PEP 544); adapters implement the
interface without inheriting from it.
"""

from gittrack_core.adapters.chat import Channel, ChatAdapter
from gittrack_core.adapters.store import StoreAdapter

__all__ = [
    "Channel",
    "ChatAdapter",
    "StoreAdapter",
]
