"""
GitTrack: GitHub webhook routing for Discord.

Branch pattern matching, per-event routing with defaults, and per-server
resource limits, independent of any storage or chat backend.
"""

__version__ = "0.1.0"

from gittrack_core.adapters import (
    Channel,
    ChatAdapter,
    StoreAdapter,
)
from gittrack_core.types import (
    # Sentinels
    DEFAULT_CHANNEL,
    PENDING_CHANNEL,
    # Base classes
    Entity,
    Event,
    # Enums
    LogLevel,
    ServerStatus,
    # Entities
    EventChannelRecord,
    RepositoryRecord,
    ServerRecord,
    TrackedBranchRecord,
    # Events
    ErrorLogEvent,
    PerformanceEvent,
    SystemLogEvent,
    # Return types
    ChannelLimit,
    EventRouting,
    HandlerResult,
    RepositoryContext,
    RepositoryLimit,
    SentMessage,
)

__all__ = [
    # Adapter protocols
    "Channel",
    "ChatAdapter",
    "StoreAdapter",
    # Sentinels
    "DEFAULT_CHANNEL",
    "PENDING_CHANNEL",
    # Base classes
    "Entity",
    "Event",
    # Enums
    "LogLevel",
    "ServerStatus",
    # Entities
    "ServerRecord",
    "RepositoryRecord",
    "TrackedBranchRecord",
    "EventChannelRecord",
    # Events
    "ErrorLogEvent",
    "SystemLogEvent",
    "PerformanceEvent",
    # Return types
    "RepositoryContext",
    "EventRouting",
    "RepositoryLimit",
    "ChannelLimit",
    "SentMessage",
    "HandlerResult",
]
