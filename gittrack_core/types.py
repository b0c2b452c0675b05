"""Shared data types for GitTrack adapter interfaces."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

# Channel sentinels stored in (or resolved from) routing records.
DEFAULT_CHANNEL = "default"
"""Stored mapping channel meaning "use the repository default channel"."""

PENDING_CHANNEL = "pending"
"""Resolved channel meaning "nothing configured yet"; delivery is skipped."""


# ============================================================
# Base classes: the ORM-like foundation
# ============================================================


@dataclass
class Entity:
    """Base class for all persistable configuration records.

    Entities have identity (an id field) and can be saved, retrieved and
    deleted through the StoreAdapter.
    """

    id: str
    created_at: datetime | None = None
    modified_at: datetime | None = None


@dataclass(frozen=True)
class Event:
    """Base class for all append-only diagnostic records.

    Events are immutable. Once appended, never updated or deleted.
    The routing logic never reads them back; they exist for operators.
    """

    entity_id: str
    event_type: str
    created_at: datetime | None = None


# ============================================================
# Enums
# ============================================================


class ServerStatus(Enum):
    """Whether the bot is currently a member of the guild."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class LogLevel(Enum):
    """Severity of a persisted diagnostic record."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


# ============================================================
# Entities: mutable, saveable configuration records
# ============================================================


@dataclass
class ServerRecord(Entity):
    """A chat-platform guild using GitTrack."""

    guild_id: str = ""
    name: str = ""
    status: ServerStatus = ServerStatus.ACTIVE
    messages_sent: int = 0


@dataclass
class RepositoryRecord(Entity):
    """A GitHub repository configured on one server.

    The (server_id, url) pair is unique. ``url`` is stored without a
    trailing ``.git`` or slash.
    """

    server_id: str = ""
    url: str = ""
    notification_channel_id: str | None = None
    webhook_secret: str | None = None


@dataclass
class TrackedBranchRecord(Entity):
    """A (branch pattern, channel) pair routing push-style events."""

    repository_id: str = ""
    branch_pattern: str = ""
    channel_id: str | None = None


@dataclass
class EventChannelRecord(Entity):
    """Routing for one non-branch event type of a repository.

    ``config`` holds ``actionsEnabled`` (action name -> bool) and
    ``explicitChannel`` (bool).
    """

    repository_id: str = ""
    event_type: str = ""
    channel_id: str = DEFAULT_CHANNEL
    config: dict[str, Any] = field(default_factory=dict)


# ============================================================
# Events: immutable, append-only diagnostic records
# ============================================================


@dataclass(frozen=True)
class ErrorLogEvent(Event):
    """A failure while processing a webhook or command."""

    level: LogLevel = LogLevel.ERROR
    message: str = ""
    stack: str | None = None
    source: str = "webhook"
    context: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SystemLogEvent(Event):
    """Operational notice that is not an error (e.g. an unhandled event type)."""

    level: LogLevel = LogLevel.INFO
    category: str = ""
    message: str = ""
    details: dict[str, Any] = field(default_factory=dict)
    ip_address: str | None = None


@dataclass(frozen=True)
class PerformanceEvent(Event):
    """Timing for a slow webhook delivery."""

    operation: str = ""
    duration_ms: float = 0.0
    details: dict[str, Any] = field(default_factory=dict)


# ============================================================
# Return types: values produced by the routing core
# ============================================================


@dataclass(frozen=True)
class RepositoryContext:
    """A repository whose webhook signature validated, plus its server."""

    repository: RepositoryRecord
    server: ServerRecord

    @property
    def default_channel_id(self) -> str | None:
        return self.repository.notification_channel_id


@dataclass(frozen=True)
class EventRouting:
    """Effective channel and merged configuration for a non-branch event."""

    channel_id: str
    config: dict[str, Any] | None = None

    def action_enabled(self, action: str) -> bool:
        """Whether ``action`` is switched on in the merged configuration.

        Missing configuration (routing degraded) or a missing key both
        count as disabled.
        """
        if not self.config:
            return False
        actions = self.config.get("actionsEnabled") or {}
        return actions.get(action) is True


@dataclass(frozen=True)
class RepositoryLimit:
    """Repository count for a server against its maximum."""

    is_at_limit: bool
    current_count: int
    max_allowed: int
    remaining: int


@dataclass(frozen=True)
class ChannelLimit:
    """Distinct explicit branch channels for a server against its maximum.

    ``max_allowed`` and ``remaining`` are ``math.inf`` when unlimited.
    """

    is_at_limit: bool
    current_count: int
    max_allowed: float
    potential_count: int
    remaining: float


@dataclass(frozen=True)
class SentMessage:
    """Handle for a message the chat adapter delivered."""

    id: str
    channel_id: str


@dataclass(frozen=True)
class HandlerResult:
    """Outcome of one event handler: HTTP status plus delivery info."""

    status_code: int = 200
    message: str = ""
    channel_id: str | None = None
    message_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status_code": self.status_code,
            "message": self.message,
            "channel_id": self.channel_id,
            "message_id": self.message_id,
        }
