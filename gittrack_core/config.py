"""GitTrack configuration system.

Externalizes deployment settings that the webhook server and commands need
at runtime: resource limits, webhook secrets, tokens, storage location.

Configuration can be loaded from:
- Environment variables (optionally via a .env file)
- Programmatic construction

This module defines the schema and the environment mapping.
"""

from __future__ import annotations

import math
import os
from collections.abc import Mapping
from dataclasses import dataclass, field

# The file stem becomes the DuckDB catalog name and must differ from the
# "gittrack" schema, or every qualified table reference is ambiguous.
DEFAULT_DB_PATH = ".gittrack/store.duckdb"


def _int_or_default(raw: str | None, default: int | None) -> int | None:
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass
class LimitsConfig:
    """Per-server resource limits."""

    max_repositories: int = 10
    max_channels: int | None = None
    """Distinct channels explicitly used by tracked branches. None = unlimited."""

    @property
    def max_channels_allowed(self) -> float:
        return math.inf if self.max_channels is None else self.max_channels


@dataclass
class WebhookConfig:
    """Webhook ingress configuration."""

    global_secret: str | None = None
    """Fallback secret for repositories that have none of their own."""

    public_url: str = ""
    """Payload URL shown to users by the setup command."""

    max_body_bytes: int = 10 * 1024 * 1024
    slow_threshold_ms: float = 5000.0


@dataclass
class StoreConfig:
    """Storage configuration."""

    backend: str = "duckdb"
    path: str = DEFAULT_DB_PATH
    schema: str = "gittrack"


@dataclass
class DiscordConfig:
    """Chat platform configuration."""

    token: str = ""
    api_base: str = "https://discord.com/api/v10"
    request_timeout: float = 10.0


@dataclass
class GitHubConfig:
    """GitHub REST API configuration (optional features only)."""

    token: str | None = None
    api_base: str = "https://api.github.com"
    request_timeout: float = 10.0


@dataclass
class ServerConfig:
    """HTTP bind configuration."""

    host: str = "0.0.0.0"
    port: int = 3000


@dataclass
class GitTrackConfig:
    """Top-level GitTrack configuration.

    Load from the environment:
        config = GitTrackConfig.from_env()

    Or construct programmatically:
        config = GitTrackConfig(limits=LimitsConfig(max_channels=3))
    """

    limits: LimitsConfig = field(default_factory=LimitsConfig)
    webhook: WebhookConfig = field(default_factory=WebhookConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    discord: DiscordConfig = field(default_factory=DiscordConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> GitTrackConfig:
        """Build configuration from environment variables.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ``.

        Returns:
            Populated GitTrackConfig. Unparseable numbers fall back to defaults.
        """
        env = os.environ if environ is None else environ

        public_url = env.get("WEBHOOK_URL") or ""
        if not public_url and env.get("PUBLIC_URL"):
            public_url = f"{env['PUBLIC_URL'].rstrip('/')}/github-webhook"

        slow_ms = _int_or_default(env.get("GITTRACK_SLOW_WEBHOOK_MS"), 5000)

        return cls(
            limits=LimitsConfig(
                max_repositories=_int_or_default(env.get("MAX_REPOS_ALLOWED"), 10)
                or 0,
                max_channels=_int_or_default(
                    env.get("MAX_NOTIFICATION_CHANNELS_ALLOWED"), None
                ),
            ),
            webhook=WebhookConfig(
                global_secret=env.get("GITHUB_WEBHOOK_SECRET") or None,
                public_url=public_url,
                slow_threshold_ms=float(slow_ms or 0),
            ),
            store=StoreConfig(
                path=env.get("GITTRACK_DB_PATH", DEFAULT_DB_PATH),
            ),
            discord=DiscordConfig(token=env.get("DISCORD_TOKEN", "")),
            github=GitHubConfig(token=env.get("GITHUB_TOKEN") or None),
            server=ServerConfig(
                host=env.get("GITTRACK_HOST", "0.0.0.0"),
                port=_int_or_default(env.get("PORT"), 3000) or 3000,
            ),
        )
