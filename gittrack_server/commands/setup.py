"""Repository setup command implementation."""

from __future__ import annotations

import logging
import secrets
import uuid
from typing import TYPE_CHECKING

from gittrack_core.limits import check_repository_limit
from gittrack_core.queries import OperationalQueries, standardize_url
from gittrack_core.types import RepositoryRecord

from ._helpers import ensure_server, failure, require_store, validate_repository_url

if TYPE_CHECKING:
    from gittrack_server.adapters import AdapterRegistry

logger = logging.getLogger(__name__)

SECRET_BYTES = 32


def generate_webhook_secret() -> str:
    """Random 32-byte secret, hex encoded."""
    return secrets.token_hex(SECRET_BYTES)


async def execute(
    guild_id: str,
    repository_url: str,
    channel_id: str,
    guild_name: str = "",
    registry: AdapterRegistry | None = None,
) -> dict:
    """Configure a GitHub repository for webhook delivery on a server.

    Re-running setup for a configured repository rotates its secret and
    moves its default channel.

    Args:
        guild_id: Discord guild the command ran in.
        repository_url: GitHub repository URL, without ``.git``.
        channel_id: Default channel for the repository's notifications.
        guild_name: Display name of the guild.
        registry: Optional adapter registry for dependency injection.

    Returns:
        Dict with the payload URL and secret to enter on GitHub, or
        ``success: False`` with an error message.
    """
    error = validate_repository_url(repository_url)
    if error:
        return failure(error)

    from gittrack_server.adapters import get_adapter_registry

    registry = registry or get_adapter_registry()
    store = require_store(registry)
    url = standardize_url(repository_url)

    server = ensure_server(store, guild_id, guild_name)
    limit = check_repository_limit(store, server.id, registry.config.limits)
    secret = generate_webhook_secret()

    queries = OperationalQueries(store)
    existing = queries.repository_for_server(server.id, url)
    created = False
    if existing is None:
        if limit.is_at_limit:
            return failure(
                f"You have reached the maximum of {limit.max_allowed} "
                f"repositories allowed on this server.",
                limit=limit.max_allowed,
            )
        created = store.insert(
            RepositoryRecord(
                id=str(uuid.uuid4()),
                server_id=server.id,
                url=url,
                notification_channel_id=channel_id,
                webhook_secret=secret,
            )
        )
        if created:
            logger.info(f"Configured repository {url} for guild {guild_id}")
        else:
            # A concurrent setup stored the URL first; take over its row.
            existing = queries.repository_for_server(server.id, url)
            if existing is None:
                raise RuntimeError(f"Could not configure repository {url}")

    if existing is not None:
        existing.webhook_secret = secret
        existing.notification_channel_id = channel_id
        store.save(existing)
        logger.info(f"Updated repository {url} for guild {guild_id}")

    repo_count = limit.current_count + (1 if created else 0)
    return {
        "success": True,
        "created": created,
        "repository": url,
        "payload_url": registry.config.webhook.public_url,
        "secret": secret,
        "content_type": "application/json",
        "channel_id": channel_id,
        "hooks_url": f"{url}/settings/hooks",
        "usage": f"{repo_count}/{limit.max_allowed} repositories",
    }
