"""HTTP server for GitTrack.

Serves the GitHub webhook endpoint plus liveness and message-count
endpoints for operators.
"""

from __future__ import annotations

import logging
import time

from aiohttp import web

from gittrack_core import __version__
from gittrack_core.queries import OperationalQueries

from .adapters import AdapterRegistry, get_adapter_registry
from .webhook import WebhookDispatcher, WebhookRequest

logger = logging.getLogger(__name__)

REGISTRY_KEY = web.AppKey("registry", AdapterRegistry)
DISPATCHER_KEY = web.AppKey("dispatcher", WebhookDispatcher)
STARTED_KEY = web.AppKey("started_at", float)


async def handle_root(request: web.Request) -> web.Response:
    """GET / - Plain liveness text."""
    return web.Response(text="GitTrack Webhook Handler is alive!")


async def handle_health(request: web.Request) -> web.Response:
    """Health check endpoint.

    Args:
        request: The aiohttp request object.

    Returns:
        JSON response with status, uptime in seconds and version.
    """
    uptime = time.monotonic() - request.app[STARTED_KEY]
    return web.json_response(
        {"status": "ok", "uptime": round(uptime, 3), "version": __version__}
    )


async def handle_webhook(request: web.Request) -> web.Response:
    """POST /github-webhook - Authenticate and dispatch a GitHub delivery.

    Args:
        request: The aiohttp request object.

    Returns:
        Plain-text response with the status chosen by the dispatcher.
    """
    try:
        body = await request.read()
    except web.HTTPRequestEntityTooLarge:
        return web.Response(status=413, text="Payload too large")

    webhook_request = WebhookRequest(
        body=body,
        headers=request.headers,
        remote=request.remote,
    )
    response = await request.app[DISPATCHER_KEY].process(webhook_request)
    return web.Response(status=response.status, text=response.text)


async def handle_message_counts(request: web.Request) -> web.Response:
    """GET /api/message-counts - Delivered message counters per guild.

    Args:
        request: The aiohttp request object.

    Returns:
        JSON list of ``{guildId, messagesSent}``.
    """
    try:
        queries = OperationalQueries(request.app[REGISTRY_KEY].store)
        counts = [
            {"guildId": c.guild_id, "messagesSent": c.messages_sent}
            for c in queries.message_counts()
        ]
        return web.json_response(counts)
    except Exception as e:
        logger.exception("Error fetching message counts")
        return web.json_response({"error": str(e)}, status=500)


def create_app(registry: AdapterRegistry | None = None) -> web.Application:
    """Create and configure the aiohttp application.

    Args:
        registry: Adapters to serve with. Defaults to the global registry
            built from the environment.

    Returns:
        Configured aiohttp Application instance.
    """
    registry = registry or get_adapter_registry()

    app = web.Application(client_max_size=registry.config.webhook.max_body_bytes)
    app[REGISTRY_KEY] = registry
    app[DISPATCHER_KEY] = WebhookDispatcher(registry)
    app[STARTED_KEY] = time.monotonic()

    # Register routes
    app.router.add_get("/", handle_root)
    app.router.add_get("/health", handle_health)
    app.router.add_post("/github-webhook", handle_webhook)
    app.router.add_get("/api/message-counts", handle_message_counts)

    return app


def run_server(host: str = "0.0.0.0", port: int = 3000) -> None:
    """Run the HTTP server without the chat client lifecycle.

    Args:
        host: Host to bind to (default: 0.0.0.0).
        port: Port to bind to (default: 3000).
    """
    app = create_app()
    web.run_app(app, host=host, port=port)
