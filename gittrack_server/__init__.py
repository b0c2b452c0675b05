"""GitTrack server - GitHub webhooks routed into Discord channels."""

__version__ = "0.1.0"

from gittrack_server.webhook import WebhookDispatcher, WebhookRequest

__all__ = ["WebhookDispatcher", "WebhookRequest"]
