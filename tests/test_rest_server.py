"""Tests for the HTTP server."""

from __future__ import annotations

import json

from aiohttp import web
from aiohttp.test_utils import AioHTTPTestCase

from gittrack_core.config import GitTrackConfig
from gittrack_core.types import RepositoryRecord, ServerRecord, SystemLogEvent
from gittrack_server.adapters import AdapterRegistry
from gittrack_server.rest_server import create_app
from gittrack_server.signatures import compute_signature
from gittrack_server.store import DuckDBStore

PAYLOAD = {
    "zen": "Design for failure.",
    "repository": {
        "name": "widgets",
        "full_name": "octo/widgets",
        "html_url": "https://github.com/octo/widgets",
    },
}


class TestRestAPI(AioHTTPTestCase):
    """Test cases for HTTP endpoints backed by an in-memory DuckDB store."""

    async def get_application(self) -> web.Application:
        """Return the application instance for testing.

        Returns:
            Configured aiohttp application.
        """
        self.store = DuckDBStore(path=":memory:")
        self.store.save(ServerRecord(id="server-1", guild_id="guild-1", name="Guild"))
        self.store.save(
            RepositoryRecord(
                id="repo-1",
                server_id="server-1",
                url="https://github.com/octo/widgets",
                notification_channel_id="chan-1",
                webhook_secret="repo-secret",
            )
        )
        self.store.increment_messages_sent("server-1", 5)
        registry = AdapterRegistry(store=self.store, config=GitTrackConfig())
        return create_app(registry)

    def _signed(self, payload: dict, secret: str = "repo-secret", event: str = "ping") -> dict:
        body = json.dumps(payload).encode()
        return {
            "data": body,
            "headers": {
                "Content-Type": "application/json",
                "X-GitHub-Event": event,
                "X-Hub-Signature-256": compute_signature(secret, body),
            },
        }

    async def test_root(self) -> None:
        resp = await self.client.get("/")
        assert resp.status == 200
        assert await resp.text() == "GitTrack Webhook Handler is alive!"

    async def test_health_endpoint(self) -> None:
        """Test health endpoint returns status and version."""
        resp = await self.client.get("/health")
        assert resp.status == 200

        data = await resp.json()
        assert data["status"] == "ok"
        assert data["version"] == "0.1.0"
        assert data["uptime"] >= 0

    async def test_message_counts(self) -> None:
        resp = await self.client.get("/api/message-counts")
        assert resp.status == 200
        assert await resp.json() == [{"guildId": "guild-1", "messagesSent": 5}]

    async def test_signed_ping_without_chat(self) -> None:
        """A valid ping is acknowledged even when no chat client is configured."""
        resp = await self.client.post("/github-webhook", **self._signed(PAYLOAD))

        assert resp.status == 200
        assert await resp.text() == "Ping acknowledged, nothing delivered."

    async def test_invalid_signature(self) -> None:
        resp = await self.client.post(
            "/github-webhook", **self._signed(PAYLOAD, secret="wrong")
        )
        assert resp.status == 401
        assert await resp.text() == "Invalid signature"

    async def test_unknown_repository(self) -> None:
        payload = {**PAYLOAD, "repository": {"html_url": "https://github.com/octo/none"}}
        resp = await self.client.post("/github-webhook", **self._signed(payload))
        assert resp.status == 404

    async def test_unhandled_event_logged_to_store(self) -> None:
        resp = await self.client.post(
            "/github-webhook", **self._signed(PAYLOAD, event="gollum")
        )

        assert resp.status == 200

        logs = self.store.events(SystemLogEvent, entity_id="server-1")
        assert logs[0].details["repositoryId"] == "repo-1"

    async def test_get_not_allowed_on_webhook(self) -> None:
        resp = await self.client.get("/github-webhook")
        assert resp.status == 405
