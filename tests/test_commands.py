"""Tests for configuration command implementations."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from gittrack_core.types import (
    EventChannelRecord,
    RepositoryRecord,
    ServerRecord,
    ServerStatus,
    TrackedBranchRecord,
)
from gittrack_server.commands import (
    branches,
    edit_event,
    guilds,
    link,
    remove_event_channel,
    remove_repo,
    reset,
    set_default_channel,
    set_event_channel,
    setup,
    status,
    unlink,
)
from gittrack_server.commands._helpers import validate_repository_url

REPO_URL = "https://github.com/octo/widgets"


def _patterns(store, channel_id=None):
    filters = {"repository_id": "repo-1"}
    if channel_id:
        filters["channel_id"] = channel_id
    return sorted(tb.branch_pattern for tb in store.list(TrackedBranchRecord, **filters))


class TestValidateRepositoryUrl:
    """Test repository URL validation."""

    def test_valid(self):
        assert validate_repository_url(REPO_URL) is None

    @pytest.mark.parametrize(
        "url",
        [
            "ftp://github.com/octo/widgets",
            "https://gitlab.com/octo/widgets",
            "https://github.com/octo",
            "https://github.com/octo/widgets.git",
            "https://github.com/orgs/octo",
            "not a url",
        ],
    )
    def test_invalid(self, url):
        assert validate_repository_url(url) is not None


class TestSetup:
    """Test setup command."""

    @pytest.mark.asyncio
    async def test_creates_server_and_repository(self, registry, mock_store):
        result = await setup.execute("guild-9", REPO_URL + "/", "chan-1", "New Guild", registry=registry)

        assert result["success"] is True
        assert result["created"] is True
        assert result["repository"] == REPO_URL
        assert result["payload_url"] == "https://hooks.example.com/github-webhook"
        assert result["content_type"] == "application/json"
        assert len(result["secret"]) == 64
        assert result["usage"] == "1/2 repositories"

        servers = mock_store.list(ServerRecord, guild_id="guild-9")
        assert servers[0].name == "New Guild"
        repos = mock_store.list(RepositoryRecord, server_id=servers[0].id)
        assert repos[0].webhook_secret == result["secret"]
        assert repos[0].notification_channel_id == "chan-1"

    @pytest.mark.asyncio
    async def test_rerun_rotates_secret(self, registry, repository, mock_store):
        result = await setup.execute("guild-1", REPO_URL, "chan-new", registry=registry)

        assert result["created"] is False
        assert repository.webhook_secret == result["secret"]
        assert repository.notification_channel_id == "chan-new"
        assert mock_store.count(RepositoryRecord) == 1

    @pytest.mark.asyncio
    async def test_concurrent_setup_takes_over_existing_row(self, registry, server, mock_store):
        """Losing the insert to a parallel setup updates the stored row."""
        winner = RepositoryRecord(
            id="repo-winner", server_id="server-1", url=REPO_URL, webhook_secret="first"
        )
        insert = mock_store.insert

        def racing_insert(record):
            mock_store.save(winner)
            return insert(record)

        mock_store.insert = racing_insert

        result = await setup.execute("guild-1", REPO_URL, "chan-2", registry=registry)

        assert result["success"] is True
        assert result["created"] is False
        assert mock_store.count(RepositoryRecord) == 1
        assert winner.webhook_secret == result["secret"]
        assert winner.notification_channel_id == "chan-2"

    @pytest.mark.asyncio
    async def test_repository_limit(self, registry, repository, mock_store):
        mock_store.save(
            RepositoryRecord(id="repo-2", server_id="server-1", url="https://github.com/octo/two")
        )

        result = await setup.execute("guild-1", "https://github.com/octo/three", "c", registry=registry)

        assert result["success"] is False
        assert "maximum of 2 repositories" in result["error"]

    @pytest.mark.asyncio
    async def test_invalid_url(self, registry):
        result = await setup.execute("guild-1", "https://github.com/octo", "c", registry=registry)
        assert result["success"] is False

    def test_generated_secrets_differ(self):
        assert setup.generate_webhook_secret() != setup.generate_webhook_secret()


class TestLink:
    """Test link command."""

    @pytest.mark.asyncio
    async def test_links_pattern(self, registry, repository, mock_store):
        result = await link.execute("guild-1", REPO_URL, "features/*", "c1", registry=registry)

        assert result["success"] is True
        assert result["description"] == 'Branches starting with "features/"'
        assert _patterns(mock_store) == ["features/*"]

    @pytest.mark.asyncio
    async def test_invalid_pattern(self, registry, repository):
        result = await link.execute("guild-1", REPO_URL, "*fix*", "c1", registry=registry)
        assert result["success"] is False
        assert result["error"].startswith("Invalid branch pattern.")

    @pytest.mark.asyncio
    async def test_unknown_repository(self, registry, server):
        result = await link.execute("guild-1", REPO_URL, "main", "c1", registry=registry)
        assert result["error"].startswith("Repository not found.")

    @pytest.mark.asyncio
    async def test_duplicate_rejected(self, registry, repository):
        await link.execute("guild-1", REPO_URL, "main", "c1", registry=registry)
        result = await link.execute("guild-1", REPO_URL, "main", "c1", registry=registry)

        assert result["success"] is False
        assert "already being tracked" in result["error"]

    @pytest.mark.asyncio
    async def test_same_pattern_other_channel_allowed(self, registry, repository, mock_store):
        await link.execute("guild-1", REPO_URL, "main", "c1", registry=registry)
        result = await link.execute("guild-1", REPO_URL, "main", "c2", registry=registry)

        assert result["success"] is True
        assert mock_store.count(TrackedBranchRecord) == 2

    @pytest.mark.asyncio
    async def test_wildcard_replaces_specific_patterns(self, registry, repository, mock_store):
        await link.execute("guild-1", REPO_URL, "main", "c1", registry=registry)
        await link.execute("guild-1", REPO_URL, "dev", "c1", registry=registry)
        await link.execute("guild-1", REPO_URL, "main", "c2", registry=registry)

        result = await link.execute("guild-1", REPO_URL, "*", "c1", registry=registry)

        assert result["replaced"] == 2
        assert _patterns(mock_store, "c1") == ["*"]
        assert _patterns(mock_store, "c2") == ["main"]

    @pytest.mark.asyncio
    async def test_specific_under_wildcard_rejected(self, registry, repository, mock_store):
        await link.execute("guild-1", REPO_URL, "*", "c1", registry=registry)

        result = await link.execute("guild-1", REPO_URL, "main", "c1", registry=registry)

        assert result["success"] is False
        assert _patterns(mock_store) == ["*"]

    @pytest.mark.asyncio
    async def test_channel_limit_blocks_new_channel_only(self, registry, repository):
        registry.config.limits.max_channels = 1
        await link.execute("guild-1", REPO_URL, "main", "c1", registry=registry)

        blocked = await link.execute("guild-1", REPO_URL, "dev", "c2", registry=registry)
        allowed = await link.execute("guild-1", REPO_URL, "dev", "c1", registry=registry)

        assert blocked["success"] is False
        assert blocked["channels_in_use"] == ["c1"]
        assert allowed["success"] is True


class TestUnlink:
    """Test unlink command."""

    @pytest.mark.asyncio
    async def test_unlink_pattern(self, registry, repository, mock_store):
        await link.execute("guild-1", REPO_URL, "main", "c1", registry=registry)
        await link.execute("guild-1", REPO_URL, "dev", "c1", registry=registry)

        result = await unlink.execute("guild-1", REPO_URL, "main", registry=registry)

        assert result["removed"] == 1
        assert _patterns(mock_store) == ["dev"]

    @pytest.mark.asyncio
    async def test_unlink_wildcard_removes_all(self, registry, repository, mock_store):
        await link.execute("guild-1", REPO_URL, "main", "c1", registry=registry)
        await link.execute("guild-1", REPO_URL, "dev", "c2", registry=registry)

        result = await unlink.execute("guild-1", REPO_URL, "*", registry=registry)

        assert result["removed"] == 2
        assert _patterns(mock_store) == []

    @pytest.mark.asyncio
    async def test_unlink_scoped_to_channel(self, registry, repository, mock_store):
        await link.execute("guild-1", REPO_URL, "main", "c1", registry=registry)
        await link.execute("guild-1", REPO_URL, "main", "c2", registry=registry)

        await unlink.execute("guild-1", REPO_URL, "main", channel_id="c2", registry=registry)

        assert _patterns(mock_store, "c1") == ["main"]
        assert _patterns(mock_store, "c2") == []

    @pytest.mark.asyncio
    async def test_nothing_to_remove(self, registry, repository):
        result = await unlink.execute("guild-1", REPO_URL, "main", registry=registry)
        assert result["success"] is False


class TestEventRoutingCommands:
    """Test set-default-channel, set-event-channel, edit-event and remove-event-channel."""

    @pytest.mark.asyncio
    async def test_set_default_channel(self, registry, repository):
        result = await set_default_channel.execute("guild-1", REPO_URL, "chan-2", registry=registry)

        assert result["previous_channel_id"] == "chan-default"
        assert repository.notification_channel_id == "chan-2"

    @pytest.mark.asyncio
    async def test_set_event_channel_marks_explicit(self, registry, repository, mock_store):
        result = await set_event_channel.execute(
            "guild-1", REPO_URL, "release", "chan-default", registry=registry
        )

        assert result["success"] is True
        mapping = mock_store.list(EventChannelRecord, event_type="release")[0]
        assert mapping.channel_id == "chan-default"
        assert mapping.config["explicitChannel"] is True
        assert mapping.config["actionsEnabled"]["published"] is True

    @pytest.mark.asyncio
    async def test_set_event_channel_rejects_unknown_type(self, registry, repository):
        result = await set_event_channel.execute("guild-1", REPO_URL, "gollum", "c", registry=registry)
        assert result["success"] is False

    @pytest.mark.asyncio
    async def test_edit_event_sets_and_toggles(self, registry, repository):
        result = await edit_event.execute(
            "guild-1", REPO_URL, "pull_request", "comments", True, registry=registry
        )
        assert result["actions_enabled"]["comments"] is True
        assert result["actions_enabled"]["opened"] is True

        toggled = await edit_event.execute(
            "guild-1", REPO_URL, "pull_request", "comments", registry=registry
        )
        assert toggled["enabled"] is False

    @pytest.mark.asyncio
    async def test_remove_event_channel(self, registry, repository, mock_store):
        await set_event_channel.execute("guild-1", REPO_URL, "star", "c9", registry=registry)

        result = await remove_event_channel.execute("guild-1", REPO_URL, "star", registry=registry)

        assert result["success"] is True
        assert mock_store.count(EventChannelRecord) == 0


class TestRemoval:
    """Test remove-repo and reset."""

    def _populate(self, store):
        store.save(TrackedBranchRecord(id="tb-1", repository_id="repo-1", branch_pattern="*", channel_id="c1"))
        store.save(EventChannelRecord(id="ec-1", repository_id="repo-1", event_type="issues"))
        store.save(RepositoryRecord(id="repo-2", server_id="server-1", url="https://github.com/octo/two"))
        store.save(TrackedBranchRecord(id="tb-2", repository_id="repo-2", branch_pattern="main", channel_id="c1"))

    @pytest.mark.asyncio
    async def test_remove_repo_cascades(self, registry, repository, mock_store):
        self._populate(mock_store)

        result = await remove_repo.execute("guild-1", REPO_URL, registry=registry)

        assert result == {
            "success": True,
            "repository": REPO_URL,
            "tracked_branches": 1,
            "event_channels": 1,
        }
        assert mock_store.get(RepositoryRecord, "repo-1") is None
        assert mock_store.get(RepositoryRecord, "repo-2") is not None
        assert mock_store.count(TrackedBranchRecord) == 1

    @pytest.mark.asyncio
    async def test_reset_keeps_server(self, registry, repository, mock_store):
        self._populate(mock_store)

        result = await reset.execute("guild-1", registry=registry)

        assert result["repositories"] == 2
        assert result["tracked_branches"] == 2
        assert result["event_channels"] == 1
        assert mock_store.count(RepositoryRecord) == 0
        assert mock_store.get(ServerRecord, "server-1") is not None


class TestStatus:
    """Test status command."""

    @pytest.mark.asyncio
    async def test_status(self, registry, repository, mock_store):
        await link.execute("guild-1", REPO_URL, "!main", "c1", registry=registry)
        await set_event_channel.execute("guild-1", REPO_URL, "issues", "c5", registry=registry)
        mock_store.increment_messages_sent("server-1", 4)

        result = await status.execute("guild-1", registry=registry)

        assert result["messages_sent"] == 4
        assert result["repository_usage"] == {"current": 1, "max": 2}
        assert result["channel_usage"] == {"current": 1, "max": None}
        repo = result["repositories"][0]
        assert repo["tracked_branches"][0]["description"] == 'All branches except "main"'
        assert repo["event_channels"][0]["channel_id"] == "c5"
        assert repo["event_channels"][0]["explicit"] is True

    @pytest.mark.asyncio
    async def test_unknown_guild(self, registry):
        result = await status.execute("guild-x", registry=registry)
        assert result["success"] is False


class TestGuilds:
    """Test guild lifecycle commands."""

    @pytest.mark.asyncio
    async def test_register_and_leave(self, registry, mock_store):
        await guilds.register_guild("guild-5", "Five", registry=registry)
        left = await guilds.mark_guild_inactive("guild-5", registry=registry)

        assert left["status"] == "INACTIVE"
        server = mock_store.list(ServerRecord, guild_id="guild-5")[0]
        assert server.status is ServerStatus.INACTIVE

        await guilds.register_guild("guild-5", "Five", registry=registry)
        assert server.status is ServerStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_sync_guild_status(self, registry, mock_store, server):
        mock_store.save(
            ServerRecord(id="server-2", guild_id="guild-2", status=ServerStatus.INACTIVE)
        )
        mock_store.save(ServerRecord(id="server-3", guild_id="guild-3"))

        result = await guilds.sync_guild_status(
            {"guild-1": "Test Guild", "guild-2": "Back Again", "guild-4": "Brand New"},
            registry=registry,
        )

        assert result["registered"] == 1
        assert result["reactivated"] == 1
        assert result["deactivated"] == 1
        assert mock_store.get(ServerRecord, "server-2").name == "Back Again"
        assert mock_store.get(ServerRecord, "server-3").status is ServerStatus.INACTIVE
        assert mock_store.list(ServerRecord, guild_id="guild-4")[0].name == "Brand New"


class TestBranchSuggestions:
    """Test branch autocomplete."""

    @pytest.mark.asyncio
    async def test_wildcard_first_then_filtered(self, registry):
        registry.github = MagicMock()
        registry.github.list_branches = AsyncMock(return_value=["main", "develop", "dependabot/x"])

        result = await branches.list_branches(REPO_URL, prefix="de", registry=registry)

        assert result["branches"] == ["*", "develop", "dependabot/x"]

    @pytest.mark.asyncio
    async def test_without_github_client(self, registry):
        result = await branches.list_branches(REPO_URL, registry=registry)
        assert result["branches"] == ["*"]
