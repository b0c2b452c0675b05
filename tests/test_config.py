"""Tests for gittrack_core.config."""

from __future__ import annotations

import math

from gittrack_core.config import GitTrackConfig, LimitsConfig


class TestDefaults:
    """Test programmatic construction."""

    def test_defaults(self):
        config = GitTrackConfig()
        assert config.limits.max_repositories == 10
        assert config.limits.max_channels is None
        assert config.limits.max_channels_allowed == math.inf
        assert config.server.port == 3000
        assert config.webhook.global_secret is None

    def test_max_channels_allowed(self):
        assert LimitsConfig(max_channels=4).max_channels_allowed == 4


class TestFromEnv:
    """Test GitTrackConfig.from_env()."""

    def test_reads_environment_mapping(self):
        config = GitTrackConfig.from_env(
            {
                "MAX_REPOS_ALLOWED": "3",
                "MAX_NOTIFICATION_CHANNELS_ALLOWED": "5",
                "GITHUB_WEBHOOK_SECRET": "shh",
                "WEBHOOK_URL": "https://hooks.example.com/github-webhook",
                "DISCORD_TOKEN": "token",
                "GITHUB_TOKEN": "ghp_x",
                "GITTRACK_DB_PATH": "/data/store.duckdb",
                "GITTRACK_HOST": "127.0.0.1",
                "PORT": "8080",
                "GITTRACK_SLOW_WEBHOOK_MS": "250",
            }
        )

        assert config.limits.max_repositories == 3
        assert config.limits.max_channels == 5
        assert config.webhook.global_secret == "shh"
        assert config.webhook.public_url == "https://hooks.example.com/github-webhook"
        assert config.webhook.slow_threshold_ms == 250.0
        assert config.discord.token == "token"
        assert config.github.token == "ghp_x"
        assert config.store.path == "/data/store.duckdb"
        assert config.server.host == "127.0.0.1"
        assert config.server.port == 8080

    def test_public_url_builds_webhook_path(self):
        config = GitTrackConfig.from_env({"PUBLIC_URL": "https://bot.example.com/"})
        assert config.webhook.public_url == "https://bot.example.com/github-webhook"

    def test_webhook_url_wins_over_public_url(self):
        config = GitTrackConfig.from_env(
            {"PUBLIC_URL": "https://a.example.com", "WEBHOOK_URL": "https://b.example.com/hook"}
        )
        assert config.webhook.public_url == "https://b.example.com/hook"

    def test_unparseable_numbers_fall_back(self):
        config = GitTrackConfig.from_env(
            {"MAX_REPOS_ALLOWED": "lots", "MAX_NOTIFICATION_CHANNELS_ALLOWED": "", "PORT": "x"}
        )
        assert config.limits.max_repositories == 10
        assert config.limits.max_channels is None
        assert config.server.port == 3000

    def test_empty_secret_is_none(self):
        config = GitTrackConfig.from_env({"GITHUB_WEBHOOK_SECRET": ""})
        assert config.webhook.global_secret is None

    def test_reads_os_environ_by_default(self, monkeypatch):
        monkeypatch.setenv("MAX_REPOS_ALLOWED", "7")
        assert GitTrackConfig.from_env().limits.max_repositories == 7
