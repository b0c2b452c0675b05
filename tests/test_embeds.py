"""Tests for Discord embed construction."""

from __future__ import annotations

from gittrack_server import embeds


def test_truncate():
    assert embeds.truncate("short", 10) == "short"
    assert embeds.truncate("x" * 20, 10) == "xxxxxxx..."


def test_format_duration():
    assert embeds.format_duration("2024-01-01T10:00:00Z", "2024-01-01T10:03:12Z") == "3m 12s"
    assert embeds.format_duration("2024-01-01T10:00:00Z", "2024-01-01T10:00:42Z") == "42s"
    assert embeds.format_duration(None, "2024-01-01T10:00:42Z") == ""


class TestPushEmbed:
    """Test the four push shapes."""

    def test_lists_at_most_five_commits(self, repo_payload):
        commits = [{"id": f"{i:07d}abc", "message": f"commit {i}", "url": "u"} for i in range(7)]
        embed = embeds.push_embed({**repo_payload, "commits": commits}, "main")

        assert embed["title"] == "🚀 New Push to main"
        lines = embed["description"].split("\n")
        assert len(lines) == 6
        assert lines[-1] == "...and 2 more commit(s)."

    def test_new_branch(self, repo_payload):
        embed = embeds.push_embed({**repo_payload, "created": True, "commits": []}, "feat/x")
        assert embed["title"] == "🌱 New Branch Created: feat/x"
        assert embed["url"] == "https://github.com/octo/widgets/tree/feat/x"

    def test_force_push(self, repo_payload):
        embed = embeds.push_embed({**repo_payload, "forced": True, "commits": [{"id": "a"}]}, "main")
        assert embed["title"] == "⚠️ Force Push to main"

    def test_no_commits(self, repo_payload):
        embed = embeds.push_embed(repo_payload, "main")
        assert embed["title"] == "⚙️ Push Event on main"


def test_jobs_field_fits_discord_limit():
    jobs = [
        {"name": f"job-number-{i:03d}-with-a-long-name", "conclusion": "success"}
        for i in range(60)
    ]
    field = embeds.jobs_field(jobs)

    assert field["name"] == "Jobs"
    assert len(field["value"]) <= embeds.FIELD_LIMIT
    assert field["value"].startswith("```ansi")


def test_jobs_field_empty():
    assert embeds.jobs_field([]) is None


def test_merged_pull_request(repo_payload):
    payload = {
        **repo_payload,
        "action": "closed",
        "pull_request": {
            "number": 3,
            "title": "Ship it",
            "html_url": "https://github.com/octo/widgets/pull/3",
            "merged": True,
            "merged_by": {"login": "hubot"},
            "head": {"ref": "feat"},
            "base": {"ref": "main"},
        },
    }

    embed = embeds.pull_request_embed(payload)

    assert embed["title"] == "🟣 Pull Request #3 Merged: Ship it"
    assert {"name": "Merged by", "value": "hubot", "inline": True} in embed["fields"]


def test_milestone_progress():
    assert embeds.milestone_progress({"open_issues": 0, "closed_issues": 0}) == (
        "0/0 issues completed (0%)"
    )
    assert embeds.milestone_progress({"title": "v1"}) is None


def test_channel_limit_warning_mentions_limit():
    embed = embeds.channel_limit_warning(4, 3)
    assert embed["color"] == embeds.WARNING_ORANGE
    assert "limit of 3 channels" in embed["description"]
