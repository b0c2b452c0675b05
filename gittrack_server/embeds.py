"""Discord embed construction for GitHub events.

Pure functions from webhook payloads to embed dicts. No I/O, no routing
decisions; handlers decide whether and where to send.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

# Colours
GREEN = 0x2DA44E
BLUE = 0x0969DA
RED = 0xCF222E
PURPLE = 0x8957E5
GREY = 0x768390
INDIGO = 0x4F46E5
GOLD = 0xFFAC33
VIOLET = 0xA371F7
FORK_PURPLE = 0x6F42C1
TAG_GREY = 0x6A737D
CI_GREEN = 0x2CBE4E
CI_RED = 0xD73A49
CI_GREY = 0xA0A0A0
CI_ORANGE = 0xFFB347
CI_BLUE = 0x0366D6
WARNING_ORANGE = 0xFF9800
ERROR_RED = 0xFF4444
PING_GREEN = 0x36A64F

MAX_PUSH_COMMITS = 5
FIELD_LIMIT = 1024

# conclusion -> (emoji, colour) for workflow runs, jobs, check runs and suites
CONCLUSION_STYLE: dict[str, tuple[str, int]] = {
    "success": ("✅", CI_GREEN),
    "failure": ("❌", CI_RED),
    "cancelled": ("⚪", CI_GREY),
    "skipped": ("⏭️", CI_GREY),
    "timed_out": ("⏱️", CI_ORANGE),
    "neutral": ("⚪", CI_GREY),
    "action_required": ("⚠️", WARNING_ORANGE),
}
_DEFAULT_CONCLUSION_STYLE = ("🔄", CI_BLUE)


# ============================================================
# Helpers
# ============================================================


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def truncate(text: str, limit: int) -> str:
    """Cut ``text`` to ``limit`` characters, ending in "..." when cut."""
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def title_case(word: str) -> str:
    return word[:1].upper() + word[1:]


def _author(user: dict[str, Any] | None) -> dict[str, Any]:
    user = user or {}
    return {
        "name": user.get("login", "unknown"),
        "icon_url": user.get("avatar_url"),
        "url": user.get("html_url"),
    }


def _repo_link(payload: dict[str, Any]) -> str:
    repo = payload["repository"]
    return f"[{repo.get('full_name', repo['html_url'])}]({repo['html_url']})"


def _repo_field(payload: dict[str, Any], inline: bool = False) -> dict[str, Any]:
    return {"name": "Repository", "value": _repo_link(payload), "inline": inline}


def _parse_time(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def format_duration(start: str | None, end: str | None) -> str:
    """``"3m 12s"`` / ``"42s"`` between two ISO timestamps, or "" if unknown."""
    started, ended = _parse_time(start), _parse_time(end)
    if started is None or ended is None:
        return ""
    seconds = round((ended - started).total_seconds())
    if seconds <= 0:
        return ""
    minutes, seconds = divmod(seconds, 60)
    return f"{minutes}m {seconds}s" if minutes > 0 else f"{seconds}s"


def _conclusion_style(conclusion: str | None) -> tuple[str, int]:
    return CONCLUSION_STYLE.get(conclusion or "", _DEFAULT_CONCLUSION_STYLE)


# ============================================================
# Branch-routed events
# ============================================================


def push_embed(payload: dict[str, Any], branch: str) -> dict[str, Any]:
    """Push notification in one of four shapes.

    New branch without commits, force push, normal push listing up to five
    commits, or a push with no commits at all.
    """
    repo_url = payload["repository"]["html_url"]
    commits = payload.get("commits") or []
    pusher = (payload.get("pusher") or {}).get("name") or "Unknown"

    embed: dict[str, Any] = {
        "color": INDIGO,
        "author": _author(payload.get("sender")),
        "timestamp": now_iso(),
        "footer": {"text": "GitHub Push Event"},
    }

    if payload.get("created") and not commits:
        embed["title"] = f"🌱 New Branch Created: {branch}"
        embed["url"] = f"{repo_url}/tree/{branch}"
        embed["fields"] = [
            _repo_field(payload),
            {"name": "Created by", "value": pusher, "inline": False},
        ]
    elif payload.get("forced"):
        embed["title"] = f"⚠️ Force Push to {branch}"
        embed["url"] = payload.get("compare") or repo_url
        embed["fields"] = [
            _repo_field(payload, inline=True),
            {"name": "Branch", "value": f"`{branch}`", "inline": True},
            {"name": "Forced by", "value": pusher, "inline": False},
        ]
    elif commits:
        lines = []
        for commit in commits[:MAX_PUSH_COMMITS]:
            first_line = (commit.get("message") or "").split("\n")[0]
            lines.append(f"[`{commit['id'][:7]}`]({commit.get('url', '')}) {first_line}")
        if len(commits) > MAX_PUSH_COMMITS:
            lines.append(f"...and {len(commits) - MAX_PUSH_COMMITS} more commit(s).")
        embed["title"] = f"🚀 New Push to {branch}"
        embed["url"] = payload.get("compare") or repo_url
        embed["description"] = "\n".join(lines)
        embed["fields"] = [
            _repo_field(payload, inline=True),
            {"name": "Branch", "value": f"`{branch}`", "inline": True},
            {"name": "Pusher", "value": pusher, "inline": False},
        ]
    else:
        embed["title"] = f"⚙️ Push Event on {branch}"
        embed["url"] = payload.get("compare") or repo_url
        embed["fields"] = [
            _repo_field(payload, inline=True),
            {"name": "Branch", "value": f"`{branch}`", "inline": True},
            {"name": "Details", "value": "Push event with no commits.", "inline": False},
        ]
    return embed


_JOB_STATUS = {
    "success": ("✓", "Passed", "32"),
    "failure": ("✗", "Failed", "31"),
    "cancelled": ("⬣", "Cancelled", "33"),
    "skipped": ("➤", "Skipped", "34"),
    "timed_out": ("🕒", "Timed out", "37"),
}


def _ansi(text: str, code: str) -> str:
    return f"\u001b[2;{code}m{text}\u001b[0m" if text else ""


def jobs_field(jobs: list[dict[str, Any]]) -> dict[str, Any] | None:
    """Summarise workflow jobs as an ANSI code block field.

    Lines are dropped from the end until the value fits Discord's field limit.
    """
    if not jobs:
        return None

    passed = failed = 0
    rows = []
    for job in jobs:
        conclusion = (job.get("conclusion") or job.get("status") or "").lower()
        indicator, label, code = _JOB_STATUS.get(
            conclusion, ("•", title_case(conclusion) or "Unknown", "90")
        )
        if conclusion == "success":
            passed += 1
        elif conclusion == "failure":
            failed += 1

        duration = format_duration(job.get("started_at"), job.get("completed_at"))
        right = f"{_ansi(indicator, code)} {_ansi(label, code)}"
        if duration:
            right = f"{right} · {duration}"
        rows.append((job.get("name") or "Unnamed job", right))

    width = max(len(name) for name, _ in rows)
    lines = [f"\u001b[1;2m{name.ljust(width)}\u001b[0m  {right}" for name, right in rows]

    failed_text = _ansi(f"{failed} failed", "31") if failed else f"{failed} failed"
    header = f"{_ansi(f'{passed} passed', '32')} · {failed_text}"

    def wrap(body: list[str]) -> str:
        return "```ansi\n\n" + header + "\n" + "\n".join(body) + "\n```"

    value = wrap(lines)
    truncated = False
    while len(value) > FIELD_LIMIT and lines:
        lines.pop()
        truncated = True
        value = wrap(lines)

    if truncated:
        candidate = wrap([*lines, f"! {''.ljust(width)}  {_ansi('…', '33')}"])
        if len(candidate) <= FIELD_LIMIT:
            value = candidate

    return {"name": "Jobs", "value": value, "inline": False}


def workflow_run_embed(
    payload: dict[str, Any], jobs: list[dict[str, Any]] | None = None
) -> dict[str, Any]:
    run = payload["workflow_run"]
    conclusion = run.get("conclusion") or "unknown"
    branch = run.get("head_branch") or ""
    emoji, color = _conclusion_style(conclusion)

    embed: dict[str, Any] = {
        "color": color,
        "title": f'{emoji} Workflow "{run.get("name", "workflow")}" {conclusion} on {branch}',
        "url": run.get("html_url") or payload["repository"]["html_url"],
        "fields": [
            _repo_field(payload, inline=True),
            {"name": "Branch", "value": branch or "unknown", "inline": True},
            {"name": "Conclusion", "value": title_case(conclusion), "inline": True},
        ],
        "timestamp": run.get("updated_at") or now_iso(),
        "footer": {"text": "GitHub Workflow Run"},
    }

    summary = jobs_field(jobs or [])
    if summary:
        embed["fields"].append(summary)

    duration = format_duration(run.get("created_at"), run.get("updated_at"))
    if duration:
        embed["fields"].append({"name": "Duration", "value": duration, "inline": True})
    return embed


def check_run_embed(payload: dict[str, Any], branch: str | None = None) -> dict[str, Any]:
    check = payload["check_run"]
    conclusion = check.get("conclusion") or "unknown"
    emoji, color = _conclusion_style(conclusion)
    title = f'{emoji} Check "{check.get("name", "check")}" {conclusion}'
    if branch:
        title = f"{title} on {branch}"

    return {
        "color": color,
        "title": title,
        "url": check.get("html_url") or payload["repository"]["html_url"],
        "fields": [
            _repo_field(payload, inline=True),
            {"name": "SHA", "value": f"`{(check.get('head_sha') or '')[:7]}`", "inline": True},
        ],
        "timestamp": check.get("completed_at") or now_iso(),
        "footer": {"text": "GitHub Check Run"},
    }


def check_suite_embed(payload: dict[str, Any], branch: str | None = None) -> dict[str, Any]:
    suite = payload["check_suite"]
    conclusion = suite.get("conclusion") or "unknown"
    emoji, color = _conclusion_style(conclusion)
    app_name = (suite.get("app") or {}).get("name") or "Checks"
    title = f"{emoji} Check suite {conclusion}"
    if branch:
        title = f"{title} on {branch}"

    return {
        "color": color,
        "title": title,
        "url": payload["repository"]["html_url"],
        "fields": [
            _repo_field(payload, inline=True),
            {"name": "App", "value": app_name, "inline": True},
            {"name": "SHA", "value": f"`{(suite.get('head_sha') or '')[:7]}`", "inline": True},
        ],
        "timestamp": suite.get("updated_at") or now_iso(),
        "footer": {"text": "GitHub Check Suite"},
    }


# ============================================================
# Pull requests, issues and comments
# ============================================================


_PR_STYLE = {
    "opened": ("🔍", GREEN),
    "reopened": ("🔍", GREEN),
    "synchronize": ("📝", BLUE),
}
_PR_NOTICE_ACTIONS = frozenset(
    {
        "assigned",
        "unassigned",
        "review_requested",
        "review_request_removed",
        "labeled",
        "unlabeled",
    }
)


def pull_request_embed(payload: dict[str, Any]) -> dict[str, Any]:
    action = payload["action"]
    pr = payload["pull_request"]
    emoji, color = _PR_STYLE.get(action, ("📋", GREY))
    title_action = "Updated" if action == "synchronize" else title_case(action)

    if action == "closed":
        if pr.get("merged"):
            emoji, color, title_action = "🟣", PURPLE, "Merged"
        else:
            emoji, color = "❌", RED
    elif action in _PR_NOTICE_ACTIONS:
        emoji, color = "🔔", BLUE

    number = payload.get("number", pr.get("number"))
    embed: dict[str, Any] = {
        "color": color,
        "author": _author(pr.get("user")),
        "title": f"{emoji} Pull Request #{number} {title_action}: {pr['title']}",
        "url": pr["html_url"],
        "fields": [
            _repo_field(payload),
            {
                "name": "Branches",
                "value": f"`{pr['head']['ref']}` → `{pr['base']['ref']}`",
                "inline": True,
            },
            {"name": "State", "value": title_case(pr.get("state", "")), "inline": True},
        ],
        "timestamp": pr.get("updated_at") or now_iso(),
        "footer": {"text": "GitHub Pull Request"},
    }

    if pr.get("body"):
        embed["description"] = truncate(pr["body"], 300)
    if action == "closed" and pr.get("merged") and pr.get("merged_by"):
        embed["fields"].append(
            {"name": "Merged by", "value": pr["merged_by"]["login"], "inline": True}
        )
    if action == "assigned" and payload.get("assignee"):
        embed["description"] = (
            f"{pr['user']['login']} assigned {payload['assignee']['login']}."
        )
    if action == "review_requested" and payload.get("requested_reviewer"):
        embed["description"] = (
            f"Review requested from {payload['requested_reviewer']['login']}."
        )
    if action in ("labeled", "unlabeled") and payload.get("label"):
        verb = "Added" if action == "labeled" else "Removed"
        embed["description"] = f"{verb} label `{payload['label']['name']}`."
    return embed


_ISSUE_STYLE = {
    "opened": ("🐛", BLUE),
    "closed": ("✅", 0x1A7F37),
    "reopened": ("🔄", BLUE),
}


def issue_embed(payload: dict[str, Any]) -> dict[str, Any]:
    action = payload["action"]
    issue = payload["issue"]
    emoji, color = _ISSUE_STYLE.get(action, ("📝", BLUE))

    embed: dict[str, Any] = {
        "color": color,
        "author": _author(issue.get("user")),
        "title": f"{emoji} Issue #{issue['number']} {title_case(action)}: {issue['title']}",
        "url": issue["html_url"],
        "fields": [
            _repo_field(payload),
            {"name": "State", "value": title_case(issue.get("state", "")), "inline": True},
        ],
        "timestamp": issue.get("updated_at") or now_iso(),
        "footer": {"text": "GitHub Issue"},
    }
    if issue.get("body"):
        embed["description"] = truncate(issue["body"], 300)
    labels = issue.get("labels") or []
    if labels:
        embed["fields"].append(
            {
                "name": "Labels",
                "value": ", ".join(f"`{label['name']}`" for label in labels),
                "inline": True,
            }
        )
    return embed


def issue_comment_embed(payload: dict[str, Any]) -> dict[str, Any]:
    issue = payload["issue"]
    comment = payload["comment"]
    is_pr = bool(issue.get("pull_request"))
    kind = "Pull Request" if is_pr else "Issue"
    emoji = "💬" if is_pr else "🗣️"

    embed: dict[str, Any] = {
        "color": GREEN if is_pr else BLUE,
        "author": _author(payload.get("sender")),
        "title": f"{emoji} New Comment on {kind} #{issue['number']}: {issue['title']}",
        "url": comment["html_url"],
        "fields": [
            _repo_field(payload, inline=True),
            {
                "name": f"{kind} Link",
                "value": f"[#{issue['number']}]({issue['html_url']})",
                "inline": True,
            },
        ],
        "timestamp": comment.get("created_at") or now_iso(),
        "footer": {"text": f"GitHub {kind} Comment"},
    }
    if comment.get("body"):
        embed["description"] = truncate(comment["body"], 1000)
    return embed


_REVIEW_STYLE = {
    "approved": ("✅", CI_GREEN),
    "changes_requested": ("❌", CI_RED),
    "commented": ("💬", CI_BLUE),
    "dismissed": ("⏭️", CI_GREY),
}


def review_embed(payload: dict[str, Any]) -> dict[str, Any]:
    review = payload["review"]
    pr = payload["pull_request"]
    state = (review.get("state") or "").lower()
    emoji, color = _REVIEW_STYLE.get(state, ("📝", CI_BLUE))
    formatted = " ".join(title_case(w) for w in state.split("_"))
    reviewer = (payload.get("sender") or {}).get("login", "unknown")

    embed: dict[str, Any] = {
        "color": color,
        "title": f"{emoji} PR #{pr['number']} Review: {formatted}",
        "url": review.get("html_url") or pr["html_url"],
        "fields": [
            {"name": "Repository", "value": payload["repository"]["full_name"], "inline": False},
            {
                "name": "Pull Request",
                "value": f"[#{pr['number']}: {pr['title']}]({pr['html_url']})",
                "inline": False,
            },
            {"name": "Reviewer", "value": reviewer, "inline": True},
            {"name": "Review State", "value": formatted, "inline": True},
        ],
        "timestamp": review.get("submitted_at") or now_iso(),
        "footer": {"text": "GitHub Pull Request Review"},
    }
    if review.get("body"):
        embed["description"] = truncate(review["body"], 300)
    return embed


def review_comment_embed(payload: dict[str, Any]) -> dict[str, Any]:
    comment = payload["comment"]
    pr = payload["pull_request"]
    body = comment.get("body") or ""

    embed: dict[str, Any] = {
        "color": CI_BLUE,
        "title": f"💬 New PR #{pr['number']} Line Comment",
        "url": comment["html_url"],
        "fields": [
            {"name": "Repository", "value": payload["repository"]["full_name"], "inline": False},
            {
                "name": "Pull Request",
                "value": f"[#{pr['number']}: {pr['title']}]({pr['html_url']})",
                "inline": False,
            },
            {
                "name": "Commented By",
                "value": (payload.get("sender") or {}).get("login", "unknown"),
                "inline": True,
            },
            {"name": "File", "value": f"`{comment.get('path', '')}`", "inline": True},
        ],
        "timestamp": comment.get("created_at") or now_iso(),
        "footer": {"text": "GitHub PR Code Comment"},
    }

    line = comment.get("line")
    if line:
        start = comment.get("start_line")
        location = f"Lines {start}-{line}" if start and start != line else f"Line {line}"
        embed["fields"].append({"name": "Location", "value": location, "inline": True})

    if body:
        first = body.split("\n")[0]
        description = truncate(first, 300)
        if "\n" in body or len(body) > 300:
            description += "\n\n*[See full comment on GitHub]*"
        embed["description"] = description

    hunk = comment.get("diff_hunk")
    if hunk:
        context = "\n".join(hunk.split("\n")[-3:])
        preview = f"```diff\n{context}\n```"
        if len(preview) > FIELD_LIMIT:
            preview = preview[: FIELD_LIMIT - 8] + "...\n```"
        embed["fields"].append({"name": "Code Context", "value": preview, "inline": False})
    return embed


# ============================================================
# Repository events
# ============================================================


def star_embed(payload: dict[str, Any]) -> dict[str, Any]:
    repo = payload["repository"]
    sender = (payload.get("sender") or {}).get("login", "someone")
    return {
        "color": GOLD,
        "author": _author(payload.get("sender")),
        "title": f"⭐ New Star for {repo.get('name', repo['html_url'])}!",
        "url": repo["html_url"],
        "description": f"{sender} starred {_repo_link(payload)}.",
        "fields": [
            _repo_field(payload, inline=True),
            {
                "name": "Total Stars",
                "value": str(repo.get("stargazers_count", 0)),
                "inline": True,
            },
        ],
        "timestamp": now_iso(),
        "footer": {"text": "GitHub Star Event"},
    }


def release_embed(payload: dict[str, Any]) -> dict[str, Any]:
    release = payload["release"]
    pre = bool(release.get("prerelease"))
    embed: dict[str, Any] = {
        "color": VIOLET,
        "author": _author(release.get("author")),
        "title": (
            f"{'🚧' if pre else '🚀'} New {'Pre-release' if pre else 'Release'}: "
            f"{release.get('name') or release['tag_name']}"
        ),
        "url": release["html_url"],
        "fields": [
            _repo_field(payload),
            {"name": "Tag", "value": f"`{release['tag_name']}`", "inline": True},
        ],
        "timestamp": release.get("published_at") or now_iso(),
        "footer": {"text": "GitHub Release"},
    }
    if release.get("body"):
        embed["description"] = truncate(release["body"], 1500)
    return embed


def fork_embed(payload: dict[str, Any]) -> dict[str, Any]:
    forkee = payload["forkee"]
    sender = (payload.get("sender") or {}).get("login", "someone")
    fork_link = f"[{forkee['full_name']}]({forkee['html_url']})"
    return {
        "color": FORK_PURPLE,
        "author": _author(payload.get("sender")),
        "title": "🍴 Repository Forked",
        "description": f"{_repo_link(payload)} was forked by {sender} to {fork_link}.",
        "fields": [
            {"name": "Source Repository", "value": _repo_link(payload), "inline": True},
            {"name": "New Fork", "value": fork_link, "inline": True},
        ],
        "timestamp": forkee.get("created_at") or now_iso(),
        "footer": {"text": "GitHub Fork Event"},
    }


def create_embed(payload: dict[str, Any]) -> dict[str, Any]:
    ref_type = payload.get("ref_type", "ref")
    ref = payload["ref"]
    repo_url = payload["repository"]["html_url"]
    is_branch = ref_type == "branch"
    sender = (payload.get("sender") or {}).get("login", "unknown")

    embed: dict[str, Any] = {
        "color": INDIGO if is_branch else TAG_GREY,
        "author": _author(payload.get("sender")),
        "title": f"{'🌱' if is_branch else '🏷️'} New {ref_type} Created: {ref}",
        "url": f"{repo_url}/tree/{ref}",
        "fields": [
            _repo_field(payload),
            {"name": title_case(ref_type), "value": f"`{ref}`", "inline": True},
            {"name": "Created by", "value": sender, "inline": True},
        ],
        "timestamp": now_iso(),
        "footer": {"text": f"GitHub {title_case(ref_type)} Creation"},
    }
    if is_branch:
        embed["description"] = (
            "To track this branch specifically, use:\n"
            f"`/link {repo_url} {ref} #channel`"
        )
    return embed


def delete_embed(payload: dict[str, Any]) -> dict[str, Any]:
    ref_type = payload.get("ref_type", "ref")
    ref = payload["ref"]
    sender = (payload.get("sender") or {}).get("login", "unknown")
    return {
        "color": RED,
        "author": _author(payload.get("sender")),
        "title": f"🗑️ {title_case(ref_type)} Deleted: {ref}",
        "url": payload["repository"]["html_url"],
        "fields": [
            _repo_field(payload),
            {"name": title_case(ref_type), "value": f"`{ref}`", "inline": True},
            {"name": "Deleted by", "value": sender, "inline": True},
        ],
        "timestamp": now_iso(),
        "footer": {"text": f"GitHub {title_case(ref_type)} Deletion"},
    }


def milestone_progress(milestone: dict[str, Any]) -> str | None:
    """``"closed/total issues completed (pct%)"`` when counts are present."""
    open_issues = milestone.get("open_issues")
    closed_issues = milestone.get("closed_issues")
    if open_issues is None or closed_issues is None:
        return None
    total = open_issues + closed_issues
    percent = round(closed_issues / total * 100) if total > 0 else 0
    return f"{closed_issues}/{total} issues completed ({percent}%)"


def milestone_embed(payload: dict[str, Any]) -> dict[str, Any]:
    action = payload["action"]
    milestone = payload["milestone"]
    emoji = {"created": "🏁", "opened": "🏁", "closed": "✅"}.get(action, "📝")
    due = _parse_time(milestone.get("due_on"))

    embed: dict[str, Any] = {
        "color": CI_GREEN if action == "closed" else CI_BLUE,
        "title": f"{emoji} Milestone {title_case(action)}: {milestone['title']}",
        "url": milestone.get("html_url") or payload["repository"]["html_url"],
        "fields": [
            {"name": "Repository", "value": payload["repository"]["full_name"], "inline": False},
            {
                "name": f"{title_case(action)} By",
                "value": (payload.get("sender") or {}).get("login", "unknown"),
                "inline": True,
            },
            {
                "name": "Due Date",
                "value": due.strftime("%Y-%m-%d") if due else "No due date",
                "inline": True,
            },
        ],
        "timestamp": now_iso(),
        "footer": {"text": "GitHub Milestone Event"},
    }
    description = milestone.get("description") or ""
    if description:
        embed["description"] = (
            description[:200] + "..." if len(description) > 200 else description
        )
    if action in ("opened", "closed"):
        progress = milestone_progress(milestone)
        if progress:
            embed["fields"].append({"name": "Progress", "value": progress, "inline": False})
    return embed


def workflow_job_embed(payload: dict[str, Any]) -> dict[str, Any]:
    job = payload["workflow_job"]
    conclusion = job.get("conclusion") or "unknown"
    emoji, color = _conclusion_style(conclusion)
    embed: dict[str, Any] = {
        "color": color,
        "title": f'{emoji} Job "{job.get("name", "job")}" {conclusion}',
        "url": job.get("html_url") or payload["repository"]["html_url"],
        "fields": [
            _repo_field(payload, inline=True),
            {"name": "Status", "value": job.get("status") or "unknown", "inline": True},
        ],
        "timestamp": job.get("completed_at") or now_iso(),
        "footer": {"text": "GitHub Workflow Job"},
    }
    duration = format_duration(job.get("started_at"), job.get("completed_at"))
    if duration:
        embed["fields"].append({"name": "Duration", "value": duration, "inline": True})
    return embed


def ping_embeds(payload: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
    """Webhook confirmation plus the branch-linking guide."""
    confirmation = {
        "color": PING_GREEN,
        "author": _author(payload.get("sender")),
        "title": "🔗 Webhook Ping Received",
        "description": (
            f"Successfully received a ping event from GitHub for repository "
            f"{_repo_link(payload)}.\n"
            "Your webhooks are set up correctly for this server! 🎉"
        ),
        "fields": [
            _repo_field(payload, inline=True),
            {"name": "Zen", "value": payload.get("zen") or "Connection successful!", "inline": True},
        ],
        "timestamp": now_iso(),
        "footer": {"text": "GitHub Ping Event"},
    }
    guide = {
        "color": PING_GREEN,
        "title": "📋 How to Track your Branches",
        "description": (
            "Now that your webhook is set up, you can link specific branches "
            "to receive notifications:"
        ),
        "fields": [
            {
                "name": "🌿 Link a specific branch",
                "value": (
                    "`/link repo-url branch #channel`\n"
                    "Replace `branch` with your branch name and `#channel` "
                    "with your desired channel."
                ),
                "inline": False,
            },
            {
                "name": "🌟 Link all branches (wildcard)",
                "value": (
                    "`/link repo-url * #channel`\n"
                    "Use `*` to track all branches in the repository."
                ),
                "inline": False,
            },
            {
                "name": "📖 Need help?",
                "value": "Use `/help` to see all available commands and their usage.",
                "inline": False,
            },
        ],
        "footer": {"text": "GitTrack - Branch Linking Guide"},
    }
    return confirmation, guide


# ============================================================
# Operational notices
# ============================================================


def channel_limit_warning(current_count: int, max_allowed: float) -> dict[str, Any]:
    limit = int(max_allowed)
    return {
        "color": WARNING_ORANGE,
        "title": "⚠️ Channel Limit Warning",
        "description": (
            f"This server is using {current_count} distinct channels for branch "
            f"notifications, which exceeds the configured limit of {limit} channels.\n\n"
            "A channel is counted when it's used explicitly for branch notifications, "
            "even if it's also a repository default channel.\n\n"
            "To ensure all webhook notifications are delivered properly, please:\n"
            "• Consolidate branch notifications to fewer channels\n"
            "• Use `/unlink` to remove unneeded branch-channel links\n"
            "• Or contact an administrator to increase the limit"
        ),
        "footer": {"text": "GitTrack Notification Limit"},
    }


def content_type_error(repo_url: str) -> dict[str, Any]:
    short_name = "/".join(repo_url.rstrip("/").split("/")[-2:])
    return {
        "color": ERROR_RED,
        "title": "⚠️ Webhook Configuration Error",
        "description": (
            "There's an issue with your GitHub webhook configuration for "
            f"repository [{short_name}]({repo_url})."
        ),
        "fields": [
            {
                "name": "❌ Problem",
                "value": (
                    "Your webhook is set to send **application/x-www-form-urlencoded** "
                    "data instead of **application/json**."
                ),
                "inline": False,
            },
            {
                "name": "🔧 How to Fix",
                "value": (
                    f"1. Go to your [repository webhook settings]({repo_url}/settings/hooks)\n"
                    '2. Click "Edit" on your GitTrack webhook\n'
                    '3. Change "Content type" from "application/x-www-form-urlencoded" '
                    'to **"application/json"**\n'
                    '4. Click "Update webhook"'
                ),
                "inline": False,
            },
            {
                "name": "📝 Note",
                "value": "Your webhook notifications won't work until this is fixed.",
                "inline": False,
            },
        ],
        "footer": {"text": "GitTrack Configuration Error"},
        "timestamp": now_iso(),
    }
