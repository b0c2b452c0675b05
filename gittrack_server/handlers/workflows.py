"""GitHub Actions handlers: workflow runs and workflow jobs."""

from __future__ import annotations

import logging
from typing import Any

from gittrack_core.types import HandlerResult

from gittrack_server import embeds
from gittrack_server.handlers._delivery import (
    Delivery,
    action_allowed,
    delivered,
    explicitly_disabled,
    skipped,
)

logger = logging.getLogger(__name__)

COMPLETED = frozenset({"completed"})


async def handle_run(payload: dict[str, Any], delivery: Delivery) -> HandlerResult:
    """Deliver a completed workflow run to each matching tracked branch.

    The jobs summary is fetched from the run's ``jobs_url`` when a GitHub
    client is available; without it the embed simply has no Jobs field.
    """
    action = payload.get("action", "")
    if action != "completed":
        return skipped("Workflow run event acknowledged.")

    run = payload["workflow_run"]
    branch = run.get("head_branch") or ""
    logger.info(
        f'Workflow run "{run.get("name")}" completed with conclusion '
        f'"{run.get("conclusion")}" in {payload["repository"]["html_url"]} on branch {branch}'
    )

    routing = delivery.route("workflow_run")
    if explicitly_disabled(routing, action):
        return skipped(f"Workflow run action '{action}' disabled by config.")

    channels = delivery.branch_channels(branch)
    if not channels:
        return skipped("No matching branch configurations for this workflow run.")

    jobs: list[dict[str, Any]] = []
    github = delivery.registry.github
    if github is not None and run.get("jobs_url"):
        jobs = await github.workflow_jobs(run["jobs_url"])

    message = await delivery.fan_out(channels, [embeds.workflow_run_embed(payload, jobs)])
    return delivered("Workflow run", message)


async def handle_job(payload: dict[str, Any], delivery: Delivery) -> HandlerResult:
    action = payload.get("action", "")
    if action != "completed":
        return skipped("Workflow job event acknowledged.")

    routing = delivery.route("workflow_job")
    if not action_allowed(routing, action, COMPLETED):
        return skipped(f"Workflow job action '{action}' disabled by config.")

    message = await delivery.send(routing.channel_id, [embeds.workflow_job_embed(payload)])
    return delivered("Workflow job", message)
