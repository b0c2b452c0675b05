"""GitHub event handlers keyed by ``X-GitHub-Event``."""

from __future__ import annotations

from typing import Any, Awaitable, Callable

from gittrack_core.types import HandlerResult

from . import checks, issues, milestone, ping, pull_request, push, repository, workflows
from ._delivery import Delivery

Handler = Callable[[dict[str, Any], Delivery], Awaitable[HandlerResult]]

HANDLERS: dict[str, Handler] = {
    "push": push.handle,
    "pull_request": pull_request.handle,
    "pull_request_review": pull_request.handle_review,
    "pull_request_review_comment": pull_request.handle_review_comment,
    "issues": issues.handle,
    "issue_comment": issues.handle_comment,
    "star": repository.handle_star,
    "release": repository.handle_release,
    "fork": repository.handle_fork,
    "create": repository.handle_create,
    "delete": repository.handle_delete,
    "milestone": milestone.handle,
    "workflow_run": workflows.handle_run,
    "workflow_job": workflows.handle_job,
    "check_run": checks.handle_run,
    "check_suite": checks.handle_suite,
    "ping": ping.handle,
}

__all__ = ["HANDLERS", "Delivery", "Handler"]
