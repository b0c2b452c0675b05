"""GitHub webhook authentication and dispatch.

Each delivery walks a fixed sequence of stages:

    content type -> payload -> repository match -> signature -> event type
    -> handler

Every stage returns ``Ok(value)`` or ``Rejected(status, reason)``; the first
rejection becomes the HTTP response. Exactly one response is produced per
request, enforced by ``ResponseGuard``.
"""

from __future__ import annotations

import json
import logging
import time
import traceback
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, Mapping, TypeVar, Union
from urllib.parse import parse_qs

from gittrack_core.queries import OperationalQueries
from gittrack_core.types import (
    ErrorLogEvent,
    LogLevel,
    PerformanceEvent,
    RepositoryContext,
    SystemLogEvent,
)

from gittrack_server import embeds
from gittrack_server.handlers import HANDLERS, Delivery
from gittrack_server.signatures import find_validated_repository

if TYPE_CHECKING:
    from gittrack_server.adapters import AdapterRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")

JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


# ============================================================
# Stage results
# ============================================================


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Rejected:
    status: int
    reason: str


Stage = Union[Ok[T], Rejected]


@dataclass(frozen=True)
class WebhookResponse:
    """Status and plain-text body returned to GitHub."""

    status: int
    text: str


@dataclass(frozen=True)
class WebhookRequest:
    """The parts of an inbound HTTP request the dispatcher needs.

    Header lookups are case-insensitive when ``headers`` is a
    case-insensitive mapping (aiohttp's ``CIMultiDictProxy``); plain dicts
    should use canonical GitHub header names.
    """

    body: bytes
    headers: Mapping[str, str] = field(default_factory=dict)
    remote: str | None = None

    @property
    def content_type(self) -> str | None:
        return self.headers.get("Content-Type")

    @property
    def signature(self) -> str | None:
        return self.headers.get("X-Hub-Signature-256")

    @property
    def event_type(self) -> str | None:
        return self.headers.get("X-GitHub-Event")

    @property
    def user_agent(self) -> str | None:
        return self.headers.get("User-Agent")

    @property
    def source_ip(self) -> str | None:
        return self.headers.get("X-Forwarded-For") or self.remote


@dataclass(frozen=True)
class Authenticated:
    """Output of the authentication stages."""

    payload: dict[str, Any]
    context: RepositoryContext
    event_type: str


class ResponseGuard:
    """Lets exactly one response through per request.

    Later attempts are logged and the first response is returned again.
    """

    def __init__(self) -> None:
        self._response: WebhookResponse | None = None

    @property
    def responded(self) -> bool:
        return self._response is not None

    def respond(self, status: int, text: str) -> WebhookResponse:
        if self._response is not None:
            logger.warning(
                f"Ignoring second response {status} {text!r}; "
                f"already answered {self._response.status}"
            )
            return self._response
        self._response = WebhookResponse(status=status, text=text)
        return self._response


# ============================================================
# Stages
# ============================================================


def check_content_type(request: WebhookRequest) -> Stage[None]:
    content_type = request.content_type
    if not content_type:
        return Rejected(400, "Missing content type")
    if JSON_CONTENT_TYPE not in content_type:
        logger.error(
            f"Wrong content type: {content_type}. "
            f"GitHub webhooks must use application/json."
        )
        return Rejected(
            400,
            'GitHub webhook content type must be "application/json", '
            f'not "{content_type}"',
        )
    return Ok(None)


def parse_payload(body: bytes) -> Stage[dict[str, Any]]:
    try:
        payload = json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        logger.error(f"Failed to parse JSON: {e}")
        return Rejected(400, "Invalid JSON payload")

    repository = payload.get("repository") if isinstance(payload, dict) else None
    if not isinstance(repository, dict) or not repository.get("html_url"):
        logger.error("Webhook received with invalid payload structure")
        return Rejected(400, "Webhook payload is missing required repository information")
    return Ok(payload)


def form_payload(body: bytes) -> dict[str, Any] | None:
    """Recover the JSON payload from a form-encoded ``payload=`` body."""
    try:
        fields = parse_qs(body.decode("utf-8"))
        raw = fields.get("payload", [None])[0]
        payload = json.loads(raw) if raw else None
    except (ValueError, UnicodeDecodeError):
        return None
    if not isinstance(payload, dict):
        return None
    repository = payload.get("repository")
    if not isinstance(repository, dict) or not repository.get("html_url"):
        return None
    return payload


# ============================================================
# Dispatcher
# ============================================================


class WebhookDispatcher:
    """Authenticates GitHub deliveries and hands them to event handlers."""

    def __init__(self, registry: AdapterRegistry) -> None:
        self.registry = registry
        self.queries = OperationalQueries(registry.store)

    def find_candidates(self, repo_url: str) -> Stage[list[RepositoryContext]]:
        candidates = self.queries.repositories_for_url(repo_url)
        if not candidates:
            logger.warning(f"Repository not found or no configurations for: {repo_url}")
            return Rejected(404, "Repository not configured or no matching secret found.")
        return Ok(candidates)

    def validate_signature(
        self, request: WebhookRequest, candidates: list[RepositoryContext]
    ) -> Stage[RepositoryContext]:
        if not request.signature:
            logger.warning("No signature found in GitHub webhook request")
            return Rejected(401, "No signature provided")

        context = find_validated_repository(
            candidates,
            request.body,
            request.signature,
            self.registry.config.webhook.global_secret,
        )
        if context is None:
            logger.error("Invalid signature: no matching secret found")
            return Rejected(401, "Invalid signature")
        return Ok(context)

    async def authenticate(self, request: WebhookRequest) -> Stage[Authenticated]:
        """Run every stage up to, but not including, handler dispatch."""
        content = check_content_type(request)
        if isinstance(content, Rejected):
            if request.content_type and FORM_CONTENT_TYPE in request.content_type:
                await self.notify_content_type_error(request)
            return content

        parsed = parse_payload(request.body)
        if isinstance(parsed, Rejected):
            return parsed
        payload = parsed.value

        candidates = self.find_candidates(payload["repository"]["html_url"])
        if isinstance(candidates, Rejected):
            return candidates

        validated = self.validate_signature(request, candidates.value)
        if isinstance(validated, Rejected):
            return validated

        if not request.event_type:
            logger.error("No event type specified in GitHub webhook")
            return Rejected(400, "No event type specified")

        return Ok(Authenticated(payload, validated.value, request.event_type))

    async def process(self, request: WebhookRequest) -> WebhookResponse:
        """Turn one inbound delivery into exactly one response."""
        guard = ResponseGuard()
        start = time.monotonic()
        auth: Authenticated | None = None

        try:
            stage = await self.authenticate(request)
            if isinstance(stage, Rejected):
                return guard.respond(stage.status, stage.reason)

            auth = stage.value
            handler = HANDLERS.get(auth.event_type)
            if handler is None:
                self._log_unhandled(request, auth, start)
                return guard.respond(
                    200, f"Event {auth.event_type} received, but not currently handled."
                )

            result = await handler(auth.payload, Delivery(auth.context, self.registry))
            self._record_timing(auth, start)
            return guard.respond(result.status_code, result.message)
        except Exception as e:
            logger.exception("Error processing webhook")
            self._log_error(request, auth, start, e)
            return guard.respond(500, "Internal server error")

    # ------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------

    def _details(
        self, request: WebhookRequest, auth: Authenticated | None, start: float
    ) -> dict[str, Any]:
        return {
            "action": auth.payload.get("action") if auth else None,
            "processingTime": round((time.monotonic() - start) * 1000),
            "userAgent": request.user_agent,
            "sourceIp": request.source_ip,
        }

    def _log_unhandled(
        self, request: WebhookRequest, auth: Authenticated, start: float
    ) -> None:
        logger.info(f"Event type {auth.event_type} is not currently handled")
        details = self._details(request, auth, start)
        details["serverId"] = auth.context.server.id
        details["repositoryId"] = auth.context.repository.id
        try:
            self.registry.store.append(
                SystemLogEvent(
                    entity_id=auth.context.server.id,
                    event_type="unhandled_event",
                    level=LogLevel.INFO,
                    category="webhook",
                    message=f"Unhandled webhook event: {auth.event_type}",
                    details=details,
                    ip_address=request.source_ip,
                )
            )
        except Exception:
            logger.exception("Failed to log unhandled event")

    def _log_error(
        self,
        request: WebhookRequest,
        auth: Authenticated | None,
        start: float,
        error: Exception,
    ) -> None:
        context = self._details(request, auth, start)
        context["eventType"] = request.event_type or "unknown"
        if auth is not None:
            context["repository"] = auth.context.repository.url
        try:
            self.registry.store.append(
                ErrorLogEvent(
                    entity_id=auth.context.server.id if auth else "unknown",
                    event_type="webhook_error",
                    message=f"Webhook processing error: {error}",
                    stack="".join(traceback.format_exception(error)),
                    source="webhook",
                    context=context,
                )
            )
        except Exception:
            logger.exception("Failed to log webhook error")

    def _record_timing(self, auth: Authenticated, start: float) -> None:
        duration_ms = (time.monotonic() - start) * 1000
        if duration_ms < self.registry.config.webhook.slow_threshold_ms:
            return
        logger.warning(f"Slow webhook: {auth.event_type} took {duration_ms:.0f}ms")
        try:
            self.registry.store.append(
                PerformanceEvent(
                    entity_id=auth.context.server.id,
                    event_type="slow_webhook",
                    operation=f"webhook:{auth.event_type}",
                    duration_ms=duration_ms,
                    details={"repositoryId": auth.context.repository.id},
                )
            )
        except Exception:
            logger.exception("Failed to record webhook timing")

    async def notify_content_type_error(self, request: WebhookRequest) -> None:
        """Tell the repository's channel its webhook sends form data.

        Best effort: needs a parseable ``payload=`` field and a signature
        that validates against one of the candidate repositories.
        """
        payload = form_payload(request.body)
        if payload is None:
            logger.info("Could not extract repository URL from malformed webhook")
            return

        repo_url = payload["repository"]["html_url"]
        candidates = self.find_candidates(repo_url)
        if isinstance(candidates, Rejected):
            return
        validated = self.validate_signature(request, candidates.value)
        if isinstance(validated, Rejected):
            return

        delivery = Delivery(validated.value, self.registry)
        message = await delivery.send(
            validated.value.default_channel_id,
            [embeds.content_type_error(repo_url)],
            enforce_limit=False,
        )
        if message is not None:
            logger.info(f"Sent content type error notification for {repo_url}")
