"""HMAC-SHA256 verification of GitHub webhook deliveries."""

from __future__ import annotations

import hashlib
import hmac
import logging
from typing import Iterable

from gittrack_core.types import RepositoryContext

logger = logging.getLogger(__name__)

SIGNATURE_PREFIX = "sha256="


def compute_signature(secret: str, body: bytes) -> str:
    """Return the ``sha256=<hex>`` header value GitHub would send for ``body``."""
    digest = hmac.new(
        key=secret.encode("utf-8"),
        msg=body,
        digestmod=hashlib.sha256,
    ).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_signature(body: bytes, signature_header: str | None, secret: str | None) -> bool:
    """Check an ``X-Hub-Signature-256`` header against the raw body.

    Args:
        body: Raw request body, exactly as received.
        signature_header: Header value, ``sha256=<hex>``.
        secret: Webhook secret to verify with.

    Returns:
        True if the signature matches. A missing secret or malformed header
        never verifies.
    """
    if not secret or not signature_header:
        return False
    if not signature_header.startswith(SIGNATURE_PREFIX):
        logger.warning("Invalid signature header format")
        return False

    expected = compute_signature(secret, body)
    return hmac.compare_digest(signature_header.encode("utf-8"), expected.encode("utf-8"))


def find_validated_repository(
    candidates: Iterable[RepositoryContext],
    body: bytes,
    signature_header: str | None,
    global_secret: str | None = None,
) -> RepositoryContext | None:
    """Return the first candidate whose secret signs ``body``.

    Each repository is checked with its own secret, or ``global_secret``
    when it has none, so the same GitHub URL can be tracked by unrelated
    servers with independent secrets.
    """
    for candidate in candidates:
        secret = candidate.repository.webhook_secret or global_secret
        if verify_signature(body, signature_header, secret):
            return candidate
        logger.debug(
            f"Signature did not validate for repository {candidate.repository.id} "
            f"on server {candidate.server.guild_id}"
        )
    return None
