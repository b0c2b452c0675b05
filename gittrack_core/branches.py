"""Branch pattern matching.

Supported pattern shapes:

    *               every branch
    main            exact, case-sensitive name
    features/*      names starting with "features/"
    !main           every branch except "main"
    !features/*     every branch not starting with "features/"

Any other use of ``*`` (mid-pattern, multiple wildcards, ``*fix*``) can be
stored but never matches. ``!*`` is rejected by :func:`is_valid_pattern`
and never matches either.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import TypeVar

from gittrack_core.types import TrackedBranchRecord

T = TypeVar("T", bound=TrackedBranchRecord)

WILDCARD = "*"
NEGATION = "!"
PREFIX_SUFFIX = "/*"

_NAME_CHARS = re.compile(r"^[A-Za-z0-9\-_/.]+$")


def _split_negation(pattern: str) -> tuple[bool, str]:
    if pattern.startswith(NEGATION):
        return True, pattern[len(NEGATION) :]
    return False, pattern


def _shape(pattern: str) -> str:
    """Classify a non-negated pattern as all, exact, prefix or unsupported."""
    if pattern == WILDCARD:
        return "all"
    if pattern.startswith(NEGATION):
        return "unsupported"
    if WILDCARD not in pattern:
        return "exact"
    if pattern.endswith(PREFIX_SUFFIX):
        prefix = pattern[: -len(PREFIX_SUFFIX)]
        if prefix and WILDCARD not in prefix:
            return "prefix"
    return "unsupported"


def _matches_positive(branch_name: str, pattern: str) -> bool:
    shape = _shape(pattern)
    if shape == "all":
        return True
    if shape == "exact":
        return branch_name == pattern
    if shape == "prefix":
        return branch_name.startswith(pattern[: -len(PREFIX_SUFFIX)] + "/")
    return False


def matches(branch_name: str, pattern: str) -> bool:
    """Check whether a branch name satisfies a tracked pattern.

    Args:
        branch_name: Branch from the webhook (``refs/heads/`` already stripped).
        pattern: Stored pattern.

    Returns:
        True on a match. Unsupported shapes, and negations of ``*`` or of an
        unsupported shape, never match.
    """
    negated, inner = _split_negation(pattern)
    if not negated:
        return _matches_positive(branch_name, inner)

    if _shape(inner) not in ("exact", "prefix"):
        return False
    return not _matches_positive(branch_name, inner)


def find_matching(tracked_branches: Iterable[T], branch_name: str) -> list[T]:
    """Return every tracked branch whose pattern matches ``branch_name``.

    Zero, one or many entries may match; each yields its own delivery.
    """
    return [tb for tb in tracked_branches if matches(branch_name, tb.branch_pattern)]


def is_valid_pattern(pattern: str) -> bool:
    """Check whether a pattern may be stored.

    Valid: ``*``; a wildcard-free name of ``[A-Za-z0-9-_/.]``; a non-empty,
    wildcard-free prefix of those characters followed by ``/*``; or ``!``
    followed by a valid exact or prefix pattern.
    """
    negated, inner = _split_negation(pattern)
    shape = _shape(inner)

    if shape == "all":
        return not negated
    if shape == "exact":
        return bool(_NAME_CHARS.match(inner))
    if shape == "prefix":
        return bool(_NAME_CHARS.match(inner[: -len(PREFIX_SUFFIX)]))
    return False


def describe(pattern: str) -> str:
    """Human-readable summary of a pattern for status listings."""
    negated, inner = _split_negation(pattern)

    if negated and inner and inner != WILDCARD:
        if inner.endswith(PREFIX_SUFFIX):
            prefix = inner[: -len(PREFIX_SUFFIX)]
            return f'All branches except those starting with "{prefix}/"'
        return f'All branches except "{inner}"'

    if pattern == WILDCARD:
        return "All branches"
    if pattern.endswith(PREFIX_SUFFIX):
        prefix = pattern[: -len(PREFIX_SUFFIX)]
        return f'Branches starting with "{prefix}/"'
    return f'Branch "{pattern}"'
