"""Branch name listing for command autocomplete."""

from __future__ import annotations

from typing import TYPE_CHECKING

from gittrack_core.branches import WILDCARD

if TYPE_CHECKING:
    from gittrack_server.adapters import AdapterRegistry

MAX_CHOICES = 25


async def list_branches(
    repository_url: str,
    prefix: str = "",
    registry: AdapterRegistry | None = None,
) -> dict:
    """Suggest branch patterns for a repository.

    ``*`` is always offered first; GitHub branch names follow when a GitHub
    client is configured and the repository is reachable.
    """
    if registry is None:
        from gittrack_server.adapters import get_adapter_registry

        registry = get_adapter_registry()

    names: list[str] = []
    if registry.github is not None:
        names = await registry.github.list_branches(repository_url)

    choices = [WILDCARD] + [n for n in names if n.lower().startswith(prefix.lower())]
    return {"repository": repository_url, "branches": choices[:MAX_CHOICES]}
