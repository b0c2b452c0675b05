"""Minimal GitHub REST client.

Used for two optional features: listing a repository's branches (command
autocomplete) and fetching the jobs of a completed workflow run. Every
failure degrades to an empty result.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from urllib.parse import urlparse

import aiohttp

from gittrack_core.config import GitHubConfig

logger = logging.getLogger(__name__)


def owner_and_repo(repo_url: str) -> tuple[str, str] | None:
    """Extract ``(owner, repo)`` from a GitHub repository URL."""
    parts = [p for p in urlparse(repo_url).path.split("/") if p]
    if len(parts) < 2:
        return None
    repo = parts[1][:-4] if parts[1].endswith(".git") else parts[1]
    return parts[0], repo


class GitHubClient:
    """Async GitHub API helper with an optional token."""

    def __init__(
        self,
        config: GitHubConfig,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        self._session = session
        self._owns_session = session is None

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "GitTrack-Bot",
        }
        if self._config.token:
            headers["Authorization"] = f"token {self._config.token}"
        return headers

    async def start(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._config.request_timeout),
                headers=self._headers(),
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def _get_json(self, url: str) -> Any:
        session = await self.start()
        try:
            async with session.get(url) as resp:
                if resp.status != 200:
                    logger.warning(f"GitHub API {url} returned HTTP {resp.status}")
                    return None
                return await resp.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"GitHub API request to {url} failed: {e}")
            return None

    async def list_branches(self, repo_url: str) -> list[str]:
        """Branch names of a repository, or [] if unavailable."""
        parsed = owner_and_repo(repo_url)
        if parsed is None:
            return []
        owner, repo = parsed
        data = await self._get_json(
            f"{self._config.api_base}/repos/{owner}/{repo}/branches?per_page=100"
        )
        if not isinstance(data, list):
            return []
        return [b["name"] for b in data if isinstance(b, dict) and "name" in b]

    async def workflow_jobs(self, jobs_url: str) -> list[dict[str, Any]]:
        """Jobs of a workflow run from its ``jobs_url``, or [] if unavailable."""
        if not jobs_url:
            return []
        data = await self._get_json(jobs_url)
        if not isinstance(data, dict):
            return []
        jobs = data.get("jobs")
        return jobs if isinstance(jobs, list) else []
