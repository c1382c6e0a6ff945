"""Remote content access for the Filament repository on GitHub."""

import asyncio
import logging
import re
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol, TypeVar

import httpx

from mcp_filament_documentation.config import (
    DEFAULT_VERSION,
    FILAMENT_REPO,
    GITHUB_API_BASE,
    GITHUB_RAW_CONTENT_BASE,
    MARKDOWN_EXTENSION,
    MAX_RETRIES,
    RATE_LIMIT_WAIT_CAP,
    REQUEST_TIMEOUT,
)
from mcp_filament_documentation.errors import ContentSourceError
from mcp_filament_documentation.models import DirectoryEntry

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]

VERSION_BRANCH_PATTERN = re.compile(r"^\d+\.x$")


class ContentSource(Protocol):
    """Fetches files and listings from a remote versioned tree."""

    async def get_file(self, path: str, ref: str) -> str:
        """Fetch the raw content of a file.

        Args:
            path: Repository path of the file.
            ref: Branch or tag to read from.

        Returns:
            File content as text.

        Raises:
            ContentSourceError: If the file could not be fetched.
        """
        ...

    async def list_directory(self, path: str, ref: str) -> list[DirectoryEntry]:
        """List the entries of a directory.

        Args:
            path: Repository path of the directory.
            ref: Branch or tag to read from.

        Returns:
            Directory entries, empty if the directory could not be listed.
        """
        ...

    async def list_versions(self) -> list[str]:
        """List the available documentation versions.

        Returns:
            Version tags, or the default version if the lookup failed.
        """
        ...

    async def list_changes_since(self, ref: str, since: datetime) -> list[str]:
        """List documentation files changed since a point in time.

        Args:
            ref: Branch to inspect.
            since: Only changes after this time are considered.

        Returns:
            Distinct changed markdown paths, empty if the lookup failed.
        """
        ...


@dataclass(frozen=True)
class RetryPolicy:
    """How remote calls are retried."""

    max_attempts: int = MAX_RETRIES
    rate_limit_wait_cap: float = RATE_LIMIT_WAIT_CAP
    backoff_base: float = 2.0


def rate_limit_wait(response: httpx.Response, policy: RetryPolicy, now: float) -> float | None:
    """Return how long to wait for a rate-limited response.

    Args:
        response: The failed HTTP response.
        policy: Retry policy providing the wait cap.
        now: Current time in epoch seconds.

    Returns:
        Seconds to wait, or None if the response is not a rate limit.
    """
    limited = response.status_code == 429 or (
        response.status_code == 403 and response.headers.get("x-ratelimit-remaining") == "0"
    )
    if not limited:
        return None

    try:
        wait = float(response.headers["x-ratelimit-reset"]) - now
    except (KeyError, ValueError):
        wait = policy.rate_limit_wait_cap
    return min(max(wait, 0.0), policy.rate_limit_wait_cap)


async def retry_with_policy(
    operation: Callable[[], Awaitable[T]],
    description: str,
    policy: RetryPolicy,
    sleep: Sleep = asyncio.sleep,
    clock: Callable[[], float] = time.time,
) -> T:
    """Run an HTTP operation, retrying transient failures.

    Rate-limited responses wait until the advertised reset time, capped by
    the policy. Any other ``httpx.HTTPError`` backs off exponentially.

    Args:
        operation: Zero-argument coroutine factory performing one attempt.
        description: Human readable name of the operation for logs.
        policy: Retry policy.
        sleep: Coroutine used to wait between attempts.
        clock: Returns the current time in epoch seconds.

    Returns:
        The operation's result.

    Raises:
        ContentSourceError: If every attempt failed.
    """
    last_error: httpx.HTTPError | None = None

    for attempt in range(1, policy.max_attempts + 1):
        try:
            return await operation()
        except httpx.HTTPError as exc:
            last_error = exc

        if attempt == policy.max_attempts:
            break

        wait = None
        if isinstance(last_error, httpx.HTTPStatusError):
            wait = rate_limit_wait(last_error.response, policy, clock())

        if wait is not None:
            logger.warning("GitHub API rate limit exceeded. Waiting %.0f seconds before retry...", wait)
        else:
            wait = policy.backoff_base**attempt
            logger.warning(
                "Error %s (attempt %d/%d): %s. Retrying in %.0f seconds...",
                description,
                attempt,
                policy.max_attempts,
                last_error,
                wait,
            )
        await sleep(wait)

    msg = f"Failed {description} after {policy.max_attempts} attempts: {last_error}"
    raise ContentSourceError(msg, last_exception=last_error, attempts=policy.max_attempts)


class GitHubContentSource:
    """ContentSource backed by the GitHub REST and raw content endpoints."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        repo: str = FILAMENT_REPO,
        policy: RetryPolicy | None = None,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialise the source.

        Args:
            client: HTTP client used for every request.
            repo: ``owner/name`` of the GitHub repository.
            policy: Retry policy for file and directory requests.
            sleep: Coroutine used to wait between retries.
            clock: Returns the current time in epoch seconds.
        """
        self.client = client
        self.repo = repo
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def create(cls, github_token: str | None = None) -> "GitHubContentSource":
        """Build a source with its own HTTP client.

        Args:
            github_token: Optional token sent with every request.

        Returns:
            GitHubContentSource instance. Close it with ``aclose``.
        """
        headers = {"Accept": "application/vnd.github.v3+json"}
        if github_token:
            headers["Authorization"] = f"token {github_token}"
        client = httpx.AsyncClient(headers=headers, timeout=REQUEST_TIMEOUT, follow_redirects=True)
        return cls(client)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()

    async def _get(self, url: str, params: dict[str, str] | None = None) -> httpx.Response:
        response = await self.client.get(url, params=params)
        response.raise_for_status()
        return response

    async def get_file(self, path: str, ref: str) -> str:
        """Fetch the raw content of a file.

        Args:
            path: Repository path of the file.
            ref: Branch or tag to read from.

        Returns:
            File content as text.

        Raises:
            ContentSourceError: If every attempt failed.
        """
        url = f"{GITHUB_RAW_CONTENT_BASE}/{self.repo}/{ref}/{path}"

        async def attempt() -> str:
            response = await self._get(url)
            return response.text

        return await retry_with_policy(attempt, f"fetching {path}", self.policy, self._sleep, self._clock)

    async def list_directory(self, path: str, ref: str) -> list[DirectoryEntry]:
        """List a directory through the contents API.

        Args:
            path: Repository path of the directory.
            ref: Branch or tag to read from.

        Returns:
            Directory entries, or an empty list if listing failed.
        """
        url = f"{GITHUB_API_BASE}/repos/{self.repo}/contents/{path}"

        async def attempt() -> list[DirectoryEntry]:
            response = await self._get(url, params={"ref": ref})
            try:
                payload = response.json()
                if not isinstance(payload, list):
                    return []
                return [DirectoryEntry(name=item["name"], path=item["path"], type=item["type"]) for item in payload]
            except (ValueError, KeyError, TypeError) as exc:
                msg = f"Malformed listing for {path}: {exc}"
                raise ContentSourceError(msg, last_exception=exc, attempts=1) from exc

        try:
            return await retry_with_policy(attempt, f"listing {path}", self.policy, self._sleep, self._clock)
        except ContentSourceError as exc:
            logger.warning("%s", exc)
            return []

    async def list_versions(self) -> list[str]:
        """List version branches such as ``3.x``.

        Returns:
            Version branch names, or the default version if the lookup failed.
        """
        url = f"{GITHUB_API_BASE}/repos/{self.repo}/branches"
        try:
            response = await self._get(url, params={"per_page": "100"})
            names = [branch["name"] for branch in response.json()]
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Error checking available versions: %s", exc)
            return [DEFAULT_VERSION]
        return [name for name in names if VERSION_BRANCH_PATTERN.match(name)]

    async def list_changes_since(self, ref: str, since: datetime) -> list[str]:
        """List documentation files changed on a branch since a point in time.

        Args:
            ref: Branch to inspect.
            since: Only commits after this time are considered.

        Returns:
            Distinct markdown paths under a ``docs`` directory, in first-seen
            order, or an empty list if the lookup failed.
        """
        since_iso = since.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        commits_url = f"{GITHUB_API_BASE}/repos/{self.repo}/commits"
        modified: dict[str, None] = {}

        try:
            response = await self._get(
                commits_url,
                params={"sha": ref, "since": since_iso, "path": "packages", "per_page": "100"},
            )
            for commit in response.json():
                detail = await self._get(f"{commits_url}/{commit['sha']}")
                for changed in detail.json().get("files") or []:
                    filename = changed["filename"]
                    if "/docs/" in filename and filename.endswith(MARKDOWN_EXTENSION):
                        modified[filename] = None
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Error checking modified files: %s", exc)
            return []

        return list(modified)
