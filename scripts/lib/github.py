"""GitHub release and tag reference utilities.

Thin wrapper over `gh api` exposing the three calls the action needs:
list releases, delete a release, delete a git reference.
"""
from __future__ import annotations

import json
import os
import random
import re
import subprocess
import sys
import time
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import urlparse

from lib.inputs import QualifiedRepo

GH_TIMEOUT_SECONDS = 60
DEFAULT_GH_HOST = "github.com"
RELEASES_PER_PAGE = 100

_GH_STDERR_RE = re.compile(r"^gh: (?P<message>.*?) \(HTTP (?P<status>\d{3})\)\s*$", re.MULTILINE)
_HTTP_STATUS_RE = re.compile(r"\bhttp (\d{3})\b", re.IGNORECASE)


class GitHubApiError(RuntimeError):
    """A gh api call failed."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class GitHubPermissionError(GitHubApiError):
    """Token lacks contents: write permission."""


class TransientGitHubError(GitHubApiError):
    """GitHub API returned a transient error (5xx)."""


@dataclass(frozen=True)
class Release:
    id: int
    tag_name: str
    draft: bool


class ReleaseApi(Protocol):
    def list_releases(self, repo: QualifiedRepo) -> list[Release]:
        ...

    def delete_release(self, repo: QualifiedRepo, release_id: int) -> None:
        ...

    def delete_ref(self, repo: QualifiedRepo, ref: str) -> None:
        ...


def _is_transient_error(stderr: str) -> bool:
    """Check if error is a transient GitHub API error (5xx)."""
    transient_codes = ("502", "503", "504")
    lower_stderr = stderr.lower()
    # Handle both gh CLI format "(http 503)" and raw "HTTP 503" formats
    return any(
        f"(http {code})" in lower_stderr or f"http {code}" in lower_stderr
        for code in transient_codes
    )


def _error_from_result(result: subprocess.CompletedProcess[str]) -> GitHubApiError:
    """Build an error carrying the API message and HTTP status.

    gh prints the JSON error body on stdout and a `gh: <message> (HTTP nnn)`
    line on stderr.
    """
    stdout = result.stdout or ""
    stderr = result.stderr or ""

    message: str | None = None
    status: int | None = None

    try:
        body = json.loads(stdout) if stdout.strip() else None
    except json.JSONDecodeError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("message"), str):
        message = body["message"]

    match = _GH_STDERR_RE.search(stderr)
    if match:
        status = int(match.group("status"))
        if message is None:
            message = match.group("message")
    else:
        status_match = _HTTP_STATUS_RE.search(stderr)
        if status_match:
            status = int(status_match.group(1))

    if message is None:
        message = stderr.strip() or f"gh exited with status {result.returncode}"
    return GitHubApiError(message, status=status)


def _gh_env(token: str | None) -> dict[str, str] | None:
    """Environment for the gh child process, or None to inherit ours unchanged.

    On GitHub Enterprise runners GITHUB_SERVER_URL points at the instance;
    gh only talks to it when GH_HOST is set.
    """
    extra: dict[str, str] = {}
    if token:
        extra["GH_TOKEN"] = token
    host = urlparse(os.environ.get("GITHUB_SERVER_URL", "")).hostname
    if host and host != DEFAULT_GH_HOST and not os.environ.get("GH_HOST"):
        extra["GH_HOST"] = host
    if not extra:
        return None
    return {**os.environ, **extra}


def _run_gh(
    args: list[str],
    *,
    token: str | None = None,
    max_retries: int = 3,
    base_delay: float = 1.0,
) -> subprocess.CompletedProcess[str]:
    """Run a gh CLI command with retry logic for transient errors.

    Args:
        args: Arguments to pass to gh CLI
        token: Token exported to gh as GH_TOKEN; the ambient gh auth is used when None
        max_retries: Maximum number of attempts for transient errors
        base_delay: Base delay in seconds between retries (uses exponential backoff)

    Returns:
        CompletedProcess result from the gh command

    Raises:
        GitHubPermissionError: Token lacks contents: write permission
        TransientGitHubError: GitHub API returned 5xx after all retries
        GitHubApiError: Other gh CLI failures
    """
    env = _gh_env(token)

    for attempt in range(max_retries):
        try:
            result = subprocess.run(
                ["gh", *args],
                capture_output=True,
                text=True,
                check=False,
                env=env,
                timeout=GH_TIMEOUT_SECONDS,
            )
        except subprocess.TimeoutExpired as exc:
            raise GitHubApiError(f"gh timed out after {GH_TIMEOUT_SECONDS}s: gh {' '.join(args)}") from exc
        except OSError as exc:
            raise GitHubApiError(f"could not run gh: {exc}") from exc

        if result.returncode == 0:
            return result

        stderr = result.stderr or ""
        api_error = _error_from_result(result)

        # Don't retry permission errors
        if api_error.status == 403 or "resource not accessible" in stderr.lower():
            raise GitHubPermissionError(
                f"{api_error.message}\n"
                "The token cannot modify this repository. Add this to your workflow:\n"
                "permissions:\n"
                "  contents: write",
                status=api_error.status,
            )

        if _is_transient_error(stderr):
            if attempt < max_retries - 1:
                # Exponential backoff with jitter: 1s, 2s, 4s + random jitter
                delay = base_delay * (2 ** attempt) + random.uniform(0, 0.5)
                print(
                    f"::warning::GitHub API error (attempt {attempt + 1}/{max_retries}), "
                    f"retrying in {delay:.1f}s...",
                    file=sys.stderr,
                )
                time.sleep(delay)
                continue
            raise TransientGitHubError(
                f"GitHub API returned transient error after {max_retries} attempts: "
                f"{api_error.message}",
                status=api_error.status,
            )

        raise api_error

    # The loop must either return or raise. This code should be unreachable.
    raise RuntimeError("_run_gh retry loop exited unexpectedly")


def parse_releases(payload: object) -> list[Release]:
    """Turn a releases listing payload into Release records, keeping API order."""
    if not isinstance(payload, list):
        raise GitHubApiError(f"unexpected releases payload type: {type(payload).__name__}")

    releases: list[Release] = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        release_id = item.get("id")
        tag_name = item.get("tag_name")
        if isinstance(release_id, bool) or not isinstance(release_id, int):
            continue
        if not isinstance(tag_name, str):
            continue
        releases.append(Release(id=release_id, tag_name=tag_name, draft=bool(item.get("draft"))))
    return releases


class GhReleaseApi:
    """ReleaseApi backed by the gh CLI.

    Only the listing call retries. A DELETE that succeeded server-side but
    failed in transit would report a spurious error when repeated.
    """

    def __init__(self, token: str | None = None) -> None:
        self._token = token

    def list_releases(self, repo: QualifiedRepo) -> list[Release]:
        result = _run_gh(
            ["api", f"repos/{repo.slug}/releases?per_page={RELEASES_PER_PAGE}"],
            token=self._token,
        )
        try:
            payload = json.loads(result.stdout or "[]")
        except json.JSONDecodeError as exc:
            raise GitHubApiError(f"invalid JSON from releases listing: {exc}") from exc
        return parse_releases(payload)

    def delete_release(self, repo: QualifiedRepo, release_id: int) -> None:
        _run_gh(
            ["api", "-X", "DELETE", f"repos/{repo.slug}/releases/{release_id}"],
            token=self._token,
            max_retries=1,
        )

    def delete_ref(self, repo: QualifiedRepo, ref: str) -> None:
        # ref is "refs/tags/<tag>", so the path is git/refs/tags/<tag>.
        _run_gh(
            ["api", "-X", "DELETE", f"repos/{repo.slug}/git/{ref}"],
            token=self._token,
            max_retries=1,
        )
