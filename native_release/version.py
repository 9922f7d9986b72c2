"""Revision metadata from git.

This module derives the RevisionInfo used in every artifact name of a run:
- Commit count of HEAD (monotonically increasing)
- Short HEAD hash

The query runs once per orchestration run; callers pass the resulting
RevisionInfo explicitly to packaging.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from native_release.types import RevisionInfo

logger = logging.getLogger(__name__)

COMMIT_COUNT_ARGS = ["rev-list", "HEAD", "--count"]
SHORT_HASH_ARGS = ["rev-parse", "--verify", "--short", "HEAD"]


class VersionUnavailableError(Exception):
    """Raised when revision metadata cannot be derived."""

    def __init__(self, message: str, error_code: str = "VERSION_UNAVAILABLE") -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code


def _run_git(
    args: list[str],
    repo_dir: Path,
    git: str,
    timeout: int | None,
) -> str:
    cmd = [git, *args]
    logger.debug("Running %s in %s", " ".join(cmd), repo_dir)
    try:
        result = subprocess.run(
            cmd,
            cwd=repo_dir,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=True,
        )
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or "").strip()
        raise VersionUnavailableError(
            f"git {' '.join(args)} failed (exit {e.returncode}): {stderr}"
        ) from e
    except subprocess.TimeoutExpired as e:
        raise VersionUnavailableError(
            f"git {' '.join(args)} timed out after {timeout}s"
        ) from e
    except OSError as e:
        raise VersionUnavailableError(f"Failed to run git: {e}") from e
    return result.stdout.strip()


def derive_revision_info(
    repo_dir: Path,
    git: str = "git",
    timeout: int | None = None,
) -> RevisionInfo:
    """Query git for the commit count and short hash of HEAD.

    Args:
        repo_dir: Directory inside the git working tree.
        git: git executable.
        timeout: Timeout per git call in seconds (None = no timeout).

    Returns:
        RevisionInfo for HEAD.

    Raises:
        VersionUnavailableError: If either query fails or returns garbage.
    """
    raw_count = _run_git(COMMIT_COUNT_ARGS, repo_dir, git, timeout)
    try:
        commit_count = int(raw_count)
    except ValueError as e:
        raise VersionUnavailableError(
            f"Unexpected commit count from git: {raw_count!r}"
        ) from e
    if commit_count < 0:
        raise VersionUnavailableError(f"Negative commit count from git: {commit_count}")

    short_hash = _run_git(SHORT_HASH_ARGS, repo_dir, git, timeout)
    if not short_hash:
        raise VersionUnavailableError("git returned an empty short hash")

    revision = RevisionInfo(commit_count=commit_count, short_hash=short_hash)
    logger.info("Revision %s (%d commits)", revision.short_hash, revision.commit_count)
    return revision


__all__ = [
    "COMMIT_COUNT_ARGS",
    "SHORT_HASH_ARGS",
    "VersionUnavailableError",
    "derive_revision_info",
]
