"""Git remote operations."""

import logging
from pathlib import Path

from gitflow_enforcer.git.runner import run_git

logger = logging.getLogger(__name__)

REMOTE_TIMEOUT = 120


def remote_branch_exists(repo: Path, branch: str, remote: str = "origin", timeout: int = REMOTE_TIMEOUT) -> bool:
    """Check whether `branch` exists on `remote` (network call).

    Any failure is reported as "not present"; the caller's validation then
    reports a missing branch instead of crashing.
    """
    result = run_git(["ls-remote", "--heads", remote, f"refs/heads/{branch}"], repo, timeout=timeout)
    if not result.success:
        logger.warning(f"[GIT] ls-remote {remote} {branch} failed: {result.stderr.strip()}")
        return False
    return bool(result.stdout.strip())
