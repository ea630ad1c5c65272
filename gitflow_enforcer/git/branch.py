"""Git branch operations."""

import logging
from pathlib import Path

from gitflow_enforcer.git.runner import run_git, run_git_checked, DEFAULT_TIMEOUT, GitCommandFailed

logger = logging.getLogger(__name__)


def get_current_branch(worktree: Path, timeout: int = DEFAULT_TIMEOUT) -> str | None:
    """Get the current branch name, or None if detached HEAD.

    Raises:
        GitCommandFailed: if git cannot answer (not a repository, timeout)
    """
    return run_git_checked(["branch", "--show-current"], worktree, timeout=timeout) or None


def branch_exists(repo: Path, branch: str, timeout: int = DEFAULT_TIMEOUT) -> bool:
    """Check if a ref resolves locally."""
    result = run_git(["rev-parse", "--verify", "--quiet", branch], repo, timeout=timeout)
    return result.success


def is_behind_remote(
    repo: Path,
    branch: str,
    remote: str = "origin",
    timeout: int = DEFAULT_TIMEOUT,
) -> bool:
    """
    Check if local branch is strictly behind its remote-tracking ref.

    Does not fetch; callers fetch first. True only when the tips differ and the
    local tip is the merge base (the remote can fast-forward over it). Divergence
    and lookup failures report False.
    """
    remote_ref = f"{remote}/{branch}"
    try:
        local = run_git_checked(["rev-parse", branch], repo, timeout=timeout)
        upstream = run_git_checked(["rev-parse", remote_ref], repo, timeout=timeout)
        if local == upstream:
            return False
        base = run_git_checked(["merge-base", branch, remote_ref], repo, timeout=timeout)
    except GitCommandFailed as e:
        logger.warning(f"[GIT] behind-remote check for {branch} failed, assuming up to date: {e.stderr.strip()}")
        return False
    return base == local
