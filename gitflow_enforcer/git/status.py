"""Git status operations."""

import re
from pathlib import Path

from gitflow_enforcer.git.runner import run_git, DEFAULT_TIMEOUT, GitCommandFailed

# Unmerged entries in `git status --porcelain`: UU, AU, UA, DU, UD, AA, DD
CONFLICT_PATTERN = re.compile(r"^(U.|.U|AA|DD)", re.MULTILINE)


def get_status_porcelain(worktree: Path, timeout: int = DEFAULT_TIMEOUT) -> str:
    """Get git status in porcelain format.

    Leading spaces are significant (" M file"), so only trailing newlines are trimmed.

    Raises:
        GitCommandFailed: if git cannot answer
    """
    result = run_git(["status", "--porcelain"], worktree, timeout=timeout)
    if not result.success:
        raise GitCommandFailed.from_result(result)
    return result.stdout.rstrip("\n")


def has_uncommitted_changes(worktree: Path, timeout: int = DEFAULT_TIMEOUT) -> bool:
    """Check if worktree has any uncommitted changes (staged, unstaged, or untracked)."""
    return bool(get_status_porcelain(worktree, timeout=timeout).strip())


def has_conflict_markers(worktree: Path, timeout: int = DEFAULT_TIMEOUT) -> bool:
    """Check if the index has unmerged paths from an interrupted merge."""
    return bool(CONFLICT_PATTERN.search(get_status_porcelain(worktree, timeout=timeout)))


def get_conflicted_files(worktree: Path, timeout: int = DEFAULT_TIMEOUT) -> list[str]:
    """Get list of files with unresolved conflicts."""
    files = []
    for line in get_status_porcelain(worktree, timeout=timeout).splitlines():
        if CONFLICT_PATTERN.match(line):
            files.append(line[3:].strip())
    return files
