"""Read-only repository queries bound to one working copy."""

from pathlib import Path

from gitflow_enforcer.git import branch, remote, status
from gitflow_enforcer.git.runner import DEFAULT_TIMEOUT


class RepoProbe:
    """Read-only view of a working copy.

    Never changes the index, HEAD, or refs. Tests substitute a fake with the
    same methods.
    """

    def __init__(
        self,
        repo: Path,
        remote_name: str = "origin",
        timeout: int = DEFAULT_TIMEOUT,
        remote_timeout: int = remote.REMOTE_TIMEOUT,
    ):
        self.repo = repo
        self.remote_name = remote_name
        self.timeout = timeout
        self.remote_timeout = remote_timeout

    def current_branch(self) -> str | None:
        return branch.get_current_branch(self.repo, timeout=self.timeout)

    def local_branch_exists(self, name: str) -> bool:
        return branch.branch_exists(self.repo, name, timeout=self.timeout)

    def remote_has_branch(self, name: str) -> bool:
        return remote.remote_branch_exists(
            self.repo, name, remote=self.remote_name, timeout=self.remote_timeout
        )

    def is_dirty(self) -> bool:
        return status.has_uncommitted_changes(self.repo, timeout=self.timeout)

    def has_conflict_markers(self) -> bool:
        return status.has_conflict_markers(self.repo, timeout=self.timeout)

    def is_behind_remote(self, name: str) -> bool:
        return branch.is_behind_remote(self.repo, name, remote=self.remote_name, timeout=self.timeout)

    def conflicted_files(self) -> list[str]:
        return status.get_conflicted_files(self.repo, timeout=self.timeout)
