"""Git access for gitflow-enforcer.

Read-only queries and mutating commands are kept apart:
- RepoProbe (probe.py) answers questions about the working copy and never changes it.
- GitExecutor (executor.py) runs the small allow-list of mutating commands.

Return type conventions for the function modules:
- Functions returning bool: True when the condition holds, False otherwise.
  Remote lookups report False on failure.
- Functions returning parsed values raise GitCommandFailed when git cannot answer.
"""

from gitflow_enforcer.git.runner import (
    GitResult,
    GitCommandFailed,
    run_git,
    run_git_checked,
)
from gitflow_enforcer.git.status import (
    get_status_porcelain,
    has_uncommitted_changes,
    has_conflict_markers,
    get_conflicted_files,
)
from gitflow_enforcer.git.branch import (
    get_current_branch,
    branch_exists,
    is_behind_remote,
)
from gitflow_enforcer.git.remote import remote_branch_exists
from gitflow_enforcer.git.probe import RepoProbe
from gitflow_enforcer.git.executor import GitExecutor

__all__ = [
    # runner
    "GitResult",
    "GitCommandFailed",
    "run_git",
    "run_git_checked",
    # status
    "get_status_porcelain",
    "has_uncommitted_changes",
    "has_conflict_markers",
    "get_conflicted_files",
    # branch
    "get_current_branch",
    "branch_exists",
    "is_behind_remote",
    # remote
    "remote_branch_exists",
    # capabilities
    "RepoProbe",
    "GitExecutor",
]
