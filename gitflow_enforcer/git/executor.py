"""Mutating git commands against the workspace working copy.

Only the operations below are ever run. Each builds an argv list and hands it
to run_git, so branch names and messages reach git as single arguments and
cannot smuggle in extra commands.
"""

import logging
from pathlib import Path

from gitflow_enforcer.git.runner import GitCommandFailed, GitResult, run_git

logger = logging.getLogger(__name__)

DEFAULT_MUTATION_TIMEOUT = 120

ALLOWED_COMMANDS = frozenset({"fetch", "merge", "push", "pull", "checkout", "reset"})


class GitExecutor:
    """Runs the allow-listed mutating git commands for one working copy.

    Every method raises GitCommandFailed on non-zero exit or timeout.
    """

    def __init__(self, repo: Path, remote_name: str = "origin", timeout: int = DEFAULT_MUTATION_TIMEOUT):
        self.repo = repo
        self.remote_name = remote_name
        self.timeout = timeout

    def fetch(self) -> None:
        self._run(["fetch", self.remote_name])

    def merge(self, ref: str, message: str) -> None:
        """Merge `ref` into the checked-out branch, always creating a merge commit."""
        self._run(["merge", "--no-ff", "-m", message, ref])

    def merge_abort(self) -> None:
        self._run(["merge", "--abort"])

    def push(self, branch: str, env: dict[str, str] | None = None) -> None:
        self._run(["push", self.remote_name, branch], env=env)

    def push_set_upstream(self, branch: str) -> None:
        self._run(["push", "-u", self.remote_name, branch])

    def pull(self, branch: str) -> None:
        self._run(["pull", "--ff-only", self.remote_name, branch])

    def checkout(self, branch: str) -> None:
        self._run(["checkout", branch])

    def create_branch(self, branch: str) -> None:
        self._run(["checkout", "-b", branch])

    def reset_hard(self, ref: str) -> None:
        # Destructive; only used to undo a merge this process just made.
        self._run(["reset", "--hard", ref])

    def _run(self, args: list[str], env: dict[str, str] | None = None) -> GitResult:
        if args[0] not in ALLOWED_COMMANDS:
            raise ValueError(f"git {args[0]} is not an allowed mutating command")
        logger.info(f"[GIT] git {' '.join(args)}")
        result = run_git(args, self.repo, timeout=self.timeout, env=env)
        if not result.success:
            raise GitCommandFailed.from_result(result)
        return result
