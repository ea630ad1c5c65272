"""Git command runner with timeout handling."""

import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


@dataclass
class GitResult:
    """Result of a git command."""
    args: list[str]
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def success(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    @property
    def command(self) -> str:
        return "git " + " ".join(self.args)


class GitCommandFailed(Exception):
    """A git command exited non-zero or timed out."""

    def __init__(self, command: str, exit_code: int, stderr: str, timed_out: bool = False):
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
        self.timed_out = timed_out
        super().__init__(
            f"Git command failed: {command}\n"
            f"Exit code: {exit_code}\n"
            f"Error: {stderr.strip() or '(no output)'}"
        )

    @classmethod
    def from_result(cls, result: GitResult) -> "GitCommandFailed":
        return cls(result.command, result.returncode, result.stderr, result.timed_out)


def run_git(
    args: list[str],
    cwd: Path,
    timeout: int = DEFAULT_TIMEOUT,
    env: dict[str, str] | None = None,
) -> GitResult:
    """
    Run a git command with timeout handling.

    Args:
        args: Git command arguments (e.g., ["status", "--porcelain"]).
            Always a list; nothing is ever passed through a shell.
        cwd: Working directory for the command
        timeout: Timeout in seconds
        env: Extra environment variables layered over the current environment

    Returns:
        GitResult with returncode, stdout, stderr, and timed_out flag
    """
    if not isinstance(args, list):
        raise TypeError("run_git() requires args as a list")

    cmd = ["git", "-C", str(cwd)] + args
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            env={**os.environ, **env} if env else None,
        )
        return GitResult(
            args=args,
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )
    except subprocess.TimeoutExpired:
        logger.warning(f"[GIT] timed out after {timeout}s: git {' '.join(args)}")
        return GitResult(
            args=args,
            returncode=-1,
            stdout="",
            stderr=f"Command timed out after {timeout}s",
            timed_out=True,
        )


def run_git_checked(
    args: list[str],
    cwd: Path,
    timeout: int = DEFAULT_TIMEOUT,
    env: dict[str, str] | None = None,
) -> str:
    """Run a git command and return stripped stdout.

    Raises:
        GitCommandFailed: on non-zero exit or timeout
    """
    result = run_git(args, cwd, timeout=timeout, env=env)
    if not result.success:
        raise GitCommandFailed.from_result(result)
    return result.stdout.strip()
