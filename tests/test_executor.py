"""Tests for gitflow_enforcer.git.executor and probe modules."""

from pathlib import Path
from unittest.mock import patch

import pytest

from gitflow_enforcer.git.executor import GitExecutor
from gitflow_enforcer.git.probe import RepoProbe
from gitflow_enforcer.git.runner import GitCommandFailed, GitResult


def ok(args=None):
    return GitResult(args=args or [], returncode=0, stdout="", stderr="")


@pytest.fixture
def executor():
    return GitExecutor(Path("/repo"), remote_name="origin", timeout=60)


class TestGitExecutor:
    """Each mutating command builds a fixed argv."""

    @pytest.mark.parametrize("call,argv", [
        (lambda ex: ex.fetch(), ["fetch", "origin"]),
        (lambda ex: ex.merge("origin/t1", "Merge: Task one"), ["merge", "--no-ff", "-m", "Merge: Task one", "origin/t1"]),
        (lambda ex: ex.merge_abort(), ["merge", "--abort"]),
        (lambda ex: ex.push("feature/proj"), ["push", "origin", "feature/proj"]),
        (lambda ex: ex.push_set_upstream("feature/proj"), ["push", "-u", "origin", "feature/proj"]),
        (lambda ex: ex.pull("main"), ["pull", "--ff-only", "origin", "main"]),
        (lambda ex: ex.checkout("main"), ["checkout", "main"]),
        (lambda ex: ex.create_branch("feature/proj"), ["checkout", "-b", "feature/proj"]),
        (lambda ex: ex.reset_hard("HEAD~1"), ["reset", "--hard", "HEAD~1"]),
    ])
    @patch("gitflow_enforcer.git.executor.run_git")
    def test_argv(self, mock_run, executor, call, argv):
        mock_run.return_value = ok(argv)
        call(executor)
        mock_run.assert_called_once_with(argv, Path("/repo"), timeout=60, env=None)

    @patch("gitflow_enforcer.git.executor.run_git")
    def test_push_env(self, mock_run, executor):
        mock_run.return_value = ok()
        executor.push("main", env={"GITFLOW_MCP_PUSH": "1"})
        assert mock_run.call_args.kwargs["env"] == {"GITFLOW_MCP_PUSH": "1"}

    @patch("gitflow_enforcer.git.executor.run_git")
    def test_failure_raises(self, mock_run, executor):
        mock_run.return_value = GitResult(
            args=["push", "origin", "main"], returncode=1, stdout="", stderr="rejected"
        )
        with pytest.raises(GitCommandFailed) as exc_info:
            executor.push("main")
        assert exc_info.value.command == "git push origin main"
        assert exc_info.value.stderr == "rejected"

    @patch("gitflow_enforcer.git.executor.run_git")
    def test_timeout_raises(self, mock_run, executor):
        mock_run.return_value = GitResult(
            args=["fetch", "origin"], returncode=-1, stdout="", stderr="Command timed out after 60s", timed_out=True
        )
        with pytest.raises(GitCommandFailed) as exc_info:
            executor.fetch()
        assert exc_info.value.timed_out

    @patch("gitflow_enforcer.git.executor.run_git")
    def test_allow_list(self, mock_run, executor):
        with pytest.raises(ValueError, match="not an allowed"):
            executor._run(["branch", "-D", "main"])
        mock_run.assert_not_called()

    @patch("gitflow_enforcer.git.executor.run_git")
    def test_logs_commands(self, mock_run, executor, caplog):
        mock_run.return_value = ok()
        with caplog.at_level("INFO"):
            executor.checkout("main")
        assert "[GIT] git checkout main" in caplog.text


class TestRepoProbe:
    """RepoProbe delegates with its configured remote and timeouts."""

    @patch("gitflow_enforcer.git.probe.remote.remote_branch_exists", return_value=True)
    def test_remote_lookup(self, mock_exists):
        probe = RepoProbe(Path("/repo"), remote_name="upstream", remote_timeout=90)
        assert probe.remote_has_branch("t1") is True
        mock_exists.assert_called_once_with(Path("/repo"), "t1", remote="upstream", timeout=90)

    @patch("gitflow_enforcer.git.probe.branch.is_behind_remote", return_value=False)
    def test_behind_lookup(self, mock_behind):
        probe = RepoProbe(Path("/repo"), remote_name="upstream", timeout=5)
        probe.is_behind_remote("feature/proj")
        mock_behind.assert_called_once_with(Path("/repo"), "feature/proj", remote="upstream", timeout=5)

    @patch("gitflow_enforcer.git.status.run_git")
    def test_conflicted_files(self, mock_run):
        mock_run.return_value = GitResult(args=[], returncode=0, stdout="UU a.txt\n M b.txt\n", stderr="")
        assert RepoProbe(Path("/repo")).conflicted_files() == ["a.txt"]
