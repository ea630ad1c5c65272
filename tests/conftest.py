"""Shared fixtures: a workspace with a real state file and fake git capabilities."""

import json

import pytest

from gitflow_enforcer.git.runner import GitCommandFailed
from gitflow_enforcer.lib.config import GitflowConfig
from gitflow_enforcer.workflow.context import WorkflowContext
from gitflow_enforcer.workflow.state_store import StateStore


class FakeProbe:
    """In-memory stand-in for RepoProbe."""

    def __init__(self, current="feature/proj", remote_branches=(), local_branches=(), dirty=False, behind=False):
        self.current = current
        self.remote_branches = set(remote_branches)
        self.local_branches = set(local_branches)
        self.dirty = dirty
        self.behind = behind
        self.conflicts = False

    def current_branch(self):
        return self.current

    def local_branch_exists(self, name):
        return name in self.local_branches

    def remote_has_branch(self, name):
        return name in self.remote_branches

    def is_dirty(self):
        return self.dirty

    def has_conflict_markers(self):
        return self.conflicts

    def conflicted_files(self):
        return ["a.txt"] if self.conflicts else []

    def is_behind_remote(self, name):
        return self.behind



class FakeExecutor:
    """Records mutating calls; fails those named in `fail`.

    Keys of `fail` are a command name ("push") or a command plus its first
    argument ("checkout:feature/proj"). Values are the stderr to report.
    """

    def __init__(self, probe, fail=None, conflict_on_merge=False):
        self.probe = probe
        self.fail = dict(fail or {})
        self.conflict_on_merge = conflict_on_merge
        self.calls = []

    def _record(self, name, *args):
        self.calls.append((name, *args))
        for key in (name, f"{name}:{args[0]}" if args else None):
            if key in self.fail:
                raise GitCommandFailed(f"git {name} {' '.join(map(str, args))}".strip(), 1, self.fail[key])

    def names(self):
        return [call[0] for call in self.calls]

    def fetch(self):
        self._record("fetch")

    def merge(self, ref, message):
        if self.conflict_on_merge:
            self.calls.append(("merge", ref, message))
            self.probe.conflicts = True
            raise GitCommandFailed(f"git merge --no-ff -m {message} {ref}", 1, "CONFLICT (content): Merge conflict in a.txt")
        self._record("merge", ref, message)

    def merge_abort(self):
        self._record("merge_abort")
        self.probe.conflicts = False

    def push(self, branch, env=None):
        self._record("push", branch, env)

    def push_set_upstream(self, branch):
        self._record("push_set_upstream", branch)

    def pull(self, branch):
        self._record("pull", branch)

    def checkout(self, branch):
        self._record("checkout", branch)
        self.probe.current = branch

    def create_branch(self, branch):
        self._record("create_branch", branch)
        self.probe.current = branch
        self.probe.local_branches.add(branch)

    def reset_hard(self, ref):
        self._record("reset_hard", ref)


def make_state(tasks=None, feature_branch="feature/proj", phase="EXECUTION"):
    return {
        "checkpoint": {"phase": phase, "last_action": "Planned", "timestamp": "2026-01-01T00:00:00.000Z"},
        "feature_branch": feature_branch,
        "tasks": tasks or {},
    }


def task(title, status="todo", depends_on=(), branch=None, agent_reviewed=False, **extra):
    data = {
        "title": title,
        "status": status,
        "depends_on": list(depends_on),
        "branch": branch,
        "agent_reviewed": agent_reviewed,
    }
    data.update(extra)
    return data


@pytest.fixture
def workspace(tmp_path):
    """Workspace root with an empty marker directory."""
    (tmp_path / ".vibe-kanban").mkdir()
    return tmp_path


@pytest.fixture
def make_ctx(workspace):
    """Build a WorkflowContext over a real state file and fake git.

    Pass `state=None` to leave the state file missing.
    """

    def _make(state=..., probe=None, executor=None, **executor_kwargs):
        config = GitflowConfig(root=workspace)
        if state is ...:
            state = make_state()
        if state is not None:
            config.state_path.write_text(json.dumps(state, indent=2) + "\n")
        probe = probe or FakeProbe()
        executor = executor or FakeExecutor(probe, **executor_kwargs)
        return WorkflowContext(config=config, store=StateStore(config.state_path), probe=probe, executor=executor)

    return _make


def read_state(ctx):
    return json.loads(ctx.config.state_path.read_text())
