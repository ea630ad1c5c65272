"""Everything one operation needs: config, state store and git capabilities."""

from dataclasses import dataclass
from pathlib import Path

from gitflow_enforcer.git.executor import GitExecutor
from gitflow_enforcer.git.probe import RepoProbe
from gitflow_enforcer.lib.config import GitflowConfig, find_workspace_root, load_config
from gitflow_enforcer.workflow.state_store import StateStore


@dataclass
class WorkflowContext:
    """Collaborators for a single call. Tests build one with fakes."""
    config: GitflowConfig
    store: StateStore
    probe: RepoProbe
    executor: GitExecutor

    @classmethod
    def create(cls, start: Path | None = None) -> "WorkflowContext":
        """Discover the workspace from `start` (default cwd) and wire real collaborators.

        Raises:
            ConfigError: if gitflow.env is invalid
        """
        root = find_workspace_root(start)
        config = load_config(root)
        return cls(
            config=config,
            store=StateStore(config.state_path),
            probe=RepoProbe(
                root,
                remote_name=config.remote_name,
                timeout=config.probe_timeout,
                remote_timeout=config.git_timeout,
            ),
            executor=GitExecutor(root, remote_name=config.remote_name, timeout=config.git_timeout),
        )
