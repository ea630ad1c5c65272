"""
Configuration loading for gitflow-enforcer.

Finds the workspace root (the nearest directory holding the marker directory)
and loads optional overrides from <root>/.vibe-kanban/gitflow.env.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from . import envparse
from .constants import BRANCH_NAME_PATTERN, CONFIG_FILENAME, MARKER_DIR

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """gitflow.env is unreadable or holds an invalid value."""


@dataclass
class GitflowConfig:
    """Branch layout and git limits for one workspace."""
    root: Path
    trunk_branch: str = "main"
    remote_name: str = "origin"
    feature_prefix: str = "feature/"
    git_timeout: int = 120  # mutating commands and remote lookups
    probe_timeout: int = 30  # local read-only queries
    state_file: str = "state.json"  # relative to the marker directory
    push_marker_env: str = "GITFLOW_MCP_PUSH"

    @property
    def marker_dir(self) -> Path:
        return self.root / MARKER_DIR

    @property
    def state_path(self) -> Path:
        return self.marker_dir / self.state_file

    def feature_branch_for(self, project_name: str) -> str:
        return f"{self.feature_prefix}{project_name}"


def find_workspace_root(start: Path | None = None) -> Path:
    """Return the nearest ancestor of `start` holding the marker directory.

    Falls back to `start` itself when no ancestor has one.
    """
    start = (start or Path.cwd()).resolve()
    for candidate in (start, *start.parents):
        if (candidate / MARKER_DIR).is_dir():
            return candidate
    return start


def _int_setting(env: dict, key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got '{raw}'") from None
    if value <= 0:
        raise ConfigError(f"{key} must be positive, got {value}")
    return value


def _name_setting(env: dict, key: str, default: str) -> str:
    value = env.get(key, default)
    if not BRANCH_NAME_PATTERN.fullmatch(value) or ".." in value:
        raise ConfigError(f"{key} is not a valid branch/remote name: '{value}'")
    return value


def load_config(root: Path) -> GitflowConfig:
    """Load gitflow.env for a workspace root, defaulting every missing key."""
    config_path = root / MARKER_DIR / CONFIG_FILENAME
    if not config_path.exists():
        return GitflowConfig(root=root)

    try:
        env = envparse.load_env(config_path)
    except (OSError, ValueError) as e:
        raise ConfigError(f"{config_path}: {e}") from None

    prefix = env.get("FEATURE_PREFIX", "feature/")
    if not prefix or prefix.startswith("/") or ".." in prefix:
        raise ConfigError(f"FEATURE_PREFIX is not a valid branch prefix: '{prefix}'")

    state_file = env.get("STATE_FILE", "state.json")
    if Path(state_file).is_absolute() or ".." in Path(state_file).parts:
        raise ConfigError(f"STATE_FILE must stay inside {MARKER_DIR}: '{state_file}'")

    config = GitflowConfig(
        root=root,
        trunk_branch=_name_setting(env, "TRUNK_BRANCH", "main"),
        remote_name=_name_setting(env, "REMOTE_NAME", "origin"),
        feature_prefix=prefix,
        git_timeout=_int_setting(env, "GIT_TIMEOUT", 120),
        probe_timeout=_int_setting(env, "PROBE_TIMEOUT", 30),
        state_file=state_file,
        push_marker_env=env.get("PUSH_MARKER_ENV", "GITFLOW_MCP_PUSH"),
    )
    logger.debug(f"[CONFIG] loaded {config_path}: trunk={config.trunk_branch} remote={config.remote_name}")
    return config
