"""Shared constants for gitflow-enforcer."""

import re

# Directory that marks the workspace root and holds the workflow state
MARKER_DIR = ".vibe-kanban"
CONFIG_FILENAME = "gitflow.env"

# Task ID validation (UUIDs or slug-like ids)
TASK_ID_PATTERN = re.compile(r'^[A-Za-z0-9-]+$')
MAX_TASK_ID_LEN = 100

# Project / branch name validation
BRANCH_NAME_PATTERN = re.compile(r'^[A-Za-z0-9._-]+$')
MAX_PROJECT_NAME_LEN = 50

# CLI exit codes
EXIT_SUCCESS = 0
EXIT_FAILED = 1
EXIT_INVALID = 2
EXIT_MANUAL_RECOVERY = 3
