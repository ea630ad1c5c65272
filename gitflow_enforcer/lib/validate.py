"""
Validation at the edges of gitflow-enforcer.

- JSON Schema validation of the workflow state document, on load and before
  every write.
- Identifier checks for task ids and project names, run before any I/O.
"""

import json
from pathlib import Path

import jsonschema

from .constants import (
    BRANCH_NAME_PATTERN,
    MAX_PROJECT_NAME_LEN,
    MAX_TASK_ID_LEN,
    TASK_ID_PATTERN,
)


class ValidationError(Exception):
    """Schema validation failed."""

    def __init__(self, schema_name: str, message: str, path: str | None = None):
        self.schema_name = schema_name
        self.path = path
        super().__init__(f"[{schema_name}] {message}" + (f" at {path}" if path else ""))


class InvalidInput(ValueError):
    """A caller-supplied identifier is malformed."""


# Cache loaded schemas
_schema_cache: dict[str, dict] = {}


def _get_schemas_dir() -> Path:
    """Get path to the bundled schemas directory."""
    return Path(__file__).parent.parent / "schemas"


def _load_schema(schema_name: str) -> dict:
    """Load schema by name, with caching."""
    if schema_name not in _schema_cache:
        schema_path = _get_schemas_dir() / f"{schema_name}.schema.json"
        if not schema_path.exists():
            raise ValidationError(schema_name, f"Schema file not found: {schema_path}")
        _schema_cache[schema_name] = json.loads(schema_path.read_text())
    return _schema_cache[schema_name]


def validate(data: dict, schema_name: str) -> None:
    """
    Validate data against named schema.

    Raises:
        ValidationError: If validation fails
    """
    schema = _load_schema(schema_name)
    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as e:
        path = ".".join(str(p) for p in e.absolute_path) if e.absolute_path else "(root)"
        raise ValidationError(schema_name, e.message, path) from None


def validate_before_write(data: dict, schema_name: str, filepath: Path) -> None:
    """
    Validate data before writing to file. Ensures we never write invalid data.

    Raises:
        ValidationError: If data doesn't match schema
    """
    try:
        validate(data, schema_name)
    except ValidationError as e:
        raise ValidationError(
            schema_name,
            f"Refusing to write invalid data to {filepath}: {e}"
        ) from None


def validate_task_id(task_id) -> str:
    """Check a task id: non-empty, at most 100 chars, letters/digits/hyphens."""
    if not isinstance(task_id, str):
        raise InvalidInput(f"task_id must be a string, got {type(task_id).__name__}")
    if not task_id:
        raise InvalidInput("task_id cannot be empty")
    if len(task_id) > MAX_TASK_ID_LEN:
        raise InvalidInput(f"task_id too long (max {MAX_TASK_ID_LEN} characters)")
    if not TASK_ID_PATTERN.fullmatch(task_id):
        raise InvalidInput("task_id contains invalid characters (allowed: letters, numbers, hyphens)")
    return task_id


def validate_project_name(project_name) -> str:
    """Check a project name used to derive a branch name."""
    if not isinstance(project_name, str):
        raise InvalidInput(f"project_name must be a string, got {type(project_name).__name__}")
    if not project_name:
        raise InvalidInput("project_name cannot be empty")
    if len(project_name) > MAX_PROJECT_NAME_LEN:
        raise InvalidInput(f"project_name too long (max {MAX_PROJECT_NAME_LEN} characters)")
    if ".." in project_name or project_name.startswith("/"):
        raise InvalidInput("project_name cannot contain path traversal")
    if not BRANCH_NAME_PATTERN.fullmatch(project_name):
        raise InvalidInput(
            "project_name contains invalid characters. "
            "Allowed: letters, numbers, dots, underscores, hyphens"
        )
    return project_name
