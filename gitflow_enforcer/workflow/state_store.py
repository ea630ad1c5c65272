"""Persistence of the workflow state document.

The whole document is read, changed in memory, and written back in one
atomic replace. There is no locking: a single writer is assumed, and two
processes writing at once can lose an update. Callers serialise access.
"""

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from gitflow_enforcer.lib.validate import ValidationError, validate, validate_before_write
from gitflow_enforcer.workflow.models import WorkflowDocument

logger = logging.getLogger(__name__)

SCHEMA_NAME = "state"


class StateError(Exception):
    """The state document cannot be used."""


class StateMissing(StateError):
    """The state file does not exist."""


class StateCorrupt(StateError):
    """The state file is not parseable JSON."""


class StateInvalid(StateError):
    """The state file parses but is not a usable workflow document."""


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2026-01-31T12:00:00.000Z"""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def touch_checkpoint(doc: WorkflowDocument, action: str) -> WorkflowDocument:
    """Return a copy of `doc` with the checkpoint stamped for `action`; phase is kept."""
    updated = doc.copy()
    updated.checkpoint.last_action = action
    updated.checkpoint.timestamp = utc_timestamp()
    return updated


class StateStore:
    """Loads and saves the workflow document at one path."""

    def __init__(self, path: Path):
        self.path = path

    def load(self) -> WorkflowDocument:
        """Read and validate the document.

        Raises:
            StateMissing: file does not exist
            StateCorrupt: unreadable, not UTF-8, or not a JSON object
            StateInvalid: checkpoint.phase missing, or schema mismatch
        """
        if not self.path.exists():
            raise StateMissing(f"State file not found at {self.path}")

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise StateCorrupt(f"State file is malformed JSON: {e}\nFile location: {self.path}") from None
        except UnicodeDecodeError as e:
            raise StateCorrupt(f"State file is not valid UTF-8: {e}\nFile location: {self.path}") from None
        except OSError as e:
            raise StateCorrupt(f"Could not read state file {self.path}: {e}") from None

        if not isinstance(data, dict):
            raise StateCorrupt(f"State file must hold a JSON object: {self.path}")

        checkpoint = data.get("checkpoint")
        if not isinstance(checkpoint, dict) or not checkpoint.get("phase"):
            raise StateInvalid(
                "checkpoint.phase is missing - workflow not initialized properly. "
                "Ensure the state file has a checkpoint with phase before running gitflow operations."
            )

        try:
            validate(data, SCHEMA_NAME)
        except ValidationError as e:
            raise StateInvalid(f"State file does not match the workflow schema: {e}") from None

        return WorkflowDocument.from_dict(data)

    def save(self, doc: WorkflowDocument) -> None:
        """Write the document atomically: temp file in the same directory, then rename."""
        data = doc.to_dict()
        try:
            validate_before_write(data, SCHEMA_NAME, self.path)
        except ValidationError as e:
            raise StateInvalid(str(e)) from None

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(json.dumps(data, indent=2) + "\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        finally:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)

        logger.info(f"[STATE] saved {self.path} ({doc.checkpoint.last_action})")
