"""Structured outcome returned by every public operation."""

from dataclasses import dataclass, field

# Error kinds
INVALID_INPUT = "invalid_input"
FETCH_FAILED = "fetch_failed"
STATE_ERROR = "state_error"
VALIDATION_FAILED = "validation_failed"
CONFLICT = "conflict"
MERGE_FAILED = "merge_failed"
PUSH_FAILED = "push_failed"
ROLLBACK_FAILED = "rollback_failed"
NOT_FOUND = "not_found"
FORBIDDEN_TRANSITION = "forbidden_transition"
INVALID_TRANSITION = "invalid_transition"
WRONG_BRANCH = "wrong_branch"
ALREADY_EXISTS_LOCAL = "already_exists_local"
ALREADY_EXISTS_REMOTE = "already_exists_remote"
GIT_ERROR = "git_error"


@dataclass
class OperationResult:
    """Success or a typed failure, plus operation-specific detail fields."""
    success: bool
    message: str
    error: str | None = None
    details: dict = field(default_factory=dict)

    @classmethod
    def ok(cls, message: str, **details) -> "OperationResult":
        return cls(success=True, message=message, details=details)

    @classmethod
    def fail(cls, error: str, message: str, **details) -> "OperationResult":
        return cls(success=False, message=message, error=error, details=details)

    @property
    def needs_manual_recovery(self) -> bool:
        return self.error == ROLLBACK_FAILED

    def to_dict(self) -> dict:
        data = {"success": self.success, "message": self.message}
        if self.error:
            data["error"] = self.error
        data.update(self.details)
        return data
