"""Data model of the workflow state document.

The document is `{checkpoint, feature_branch, tasks}`. Task statuses are kept
as raw strings so values written by other tools survive a load/save cycle;
`parse_status` maps them onto TaskStatus where possible. Fields this package
does not know about are carried in `extra` and written back unchanged.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum


class TaskStatus(Enum):
    """All task statuses known to the workflow."""
    TODO = "todo"
    BLOCKED = "blocked"
    IN_PROGRESS = "inprogress"
    IN_REVIEW = "inreview"
    REJECTED = "rejected"
    DONE = "done"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset({TaskStatus.DONE, TaskStatus.CANCELLED})


class Phase(Enum):
    """Workflow phases recorded in the checkpoint."""
    PLANNING = "PLANNING"
    EXECUTION = "EXECUTION"
    REVIEWING = "REVIEWING"
    DOCUMENTING = "DOCUMENTING"
    COMPLETE = "COMPLETE"


def parse_status(status_str: str | None) -> TaskStatus | None:
    """Parse a status string into TaskStatus.

    Returns None if status is unknown.
    """
    for status in TaskStatus:
        if status.value == status_str:
            return status
    return None


class TaskNotFound(KeyError):
    """No task with the given id in the document."""

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(task_id)

    def __str__(self) -> str:
        return f'Task "{self.task_id}" not found in state document'


_TASK_FIELDS = (
    "title", "status", "depends_on", "branch", "agent_reviewed",
    "rejection_feedback", "feedback_iterations",
)


@dataclass
class Task:
    """One unit of work."""
    id: str
    title: str = ""
    status: str = TaskStatus.TODO.value
    depends_on: list[str] = field(default_factory=list)
    branch: str | None = None
    agent_reviewed: bool | None = False
    rejection_feedback: str | None = None
    feedback_iterations: int | None = None
    extra: dict = field(default_factory=dict)

    @property
    def known_status(self) -> TaskStatus | None:
        return parse_status(self.status)

    @classmethod
    def from_dict(cls, task_id: str, data: dict) -> "Task":
        return cls(
            id=task_id,
            title=data.get("title") or "",
            status=data.get("status", TaskStatus.TODO.value),
            depends_on=list(data.get("depends_on") or []),
            branch=data.get("branch"),
            agent_reviewed=data.get("agent_reviewed"),
            rejection_feedback=data.get("rejection_feedback"),
            feedback_iterations=data.get("feedback_iterations"),
            extra={k: v for k, v in data.items() if k not in _TASK_FIELDS},
        )

    def to_dict(self) -> dict:
        data = dict(self.extra)
        data.update({
            "title": self.title,
            "status": self.status,
            "depends_on": list(self.depends_on),
            "branch": self.branch,
            "agent_reviewed": self.agent_reviewed,
        })
        if self.rejection_feedback is not None:
            data["rejection_feedback"] = self.rejection_feedback
        if self.feedback_iterations is not None:
            data["feedback_iterations"] = self.feedback_iterations
        return data

    def summary(self) -> dict:
        return {
            "title": self.title,
            "status": self.status,
            "agent_reviewed": self.agent_reviewed,
            "depends_on": list(self.depends_on),
            "branch": self.branch,
        }


@dataclass
class Checkpoint:
    """Workflow phase plus the audit trail of the last mutation."""
    phase: str
    last_action: str | None = None
    timestamp: str | None = None
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "Checkpoint":
        return cls(
            phase=data["phase"],
            last_action=data.get("last_action"),
            timestamp=data.get("timestamp"),
            extra={k: v for k, v in data.items() if k not in ("phase", "last_action", "timestamp")},
        )

    def to_dict(self) -> dict:
        data = dict(self.extra)
        data["phase"] = self.phase
        if self.last_action is not None:
            data["last_action"] = self.last_action
        if self.timestamp is not None:
            data["timestamp"] = self.timestamp
        return data


@dataclass
class WorkflowDocument:
    """Root aggregate: checkpoint, feature branch and the task graph."""
    checkpoint: Checkpoint
    feature_branch: str | None = None
    tasks: dict[str, Task] = field(default_factory=dict)
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "WorkflowDocument":
        tasks = {
            task_id: Task.from_dict(task_id, task_data)
            for task_id, task_data in (data.get("tasks") or {}).items()
        }
        return cls(
            checkpoint=Checkpoint.from_dict(data["checkpoint"]),
            feature_branch=data.get("feature_branch"),
            tasks=tasks,
            extra={k: v for k, v in data.items() if k not in ("checkpoint", "feature_branch", "tasks")},
        )

    def to_dict(self) -> dict:
        data = dict(self.extra)
        data["checkpoint"] = self.checkpoint.to_dict()
        data["feature_branch"] = self.feature_branch
        data["tasks"] = {task_id: task.to_dict() for task_id, task in self.tasks.items()}
        return data

    def get_task(self, task_id: str) -> Task:
        try:
            return self.tasks[task_id]
        except KeyError:
            raise TaskNotFound(task_id) from None

    def copy(self) -> "WorkflowDocument":
        return copy.deepcopy(self)
