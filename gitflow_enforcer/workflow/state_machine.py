"""Task status rules: legal orchestrator transitions and the actionable view.

Thin layer over fsm.py. Provides:
- transition_task(): destination-based API mapped onto FSM triggers
- mark_merged(): the only way a task becomes "done" (used by the merge gate)
- release_dependents(): unblock tasks whose dependencies are now all done
- classify(): partition tasks into actionable buckets

Usage:
    from gitflow_enforcer.workflow.state_machine import transition_task

    transition_task(task, TaskStatus.REJECTED, reason="missing tests")
"""

import logging

from transitions import MachineError

from gitflow_enforcer.workflow.fsm import MERGE_TRIGGER, TRIGGER_FOR, TaskFSM
from gitflow_enforcer.workflow.models import TERMINAL_STATUSES, Task, TaskStatus, parse_status

logger = logging.getLogger(__name__)

ACTIONABLE_BUCKETS = (
    "ready_to_start",
    "pending_auto_review",
    "pending_human_review",
    "blocked",
    "in_progress",
    "rejected",
    "done",
    "cancelled",
)


class ForbiddenTransition(Exception):
    """Attempt to set "done" outside the merge workflow."""

    def __init__(self, task_id: str = ""):
        self.task_id = task_id
        super().__init__(
            f'Cannot transition directly to "{TaskStatus.DONE.value}". '
            "Use merge_task_to_feature instead - it validates and merges before marking done."
        )


class InvalidTransition(Exception):
    """Raised when attempting a transition outside the allowed table."""

    def __init__(self, from_status: str, to_status: TaskStatus, allowed: list[str], task_id: str = ""):
        self.from_status = from_status
        self.to_status = to_status
        self.allowed = allowed
        self.task_id = task_id
        super().__init__(
            f'Invalid transition: "{from_status}" -> "{to_status.value}"'
            + (f" (task: {task_id})" if task_id else "")
            + f'. Allowed transitions from "{from_status}": '
            + (", ".join(allowed) or "none (terminal state)")
        )


def allowed_targets(status: str) -> list[str]:
    """Statuses an orchestrator may move a task to from `status`.

    "done" is never listed. Unknown statuses may only be cancelled.
    """
    if parse_status(status) is None:
        return [TaskStatus.CANCELLED.value]
    return [dest for (source, dest) in TRIGGER_FOR if source == status and dest != TaskStatus.DONE.value]


def transition_task(task: Task, to_status: TaskStatus, reason: str | None = None) -> str:
    """Move a task to `to_status` with validation.

    Returns the previous status.

    Raises:
        ForbiddenTransition: if to_status is DONE
        InvalidTransition: if the pair is not allowed
    """
    if to_status == TaskStatus.DONE:
        raise ForbiddenTransition(task.id)

    from_status = task.status
    allowed = allowed_targets(from_status)
    if to_status.value not in allowed:
        raise InvalidTransition(from_status, to_status, allowed, task.id)

    reason_str = f" ({reason})" if reason else ""

    if parse_status(from_status) is None:
        # Only cancellation gets here; the FSM cannot load an unknown status
        logger.warning(f"[STATE] {task.id}: {from_status} -> {to_status.value}{reason_str} (unknown source status)")
        task.status = to_status.value
        if reason:
            task.rejection_feedback = reason
        return from_status

    trigger = TRIGGER_FOR[(from_status, to_status.value)]
    fsm = TaskFSM(task)
    try:
        getattr(fsm, trigger)(reason=reason)
    except MachineError as e:
        raise InvalidTransition(from_status, to_status, allowed, task.id) from e
    return from_status


def mark_merged(task: Task) -> None:
    """Mark a task done after its branch was merged and pushed.

    Only the task -> feature merge calls this.
    """
    getattr(TaskFSM(task), MERGE_TRIGGER)()


def dependencies_done(task: Task, tasks: dict[str, Task]) -> bool:
    """True when every dependency exists and is done."""
    for dep_id in task.depends_on:
        dep = tasks.get(dep_id)
        if dep is None or dep.known_status != TaskStatus.DONE:
            return False
    return True


def release_dependents(tasks: dict[str, Task], merged_id: str) -> list[dict]:
    """Unblock blocked tasks that depend on `merged_id` and now have every dependency done.

    Returns [{"id": ..., "title": ...}] for each task moved back to todo.
    """
    released = []
    for task_id, task in tasks.items():
        if task_id == merged_id or task.known_status != TaskStatus.BLOCKED:
            continue
        if merged_id not in task.depends_on or not dependencies_done(task, tasks):
            continue
        TaskFSM(task).unblock()
        released.append({"id": task_id, "title": task.title})
    return released


def classify(tasks: dict[str, Task]) -> dict[str, list[str]]:
    """Partition task ids into actionable buckets.

    A todo task is ready only when every dependency is done, otherwise it is
    blocked. Unknown statuses land in blocked rather than being dropped.
    """
    actionable: dict[str, list[str]] = {bucket: [] for bucket in ACTIONABLE_BUCKETS}

    for task_id, task in tasks.items():
        status = task.known_status
        if status == TaskStatus.TODO:
            bucket = "ready_to_start" if dependencies_done(task, tasks) else "blocked"
        elif status == TaskStatus.IN_REVIEW:
            bucket = "pending_human_review" if task.agent_reviewed else "pending_auto_review"
        elif status == TaskStatus.IN_PROGRESS:
            bucket = "in_progress"
        elif status in (TaskStatus.BLOCKED, TaskStatus.REJECTED, TaskStatus.DONE, TaskStatus.CANCELLED):
            bucket = status.name.lower()
        else:
            logger.debug(f"[STATE] {task_id}: unknown status '{task.status}', treating as blocked")
            bucket = "blocked"
        actionable[bucket].append(task_id)

    return actionable


def is_settled(task: Task) -> bool:
    """True for done or cancelled tasks."""
    return task.known_status in TERMINAL_STATUSES
