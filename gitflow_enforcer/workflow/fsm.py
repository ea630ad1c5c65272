"""Task status state machine using the transitions library.

Only orchestrator-driven transitions are modelled here. The task board moves
tasks todo -> inprogress and inprogress -> inreview on its own; those edges
are deliberately absent.

Usage:
    from gitflow_enforcer.workflow.fsm import TaskFSM

    fsm = TaskFSM(task)
    fsm.reject(reason="tests missing")  # inreview -> rejected
"""

import logging

from transitions import Machine

from gitflow_enforcer.workflow.models import Task, TaskStatus

logger = logging.getLogger(__name__)


STATES = [s.value for s in TaskStatus]

# Statuses that may still be cancelled
_CANCELLABLE = ["todo", "blocked", "inprogress", "inreview", "rejected"]

# Trigger used only by the task -> feature merge; nothing else may reach "done"
MERGE_TRIGGER = "mark_merged"

TRANSITIONS = [
    # Orchestrator blocks or unblocks work
    {"trigger": "block", "source": "todo", "dest": "blocked"},
    {"trigger": "unblock", "source": "blocked", "dest": "todo"},
    {"trigger": "block", "source": "inprogress", "dest": "blocked"},

    # Review outcomes
    {"trigger": "reject", "source": "inreview", "dest": "rejected"},
    {"trigger": "send_back", "source": "inreview", "dest": "inprogress"},

    # Escape hatch from any non-terminal status
    {"trigger": "cancel", "source": _CANCELLABLE, "dest": "cancelled"},

    # Merge workflow
    {"trigger": MERGE_TRIGGER, "source": "inreview", "dest": "done"},
]


def _build_trigger_lookup() -> dict[tuple[str, str], str]:
    """Build lookup from (source, dest) -> trigger name."""
    lookup: dict[tuple[str, str], str] = {}
    for t in TRANSITIONS:
        sources = t["source"] if isinstance(t["source"], list) else [t["source"]]
        for source in sources:
            lookup.setdefault((source, t["dest"]), t["trigger"])
    return lookup


TRIGGER_FOR = _build_trigger_lookup()


class TaskFSM:
    """State machine bound to one Task.

    The task's `status` is rewritten after every transition. Entering
    `rejected` bumps `feedback_iterations` and clears `agent_reviewed`, so a
    rejected task must pass review again before it can be merged. A `reason`
    keyword passed to any trigger is stored as `rejection_feedback`.
    """

    def __init__(self, task: Task):
        if task.status not in STATES:
            raise ValueError(f"Task {task.id} has unknown status '{task.status}'")
        self.task = task

        self.machine = Machine(
            model=self,
            states=STATES,
            transitions=TRANSITIONS,
            initial=task.status,
            auto_transitions=False,
            send_event=True,
            after_state_change="on_state_change",
        )

    def on_enter_rejected(self, event) -> None:
        self.task.feedback_iterations = (self.task.feedback_iterations or 0) + 1
        self.task.agent_reviewed = False

    def on_state_change(self, event) -> None:
        """Write the new status back to the task and log the transition."""
        from_state = event.transition.source
        to_state = event.transition.dest
        trigger = event.event.name

        self.task.status = self.state
        reason = event.kwargs.get("reason")
        if reason:
            self.task.rejection_feedback = reason

        reason_str = f": {reason}" if reason else ""
        logger.info(f"[FSM] {self.task.id}: {from_state} -> {to_state} ({trigger}){reason_str}")

