"""Tests for gitflow_enforcer.workflow.fsm module."""

import pytest
from transitions import MachineError

from gitflow_enforcer.workflow.fsm import (
    MERGE_TRIGGER,
    STATES,
    TRIGGER_FOR,
    TaskFSM,
)
from gitflow_enforcer.workflow.models import Task, TaskStatus
from gitflow_enforcer.workflow.state_machine import transition_task


class TestFSMStates:
    """Tests for FSM state definitions."""

    def test_states_match_enum(self):
        assert set(STATES) == {s.value for s in TaskStatus}

    def test_done_only_reachable_by_merge(self):
        """The merge trigger is the only edge into done."""
        into_done = {trigger for (source, dest), trigger in TRIGGER_FOR.items() if dest == "done"}
        assert into_done == {MERGE_TRIGGER}

    def test_nothing_leaves_terminal_states(self):
        for (source, _dest) in TRIGGER_FOR:
            assert source not in ("done", "cancelled")


class TestTaskFSM:
    """Tests for TaskFSM against a Task object."""

    def test_initial_state_from_task(self):
        fsm = TaskFSM(Task(id="T1", status="blocked"))
        assert fsm.state == "blocked"

    def test_unknown_status_rejected(self):
        with pytest.raises(ValueError, match="unknown status"):
            TaskFSM(Task(id="T1", status="paused"))

    def test_trigger_updates_task(self):
        task = Task(id="T1", status="todo")
        TaskFSM(task).block()
        assert task.status == "blocked"

    def test_reject_increments_feedback(self):
        task = Task(id="T1", status="inreview", agent_reviewed=True, feedback_iterations=2)
        TaskFSM(task).reject(reason="no tests")

        assert task.status == "rejected"
        assert task.feedback_iterations == 3
        assert task.agent_reviewed is False
        assert task.rejection_feedback == "no tests"

    def test_first_rejection(self):
        task = Task(id="T1", status="inreview", agent_reviewed=None)
        TaskFSM(task).reject()
        assert task.feedback_iterations == 1
        assert task.agent_reviewed is False

    def test_send_back_keeps_feedback_count(self):
        task = Task(id="T1", status="inreview", feedback_iterations=1)
        TaskFSM(task).send_back()
        assert task.status == "inprogress"
        assert task.feedback_iterations == 1

    def test_invalid_trigger_raises(self):
        fsm = TaskFSM(Task(id="T1", status="todo"))
        with pytest.raises(MachineError):
            getattr(fsm, MERGE_TRIGGER)()

    def test_no_auto_transitions(self):
        fsm = TaskFSM(Task(id="T1", status="todo"))
        assert not hasattr(fsm, "to_done")

    def test_logs_transition(self, caplog):
        with caplog.at_level("INFO"):
            TaskFSM(Task(id="T9", status="todo")).cancel()
        assert "[FSM] T9: todo -> cancelled (cancel)" in caplog.text

    def test_logs_once_with_reason(self, caplog):
        """transition_task does not add a second line for the same change."""
        with caplog.at_level("INFO"):
            transition_task(Task(id="T9", status="inreview"), TaskStatus.REJECTED, reason="no tests")
        lines = [r.getMessage() for r in caplog.records if "T9" in r.getMessage()]
        assert lines == ["[FSM] T9: inreview -> rejected (reject): no tests"]
