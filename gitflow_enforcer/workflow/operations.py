"""The operations exposed to a controller.

Each takes a WorkflowContext and returns an OperationResult; none of them
raise for workflow failures. Identifiers are checked before any I/O.

Usage:
    from gitflow_enforcer.workflow.context import WorkflowContext
    from gitflow_enforcer.workflow import operations

    ctx = WorkflowContext.create()
    result = operations.merge_task_to_feature(ctx, "task-7")
    if not result.success:
        print(result.error, result.message)
"""

import functools
import logging

from gitflow_enforcer.git.runner import GitCommandFailed
from gitflow_enforcer.lib.config import ConfigError
from gitflow_enforcer.lib.validate import InvalidInput, validate_project_name, validate_task_id
from gitflow_enforcer.workflow import merge_gate, provision
from gitflow_enforcer.workflow.context import WorkflowContext
from gitflow_enforcer.workflow.models import TaskNotFound, parse_status
from gitflow_enforcer.workflow.results import (
    FORBIDDEN_TRANSITION,
    GIT_ERROR,
    INVALID_INPUT,
    INVALID_TRANSITION,
    NOT_FOUND,
    STATE_ERROR,
    VALIDATION_FAILED,
    OperationResult,
)
from gitflow_enforcer.workflow.state_machine import (
    ForbiddenTransition,
    InvalidTransition,
    classify,
    transition_task,
)
from gitflow_enforcer.workflow.state_store import StateError, touch_checkpoint

logger = logging.getLogger(__name__)


def _guarded(func):
    """Turn the exceptions an operation may raise into failure results."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> OperationResult:
        try:
            return func(*args, **kwargs)
        except InvalidInput as e:
            return OperationResult.fail(INVALID_INPUT, str(e))
        except (StateError, ConfigError, OSError) as e:
            return OperationResult.fail(STATE_ERROR, str(e))
        except TaskNotFound as e:
            return OperationResult.fail(NOT_FOUND, str(e), task_id=e.task_id)
        except ForbiddenTransition as e:
            return OperationResult.fail(FORBIDDEN_TRANSITION, str(e))
        except InvalidTransition as e:
            return OperationResult.fail(
                INVALID_TRANSITION,
                str(e),
                from_status=e.from_status,
                to_status=e.to_status.value,
                allowed_transitions=e.allowed,
            )
        except merge_gate.PreconditionViolation as e:
            return OperationResult.fail(VALIDATION_FAILED, str(e), errors=e.errors)
        except GitCommandFailed as e:
            logger.warning(f"[GIT] {func.__name__}: {e.command} failed ({e.exit_code})")
            return OperationResult.fail(GIT_ERROR, str(e), exit_code=e.exit_code)

    return wrapper


@_guarded
def get_workflow_state(ctx: WorkflowContext) -> OperationResult:
    """Snapshot of the workflow: phase, branches, checkpoint, tasks and the actionable view."""
    doc = ctx.store.load()
    return OperationResult.ok(
        "Workflow state loaded",
        phase=doc.checkpoint.phase,
        feature_branch=doc.feature_branch,
        current_branch=ctx.probe.current_branch(),
        checkpoint=doc.checkpoint.to_dict(),
        task_count=len(doc.tasks),
        actionable=classify(doc.tasks),
        tasks={task_id: task.summary() for task_id, task in doc.tasks.items()},
    )


@_guarded
def merge_task_to_feature(ctx: WorkflowContext, task_id) -> OperationResult:
    validate_task_id(task_id)
    return merge_gate.merge_task_to_feature(ctx, task_id)


@_guarded
def merge_feature_to_main(ctx: WorkflowContext) -> OperationResult:
    return merge_gate.merge_feature_to_main(ctx)


@_guarded
def transition_task_status(ctx: WorkflowContext, task_id, new_status, reason: str | None = None) -> OperationResult:
    """Apply an orchestrator transition to one task and persist it.

    "done" is refused here; only a successful merge sets it.
    """
    validate_task_id(task_id)
    target = parse_status(new_status)
    if target is None:
        raise InvalidInput(f'Unknown status "{new_status}"')

    doc = ctx.store.load()
    task = doc.get_task(task_id)
    previous = transition_task(task, target, reason=reason)
    doc = touch_checkpoint(doc, f"Task {task_id}: {previous} -> {target.value}")
    ctx.store.save(doc)

    return OperationResult.ok(
        f'Task "{task.title or task_id}" transitioned from "{previous}" to "{target.value}"',
        task_id=task_id,
        previous_status=previous,
        new_status=target.value,
    )


@_guarded
def create_feature_branch(ctx: WorkflowContext, project_name) -> OperationResult:
    validate_project_name(project_name)
    return provision.create_feature_branch(ctx, project_name)
