"""Feature branch creation."""

import logging

from gitflow_enforcer.git.runner import GitCommandFailed
from gitflow_enforcer.workflow.context import WorkflowContext
from gitflow_enforcer.workflow.results import (
    ALREADY_EXISTS_LOCAL,
    ALREADY_EXISTS_REMOTE,
    GIT_ERROR,
    STATE_ERROR,
    WRONG_BRANCH,
    OperationResult,
)
from gitflow_enforcer.workflow.state_store import StateError, touch_checkpoint

logger = logging.getLogger(__name__)


def create_feature_branch(ctx: WorkflowContext, project_name: str) -> OperationResult:
    """Create `<prefix><project_name>` from trunk, publish it, and record it in the state document.

    `project_name` must already be validated.

    Raises:
        StateError: the state document could not be loaded
    """
    trunk = ctx.config.trunk_branch
    branch_name = ctx.config.feature_branch_for(project_name)
    doc = ctx.store.load()

    current = ctx.probe.current_branch()
    if current != trunk:
        return OperationResult.fail(
            WRONG_BRANCH,
            f'Must be on {trunk} branch to create a feature branch, currently on "{current or "(detached HEAD)"}"',
            current_branch=current,
        )

    if ctx.probe.local_branch_exists(branch_name):
        return OperationResult.fail(ALREADY_EXISTS_LOCAL, f'Branch "{branch_name}" already exists locally')

    if ctx.probe.remote_has_branch(branch_name):
        return OperationResult.fail(ALREADY_EXISTS_REMOTE, f'Branch "{branch_name}" already exists on remote')

    try:
        ctx.executor.create_branch(branch_name)
        ctx.executor.push_set_upstream(branch_name)
    except GitCommandFailed as e:
        returned = True
        try:
            ctx.executor.checkout(trunk)
        except GitCommandFailed as checkout_error:
            returned = False
            logger.warning(f"[BRANCH] could not return to {trunk}: {checkout_error.stderr.strip()}")
        return OperationResult.fail(
            GIT_ERROR,
            f"Failed to create feature branch: {e}",
            branch=branch_name,
            returned_to_trunk=returned,
        )

    logger.info(f"[BRANCH] created and pushed {branch_name}")

    doc.feature_branch = branch_name
    doc = touch_checkpoint(doc, f"Created feature branch {branch_name}")
    try:
        ctx.store.save(doc)
    except (StateError, OSError) as e:
        return OperationResult.fail(
            STATE_ERROR,
            f'Branch "{branch_name}" was created and pushed, but the state document could not be written: {e}',
            branch=branch_name,
        )

    return OperationResult.ok(f'Feature branch "{branch_name}" created and pushed to remote', branch=branch_name)
