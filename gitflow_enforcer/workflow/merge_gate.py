"""Gated merges: task branch -> feature branch, feature branch -> trunk.

Handles:
- Precondition checks, with every violation collected before reporting
- Merge conflicts: the merge is aborted and the worker restarted, never resolved here
- Push failures: the local merge is rolled back so the branch matches the remote again
- Returning to the original branch when a release merge fails part way

Precondition and state-access failures are raised; everything that happens
once git starts changing the working copy is reported as an OperationResult.
"""

import logging

from gitflow_enforcer.git.runner import GitCommandFailed
from gitflow_enforcer.workflow.context import WorkflowContext
from gitflow_enforcer.workflow.models import Phase, Task, TaskStatus, WorkflowDocument
from gitflow_enforcer.workflow.results import (
    CONFLICT,
    FETCH_FAILED,
    GIT_ERROR,
    MERGE_FAILED,
    PUSH_FAILED,
    ROLLBACK_FAILED,
    STATE_ERROR,
    OperationResult,
)
from gitflow_enforcer.workflow.state_machine import is_settled, mark_merged, release_dependents
from gitflow_enforcer.workflow.state_store import StateError, touch_checkpoint

logger = logging.getLogger(__name__)


class PreconditionViolation(Exception):
    """One or more merge preconditions are unmet. Nothing was changed."""

    def __init__(self, errors: list[str], title: str = "Validation failed"):
        self.errors = errors
        self.title = title
        super().__init__(f"{title}:\n" + "\n".join(f"• {e}" for e in errors))


class MergeConflict(GitCommandFailed):
    """The merge stopped on conflicts and was aborted."""

    def __init__(self, command: str, exit_code: int, stderr: str, files: list[str]):
        self.files = files
        super().__init__(command, exit_code, stderr)


class RollbackFailure(Exception):
    """A compensating git command failed after a primary failure."""

    def __init__(self, primary: GitCommandFailed, secondary: GitCommandFailed):
        self.primary = primary
        self.secondary = secondary
        super().__init__(f"{primary}\n\nRollback error: {secondary}")


# --- Preconditions ---

def check_task_merge(ctx: WorkflowContext, doc: WorkflowDocument, task_id: str) -> Task:
    """Validate a task -> feature merge. Returns the task.

    Raises:
        PreconditionViolation: listing every unmet condition
    """
    task = doc.tasks.get(task_id)
    if task is None:
        raise PreconditionViolation([f'Task "{task_id}" not found in state document'], "Merge blocked")

    errors = []

    if task.known_status != TaskStatus.IN_REVIEW:
        errors.append(
            f'Task status is "{task.status}", expected "{TaskStatus.IN_REVIEW.value}". '
            "Task must be in review before merging."
        )

    if task.agent_reviewed is not True:
        errors.append(
            f"Task has not passed auto-review (agent_reviewed: {task.agent_reviewed}). "
            "Reviewer must approve before the merge."
        )

    for dep_id in task.depends_on:
        dep = doc.tasks.get(dep_id)
        if dep is None:
            errors.append(f'Dependency "{dep_id}" not found in state document')
        elif dep.known_status != TaskStatus.DONE:
            errors.append(
                f'Dependency "{dep_id}" ({dep.title}) is "{dep.status}", must be "{TaskStatus.DONE.value}"'
            )

    current = ctx.probe.current_branch()
    if not doc.feature_branch:
        errors.append("State document has no feature_branch recorded")
    elif current != doc.feature_branch:
        errors.append(
            f'Must be on feature branch "{doc.feature_branch}", currently on "{current or "(detached HEAD)"}"'
        )

    if not task.branch:
        errors.append("Task has no branch assigned")
    elif not ctx.probe.remote_has_branch(task.branch):
        errors.append(
            f'Task branch "{task.branch}" not found on remote. '
            "Worker must push before task can be merged."
        )

    if ctx.probe.is_dirty():
        errors.append("Working directory has uncommitted changes. Commit or stash before merging.")

    if errors:
        raise PreconditionViolation(errors, "Merge blocked")
    return task


def check_feature_merge(ctx: WorkflowContext, doc: WorkflowDocument, already_fetched: bool = False) -> str:
    """Validate a feature -> trunk merge. Returns the current branch.

    The behind-remote check only runs when the caller has just fetched.

    Raises:
        PreconditionViolation: listing every unmet condition
    """
    errors = []

    open_tasks = [f"  - {t.title or t.id}: {t.status}" for t in doc.tasks.values() if not is_settled(t)]
    if open_tasks:
        errors.append(
            "Not all tasks are complete:\n" + "\n".join(open_tasks) + "\n"
            f'All tasks must be "{TaskStatus.DONE.value}" or "{TaskStatus.CANCELLED.value}" before merging '
            f"to {ctx.config.trunk_branch}."
        )

    current = ctx.probe.current_branch() or ""
    if not current.startswith(ctx.config.feature_prefix):
        errors.append(
            f'Must be on a {ctx.config.feature_prefix}* branch, currently on "{current or "(detached HEAD)"}"'
        )

    if doc.feature_branch and current != doc.feature_branch:
        errors.append(
            f'Current branch "{current}" doesn\'t match state feature_branch "{doc.feature_branch}"'
        )

    if ctx.probe.is_dirty():
        errors.append("Working directory has uncommitted changes. Commit or stash before merging.")

    if already_fetched and current and ctx.probe.is_behind_remote(current):
        errors.append(
            f"Local branch is behind remote. Pull latest changes before merging to {ctx.config.trunk_branch}."
        )

    if errors:
        raise PreconditionViolation(errors, f"Merge to {ctx.config.trunk_branch} blocked")
    return current


# --- Git steps with compensation ---

def _fetch(ctx: WorkflowContext) -> OperationResult | None:
    """Fetch the remote. Returns a failure result, or None on success."""
    try:
        ctx.executor.fetch()
    except GitCommandFailed as e:
        logger.warning(f"[MERGE] fetch failed: {e.stderr.strip()}")
        return OperationResult.fail(
            FETCH_FAILED,
            f"Could not fetch from remote:\n{e}\n\nCheck your network connection and git credentials.",
            exit_code=e.exit_code,
        )
    return None


def _merge_or_abort(ctx: WorkflowContext, ref: str, message: str) -> None:
    """Merge `ref` into the current branch; abort on conflicts.

    Raises:
        MergeConflict: conflicts found, merge aborted
        RollbackFailure: conflicts found and `merge --abort` failed too
        GitCommandFailed: merge failed for another reason
    """
    try:
        ctx.executor.merge(ref, message)
    except GitCommandFailed as e:
        if not ctx.probe.has_conflict_markers():
            raise
        files = ctx.probe.conflicted_files()
        logger.warning(f"[MERGE] conflict merging {ref} in {len(files)} file(s), aborting")
        try:
            ctx.executor.merge_abort()
        except GitCommandFailed as abort_error:
            logger.error(f"[MERGE] merge --abort failed: {abort_error.stderr.strip()}")
            raise RollbackFailure(e, abort_error) from abort_error
        raise MergeConflict(e.command, e.exit_code, e.stderr, files) from e


def _push_or_rollback(ctx: WorkflowContext, branch: str) -> None:
    """Push `branch`; on failure drop the merge commit just made.

    Raises:
        GitCommandFailed: push failed, local merge rolled back
        RollbackFailure: push failed and the reset failed too
    """
    try:
        ctx.executor.push(branch)
    except GitCommandFailed as e:
        logger.warning(f"[MERGE] push of {branch} failed, rolling back local merge")
        try:
            ctx.executor.reset_hard("HEAD~1")
        except GitCommandFailed as reset_error:
            logger.error(f"[MERGE] rollback of {branch} failed: {reset_error.stderr.strip()}")
            raise RollbackFailure(e, reset_error) from reset_error
        raise


def return_to_branch(ctx: WorkflowContext, branch: str) -> tuple[bool, str]:
    """Best-effort checkout of `branch`. Returns (returned, status line)."""
    try:
        ctx.executor.checkout(branch)
    except GitCommandFailed as e:
        logger.warning(f"[MERGE] could not return to {branch}: {e.stderr.strip()}")
        return False, f"WARNING: Could not return to {branch}. Error: {e}"
    return True, f"Returned to {branch}"


# --- Workflows ---

def merge_task_to_feature(ctx: WorkflowContext, task_id: str) -> OperationResult:
    """Merge a reviewed task branch into the feature branch and mark the task done.

    Raises:
        StateError: the state document could not be loaded
        PreconditionViolation: the merge is not allowed
    """
    doc = ctx.store.load()
    task = check_task_merge(ctx, doc, task_id)
    feature_branch = doc.feature_branch
    remote_ref = f"{ctx.config.remote_name}/{task.branch}"

    failed = _fetch(ctx)
    if failed:
        return failed

    logger.info(f"[MERGE] {remote_ref} -> {feature_branch} (task {task_id})")
    try:
        _merge_or_abort(ctx, remote_ref, f"Merge: {task.title or task_id}")
    except MergeConflict as e:
        return OperationResult.fail(
            CONFLICT,
            f'Conflict detected when merging "{task.branch}" in: {", ".join(e.files) or "(unknown files)"}.\n\n'
            "The merge has been aborted.\n\n"
            "To resolve:\n"
            "1. Update task description with conflict info\n"
            "2. Restart worker to resolve conflicts\n"
            "3. Worker should rebase on feature branch and resolve",
            conflict=True,
            conflicted_files=e.files,
        )
    except RollbackFailure as e:
        return OperationResult.fail(
            ROLLBACK_FAILED,
            f"Merge conflict and merge --abort failed.\n\n{e}\n\n"
            "Your local repo may be in an inconsistent state. "
            "Manual intervention required: git merge --abort",
            conflict=True,
        )
    except GitCommandFailed as e:
        return OperationResult.fail(MERGE_FAILED, str(e), exit_code=e.exit_code)

    try:
        _push_or_rollback(ctx, feature_branch)
    except RollbackFailure as e:
        return OperationResult.fail(
            ROLLBACK_FAILED,
            f"Push failed and rollback failed.\n\nPush error: {e.primary}\n\n"
            f"Rollback error: {e.secondary}\n\n"
            "Your local repo may be in an inconsistent state. "
            f"Manual intervention required: git reset --hard {ctx.config.remote_name}/{feature_branch}",
            branch_unchanged=False,
        )
    except GitCommandFailed as e:
        return OperationResult.fail(
            PUSH_FAILED,
            f"{e}\n\nThe local merge has been rolled back. Your branch is unchanged.",
            branch_unchanged=True,
        )

    mark_merged(task)
    unblocked = release_dependents(doc.tasks, task_id)
    doc = touch_checkpoint(doc, f"Merged task {task_id}: {task.title}")
    try:
        ctx.store.save(doc)
    except (StateError, OSError) as e:
        return OperationResult.fail(
            STATE_ERROR,
            f'Task branch "{task.branch}" was merged and pushed to {feature_branch}, '
            f"but the state document could not be written: {e}",
            merged_branch=task.branch,
        )

    for released in unblocked:
        logger.info(f"[MERGE] unblocked {released['id']}")
    return OperationResult.ok(
        f'Task "{task.title}" merged successfully to {feature_branch}',
        merged_branch=task.branch,
        unblocked_tasks=unblocked,
    )


def merge_feature_to_main(ctx: WorkflowContext) -> OperationResult:
    """Release the feature branch into trunk and mark the workflow complete.

    Raises:
        StateError: the state document could not be loaded
        PreconditionViolation: the merge is not allowed
    """
    trunk = ctx.config.trunk_branch

    failed = _fetch(ctx)
    if failed:
        return failed

    doc = ctx.store.load()
    original_branch = check_feature_merge(ctx, doc, already_fetched=True)
    feature_branch = doc.feature_branch or original_branch

    try:
        ctx.executor.checkout(trunk)
    except GitCommandFailed as e:
        return OperationResult.fail(
            GIT_ERROR,
            f"Could not checkout {trunk}:\n{e}",
            returned_to_original=True,
        )

    stage = "pull"
    try:
        ctx.executor.pull(trunk)
        stage = "merge"
        logger.info(f"[MERGE] {feature_branch} -> {trunk}")
        _merge_or_abort(ctx, feature_branch, f"Release: {feature_branch}")
        stage = "push"
        ctx.executor.push(trunk, env={ctx.config.push_marker_env: "1"})
        stage = "state"
        doc = touch_checkpoint(doc, f"Merged {feature_branch} to {trunk}")
        doc.checkpoint.phase = Phase.COMPLETE.value
        ctx.store.save(doc)
    except (GitCommandFailed, RollbackFailure, StateError, OSError) as e:
        if isinstance(e, RollbackFailure):
            # merge --abort failed; checking out would fail on the half-merged index
            returned, status_line = False, f"WARNING: Still on {trunk} with an unfinished merge."
            kind = ROLLBACK_FAILED
        else:
            returned, status_line = return_to_branch(ctx, original_branch)
            if isinstance(e, MergeConflict):
                kind = CONFLICT
            elif isinstance(e, (StateError, OSError)):
                kind = STATE_ERROR
            else:
                kind = {"pull": GIT_ERROR, "merge": MERGE_FAILED, "push": PUSH_FAILED}[stage]
        logger.warning(f"[MERGE] release of {feature_branch} failed at {stage}: {kind}")
        return OperationResult.fail(
            kind,
            f"Merge to {trunk} failed during {stage}.\n\n{e}\n\n{status_line}",
            conflict=kind == CONFLICT,
            conflicted_files=e.files if isinstance(e, MergeConflict) else [],
            returned_to_original=returned,
        )

    return OperationResult.ok(f'Feature branch "{feature_branch}" merged to {trunk} successfully')
