"""
gfe transition - Move a task to another status.
"""

from gitflow_enforcer.commands.output import print_result
from gitflow_enforcer.workflow import operations


def cmd_transition(args, ctx) -> int:
    result = operations.transition_task_status(ctx, args.task_id, args.new_status, reason=args.reason)
    return print_result(result, as_json=args.json)
