"""
gfe merge-task / gfe merge-feature - Gated merges.
"""

from gitflow_enforcer.commands.output import print_result
from gitflow_enforcer.workflow import operations


def cmd_merge_task(args, ctx) -> int:
    """Merge a reviewed task branch into the feature branch."""
    return print_result(operations.merge_task_to_feature(ctx, args.task_id), as_json=args.json)


def cmd_merge_feature(args, ctx) -> int:
    """Merge the feature branch into trunk."""
    return print_result(operations.merge_feature_to_main(ctx), as_json=args.json)
