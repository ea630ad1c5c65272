"""
gfe create-branch - Create and publish a feature branch from trunk.
"""

from gitflow_enforcer.commands.output import print_result
from gitflow_enforcer.workflow import operations


def cmd_create_branch(args, ctx) -> int:
    result = operations.create_feature_branch(ctx, args.project_name)
    return print_result(result, as_json=args.json)
