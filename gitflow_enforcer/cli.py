#!/usr/bin/env python3
"""gfe CLI entrypoint."""

import sys
import argparse
import logging
from pathlib import Path

from gitflow_enforcer import __version__
from gitflow_enforcer.lib.config import ConfigError
from gitflow_enforcer.lib.constants import EXIT_INVALID
from gitflow_enforcer.workflow.context import WorkflowContext
from gitflow_enforcer.commands import state as cmd_state_module
from gitflow_enforcer.commands import merge as cmd_merge_module
from gitflow_enforcer.commands import transition as cmd_transition_module
from gitflow_enforcer.commands import branch as cmd_branch_module


def get_context(args):
    """Build the workflow context from --workspace or the current directory."""
    start = Path(args.workspace) if args.workspace else None
    return WorkflowContext.create(start)


def setup_logging(verbosity: int):
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def cmd_state(args, ctx):
    return cmd_state_module.cmd_state(args, ctx)


def cmd_merge_task(args, ctx):
    return cmd_merge_module.cmd_merge_task(args, ctx)


def cmd_merge_feature(args, ctx):
    return cmd_merge_module.cmd_merge_feature(args, ctx)


def cmd_transition(args, ctx):
    return cmd_transition_module.cmd_transition(args, ctx)


def cmd_create_branch(args, ctx):
    return cmd_branch_module.cmd_create_branch(args, ctx)


def build_parser():
    parser = argparse.ArgumentParser(prog='gfe', description='Gitflow enforcer: gated merges and task status rules')
    parser.add_argument('--workspace', '-w', help='Workspace directory (default: current directory)')
    parser.add_argument('--verbose', '-v', action='count', default=0, help='Log to stderr (-v info, -vv debug)')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    subparsers = parser.add_subparsers(dest='command', required=True)

    # Shared by every command
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--json', action='store_true', help='Print the result as JSON')

    # gfe state
    p_state = subparsers.add_parser('state', parents=[common], help='Show workflow state and actionable tasks')
    p_state.set_defaults(func=cmd_state)

    # gfe merge-task
    p_merge_task = subparsers.add_parser('merge-task', parents=[common], help='Merge a reviewed task into the feature branch')
    p_merge_task.add_argument('task_id', help='Task ID')
    p_merge_task.set_defaults(func=cmd_merge_task)

    # gfe merge-feature
    p_merge_feature = subparsers.add_parser('merge-feature', parents=[common], help='Merge the feature branch into trunk')
    p_merge_feature.set_defaults(func=cmd_merge_feature)

    # gfe transition
    p_transition = subparsers.add_parser('transition', parents=[common], help='Change a task status')
    p_transition.add_argument('task_id', help='Task ID')
    p_transition.add_argument('new_status', help='Target status (blocked, todo, rejected, inprogress, cancelled)')
    p_transition.add_argument('--reason', '-r', help='Reason, stored as rejection feedback')
    p_transition.set_defaults(func=cmd_transition)

    # gfe create-branch
    p_branch = subparsers.add_parser('create-branch', parents=[common], help='Create a feature branch from trunk')
    p_branch.add_argument('project_name', help='Project name (branch becomes <prefix><project_name>)')
    p_branch.set_defaults(func=cmd_create_branch)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        ctx = get_context(args)
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_INVALID

    return args.func(args, ctx)


if __name__ == '__main__':
    sys.exit(main())
