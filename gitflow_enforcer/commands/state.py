"""
gfe state - Show workflow phase, branches and the actionable task view.
"""

import json

from gitflow_enforcer.commands.output import exit_code_for, print_result
from gitflow_enforcer.workflow import operations
from gitflow_enforcer.workflow.state_machine import ACTIONABLE_BUCKETS


def cmd_state(args, ctx) -> int:
    """Print the workflow state."""
    result = operations.get_workflow_state(ctx)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
        return exit_code_for(result)
    if not result.success:
        return print_result(result)

    info = result.details
    checkpoint = info["checkpoint"]
    print(f"Phase:          {info['phase']}")
    print(f"Feature branch: {info['feature_branch'] or '-'}")
    print(f"Current branch: {info['current_branch'] or '(detached HEAD)'}")
    if checkpoint.get("last_action"):
        print(f"Last action:    {checkpoint['last_action']} ({checkpoint.get('timestamp', '?')})")
    print(f"Tasks:          {info['task_count']}")

    tasks = info["tasks"]
    for bucket in ACTIONABLE_BUCKETS:
        ids = info["actionable"][bucket]
        if not ids:
            continue
        print()
        print(f"{bucket} ({len(ids)}):")
        for task_id in ids:
            task = tasks[task_id]
            deps = f"  deps: {', '.join(task['depends_on'])}" if task["depends_on"] else ""
            print(f"  {task_id:<20} {task['status']:<11} {task['title']}{deps}")

    return exit_code_for(result)
