"""
Shared result printing and exit codes for gfe commands.
"""

import json

from gitflow_enforcer.lib.constants import (
    EXIT_FAILED,
    EXIT_INVALID,
    EXIT_MANUAL_RECOVERY,
    EXIT_SUCCESS,
)
from gitflow_enforcer.workflow.results import (
    INVALID_INPUT,
    ROLLBACK_FAILED,
    STATE_ERROR,
    OperationResult,
)


def exit_code_for(result: OperationResult) -> int:
    if result.success:
        return EXIT_SUCCESS
    if result.error == ROLLBACK_FAILED:
        return EXIT_MANUAL_RECOVERY
    if result.error in (INVALID_INPUT, STATE_ERROR):
        return EXIT_INVALID
    return EXIT_FAILED


def print_result(result: OperationResult, as_json: bool = False) -> int:
    """Print a result and return the process exit code for it."""
    if as_json:
        print(json.dumps(result.to_dict(), indent=2))
        return exit_code_for(result)

    if result.success:
        print(result.message)
    else:
        print(f"ERROR ({result.error}): {result.message}")
        if result.needs_manual_recovery:
            print()
            print("Manual intervention required before running gfe again.")

    for key, value in result.details.items():
        if key == "errors":
            continue
        if isinstance(value, list):
            value = ", ".join(v["id"] if isinstance(v, dict) else str(v) for v in value) or "(none)"
        print(f"  {key}: {value}")

    return exit_code_for(result)
