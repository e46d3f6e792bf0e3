"""Command processing engines.

This package provides:
- Command executor: intent dispatch, side effects, history records
- Dashboard aggregation over the store
"""

from zoya.engine.dashboard import build_dashboard, next_meeting
from zoya.engine.executor import (
    CommandExecutor,
    ExecutionOutcome,
    validate_command_input,
)

__all__ = [
    # Executor
    "CommandExecutor",
    "ExecutionOutcome",
    "validate_command_input",
    # Dashboard
    "build_dashboard",
    "next_meeting",
]
