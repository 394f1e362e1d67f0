"""Tool integrations used by the cycle controller."""

from .edits import EditError, apply_edit_set, resolve_edit_path
from .process import CommandError, CommandResult, CommandRunner, run_command
from .test_runner import TestRunResult, run_tests, shell_command
from .vcs import GitError, GitRepository

__all__ = [
    "CommandError",
    "CommandResult",
    "CommandRunner",
    "EditError",
    "GitError",
    "GitRepository",
    "TestRunResult",
    "apply_edit_set",
    "resolve_edit_path",
    "run_command",
    "run_tests",
    "shell_command",
]
