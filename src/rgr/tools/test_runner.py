"""Run the project's configured test command through the platform shell."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .process import CommandRunner, run_command

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class TestRunResult:
    """Structured summary of a test command invocation."""

    __test__ = False

    command: str
    cwd: Path
    exit_code: int
    output: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


def shell_command(command: str) -> list[str]:
    """Wrap ``command`` for the platform shell."""
    if os.name == "nt":
        return ["cmd", "/C", command]
    return ["sh", "-lc", command]


def run_tests(
    project_root: Path | str,
    command: str,
    *,
    runner: CommandRunner = run_command,
) -> TestRunResult:
    """Execute ``command`` in ``project_root``.

    A failing exit status is a normal outcome.  Being unable to start the shell
    raises :class:`~rgr.tools.process.CommandError`.  No timeout is applied.
    """
    cwd = Path(project_root)
    LOGGER.debug("Running tests: %s", command)
    result = runner(shell_command(command), cwd)
    LOGGER.debug("Test command exited with %d", result.returncode)
    return TestRunResult(command=command, cwd=cwd, exit_code=result.returncode, output=result.output)


__all__ = ["TestRunResult", "run_tests", "shell_command"]
