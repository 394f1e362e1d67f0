"""Subprocess execution shared by the git adapter and the test runner."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence


class CommandError(RuntimeError):
    """Raised when a command cannot be launched at all."""


@dataclass(slots=True)
class CommandResult:
    """Outcome of a finished command."""

    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Standard output followed by standard error."""
        return f"{self.stdout}{self.stderr}"


CommandRunner = Callable[[Sequence[str], Path], CommandResult]


def run_command(args: Sequence[str], cwd: Path) -> CommandResult:
    """Run ``args`` in ``cwd`` and wait for completion.

    A non-zero exit status is reported through the result, never raised.
    """
    command = tuple(str(arg) for arg in args)
    try:
        process = subprocess.run(
            command,
            cwd=cwd,
            capture_output=True,
            text=False,
            check=False,
        )
    except OSError as error:
        raise CommandError(f"Unable to run {command[0] if command else '<empty>'}: {error}") from error
    stdout = process.stdout.decode("utf-8", errors="replace") if process.stdout else ""
    stderr = process.stderr.decode("utf-8", errors="replace") if process.stderr else ""
    return CommandResult(command, process.returncode, stdout, stderr)


__all__ = ["CommandError", "CommandResult", "CommandRunner", "run_command"]
