"""Red-green-refactor cycle controller.

One cycle runs three roles in sequence against a single project tree:

* Red: the tester adds a failing test, which is committed and becomes the
  rollback anchor (``tester_head``).
* Green: the implementor gets up to ``implementor_max_attempts`` tries to make
  the suite pass, each try committed separately.  When every try fails, the
  attempts are labelled with a best-effort branch and the project is hard
  reset to ``tester_head``; the cycle still ends normally so the next cycle
  starts from a clean red state.
* Refactor: the refactorer edits, the result is committed and tested.  A
  regression undoes exactly that commit and raises
  :class:`RefactorRegressionError` carrying the test output.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Mapping, Optional

from .config import ROLE_NAMES, ConfigError, OrchestratorConfig
from .context_builder import collect_context
from .models import LLMClient, build_client
from .prompts import (
    build_implementor_instructions,
    build_refactorer_instructions,
    build_tester_instructions,
)
from .structured import EditSet
from .tools.edits import apply_edit_set
from .tools.process import CommandRunner, run_command
from .tools.test_runner import TestRunResult, run_tests
from .tools.vcs import GitError, GitRepository

LOGGER = logging.getLogger(__name__)

TESTER_DEFAULT_MESSAGE = "test: add failing test"
IMPLEMENTOR_DEFAULT_MESSAGE = "feat: make tests pass"
REFACTORER_DEFAULT_MESSAGE = "refactor: improve design"
PRESERVATION_BRANCH_PREFIX = "attempts/implementor-"

ContextCollector = Callable[[Path, int], str]
Clock = Callable[[], datetime]


class CycleError(RuntimeError):
    """Base class for errors that end a cycle after its cleanup has run."""

    def __init__(self, message: str, *, output: str = "") -> None:
        super().__init__(message)
        self.output = output


class RefactorRegressionError(CycleError):
    """Raised when the refactor step broke the tests and was reverted."""


class RedStepError(CycleError):
    """Raised in strict mode when the tester's new test did not fail."""


class CycleOutcome(str, enum.Enum):
    """How a cycle that returned normally ended."""

    COMPLETED = "completed"
    GREEN_EXHAUSTED = "green-exhausted"


@dataclass(slots=True)
class CycleState:
    """Mutable bookkeeping for a single cycle; discarded when it ends."""

    tester_head: str = ""
    last_fail_output: str = ""
    attempt: int = 0


@dataclass(slots=True)
class CycleReport:
    """Summary of a cycle that returned without error."""

    outcome: CycleOutcome
    tester_head: str
    attempts: int
    final_head: str
    red_confirmed: bool = True
    preservation_branch: Optional[str] = None
    test_results: list[TestRunResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.outcome is CycleOutcome.COMPLETED


class Orchestrator:
    """Coordinate the tester, implementor and refactorer roles."""

    def __init__(
        self,
        project_root: Path | str,
        config: OrchestratorConfig,
        *,
        clients: Optional[Mapping[str, LLMClient]] = None,
        runner: CommandRunner = run_command,
        context_collector: ContextCollector = collect_context,
        clock: Optional[Clock] = None,
    ) -> None:
        root = Path(project_root)
        if not root.is_dir():
            raise ConfigError(f"project root does not exist: {root}")
        self.project_root = root.resolve()
        self.config = config
        self._runner = runner
        self._collect_context = context_collector
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.repo = GitRepository(self.project_root, runner=runner)

        provided = dict(clients or {})
        self._clients: dict[str, LLMClient] = {}
        for role in ROLE_NAMES:
            client = provided.get(role)
            if client is None:
                client = build_client(config.role(role).provider)
            self._clients[role] = client

    def client(self, role: str) -> LLMClient:
        return self._clients[role]

    # ----------------------------------------------------------------- cycle
    def run_cycle(self) -> CycleReport:
        """Run one Red -> Green -> Refactor cycle."""
        state = CycleState()
        results: list[TestRunResult] = []
        self.repo.ensure_repo()

        # Red
        LOGGER.info("Starting Red (Tester) step (model %s)", self._model("tester"))
        before_red = self.repo.head_or_none()
        patch = self._request_patch("tester", build_tester_instructions(self.config.tester.system_prompt))
        red_paths = self._apply_and_commit(patch, patch.message_or(TESTER_DEFAULT_MESSAGE))
        state.tester_head = self.repo.head_commit()

        red = self._run_tests()
        results.append(red)
        red_confirmed = not red.ok
        if red.ok:
            if self.config.strict_red:
                LOGGER.warning("Tester step produced passing tests; reverting tester commit")
                if before_red is None:
                    self.repo.undo_root_commit(red_paths)
                else:
                    self.repo.reset_hard_to(before_red)
                raise RedStepError(
                    "Tester step did not produce a failing test and was reverted.",
                    output=red.output,
                )
            LOGGER.warning("Tester step produced passing tests; proceeding anyway")
        else:
            LOGGER.info("Tests are red as expected")
        state.last_fail_output = red.output

        # Green
        LOGGER.info("Starting Green (Implementor) step (model %s)", self._model("implementor"))
        green = False
        for attempt in range(1, self.config.implementor_max_attempts + 1):
            state.attempt = attempt
            instructions = build_implementor_instructions(
                self.config.implementor.system_prompt, state.last_fail_output
            )
            patch = self._request_patch("implementor", instructions)
            message = f"{patch.message_or(IMPLEMENTOR_DEFAULT_MESSAGE)} (attempt {attempt})"
            self._apply_and_commit(patch, message)

            outcome = self._run_tests()
            results.append(outcome)
            if outcome.ok:
                green = True
                break
            state.last_fail_output = outcome.output
            LOGGER.warning("Implementor attempt %d failed; retrying if attempts remain", attempt)

        if not green:
            LOGGER.warning(
                "All implementor attempts failed; preserving attempts and resetting to tester commit"
            )
            branch = self._preserve_attempts()
            self.repo.reset_hard_to(state.tester_head)
            return CycleReport(
                outcome=CycleOutcome.GREEN_EXHAUSTED,
                tester_head=state.tester_head,
                attempts=state.attempt,
                final_head=self.repo.head_commit(),
                red_confirmed=red_confirmed,
                preservation_branch=branch,
                test_results=results,
            )
        LOGGER.info("Tests green")

        # Refactor
        LOGGER.info("Starting Refactor step (model %s)", self._model("refactorer"))
        patch = self._request_patch(
            "refactorer", build_refactorer_instructions(self.config.refactorer.system_prompt)
        )
        self._apply_and_commit(patch, patch.message_or(REFACTORER_DEFAULT_MESSAGE))

        refactor = self._run_tests()
        results.append(refactor)
        if not refactor.ok:
            LOGGER.warning("Refactor step broke tests, reverting commit")
            self.repo.reset_hard_head_minus_one()
            raise RefactorRegressionError(
                f"Refactor step failed tests and was reverted. Output:\n{refactor.output}",
                output=refactor.output,
            )
        LOGGER.info("Refactor preserved green")
        return CycleReport(
            outcome=CycleOutcome.COMPLETED,
            tester_head=state.tester_head,
            attempts=state.attempt,
            final_head=self.repo.head_commit(),
            red_confirmed=red_confirmed,
            test_results=results,
        )

    def run_forever(
        self,
        *,
        max_cycles: Optional[int] = None,
        on_cycle: Optional[Callable[[CycleReport], None]] = None,
    ) -> int:
        """Repeat :meth:`run_cycle` until an error propagates.

        ``on_cycle`` receives each report as it is produced.  ``max_cycles``
        caps the loop; it returns the number of cycles run.
        """
        completed = 0
        while max_cycles is None or completed < max_cycles:
            report = self.run_cycle()
            completed += 1
            LOGGER.info("Cycle %d finished: %s", completed, report.outcome.value)
            if on_cycle is not None:
                on_cycle(report)
        return completed

    # --------------------------------------------------------------- helpers
    def _model(self, role: str) -> str:
        return self.config.role(role).provider.model

    def _request_patch(self, role: str, instructions: str) -> EditSet:
        context = self._collect_context(self.project_root, self.config.max_context_bytes)
        return self._clients[role].generate_patch(role, context, instructions)

    def _apply_and_commit(self, patch: EditSet, message: str) -> List[Path]:
        touched = apply_edit_set(self.project_root, patch, confine=self.config.confine_edits)
        self.repo.commit_paths(touched, message)
        return touched

    def _run_tests(self) -> TestRunResult:
        return run_tests(self.project_root, self.config.test_cmd, runner=self._runner)

    def _preserve_attempts(self) -> Optional[str]:
        name = f"{PRESERVATION_BRANCH_PREFIX}{self._clock().strftime('%Y%m%d%H%M%S')}"
        try:
            self.repo.create_branch_at_head(name)
        except GitError as error:
            LOGGER.warning("Could not create preservation branch %s: %s", name, error)
            return None
        LOGGER.info("Preserved failed attempts on branch %s", name)
        return name


__all__ = [
    "CycleError",
    "CycleOutcome",
    "CycleReport",
    "CycleState",
    "IMPLEMENTOR_DEFAULT_MESSAGE",
    "Orchestrator",
    "PRESERVATION_BRANCH_PREFIX",
    "REFACTORER_DEFAULT_MESSAGE",
    "RedStepError",
    "RefactorRegressionError",
    "TESTER_DEFAULT_MESSAGE",
]
