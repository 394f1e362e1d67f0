"""Minimal git helpers
The helpers below provide the transactional primitives the cycle controller
relies on: initialise, commit a path set, read ``HEAD``, hard reset, and label
the current revision with a branch.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from .process import CommandResult, CommandRunner, run_command

LOGGER = logging.getLogger(__name__)

DEFAULT_USER_NAME = "Red Green Refactor"
DEFAULT_USER_EMAIL = "red-green-refactor@example.com"


class GitError(RuntimeError):
    """Raised when a git command fails or the repository cannot be used."""


class GitRepository:
    """Lightweight wrapper around ``git`` commands rooted at a project directory."""

    def __init__(self, root: Path | str, *, runner: CommandRunner = run_command) -> None:
        self.root = Path(root).resolve()
        self._runner = runner

    @property
    def exists(self) -> bool:
        """Return ``True`` when the repository marker is present."""
        return (self.root / ".git").exists()

    # ------------------------------------------------------------------ git IO
    def _run_git(self, args: Sequence[str], *, check: bool = True) -> CommandResult:
        result = self._runner(["git", *args], self.root)
        if check and not result.ok:
            message = result.output.strip() or "unknown git error"
            raise GitError(f"git {' '.join(args)} failed: {message}")
        return result

    def git(self, *args: str, check: bool = True) -> CommandResult:
        """Execute ``git`` with ``args`` relative to the repository root."""

        return self._run_git(list(args), check=check)

    # ------------------------------------------------------------ repository
    def ensure_repo(self) -> bool:
        """Initialise a repository unless one already exists.

        Returns ``True`` when a new repository was created.  A local commit
        identity is configured when git has none so that later commits work
        on machines without a global ``user.name``/``user.email``.
        """

        if self.exists:
            return False
        LOGGER.info("Initialising git repository at %s", self.root)
        self._run_git(["init"])

        def _ensure_config(key: str, value: str) -> None:
            probe = self._run_git(["config", "--get", key], check=False)
            if not probe.ok or not probe.stdout.strip():
                self._run_git(["config", key, value])

        _ensure_config("user.email", DEFAULT_USER_EMAIL)
        _ensure_config("user.name", DEFAULT_USER_NAME)
        return True

    # --------------------------------------------------------------- commits
    def commit_paths(self, paths: Sequence[Path | str], message: str) -> None:
        """Stage exactly ``paths`` and commit, allowing an empty commit."""

        if paths:
            args: List[str] = ["add", "--"]
            args.extend(self._relative(path) for path in paths)
            self._run_git(args)
        self._run_git(["commit", "--allow-empty", "-m", message])
        LOGGER.debug("Committed %d path(s): %s", len(paths), message)

    def head_commit(self) -> str:
        """Return the revision identifier of ``HEAD``."""

        result = self._run_git(["rev-parse", "HEAD"])
        head = result.stdout.strip()
        if not head:
            raise GitError("git rev-parse HEAD returned no revision")
        return head

    def head_or_none(self) -> Optional[str]:
        """Return ``HEAD``, or ``None`` while the current branch has no commits."""

        result = self.git("rev-parse", "--verify", "-q", "HEAD", check=False)
        head = result.stdout.strip()
        return head if result.ok and head else None

    # ---------------------------------------------------------------- resets
    def reset_hard_to(self, revision: str) -> None:
        """Make history and working tree match ``revision`` exactly."""

        LOGGER.info("Resetting %s to %s", self.root, revision)
        self._run_git(["reset", "--hard", revision])

    def reset_hard_head_minus_one(self) -> None:
        """Undo the most recent commit together with its working tree effects."""

        LOGGER.info("Undoing the latest commit in %s", self.root)
        self._run_git(["reset", "--hard", "HEAD~1"])

    def undo_root_commit(self, paths: Sequence[Path | str]) -> None:
        """Remove the branch's only commit and delete the files it added.

        ``HEAD~1`` does not exist here, so the branch ref is deleted and
        ``paths`` are dropped from the index and the working tree.
        """

        LOGGER.info("Undoing the root commit in %s", self.root)
        self.git("update-ref", "-d", "HEAD")
        if paths:
            relative = [self._relative(path) for path in paths]
            self.git("rm", "-r", "-f", "-q", "--ignore-unmatch", "--", *relative)

    # -------------------------------------------------------------- branches
    def create_branch_at_head(self, name: str) -> None:
        """Create branch ``name`` pointing at the current revision."""

        self._run_git(["branch", name])

    def _relative(self, path: Path | str) -> str:
        candidate = Path(path)
        if candidate.is_absolute():
            try:
                candidate = candidate.resolve().relative_to(self.root)
            except ValueError:
                return str(path)
        return candidate.as_posix()


__all__ = ["DEFAULT_USER_EMAIL", "DEFAULT_USER_NAME", "GitError", "GitRepository"]
