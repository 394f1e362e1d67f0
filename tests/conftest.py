from __future__ import annotations

import subprocess
import sys
from collections import deque
from pathlib import Path
from typing import Iterable

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from rgr.models.llm_client import LLMClient  # noqa: E402
from rgr.structured import EditSet, FileEdit  # noqa: E402
from rgr.tools.vcs import GitRepository  # noqa: E402


class ScriptedClient(LLMClient):
    """Role backend that replays queued edit sets (or exceptions) in order."""

    def __init__(self, responses: Iterable[EditSet | Exception] = ()) -> None:
        super().__init__("scripted")
        self.responses: deque[EditSet | Exception] = deque(responses)
        self.calls: list[tuple[str, str, str]] = []

    def generate_patch(self, role: str, context: str, instructions: str) -> EditSet:
        self.calls.append((role, context, instructions))
        if not self.responses:
            raise AssertionError(f"No scripted response left for {role}")
        response = self.responses.popleft()
        if isinstance(response, Exception):
            raise response
        return response


def write(path: str, content: str, *, message: str | None = None, mode: str = "rewrite") -> EditSet:
    return EditSet(files=[FileEdit(path=path, mode=mode, content=content)], commit_message=message)


def git_output(root: Path, *args: str) -> str:
    result = subprocess.run(["git", *args], cwd=root, check=True, capture_output=True, text=True)
    return result.stdout.strip()


def commit_count(root: Path, base: str, head: str = "HEAD") -> int:
    return int(git_output(root, "rev-list", "--count", f"{base}..{head}"))


@pytest.fixture()
def project(tmp_path: Path) -> Path:
    root = tmp_path / "kata"
    root.mkdir()
    return root


@pytest.fixture()
def repo(project: Path) -> GitRepository:
    """A git repository with one baseline commit."""
    repository = GitRepository(project)
    repository.ensure_repo()
    (project / "README.md").write_text("# kata\n", encoding="utf-8")
    repository.commit_paths([project / "README.md"], "baseline")
    return repository
