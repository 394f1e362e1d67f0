"""Offline backend used by the template configuration and for dry runs."""

from __future__ import annotations

from .llm_client import LLMClient
from ..structured import EditSet, FileEdit

__all__ = ["MOCK_LOG_PATH", "MockClient"]

MOCK_LOG_PATH = "red-green-refactor-mock.log"

_ROLE_LINES = {
    "tester": "// TODO: add a failing test\n",
    "implementor": "// TODO: implement feature to make tests pass\n",
}
_DEFAULT_LINE = "// TODO: refactor without changing behavior\n"


class MockClient(LLMClient):
    """Deterministic stub that appends a role marker to a log file."""

    def __init__(self, model: str = "mock") -> None:
        super().__init__(model)

    def generate_patch(self, role: str, context: str, instructions: str) -> EditSet:
        content = _ROLE_LINES.get(role, _DEFAULT_LINE)
        return EditSet(
            files=[FileEdit(path=MOCK_LOG_PATH, mode="append", content=content)],
            commit_message=f"chore({role}): mock patch",
        )
