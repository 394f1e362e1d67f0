"""Prompt templates shared by the cycle controller and the role backends."""

from __future__ import annotations

from typing import Optional

BACKEND_SYSTEM_PROMPT = (
    "You are a code-modifying agent. Respond ONLY with a valid JSON object matching schema "
    "LlmPatch { files:[{path, mode: 'rewrite'|'append', content}], commit_message?, notes? }. "
    "No prose."
)

DEFAULT_TESTER_PROMPT = (
    "You are the Tester. Add a single failing test expressing a new behavior. "
    "Only output a JSON LlmPatch."
)
DEFAULT_IMPLEMENTOR_PROMPT = (
    "You are the Implementor. Make tests pass with minimal changes. Only output a JSON LlmPatch."
)
DEFAULT_REFACTORER_PROMPT = (
    "You are the Refactorer. Improve code without changing behavior. Keep tests passing. "
    "Only output a JSON LlmPatch."
)

TESTER_TASK = (
    "Task: Add exactly one failing unit test (red) for the next small behavior in the kata. "
    "Do not modify implementation code. Output ONLY JSON of schema LlmPatch."
)
IMPLEMENTOR_TASK = (
    "Task: Make the test suite pass with the simplest change. Keep edits minimal and focused. "
    "Use baby steps. Output ONLY JSON (LlmPatch).\n\nTest failures to fix:\n"
)
REFACTORER_TASK = (
    "Task: Refactor to improve clarity, remove duplication, and prepare for change. "
    "Don't change behavior. After edits, all tests must still pass. Keep steps small. "
    "Output ONLY JSON (LlmPatch)."
)


def _with_system_prompt(system_prompt: Optional[str], body: str) -> str:
    if system_prompt:
        return f"{system_prompt}\n\n{body}"
    return body


def build_tester_instructions(system_prompt: Optional[str]) -> str:
    return _with_system_prompt(system_prompt, TESTER_TASK)


def build_implementor_instructions(system_prompt: Optional[str], failing_output: str) -> str:
    """Embed the latest failing test output in the implementor task."""
    return _with_system_prompt(system_prompt, f"{IMPLEMENTOR_TASK}{failing_output}")


def build_refactorer_instructions(system_prompt: Optional[str]) -> str:
    return _with_system_prompt(system_prompt, REFACTORER_TASK)


def render_user_prompt(role: str, instructions: str, context: str) -> str:
    """Render the user message sent to a backend."""
    return f"Role: {role}\nInstructions:\n{instructions}\n\nProject context (truncated):\n{context}"


__all__ = [
    "BACKEND_SYSTEM_PROMPT",
    "DEFAULT_IMPLEMENTOR_PROMPT",
    "DEFAULT_REFACTORER_PROMPT",
    "DEFAULT_TESTER_PROMPT",
    "IMPLEMENTOR_TASK",
    "REFACTORER_TASK",
    "TESTER_TASK",
    "build_implementor_instructions",
    "build_refactorer_instructions",
    "build_tester_instructions",
    "render_user_prompt",
]
