"""Typed payloads that describe the structured edits emitted by role backends."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Literal, Mapping, Optional

from pydantic import ValidationError
from pydantic.type_adapter import TypeAdapter

EditMode = Literal["rewrite", "append"]


class EditSetFormatError(ValueError):
    """Raised when a decoded payload does not match the edit set schema."""


@dataclass(slots=True)
class FileEdit:
    """Single file change: replace the whole file or append to it.

    ``path`` and ``content`` are required; ``mode`` falls back to ``rewrite``.
    """

    path: str
    content: str
    mode: EditMode = "rewrite"


@dataclass(slots=True)
class EditSet:
    """Ordered file edits plus an optional commit message and notes."""

    files: list[FileEdit] = field(default_factory=list)
    commit_message: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "EditSet":
        """Validate a decoded JSON object and return an :class:`EditSet`."""
        if not isinstance(payload, Mapping):
            raise EditSetFormatError(
                f"Expected a JSON object for the edit set, got {type(payload).__name__}."
            )
        data = _normalise_payload(payload)
        try:
            return _edit_set_adapter().validate_python(data)
        except ValidationError as error:
            raise EditSetFormatError(f"Edit set does not match schema: {error}") from error

    def message_or(self, default: str) -> str:
        """Return the commit message, falling back to ``default`` when absent."""
        message = (self.commit_message or "").strip()
        return message or default


def _normalise_payload(payload: Mapping[str, Any]) -> dict[str, Any]:
    """Drop unknown keys and tidy the fields models commonly get slightly wrong."""
    files = payload.get("files")
    if files is None:
        files = []
    cleaned_files: Any = files
    if isinstance(files, list):
        cleaned_files = []
        for entry in files:
            if not isinstance(entry, Mapping):
                cleaned_files.append(entry)
                continue
            item = {key: entry[key] for key in ("path", "mode", "content") if key in entry}
            mode = item.get("mode")
            if mode is None:
                item.pop("mode", None)
            elif isinstance(mode, str):
                item["mode"] = mode.strip().lower()
            cleaned_files.append(item)
    return {
        "files": cleaned_files,
        "commit_message": payload.get("commit_message"),
        "notes": payload.get("notes"),
    }


@lru_cache(maxsize=None)
def _edit_set_adapter() -> TypeAdapter:
    return TypeAdapter(EditSet)


def extract_json_object(text: str) -> str | None:
    """Return the first balanced top-level ``{...}`` span in ``text``.

    Braces inside JSON string literals are ignored so that file contents
    carrying code do not confuse the scan.
    """
    depth = 0
    start: int | None = None
    in_string = False
    escaped = False
    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"' and depth > 0:
            in_string = True
        elif char == "{":
            if depth == 0:
                start = index
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0 and start is not None:
                return text[start : index + 1]
    return None


__all__ = [
    "EditMode",
    "EditSet",
    "EditSetFormatError",
    "FileEdit",
    "extract_json_object",
]
