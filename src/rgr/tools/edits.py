"""Apply structured edit sets to the project tree."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from ..structured import EditSet, FileEdit

LOGGER = logging.getLogger(__name__)


class EditError(RuntimeError):
    """Raised when a file edit is rejected or cannot be written."""

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


def apply_edit_set(project_root: Path | str, edit_set: EditSet, *, confine: bool = True) -> List[Path]:
    """Apply every edit in order and return the touched paths.

    Duplicates are kept: a path edited twice is reported twice.  Edits are not
    atomic across files, so a failure leaves earlier writes in place.
    """
    root = Path(project_root).resolve()
    touched: List[Path] = []
    for edit in edit_set.files:
        target = resolve_edit_path(root, edit.path, confine=confine)
        _write_edit(target, edit)
        touched.append(target)
    LOGGER.debug("Applied %d edit(s) under %s", len(touched), root)
    return touched


def resolve_edit_path(root: Path, relative: str, *, confine: bool = True) -> Path:
    """Resolve ``relative`` under ``root``.

    With ``confine`` set, paths escaping ``root`` or reaching into ``.git`` are
    refused.
    """
    if not relative or not relative.strip():
        raise EditError("File edit is missing a path.", path=relative)
    target = root / relative
    if not confine:
        return target
    resolved = target.resolve()
    try:
        inside = resolved.relative_to(root)
    except ValueError:
        raise EditError(f"Refusing to write outside the project root: {relative}", path=relative) from None
    if not inside.parts:
        raise EditError(f"File edit targets the project root itself: {relative}", path=relative)
    if inside.parts[0] == ".git":
        raise EditError(f"Refusing to write into the git directory: {relative}", path=relative)
    return resolved


def _write_edit(target: Path, edit: FileEdit) -> None:
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        if edit.mode == "append":
            with target.open("a", encoding="utf-8", newline="") as handle:
                handle.write(edit.content)
        else:
            with target.open("w", encoding="utf-8", newline="") as handle:
                handle.write(edit.content)
    except OSError as error:
        raise EditError(f"Failed to {edit.mode} {edit.path}: {error}", path=edit.path) from error


__all__ = ["EditError", "apply_edit_set", "resolve_edit_path"]
