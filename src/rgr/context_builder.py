"""Collect a size-bounded snapshot of the project for role prompts."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator

LOGGER = logging.getLogger(__name__)

FILE_HEADER = "\n===== FILE: {path} =====\n"

_SKIPPED_DIRS: frozenset[str] = frozenset(
    {
        ".git",
        ".hg",
        ".svn",
        ".venv",
        "venv",
        ".tox",
        ".mypy_cache",
        ".pytest_cache",
        ".ruff_cache",
        "__pycache__",
        "node_modules",
        "target",
        "build",
        "dist",
    }
)

_SOURCE_SUFFIXES: frozenset[str] = frozenset(
    {
        ".rs",
        ".py",
        ".go",
        ".js",
        ".ts",
        ".java",
        ".kt",
        ".rb",
        ".c",
        ".h",
        ".cpp",
        ".hpp",
        ".cs",
        ".md",
    }
)

_MANIFEST_NAMES: frozenset[str] = frozenset(
    {
        "Cargo.toml",
        "pyproject.toml",
        "setup.cfg",
        "requirements.txt",
        "package.json",
        "go.mod",
        "pom.xml",
        "build.gradle",
        "Gemfile",
    }
)

_INCLUDED_PREFIXES: tuple[str, ...] = ("src/", "tests/", "benches/", "examples/")


def should_include(relative: str) -> bool:
    """Return ``True`` when ``relative`` (posix form) belongs in the context."""
    name = relative.rsplit("/", 1)[-1]
    if name in _MANIFEST_NAMES or name.startswith("README"):
        return True
    if relative.startswith(_INCLUDED_PREFIXES):
        return True
    return Path(name).suffix in _SOURCE_SUFFIXES


def _walk(root: Path) -> Iterator[Path]:
    for current, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(name for name in dirnames if name not in _SKIPPED_DIRS)
        for filename in sorted(filenames):
            yield Path(current) / filename


def collect_context(project_root: Path | str, max_bytes: int) -> str:
    """Concatenate project files under a byte budget.

    Files are visited in sorted traversal order and the scan stops at the
    first file whose header and contents would exceed ``max_bytes``.
    """
    root = Path(project_root)
    chunks: list[str] = []
    total = 0
    for path in _walk(root):
        relative = path.relative_to(root).as_posix()
        if not should_include(relative):
            continue
        try:
            contents = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            continue
        header = FILE_HEADER.format(path=relative)
        needed = len(header.encode("utf-8")) + len(contents.encode("utf-8"))
        if total + needed > max_bytes:
            LOGGER.debug("Context budget reached at %s (%d bytes used)", relative, total)
            break
        chunks.append(header)
        chunks.append(contents)
        total += needed
    return "".join(chunks)


__all__ = ["FILE_HEADER", "collect_context", "should_include"]
