from __future__ import annotations

from pathlib import Path

import pytest

from rgr.structured import EditSet, FileEdit
from rgr.tools.edits import EditError, apply_edit_set


def test_empty_edit_set_touches_nothing(tmp_path: Path) -> None:
    touched = apply_edit_set(tmp_path, EditSet(files=[]))

    assert touched == []
    assert list(tmp_path.iterdir()) == []


def test_rewrite_creates_parent_directories(tmp_path: Path) -> None:
    edit_set = EditSet(files=[FileEdit(path="tests/nested/test_add.rs", mode="rewrite", content="#[test]\n")])

    touched = apply_edit_set(tmp_path, edit_set)

    target = tmp_path / "tests" / "nested" / "test_add.rs"
    assert touched == [target.resolve()]
    assert target.read_text(encoding="utf-8") == "#[test]\n"


def test_rewrite_replaces_existing_content(tmp_path: Path) -> None:
    target = tmp_path / "lib.rs"
    target.write_text("old contents that are longer\n", encoding="utf-8")

    apply_edit_set(tmp_path, EditSet(files=[FileEdit(path="lib.rs", mode="rewrite", content="new\n")]))

    assert target.read_text(encoding="utf-8") == "new\n"


def test_append_extends_existing_file(tmp_path: Path) -> None:
    target = tmp_path / "notes.md"
    target.write_text("first\n", encoding="utf-8")

    apply_edit_set(tmp_path, EditSet(files=[FileEdit(path="notes.md", mode="append", content="second\n")]))

    assert target.read_text(encoding="utf-8") == "first\nsecond\n"


def test_append_creates_missing_file(tmp_path: Path) -> None:
    apply_edit_set(tmp_path, EditSet(files=[FileEdit(path="logs/run.log", mode="append", content="x")]))

    assert (tmp_path / "logs" / "run.log").read_text(encoding="utf-8") == "x"


def test_repeated_paths_are_applied_in_order_and_reported_twice(tmp_path: Path) -> None:
    edit_set = EditSet(
        files=[
            FileEdit(path="a.txt", mode="rewrite", content="one\n"),
            FileEdit(path="a.txt", mode="append", content="two\n"),
            FileEdit(path="b.txt", mode="rewrite", content="first"),
            FileEdit(path="b.txt", mode="rewrite", content="second"),
        ]
    )

    touched = apply_edit_set(tmp_path, edit_set)

    assert [path.name for path in touched] == ["a.txt", "a.txt", "b.txt", "b.txt"]
    assert (tmp_path / "a.txt").read_text(encoding="utf-8") == "one\ntwo\n"
    assert (tmp_path / "b.txt").read_text(encoding="utf-8") == "second"


def test_paths_escaping_the_root_are_refused(tmp_path: Path) -> None:
    root = tmp_path / "project"
    root.mkdir()
    edit_set = EditSet(
        files=[
            FileEdit(path="ok.txt", mode="rewrite", content="ok"),
            FileEdit(path="../escaped.txt", mode="rewrite", content="nope"),
        ]
    )

    with pytest.raises(EditError) as excinfo:
        apply_edit_set(root, edit_set)

    assert excinfo.value.path == "../escaped.txt"
    assert not (tmp_path / "escaped.txt").exists()
    # Earlier edits in the set are not rolled back.
    assert (root / "ok.txt").read_text(encoding="utf-8") == "ok"


def test_git_directory_is_refused(tmp_path: Path) -> None:
    edit_set = EditSet(files=[FileEdit(path=".git/config", mode="append", content="[core]\n")])

    with pytest.raises(EditError):
        apply_edit_set(tmp_path, edit_set)


def test_unconfined_edits_may_leave_the_root(tmp_path: Path) -> None:
    root = tmp_path / "project"
    root.mkdir()

    touched = apply_edit_set(
        root,
        EditSet(files=[FileEdit(path="../sibling.txt", mode="rewrite", content="x")]),
        confine=False,
    )

    assert len(touched) == 1
    assert (tmp_path / "sibling.txt").read_text(encoding="utf-8") == "x"
