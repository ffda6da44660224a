from __future__ import annotations

import os
from pathlib import Path

import pytest

from relflow.platform.files import atomic_write_text, copy_text, remove_if_exists, remove_tree


def test_atomic_write_text_creates_parent_dirs(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "release.properties"
    atomic_write_text(path, "completedPhase=scm-tag\n")

    assert path.read_text(encoding="utf-8") == "completedPhase=scm-tag\n"


def test_atomic_write_text_cleans_temp_file_on_replace_failure(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    path = tmp_path / "release.properties"

    def fail_replace(_src: Path, _dst: Path) -> None:
        raise OSError("replace failed")

    monkeypatch.setattr(os, "replace", fail_replace)

    with pytest.raises(OSError, match="replace failed"):
        atomic_write_text(path, "payload")

    assert list(tmp_path.iterdir()) == []


def test_copy_text_keeps_line_endings(tmp_path: Path) -> None:
    source = tmp_path / "pyproject.toml"
    source.write_bytes(b'[project]\r\nversion = "1.0"\r\n')

    copy_text(source, tmp_path / "pyproject.toml.releaseBackup")

    assert (tmp_path / "pyproject.toml.releaseBackup").read_bytes() == source.read_bytes()


def test_remove_if_exists(tmp_path: Path) -> None:
    path = tmp_path / "x"
    path.write_text("x")
    assert remove_if_exists(path) is True
    assert remove_if_exists(path) is False


def test_remove_tree(tmp_path: Path) -> None:
    tree = tmp_path / "target" / "checkout"
    (tree / "sub").mkdir(parents=True)
    (tree / "sub" / "file.txt").write_text("x")

    assert remove_tree(tree) is True
    assert not tree.exists()
    assert remove_tree(tree) is False
