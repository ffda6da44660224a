"""Filesystem helpers."""

from __future__ import annotations

import os
import shutil
import stat
import tempfile
from collections.abc import Callable
from pathlib import Path

__all__ = ["atomic_write_text", "copy_text", "remove_if_exists", "remove_tree"]


def atomic_write_text(path: Path, content: str, *, encoding: str = "utf-8") -> None:
    """Write text to path through a sibling temp file, then rename over it."""
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.",
        suffix=".tmp",
        dir=str(path.parent),
    )
    tmp_path = Path(tmp_name)

    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)


def copy_text(source: Path, target: Path, *, encoding: str = "utf-8") -> None:
    """Copy a text file byte for byte (no newline translation)."""
    with source.open("r", encoding=encoding, newline="") as handle:
        content = handle.read()
    atomic_write_text(target, content, encoding=encoding)


def remove_if_exists(path: Path) -> bool:
    """Delete a file; returns False when there was nothing to delete."""
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True


def _remove_readonly(_func: Callable[[str], object], path: str, exc: BaseException) -> None:
    """Handle read-only files on Windows (e.g. .git/objects/pack/*.idx)."""
    if isinstance(exc, PermissionError):
        os.chmod(path, stat.S_IWRITE)
        os.unlink(path)
    else:
        raise exc


def remove_tree(path: Path) -> bool:
    """Delete a directory tree (a git clone included); False if it did not exist."""
    if not path.exists():
        return False
    shutil.rmtree(path, onexc=_remove_readonly)
    return True
