"""Patch-list text editor for TOML manifests.

The manifest is never re-serialized. Edits are recorded as a list of
``TextPatch`` replacements over the original text and applied in one pass, so
every byte outside the patched ranges (comments, ordering, spacing) is kept.

Only string values of ``key = "value"`` lines are located; that covers every
field a release rewrites (versions, SCM settings).
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from relflow.core.errors import ErrorKind, ReleaseError
from relflow.core.result import Err, Ok, Result

__all__ = [
    "TextPatch",
    "ValueSpan",
    "apply_patches",
    "find_table_end",
    "find_value",
    "format_string",
    "insert_keys",
    "replace_value",
]

_HEADER_RE = re.compile(r"^\s*\[(?!\[)\s*([^\]]+?)\s*\]\s*(?:#.*)?$")
_ARRAY_HEADER_RE = re.compile(r"^\s*\[\[")
_KEY_VALUE_RE = re.compile(
    r"""^(?P<indent>\s*)
        (?P<key>[A-Za-z0-9_-]+|"(?:[^"\\]|\\.)*"|'[^']*')
        \s*=\s*
        (?P<value>"(?:[^"\\\n]|\\.)*"|'[^'\n]*')""",
    re.VERBOSE,
)


@dataclass(frozen=True, slots=True)
class TextPatch:
    """Replace ``text[start:end]`` with ``replacement`` (``start == end`` inserts)."""

    start: int
    end: int
    replacement: str


@dataclass(frozen=True, slots=True)
class ValueSpan:
    start: int
    end: int
    raw: str


def _normalize_table(name: str) -> str:
    parts = [p.strip().strip('"').strip("'") for p in name.split(".")]
    return ".".join(parts)


def _unquote_key(key: str) -> str:
    if len(key) >= 2 and key[0] == key[-1] and key[0] in "\"'":
        return key[1:-1]
    return key


def _lines(text: str) -> Iterable[tuple[int, str]]:
    offset = 0
    for line in text.splitlines(keepends=True):
        yield offset, line
        offset += len(line)


def find_value(text: str, table: str, key: str) -> ValueSpan | None:
    """Locate the string value of ``key`` in ``[table]`` (``""`` is the root table)."""
    current = ""
    for offset, line in _lines(text):
        if _ARRAY_HEADER_RE.match(line):
            current = "\0"
            continue
        header = _HEADER_RE.match(line)
        if header is not None:
            current = _normalize_table(header.group(1))
            continue
        if current != table:
            continue
        m = _KEY_VALUE_RE.match(line)
        if m is None or _unquote_key(m.group("key")) != key:
            continue
        return ValueSpan(
            start=offset + m.start("value"),
            end=offset + m.end("value"),
            raw=m.group("value"),
        )
    return None


def find_table_end(text: str, table: str) -> int | None:
    """Offset just after the last non-blank line of ``[table]``, None if absent."""
    current = ""
    found = table == ""
    end = 0 if found else None
    for offset, line in _lines(text):
        if _ARRAY_HEADER_RE.match(line):
            current = "\0"
            continue
        header = _HEADER_RE.match(line)
        if header is not None:
            current = _normalize_table(header.group(1))
            if current == table:
                found = True
                end = offset + len(line)
            continue
        if current == table and line.strip():
            end = offset + len(line)
    return end if found else None


def format_string(value: str) -> str:
    """A TOML basic string literal."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def _format_key(key: str) -> str:
    return key if re.fullmatch(r"[A-Za-z0-9_-]+", key) else format_string(key)


def replace_value(text: str, table: str, key: str, value: str) -> TextPatch | None:
    span = find_value(text, table, key)
    if span is None:
        return None
    return TextPatch(span.start, span.end, format_string(value))


def insert_keys(text: str, table: str, entries: Sequence[tuple[str, str]]) -> TextPatch:
    """Insert ``key = "value"`` lines, creating ``[table]`` at the end if needed."""
    lines = "".join(f"{_format_key(k)} = {format_string(v)}\n" for k, v in entries)
    end = find_table_end(text, table)
    if end is None:
        if not text:
            prefix = ""
        elif text.endswith("\n"):
            prefix = "\n"
        else:
            prefix = "\n\n"
        return TextPatch(len(text), len(text), f"{prefix}[{table}]\n{lines}")
    if end > 0 and text[end - 1] != "\n":
        return TextPatch(end, end, "\n" + lines)
    return TextPatch(end, end, lines)


def apply_patches(text: str, patches: Iterable[TextPatch]) -> Result[str, ReleaseError]:
    """Apply non-overlapping patches to ``text``.

    Patches may come in any order. Two patches that overlap (or two inserts at
    the same offset) are rejected.
    """
    ordered = sorted(patches, key=lambda p: (p.start, p.end))
    for before, after in zip(ordered, ordered[1:]):
        if after.start < before.end or (after.start == before.start and after.start == after.end):
            return Err(
                ReleaseError(
                    kind=ErrorKind.EXECUTION,
                    message=f"Overlapping manifest edits at offsets {before.start}-{before.end} "
                    f"and {after.start}-{after.end}",
                )
            )
    for patch in ordered:
        if patch.start < 0 or patch.end > len(text) or patch.start > patch.end:
            return Err(
                ReleaseError(
                    kind=ErrorKind.EXECUTION,
                    message=f"Manifest edit out of range: {patch.start}-{patch.end}",
                )
            )

    out = text
    for patch in reversed(ordered):
        out = out[: patch.start] + patch.replacement + out[patch.end :]
    return Ok(out)
