"""Read and write the ``key=value`` properties format used by checkpoint files.

Supported on read: ``#``/``!`` comment lines, ``=``, ``:`` or whitespace
separators, backslash line continuations and the usual escapes (``\\t``,
``\\n``, ``\\uXXXX``...). On write, keys and values are escaped so that
``loads(dumps(m)) == m``.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime

__all__ = ["dumps", "loads"]

_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
_SEPARATORS = "=:"
_WHITESPACE = " \t\f"


def _escape(text: str, *, is_key: bool) -> str:
    out: list[str] = []
    for i, c in enumerate(text):
        if c == "\\":
            out.append("\\\\")
        elif c == "\t":
            out.append("\\t")
        elif c == "\n":
            out.append("\\n")
        elif c == "\r":
            out.append("\\r")
        elif c == "\f":
            out.append("\\f")
        elif c == " " and (is_key or i == 0):
            out.append("\\ ")
        elif c in "=:#!":
            out.append("\\" + c)
        elif ord(c) > 0xFFFF:
            # \uXXXX holds one UTF-16 code unit: write a surrogate pair
            high, low = divmod(ord(c) - 0x10000, 0x400)
            out.append(f"\\u{0xD800 + high:04x}\\u{0xDC00 + low:04x}")
        elif ord(c) < 0x20 or ord(c) > 0x7E:
            out.append(f"\\u{ord(c):04x}")
        else:
            out.append(c)
    return "".join(out)


def dumps(properties: Mapping[str, str], comment: str | None = None) -> str:
    """Serialize a mapping; keys are written in sorted order."""
    lines: list[str] = []
    if comment:
        lines.append(f"#{comment}")
    lines.append(f"#{datetime.now().strftime('%a %b %d %H:%M:%S %Y')}")
    for key in sorted(properties):
        lines.append(f"{_escape(key, is_key=True)}={_escape(properties[key], is_key=False)}")
    return "\n".join(lines) + "\n"


def _logical_lines(text: str) -> list[str]:
    result: list[str] = []
    pending: str | None = None
    for raw in text.splitlines():
        line = raw.lstrip(_WHITESPACE)
        if pending is None and (not line or line[0] in "#!"):
            continue
        if pending is not None:
            line = pending + line
        # an odd number of trailing backslashes continues the line
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending = line[:-1]
            continue
        pending = None
        result.append(line)
    if pending is not None:
        result.append(pending)
    return result


def _code_unit(text: str, i: int) -> int | None:
    """Value of a ``\\uXXXX`` escape starting at ``i``, if there is one."""
    if text[i : i + 2] != "\\u" or i + 6 > len(text):
        return None
    try:
        return int(text[i + 2 : i + 6], 16)
    except ValueError:
        return None


def _unescape(text: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(text):
        c = text[i]
        if c != "\\" or i + 1 >= len(text):
            out.append(c)
            i += 1
            continue
        unit = _code_unit(text, i)
        if unit is not None:
            i += 6
            if 0xD800 <= unit <= 0xDBFF:
                low = _code_unit(text, i)
                if low is not None and 0xDC00 <= low <= 0xDFFF:
                    unit = 0x10000 + ((unit - 0xD800) << 10) + (low - 0xDC00)
                    i += 6
            out.append(chr(unit))
            continue
        nxt = text[i + 1]
        out.append(_ESCAPES.get(nxt, nxt))
        i += 2
    return "".join(out)


def _split(line: str) -> tuple[str, str]:
    i = 0
    while i < len(line):
        c = line[i]
        if c == "\\":
            i += 2
            continue
        if c in _SEPARATORS or c in _WHITESPACE:
            break
        i += 1
    key = line[:i]
    rest = line[i:].lstrip(_WHITESPACE)
    if rest and rest[0] in _SEPARATORS:
        rest = rest[1:].lstrip(_WHITESPACE)
    return key, rest


def loads(text: str) -> dict[str, str]:
    """Parse properties text; later duplicates win."""
    properties: dict[str, str] = {}
    for line in _logical_lines(text):
        key, value = _split(line)
        properties[_unescape(key)] = _unescape(value)
    return properties
