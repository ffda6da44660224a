"""Generic version ordering.

Orders arbitrary version strings by splitting them into numeric, qualifier and
nested-list items, the same scheme artifact repositories use:

- ``.`` separates items, ``-`` opens a nested list, and a transition between
  digits and letters opens a nested list as well (``1.0alpha1`` == ``1.0-alpha-1``).
- Trailing "null" items (``0``, empty qualifiers, ``ga``/``final``/``release``)
  are dropped, so ``1.0.0`` == ``1``.
- Well-known qualifiers sort as
  ``alpha < beta < milestone < rc = cr < snapshot < "" < sp``; unknown qualifiers
  sort after all known ones, lexically among themselves.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import total_ordering

__all__ = ["ComparableVersion", "compare_versions"]

_QUALIFIERS = ("alpha", "beta", "milestone", "rc", "snapshot", "", "sp")
_ALIASES = {"ga": "", "final": "", "release": "", "cr": "rc"}
_RELEASE_VERSION_INDEX = str(_QUALIFIERS.index(""))


def _comparable_qualifier(qualifier: str) -> str:
    if qualifier in _QUALIFIERS:
        return str(_QUALIFIERS.index(qualifier))
    return f"{len(_QUALIFIERS)}-{qualifier}"


def _cmp(a: object, b: object) -> int:
    return (a > b) - (a < b)  # type: ignore[operator]


@dataclass(frozen=True, slots=True)
class _IntItem:
    value: int

    def is_null(self) -> bool:
        return self.value == 0

    def compare(self, other: _Item | None) -> int:
        if other is None:
            return 0 if self.value == 0 else 1
        if isinstance(other, _IntItem):
            return _cmp(self.value, other.value)
        # 1.1 > 1-sp and 1.1 > 1-1
        return 1


@dataclass(frozen=True, slots=True)
class _StringItem:
    value: str

    @staticmethod
    def of(value: str, followed_by_digit: bool) -> _StringItem:
        if followed_by_digit and len(value) == 1:
            value = {"a": "alpha", "b": "beta", "m": "milestone"}.get(value, value)
        return _StringItem(_ALIASES.get(value, value))

    def is_null(self) -> bool:
        return _comparable_qualifier(self.value) == _RELEASE_VERSION_INDEX

    def compare(self, other: _Item | None) -> int:
        if other is None:
            # 1-rc < 1, 1-ga > 1
            return _cmp(_comparable_qualifier(self.value), _RELEASE_VERSION_INDEX)
        if isinstance(other, _IntItem):
            return -1
        if isinstance(other, _StringItem):
            return _cmp(_comparable_qualifier(self.value), _comparable_qualifier(other.value))
        return -1


@dataclass(slots=True)
class _ListItem:
    items: list[_Item] = field(default_factory=list)

    def is_null(self) -> bool:
        return not self.items

    def normalize(self) -> None:
        for i in range(len(self.items) - 1, -1, -1):
            last = self.items[i]
            if last.is_null():
                del self.items[i]
            elif not isinstance(last, _ListItem):
                break

    def compare(self, other: _Item | None) -> int:
        if other is None:
            if not self.items:
                return 0
            return self.items[0].compare(None)
        if isinstance(other, _IntItem):
            return -1
        if isinstance(other, _StringItem):
            return 1

        left = self.items
        right = other.items
        for i in range(max(len(left), len(right))):
            l = left[i] if i < len(left) else None
            r = right[i] if i < len(right) else None
            if l is None:
                result = 0 if r is None else -r.compare(None)
            else:
                result = l.compare(r)
            if result != 0:
                return result
        return 0


type _Item = _IntItem | _StringItem | _ListItem


def _parse_item(is_digit: bool, buf: str, followed_by_digit: bool = False) -> _Item:
    if is_digit:
        return _IntItem(int(buf))
    return _StringItem.of(buf, followed_by_digit)


def _parse(version: str) -> _ListItem:
    version = version.lower()
    root = _ListItem()
    current = root
    stack: list[_ListItem] = [root]

    is_digit = False
    start = 0

    for i, c in enumerate(version):
        if c == ".":
            current.items.append(_IntItem(0) if i == start else _parse_item(is_digit, version[start:i]))
            start = i + 1
        elif c == "-":
            current.items.append(_IntItem(0) if i == start else _parse_item(is_digit, version[start:i]))
            start = i + 1
            nested = _ListItem()
            current.items.append(nested)
            current = nested
            stack.append(nested)
        elif c.isdigit():
            if not is_digit and i > start:
                current.items.append(_StringItem.of(version[start:i], True))
                start = i
                nested = _ListItem()
                current.items.append(nested)
                current = nested
                stack.append(nested)
            is_digit = True
        else:
            if is_digit and i > start:
                current.items.append(_parse_item(True, version[start:i]))
                start = i
                nested = _ListItem()
                current.items.append(nested)
                current = nested
                stack.append(nested)
            is_digit = False

    if len(version) > start:
        current.items.append(_parse_item(is_digit, version[start:]))

    while stack:
        stack.pop().normalize()

    return root


@total_ordering
class ComparableVersion:
    """A version string with a total order; equal versions may differ textually."""

    __slots__ = ("value", "_items")

    def __init__(self, value: str) -> None:
        self.value = value
        self._items = _parse(value)

    def compare(self, other: ComparableVersion) -> int:
        return self._items.compare(other._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ComparableVersion):
            return NotImplemented
        return self.compare(other) == 0

    def __lt__(self, other: ComparableVersion) -> bool:
        return self.compare(other) < 0

    def __hash__(self) -> int:
        return hash(repr(self._items))

    def __repr__(self) -> str:
        return f"ComparableVersion({self.value!r})"


def compare_versions(left: str, right: str) -> int:
    """Compare two version strings; returns -1, 0 or 1."""
    return ComparableVersion(left).compare(ComparableVersion(right))
