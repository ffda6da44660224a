"""Version string decomposition and arithmetic.

Supported scheme::

    digits [sep] annotation [sep] annotationRevision [sep] buildSpecifier
    1.0.1  -     alpha      -     2                  -     SNAPSHOT

``digits`` is the only required part. Separators (``-`` or ``_``) are optional
and remembered, so a parsed version prints back exactly as it was written.
Labels made only of a branch name and the snapshot marker (``trunk-SNAPSHOT``,
``SNAPSHOT``) are accepted as opaque snapshot versions without digits.

Leading zeros are significant: incrementing ``01`` yields ``02``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from functools import total_ordering

from relflow.core.errors import ErrorKind, ReleaseError
from relflow.core.result import Err, Ok, Result
from relflow.versions.comparable import ComparableVersion, compare_versions

__all__ = [
    "SNAPSHOT",
    "VersionInfo",
    "is_snapshot_version",
    "is_timestamped_snapshot",
    "parse_version",
]

SNAPSHOT = "SNAPSHOT"
DEFAULT_BASE_VERSION = "1.0"

_STANDARD_RE = re.compile(
    r"((?:\d+\.)*\d+)"  # digits: 1, 1.22.0
    r"([-_])?"  # annotation separator
    r"([a-zA-Z]*)"  # annotation: alpha, beta, RC
    r"([-_])?"  # annotation revision separator
    r"(\d*)"  # annotation revision
    r"(?:([-_])?(.*?))?"  # build separator + build specifier
)
_ALTERNATE_RE = re.compile(r"SNAPSHOT|[a-zA-Z]+[_-]SNAPSHOT")
_TIMESTAMPED_RE = re.compile(r"(.*)-(\d{8}\.\d{6})-(\d+)")
_SNAPSHOT_SUFFIX_RE = re.compile(r"(.*)[-_]SNAPSHOT", re.IGNORECASE)


def is_snapshot_version(version: str) -> bool:
    """True for ``-SNAPSHOT`` suffixed or timestamped snapshot versions."""
    if version.upper().endswith(SNAPSHOT):
        return True
    return _TIMESTAMPED_RE.fullmatch(version) is not None


def is_timestamped_snapshot(version: str) -> bool:
    """True for deployed snapshot versions such as ``1.0-20240101.120000-3``."""
    return _TIMESTAMPED_RE.fullmatch(version) is not None


def _increment(value: str) -> str:
    """Increment a digit string, keeping any zero padding."""
    return str(int(value) + 1).zfill(len(value))


@total_ordering
@dataclass(frozen=True, slots=True, eq=False)
class VersionInfo:
    """A parsed version. Build new instances with the ``with_*`` helpers."""

    text: str
    digits: tuple[str, ...] | None
    annotation: str | None = None
    annotation_revision: str | None = None
    build_specifier: str | None = None
    annotation_separator: str | None = None
    annotation_revision_separator: str | None = None
    build_separator: str | None = None

    def __str__(self) -> str:
        return self.text

    @property
    def is_snapshot(self) -> bool:
        return is_snapshot_version(self.text)

    def next_version(self) -> VersionInfo | None:
        """The next version, or None for versions without digits."""
        if self.digits is None:
            return None
        revision = self.annotation_revision
        if revision is not None and revision.isdigit():
            return self.with_annotation_revision(_increment(revision))
        digits = list(self.digits)
        digits[-1] = _increment(digits[-1])
        return self.with_digits(tuple(digits))

    def release_version_string(self) -> str:
        timestamped = _TIMESTAMPED_RE.fullmatch(self.text)
        if timestamped is not None:
            return timestamped.group(1)
        suffixed = _SNAPSHOT_SUFFIX_RE.fullmatch(self.text)
        if suffixed is not None:
            return suffixed.group(1)
        if self.text == SNAPSHOT:
            return DEFAULT_BASE_VERSION
        return self.text

    def snapshot_version_string(self) -> str:
        if self.text == SNAPSHOT:
            return self.text
        base = self.release_version_string()
        if base:
            # always "-": "1.0_SNAPSHOT" becomes "1.0-SNAPSHOT"
            base += "-"
        return base + SNAPSHOT

    def compare_to(self, other: VersionInfo) -> int:
        this = self.text
        that = other.text
        # 1.01 must sort below 1.01.01, which plain item comparison gets wrong
        if this != that and this.startswith(that) and this[len(that)] != "-":
            return 1
        if this != that and that.startswith(this) and that[len(this)] != "-":
            return -1
        return compare_versions(this.lower(), that.lower())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionInfo):
            return NotImplemented
        return self.compare_to(other) == 0

    def __lt__(self, other: VersionInfo) -> bool:
        return self.compare_to(other) < 0

    def __hash__(self) -> int:
        # equal versions can be spelled differently: 1.0alpha1 == 1.0-alpha-1
        return hash(ComparableVersion(self.text.lower()))

    def with_digits(self, digits: tuple[str, ...]) -> VersionInfo:
        return _rebuild(replace(self, digits=digits))

    def with_annotation_revision(self, revision: str | None) -> VersionInfo:
        return _rebuild(replace(self, annotation_revision=revision))

    def with_build_specifier(self, specifier: str | None, separator: str = "-") -> VersionInfo:
        if specifier is None:
            return _rebuild(replace(self, build_specifier=None, build_separator=None))
        return _rebuild(
            replace(
                self,
                build_specifier=specifier,
                build_separator=self.build_separator or separator,
            )
        )


def _format(info: VersionInfo) -> str:
    parts: list[str] = []
    if info.digits is not None:
        parts.append(".".join(info.digits))

    if info.annotation:
        parts.append(info.annotation_separator or "")
        parts.append(info.annotation)

    if info.annotation_revision:
        if info.annotation:
            parts.append(info.annotation_revision_separator or "")
        else:
            parts.append(info.annotation_separator or "")
        parts.append(info.annotation_revision)

    if info.build_specifier:
        parts.append(info.build_separator or "")
        parts.append(info.build_specifier)

    return "".join(parts)


def _rebuild(info: VersionInfo) -> VersionInfo:
    return replace(info, text=_format(info))


def parse_version(text: str) -> Result[VersionInfo, ReleaseError]:
    """Parse a version string.

    Returns:
        Ok(VersionInfo) on success, Err(ReleaseError) of kind PARSE otherwise.
    """
    if _ALTERNATE_RE.fullmatch(text):
        return Ok(VersionInfo(text=text, digits=None, build_specifier=text))

    m = _STANDARD_RE.fullmatch(text)
    if m is None:
        return Err(
            ReleaseError(
                kind=ErrorKind.PARSE,
                message=f'Unable to parse the version string: "{text}"',
            )
        )

    digits = tuple(m.group(1).split("."))
    annotation = m.group(3)

    if annotation == SNAPSHOT:
        return Ok(
            VersionInfo(
                text=text,
                digits=digits,
                build_separator=m.group(2),
                build_specifier=annotation,
            )
        )

    if m.group(4) and not m.group(5):
        # the build separator was picked up as the annotation revision separator
        return Ok(
            VersionInfo(
                text=text,
                digits=digits,
                annotation=annotation or None,
                annotation_separator=m.group(2),
                build_separator=m.group(4),
                build_specifier=m.group(7) or None,
            )
        )

    return Ok(
        VersionInfo(
            text=text,
            digits=digits,
            annotation=annotation or None,
            annotation_revision=m.group(5) or None,
            build_specifier=m.group(7) or None,
            annotation_separator=m.group(2),
            annotation_revision_separator=m.group(4),
            build_separator=m.group(6),
        )
    )
