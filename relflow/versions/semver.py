from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

from relflow.core.errors import ErrorKind, ReleaseError
from relflow.core.result import Err, Ok, Result
from relflow.versions.info import SNAPSHOT

SemVerElement = Literal["major", "minor", "patch"]

_SEMVER_RE = re.compile(
    r"(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?",
    re.ASCII,
)


@dataclass(frozen=True, slots=True)
class SemVer:
    major: int
    minor: int
    patch: int
    pre_release: str | None = None
    metadata: str | None = None

    def __str__(self) -> str:
        out = f"{self.major}.{self.minor}.{self.patch}"
        if self.pre_release:
            out += f"-{self.pre_release}"
        if self.metadata:
            out += f"+{self.metadata}"
        return out

    @property
    def is_release(self) -> bool:
        return not self.pre_release and not self.metadata

    def to_release(self) -> SemVer:
        return SemVer(self.major, self.minor, self.patch)

    def to_snapshot(self) -> SemVer:
        if self.pre_release == SNAPSHOT and self.metadata is None:
            return self
        return SemVer(self.major, self.minor, self.patch, SNAPSHOT)

    def bump(self, kind: SemVerElement) -> SemVer:
        # a pre-release (or build metadata) already is the next version
        if not self.is_release:
            return self.to_release()
        match kind:
            case "major":
                return SemVer(self.major + 1, 0, 0)
            case "minor":
                return SemVer(self.major, self.minor + 1, 0)
            case "patch":
                return SemVer(self.major, self.minor, self.patch + 1)
            case _:
                raise AssertionError(f"unexpected bump kind: {kind}")


def parse_semver(version: str) -> Result[SemVer, ReleaseError]:
    text = version.strip()
    m = _SEMVER_RE.fullmatch(text) if text else None
    if m is None:
        return Err(
            ReleaseError(
                kind=ErrorKind.PARSE,
                message=f"Invalid semantic version format: {version}",
            )
        )
    return Ok(
        SemVer(
            major=int(m.group(1)),
            minor=int(m.group(2)),
            patch=int(m.group(3)),
            pre_release=m.group(4),
            metadata=m.group(5),
        )
    )
