"""Version parsing, ordering and arithmetic."""

from .comparable import ComparableVersion, compare_versions
from .info import (
    SNAPSHOT,
    VersionInfo,
    is_snapshot_version,
    is_timestamped_snapshot,
    parse_version,
)
from .semver import SemVer, SemVerElement, parse_semver

__all__ = [
    "ComparableVersion",
    "compare_versions",
    "SNAPSHOT",
    "VersionInfo",
    "is_snapshot_version",
    "is_timestamped_snapshot",
    "parse_version",
    "SemVer",
    "SemVerElement",
    "parse_semver",
]
