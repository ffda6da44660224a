"""Version policies.

A version policy turns the version currently found in a manifest into the
version to release, the next development version, or the version a branch
should carry. Policies are looked up by id from ``VERSION_POLICIES``.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from relflow.core.errors import ErrorKind, ReleaseError
from relflow.core.result import Err, Ok, Result
from relflow.versions.info import SNAPSHOT, VersionInfo, parse_version
from relflow.versions.semver import SemVerElement, parse_semver

if TYPE_CHECKING:
    from relflow.release.collaborators import RepositoryProvider

__all__ = [
    "DEFAULT_VERSION_POLICY",
    "VERSION_POLICIES",
    "DefaultVersionPolicy",
    "OddEvenVersionPolicy",
    "SemVerDevelopmentVersionPolicy",
    "VersionPolicy",
    "VersionPolicyRequest",
    "get_version_policy",
]

DEFAULT_VERSION_POLICY = "default"


@dataclass(frozen=True, slots=True)
class VersionPolicyRequest:
    """Input of a version policy.

    Attributes:
        version: The version to start from.
        working_directory: Project checkout, for policies that inspect history.
        repository: Repository provider, for policies that inspect history.
        config: Free-form policy configuration.
    """

    version: str
    working_directory: Path | None = None
    repository: RepositoryProvider | None = None
    config: str | None = None


class VersionPolicy(Protocol):
    def release_version(self, request: VersionPolicyRequest) -> Result[str, ReleaseError]: ...

    def development_version(self, request: VersionPolicyRequest) -> Result[str, ReleaseError]: ...

    def branch_version(self, request: VersionPolicyRequest) -> Result[str, ReleaseError]: ...


class DefaultVersionPolicy:
    """Strip the snapshot marker to release, increment and re-add it to develop."""

    def release_version(self, request: VersionPolicyRequest) -> Result[str, ReleaseError]:
        return parse_version(request.version).map(lambda v: v.release_version_string())

    def development_version(self, request: VersionPolicyRequest) -> Result[str, ReleaseError]:
        parsed = parse_version(request.version)
        if isinstance(parsed, Err):
            return parsed
        nxt = parsed.value.next_version()
        if nxt is None:
            return Err(
                ReleaseError(
                    kind=ErrorKind.POLICY,
                    message=f"Cannot compute the next version of '{request.version}': it has no digits",
                )
            )
        return Ok(nxt.snapshot_version_string())

    def branch_version(self, request: VersionPolicyRequest) -> Result[str, ReleaseError]:
        return self.release_version(request)


class OddEvenVersionPolicy:
    """Release even versions only; develop on odd ones.

    The most significant segment is the annotation revision when it is numeric,
    otherwise the last digit group.
    """

    def release_version(self, request: VersionPolicyRequest) -> Result[str, ReleaseError]:
        return self._next(request, development=False)

    def development_version(self, request: VersionPolicyRequest) -> Result[str, ReleaseError]:
        return self._next(request, development=True)

    def branch_version(self, request: VersionPolicyRequest) -> Result[str, ReleaseError]:
        return self._next(request, development=False)

    def _next(self, request: VersionPolicyRequest, *, development: bool) -> Result[str, ReleaseError]:
        parsed = parse_version(request.version)
        if isinstance(parsed, Err):
            return Err(
                ReleaseError(
                    kind=ErrorKind.POLICY,
                    message=f"Can't tell if version with no digits is even: {parsed.error.message}",
                )
            )
        info = parsed.value
        if info.digits is None:
            return Err(
                ReleaseError(
                    kind=ErrorKind.POLICY,
                    message=f"Can't tell if version with no digits is even: {request.version}",
                )
            )

        bumped = _bump_to_parity(info, info.digits, development=development)
        if development:
            return Ok(str(bumped.with_build_specifier(SNAPSHOT)))
        return Ok(str(bumped.with_build_specifier(None)))


def _increments(*, development: bool, is_even: bool) -> int:
    if development and not is_even:
        return 2
    if not development and is_even:
        return 0
    # never reuse a revision
    return 1


def _bump_to_parity(
    info: VersionInfo, digits: tuple[str, ...], *, development: bool
) -> VersionInfo:
    revision = info.annotation_revision
    if revision is not None and revision.isdigit():
        segment = int(revision)
        skip = _increments(development=development, is_even=segment % 2 == 0)
        return info.with_annotation_revision(str(segment + skip))

    segment = int(digits[-1])
    skip = _increments(development=development, is_even=segment % 2 == 0)
    return info.with_digits((*digits[:-1], str(segment + skip)))


class SemVerDevelopmentVersionPolicy:
    """Strict semantic versioning; development bumps one element."""

    def __init__(self, element: SemVerElement) -> None:
        self.element = element

    def release_version(self, request: VersionPolicyRequest) -> Result[str, ReleaseError]:
        return parse_semver(request.version).map(lambda v: str(v.to_release()))

    def development_version(self, request: VersionPolicyRequest) -> Result[str, ReleaseError]:
        return parse_semver(request.version).map(lambda v: str(v.bump(self.element).to_snapshot()))

    def branch_version(self, request: VersionPolicyRequest) -> Result[str, ReleaseError]:
        return self.release_version(request)


VERSION_POLICIES: dict[str, VersionPolicy] = {
    DEFAULT_VERSION_POLICY: DefaultVersionPolicy(),
    "odd-even": OddEvenVersionPolicy(),
    "semver-major": SemVerDevelopmentVersionPolicy("major"),
    "semver-minor": SemVerDevelopmentVersionPolicy("minor"),
    "semver-patch": SemVerDevelopmentVersionPolicy("patch"),
}


def get_version_policy(
    policy_id: str | None,
    policies: dict[str, VersionPolicy] | None = None,
) -> Result[VersionPolicy, ReleaseError]:
    available = VERSION_POLICIES if policies is None else policies
    key = policy_id or DEFAULT_VERSION_POLICY
    policy = available.get(key)
    if policy is None:
        return Err(
            ReleaseError(
                kind=ErrorKind.POLICY,
                message=f"Policy '{key}' is unknown",
                hint=f"available: {', '.join(sorted(available))}",
            )
        )
    return Ok(policy)
