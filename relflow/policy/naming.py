"""Naming policies.

A naming policy proposes the SCM tag (or branch) name of a release. The default
policy fills a ``@{...}`` template from the root project's coordinates.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Protocol

from relflow.core.errors import ErrorKind, ReleaseError
from relflow.core.result import Err, Ok, Result

__all__ = [
    "DEFAULT_NAME_TEMPLATE",
    "DEFAULT_NAMING_POLICY",
    "NAMING_POLICIES",
    "DefaultNamingPolicy",
    "NamingPolicy",
    "NamingPolicyRequest",
    "get_naming_policy",
    "interpolate_name",
]

DEFAULT_NAMING_POLICY = "default"
DEFAULT_NAME_TEMPLATE = "@{project.artifactId}-@{project.version}"

_PLACEHOLDER_RE = re.compile(r"@\{([^}]+)\}")
_PREFIXES = ("project.", "pom.")


@dataclass(frozen=True, slots=True)
class NamingPolicyRequest:
    version: str
    name: str | None = None
    proposal: str | None = None
    branch: bool = False
    group_id: str | None = None
    artifact_id: str | None = None


class NamingPolicy(Protocol):
    def get_name(self, request: NamingPolicyRequest) -> Result[str, ReleaseError]: ...


def interpolate_name(template: str, values: dict[str, str | None]) -> Result[str, ReleaseError]:
    """Replace ``@{project.x}``, ``@{pom.x}`` and ``@{x}`` placeholders."""
    missing: list[str] = []

    def substitute(match: re.Match[str]) -> str:
        expression = match.group(1).strip()
        name = expression
        for prefix in _PREFIXES:
            if name.startswith(prefix):
                name = name[len(prefix) :]
                break
        value = values.get(name)
        if value is None:
            missing.append(expression)
            return match.group(0)
        return value

    result = _PLACEHOLDER_RE.sub(substitute, template)
    if missing:
        return Err(
            ReleaseError(
                kind=ErrorKind.POLICY,
                message=f"Could not interpolate name format: {template}",
                hint=f"unresolved: {', '.join(missing)}",
            )
        )
    return Ok(result)


class DefaultNamingPolicy:
    """An explicit name wins, otherwise the proposal (or default) template."""

    def get_name(self, request: NamingPolicyRequest) -> Result[str, ReleaseError]:
        if request.name:
            return Ok(request.name)
        template = request.proposal or DEFAULT_NAME_TEMPLATE
        return interpolate_name(
            template,
            {
                "groupId": request.group_id,
                "artifactId": request.artifact_id,
                "version": request.version,
            },
        )


NAMING_POLICIES: dict[str, NamingPolicy] = {
    DEFAULT_NAMING_POLICY: DefaultNamingPolicy(),
}


def get_naming_policy(
    policy_id: str | None,
    policies: dict[str, NamingPolicy] | None = None,
) -> Result[NamingPolicy, ReleaseError]:
    available = NAMING_POLICIES if policies is None else policies
    key = policy_id or DEFAULT_NAMING_POLICY
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
