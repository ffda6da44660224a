"""Release strategies: the ordered phase ids of each workflow.

A catalog is built once at startup from the default strategy plus any named
alternates (from ``relflow.toml``) and is read-only afterwards.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

from relflow.core.errors import ErrorKind, ReleaseError
from relflow.core.result import Err, Ok, Result

__all__ = [
    "DEFAULT_STRATEGY",
    "DEFAULT_STRATEGY_ID",
    "Strategy",
    "StrategyCatalog",
    "Workflow",
]


class Workflow(Enum):
    PREPARE = "prepare"
    PERFORM = "perform"
    BRANCH = "branch"
    ROLLBACK = "rollback"
    UPDATE_VERSIONS = "update-versions"

    def __str__(self) -> str:
        return self.value


DEFAULT_STRATEGY_ID = "default"

_PREPARE = (
    "check-poms",
    "scm-check-modifications",
    "check-dependency-snapshots",
    "create-backup-poms",
    "map-release-versions",
    "input-variables",
    "map-development-versions",
    "rewrite-poms-for-release",
    "generate-release-poms",
    "run-preparation-goals",
    "scm-commit-release",
    "scm-tag",
    "rewrite-poms-for-development",
    "remove-release-poms",
    "run-completion-goals",
    "scm-commit-development",
    "end-release",
)

_PERFORM = (
    "verify-completed-prepare-phases",
    "checkout-project-from-scm",
    "run-perform-goals",
)

_ROLLBACK = (
    "restore-backup-poms",
    "scm-commit-rollback",
    "remove-scm-tag",
)

_BRANCH = (
    "check-poms",
    "scm-check-modifications",
    "create-backup-poms",
    "map-branch-versions",
    "branch-input-variables",
    "map-development-versions",
    "rewrite-poms-for-branch",
    "scm-commit-branch",
    "scm-branch",
    "rewrite-poms-for-development",
    "scm-commit-development",
    "end-release",
)

_UPDATE_VERSIONS = (
    "check-poms-updateversions",
    "create-backup-poms",
    "map-development-versions",
    "rewrite-pom-versions",
)


@dataclass(frozen=True, slots=True)
class Strategy:
    """Phase lists per workflow; ``None`` means "same as the default strategy"."""

    prepare: tuple[str, ...] | None = None
    perform: tuple[str, ...] | None = None
    branch: tuple[str, ...] | None = None
    rollback: tuple[str, ...] | None = None
    update_versions: tuple[str, ...] | None = None

    def phases(self, workflow: Workflow) -> tuple[str, ...]:
        match workflow:
            case Workflow.PREPARE:
                own = self.prepare
            case Workflow.PERFORM:
                own = self.perform
            case Workflow.BRANCH:
                own = self.branch
            case Workflow.ROLLBACK:
                own = self.rollback
            case Workflow.UPDATE_VERSIONS:
                own = self.update_versions
        if own is not None:
            return own
        if self is DEFAULT_STRATEGY:
            return ()
        return DEFAULT_STRATEGY.phases(workflow)

    def all_phase_ids(self) -> set[str]:
        return {p for w in Workflow for p in self.phases(w)}


DEFAULT_STRATEGY = Strategy(
    prepare=_PREPARE,
    perform=_PERFORM,
    branch=_BRANCH,
    rollback=_ROLLBACK,
    update_versions=_UPDATE_VERSIONS,
)


class StrategyCatalog:
    """Named strategies; always contains ``default``."""

    __slots__ = ("_strategies",)

    def __init__(self, alternates: Mapping[str, Strategy] | None = None) -> None:
        strategies = {DEFAULT_STRATEGY_ID: DEFAULT_STRATEGY}
        for name, strategy in (alternates or {}).items():
            if name != DEFAULT_STRATEGY_ID:
                strategies[name] = strategy
        self._strategies: Mapping[str, Strategy] = MappingProxyType(strategies)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(sorted(self._strategies))

    def get(self, strategy_id: str | None) -> Result[Strategy, ReleaseError]:
        key = strategy_id or DEFAULT_STRATEGY_ID
        strategy = self._strategies.get(key)
        if strategy is None:
            return Err(
                ReleaseError(
                    kind=ErrorKind.FAILURE,
                    message=f"Unknown release strategy: {key}",
                    hint=f"available: {', '.join(self.names)}",
                )
            )
        return Ok(strategy)

    def phases(self, strategy_id: str | None, workflow: Workflow) -> Result[tuple[str, ...], ReleaseError]:
        return self.get(strategy_id).map(lambda s: s.phases(workflow))

    def all_phase_ids(self) -> set[str]:
        return {p for s in self._strategies.values() for p in s.all_phase_ids()}
