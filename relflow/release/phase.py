"""Phase contract and registry.

A phase is one step of a workflow. ``execute`` does the work, ``simulate``
does everything except irreversible external effects (commits, tags, pushes,
deploys) and logs what it would have done instead. Phases that leave files in
the checkout are ``ResourceGenerator`` subclasses and can remove them again
with ``clean``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING

from relflow.core.errors import ErrorKind, ReleaseError
from relflow.core.result import Err, Ok, Result

if TYPE_CHECKING:
    from .descriptor import ReleaseDescriptor
    from .model import PhaseResult, Project, ReleaseEnvironment
    from .strategy import StrategyCatalog

__all__ = [
    "PhaseRegistry",
    "PhaseRun",
    "ReleasePhase",
    "ResourceGenerator",
]


@dataclass(slots=True)
class PhaseRun:
    """Everything a phase invocation may read or update.

    ``descriptor`` is shared by all phases of a run and is the only state a
    phase may mutate; ``result`` is this phase's own log.
    """

    descriptor: ReleaseDescriptor
    environment: ReleaseEnvironment
    projects: list[Project]
    result: PhaseResult

    @property
    def root_project(self) -> Project | None:
        return self.projects[0] if self.projects else None


class ReleasePhase(ABC):
    """Base class of all release phases.

    Subclasses set ``phase_id`` and implement ``execute``. The default
    ``simulate`` runs ``execute``, which is right for phases without external
    side effects.
    """

    phase_id: str

    @abstractmethod
    def execute(self, run: PhaseRun) -> Result[None, ReleaseError]: ...

    def simulate(self, run: PhaseRun) -> Result[None, ReleaseError]:
        return self.execute(run)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.phase_id!r})"


class ResourceGenerator(ReleasePhase):
    """A phase that creates files which ``clean`` removes again."""

    @abstractmethod
    def clean(self, projects: list[Project], result: PhaseResult) -> Result[None, ReleaseError]: ...


class PhaseRegistry:
    """Phases by id. Built once, read-only afterwards."""

    __slots__ = ("_phases",)

    def __init__(self, phases: Iterable[ReleasePhase]) -> None:
        table: dict[str, ReleasePhase] = {}
        for phase in phases:
            if phase.phase_id in table:
                raise ValueError(f"Duplicate phase id: {phase.phase_id}")
            table[phase.phase_id] = phase
        self._phases: Mapping[str, ReleasePhase] = MappingProxyType(table)

    def __contains__(self, phase_id: object) -> bool:
        return phase_id in self._phases

    def __len__(self) -> int:
        return len(self._phases)

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(self._phases)

    def get(self, phase_id: str) -> Result[ReleasePhase, ReleaseError]:
        phase = self._phases.get(phase_id)
        if phase is None:
            return Err(
                ReleaseError(
                    kind=ErrorKind.FAILURE,
                    message=f"Unable to find phase '{phase_id}' to execute",
                    hint="check the phase ids of the release strategy",
                )
            )
        return Ok(phase)

    def resolve(self, phase_ids: Iterable[str]) -> Result[list[ReleasePhase], ReleaseError]:
        """Resolve all ids, failing on the first unknown one."""
        resolved: list[ReleasePhase] = []
        for phase_id in phase_ids:
            phase = self.get(phase_id)
            if isinstance(phase, Err):
                return phase
            resolved.append(phase.value)
        return Ok(resolved)

    def validate(self, catalog: StrategyCatalog) -> Result[None, ReleaseError]:
        """Check that every phase named by any strategy is registered."""
        missing = sorted(catalog.all_phase_ids() - set(self._phases))
        if missing:
            return Err(
                ReleaseError(
                    kind=ErrorKind.FAILURE,
                    message=f"Unknown phase id(s) in release strategies: {', '.join(missing)}",
                    hint=f"registered: {', '.join(sorted(self._phases))}",
                )
            )
        return Ok(None)
