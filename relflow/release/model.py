from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from .descriptor import ScmInfo, module_key

__all__ = [
    "Dependency",
    "PhaseResult",
    "PhaseStatus",
    "PipelineResult",
    "Project",
    "ReleaseEnvironment",
]


class PhaseStatus(Enum):
    SUCCESS = "success"
    ERROR = "error"
    UNDEFINED = "undefined"

    def __str__(self) -> str:
        return self.value


@dataclass(slots=True)
class PhaseResult:
    """Outcome and log of one phase."""

    status: PhaseStatus = PhaseStatus.UNDEFINED
    started_at: float | None = None
    ended_at: float | None = None
    _lines: list[str] = field(default_factory=list, repr=False)

    @property
    def output(self) -> str:
        return "\n".join(self._lines)

    def append(self, line: str) -> None:
        self._lines.append(line)

    def info(self, message: str) -> None:
        self._lines.append(f"[INFO] {message}")

    def warn(self, message: str) -> None:
        self._lines.append(f"[WARNING] {message}")

    def debug(self, message: str) -> None:
        self._lines.append(f"[DEBUG] {message}")

    def error(self, message: str) -> None:
        self._lines.append(f"[ERROR] {message}")

    def start(self) -> None:
        self.started_at = time.time()

    def finish(self, status: PhaseStatus) -> None:
        self.status = status
        self.ended_at = time.time()


@dataclass(slots=True)
class PipelineResult:
    """Aggregated outcome of a workflow run."""

    workflow: str
    simulated: bool = False
    executed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    phases: dict[str, PhaseResult] = field(default_factory=dict)
    status: PhaseStatus = PhaseStatus.UNDEFINED
    started_at: float | None = None
    ended_at: float | None = None

    @property
    def output(self) -> str:
        return "\n".join(r.output for r in self.phases.values() if r.output)

    @property
    def is_success(self) -> bool:
        return self.status == PhaseStatus.SUCCESS


@dataclass(frozen=True, slots=True)
class Dependency:
    key: str
    version: str


@dataclass(frozen=True, slots=True)
class Project:
    """One module of the project being released, as read from its manifest.

    Attributes:
        group_id: Group (namespace) of the module.
        artifact_id: Module name.
        version: Version found in the manifest.
        manifest: Path of the manifest file.
        scm: SCM section of the manifest, if any.
        dependencies: Declared dependencies on other modules.
        modules: Relative directories of sub-modules.
    """

    group_id: str
    artifact_id: str
    version: str
    manifest: Path
    scm: ScmInfo | None = None
    dependencies: tuple[Dependency, ...] = ()
    modules: tuple[str, ...] = ()

    @property
    def key(self) -> str:
        return module_key(self.group_id, self.artifact_id)

    @property
    def base_dir(self) -> Path:
        return self.manifest.parent


def _empty_env() -> dict[str, str]:
    return {}


@dataclass(frozen=True, slots=True)
class ReleaseEnvironment:
    """How to run the project's build.

    ``build_command`` is the argv prefix; goals and additional arguments are
    appended to it.
    """

    build_command: tuple[str, ...] = ("make",)
    environment: dict[str, str] = field(default_factory=_empty_env)
    home: Path | None = None
    timeout: float | None = None
