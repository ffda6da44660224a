"""Version mapping phases.

Each phase decides, per project, which version it gets next and records the
answer in the descriptor's release or development map. Defaults come from
earlier runs (a resumed checkpoint), the descriptor's default versions, and
finally the configured version policy; interactive runs confirm each value.
"""

from __future__ import annotations

from enum import Enum

from relflow.core.errors import ErrorKind, ReleaseError
from relflow.core.result import Err, Ok, Result
from relflow.policy.version import VersionPolicyRequest, get_version_policy
from relflow.release.descriptor import ReleaseDescriptor
from relflow.release.model import Project
from relflow.release.phase import PhaseRun, ReleasePhase
from relflow.versions.info import DEFAULT_BASE_VERSION, is_snapshot_version

from .common import PhaseDependencies

__all__ = ["MapMode", "MapVersionsPhase"]


class MapMode(Enum):
    RELEASE = "release"
    DEVELOPMENT = "development"
    BRANCH = "branch"


class MapVersionsPhase(ReleasePhase):
    """``map-release-versions``, ``map-development-versions``, ``map-branch-versions``."""

    def __init__(self, phase_id: str, mode: MapMode, deps: PhaseDependencies) -> None:
        self.phase_id = phase_id
        self.mode = mode
        self.deps = deps

    @property
    def to_snapshot(self) -> bool:
        return self.mode == MapMode.DEVELOPMENT

    def execute(self, run: PhaseRun) -> Result[None, ReleaseError]:
        descriptor = run.descriptor
        root = run.root_project
        if root is None:
            return Ok(None)

        if descriptor.auto_version_submodules and is_snapshot_version(root.version):
            return self._map_from_root(run, root)

        for project in run.projects:
            resolved = self._next_version(run, project)
            if isinstance(resolved, Err):
                return resolved
            self._record(descriptor, project.key, resolved.value)
            run.result.info(f"{project.key}: {project.version} -> {resolved.value}")
        return Ok(None)

    def _map_from_root(self, run: PhaseRun, root: Project) -> Result[None, ReleaseError]:
        descriptor = run.descriptor
        resolved = self._next_version(run, root)
        if isinstance(resolved, Err):
            return resolved
        version = resolved.value
        self._record(descriptor, root.key, version)

        for project in run.projects:
            if self.to_snapshot:
                mapped = descriptor.development_version(project.key)
                if mapped is None:
                    mapped = version if is_snapshot_version(project.version) else project.version
            else:
                mapped = descriptor.release_version(project.key) or version
            self._record(descriptor, project.key, mapped)
            run.result.info(f"{project.key}: {project.version} -> {mapped}")
        return Ok(None)

    def _record(self, descriptor: ReleaseDescriptor, key: str, version: str) -> None:
        if self.to_snapshot:
            descriptor.add_development_version(key, version)
        else:
            descriptor.add_release_version(key, version)

    def _default_version(self, descriptor: ReleaseDescriptor, project: Project) -> str | None:
        if self.to_snapshot:
            return descriptor.development_version(project.key) or descriptor.default_development_version
        return descriptor.release_version(project.key) or descriptor.default_release_version

    def _keeps_current(self, descriptor: ReleaseDescriptor, project: Project) -> bool:
        snapshot = is_snapshot_version(project.version)
        match self.mode:
            case MapMode.BRANCH:
                return not (
                    descriptor.update_branch_versions
                    and (snapshot or descriptor.update_versions_to_snapshot)
                )
            case MapMode.DEVELOPMENT if descriptor.branch_creation:
                return not (snapshot and descriptor.update_working_copy_versions)
            case MapMode.DEVELOPMENT:
                return not descriptor.update_working_copy_versions
            case MapMode.RELEASE:
                return False

    def _context(self, descriptor: ReleaseDescriptor) -> str:
        match self.mode:
            case MapMode.BRANCH:
                return "branch"
            case MapMode.RELEASE:
                return "release"
            case MapMode.DEVELOPMENT if descriptor.branch_creation:
                return "new working copy"
            case MapMode.DEVELOPMENT:
                return "new development"

    def _next_version(self, run: PhaseRun, project: Project) -> Result[str, ReleaseError]:
        descriptor = run.descriptor
        if self._keeps_current(descriptor, project):
            return Ok(project.version)

        default = self._default_version(descriptor, project)
        usable = default is not None and is_snapshot_version(default) == self.to_snapshot
        if usable and default is not None and not descriptor.interactive:
            return Ok(default)

        suggested = self._suggest(run, project)
        if isinstance(suggested, Err):
            return suggested

        if not descriptor.interactive:
            if default is not None:
                expected = "a snapshot" if self.to_snapshot else "a non-snapshot"
                return Err(
                    ReleaseError(
                        kind=ErrorKind.FAILURE,
                        message=f"{default} is invalid, expected {expected}",
                    )
                )
            return Ok(suggested.value)

        prompt_default = default if usable and default is not None else suggested.value
        message = (
            f'What is the {self._context(descriptor)} version for "{project.artifact_id}"? '
            f"({project.key})"
        )
        answer = self.deps.prompter.prompt(message, prompt_default).strip()
        while not answer or is_snapshot_version(answer) != self.to_snapshot:
            answer = self.deps.prompter.prompt(message, suggested.value).strip()
        return Ok(answer)

    def _suggest(self, run: PhaseRun, project: Project) -> Result[str, ReleaseError]:
        descriptor = run.descriptor
        base = None
        if self.to_snapshot:
            base = descriptor.release_version(project.key) or descriptor.default_release_version
        if base is None:
            base = project.version

        suggested = self._from_policy(run, base)
        if isinstance(suggested, Err) and suggested.error.kind == ErrorKind.PARSE:
            if not descriptor.interactive:
                return Err(
                    ReleaseError(
                        kind=ErrorKind.EXECUTION,
                        message=f"Error parsing version, cannot determine next version: "
                        f"{suggested.error.message}",
                    )
                )
            return self._from_policy(run, DEFAULT_BASE_VERSION)
        return suggested

    def _from_policy(self, run: PhaseRun, base: str) -> Result[str, ReleaseError]:
        descriptor = run.descriptor
        policy = get_version_policy(
            descriptor.project_version_policy_id,
            dict(self.deps.version_policies),
        )
        if isinstance(policy, Err):
            return policy
        request = VersionPolicyRequest(
            version=base,
            working_directory=descriptor.working_directory,
            repository=self.deps.provider,
        )
        if self.to_snapshot:
            return policy.value.development_version(request)
        return policy.value.release_version(request)
