"""Manifest rewrite phases.

Every manifest gets its mapped version, the mapped (or resolved) versions of
its snapshot dependencies and, for a release or branch, the SCM tag. Going back
to development restores the SCM section recorded before the release.
"""

from __future__ import annotations

from enum import Enum

from relflow.core.errors import ErrorKind, ReleaseError
from relflow.core.result import Err, Ok, Result
from relflow.release.collaborators import ManifestChanges
from relflow.release.descriptor import ReleaseDescriptor, ScmInfo
from relflow.release.model import Project
from relflow.release.phase import PhaseRun, ReleasePhase
from relflow.versions.info import is_snapshot_version

from .common import PhaseDependencies, reactor_keys, relative, working_directory

__all__ = ["RewriteManifestsPhase", "RewriteMode"]


class RewriteMode(Enum):
    RELEASE = "release"
    DEVELOPMENT = "development"
    BRANCH = "branch"
    VERSIONS = "versions"

    @property
    def uses_release_map(self) -> bool:
        return self in (RewriteMode.RELEASE, RewriteMode.BRANCH)


class RewriteManifestsPhase(ReleasePhase):
    def __init__(self, phase_id: str, mode: RewriteMode, deps: PhaseDependencies) -> None:
        self.phase_id = phase_id
        self.mode = mode
        self.deps = deps

    def execute(self, run: PhaseRun) -> Result[None, ReleaseError]:
        return self._rewrite(run, simulate=False)

    def simulate(self, run: PhaseRun) -> Result[None, ReleaseError]:
        return self._rewrite(run, simulate=True)

    def _rewrite(self, run: PhaseRun, *, simulate: bool) -> Result[None, ReleaseError]:
        descriptor = run.descriptor
        root = working_directory(descriptor)
        transformer = self.deps.transformer
        keys = reactor_keys(run.projects)

        for project in run.projects:
            changes = self._changes(descriptor, project, keys, run)
            if isinstance(changes, Err):
                return changes

            suffix = " (dry run)" if simulate else ""
            run.result.info(
                f"Transforming {relative(project.manifest, root)} {project.artifact_id}{suffix}..."
            )

            extracted = transformer.extract(project.manifest)
            if isinstance(extracted, Err):
                return extracted
            transformed = transformer.transform(extracted.value, changes.value)
            if isinstance(transformed, Err):
                return transformed
            if simulate:
                continue
            loaded = transformer.load(transformed.value)
            if isinstance(loaded, Err):
                return loaded
        return Ok(None)

    def _mapped(self, descriptor: ReleaseDescriptor, key: str) -> str | None:
        if self.mode.uses_release_map:
            return descriptor.release_version(key)
        return descriptor.development_version(key)

    def _changes(
        self,
        descriptor: ReleaseDescriptor,
        project: Project,
        keys: set[str],
        run: PhaseRun,
    ) -> Result[ManifestChanges, ReleaseError]:
        version = self._mapped(descriptor, project.key)
        if version is None:
            return Err(
                ReleaseError(
                    kind=ErrorKind.FAILURE,
                    message=f"Version for '{project.artifact_id}' was not mapped",
                    hint=project.key,
                )
            )

        dependencies: dict[str, str] = {}
        for dependency in project.dependencies:
            if dependency.key in keys:
                if not descriptor.update_dependencies:
                    continue
                mapped = self._mapped(descriptor, dependency.key)
            elif is_snapshot_version(dependency.version):
                resolved = descriptor.resolved_snapshot_dependencies.get(dependency.key)
                if resolved is None:
                    continue
                mapped = resolved.release if self.mode.uses_release_map else resolved.development
            else:
                continue
            if mapped is not None and mapped != dependency.version:
                dependencies[dependency.key] = mapped
                run.result.info(f"  Updating {dependency.key} to {mapped}")

        return Ok(
            ManifestChanges(
                version=version,
                dependencies=dependencies or None,
                scm=self._scm(descriptor, project),
            )
        )

    def _scm(self, descriptor: ReleaseDescriptor, project: Project) -> ScmInfo | None:
        match self.mode:
            case RewriteMode.RELEASE | RewriteMode.BRANCH:
                descriptor.add_original_scm_info(project.key, project.scm)
                if project.scm is None or descriptor.scm_release_label is None:
                    return None
                return ScmInfo(tag=descriptor.scm_release_label)
            case RewriteMode.DEVELOPMENT:
                if project.key not in descriptor.original_scm_info:
                    return None
                original = descriptor.original_scm_info[project.key]
                if original is None:
                    return None
                return ScmInfo(
                    connection=original.connection,
                    developer_connection=original.developer_connection,
                    url=original.url,
                    tag=original.tag or "HEAD",
                    id=original.id,
                )
            case RewriteMode.VERSIONS:
                return None
