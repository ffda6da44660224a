"""Phases that leave files next to the manifests: backups and release manifests."""

from __future__ import annotations

from relflow.core.errors import ErrorKind, ReleaseError
from relflow.core.result import Err, Ok, Result
from relflow.platform.files import copy_text, remove_if_exists
from relflow.release.model import PhaseResult, Project
from relflow.release.phase import PhaseRun, ReleasePhase, ResourceGenerator

from .common import backup_path, release_manifest_path, relative, working_directory

__all__ = [
    "CreateBackupManifestsPhase",
    "GenerateReleaseManifestsPhase",
    "RemoveReleaseManifestsPhase",
    "RestoreBackupManifestsPhase",
]


def _io_error(action: str, e: OSError) -> ReleaseError:
    return ReleaseError(
        kind=ErrorKind.EXECUTION,
        message=f"Unable to {action}: {e}",
        hint=e.filename if isinstance(e.filename, str) else None,
    )


class CreateBackupManifestsPhase(ResourceGenerator):
    """Copy every manifest to ``<manifest>.releaseBackup`` for rollback."""

    phase_id = "create-backup-poms"

    def execute(self, run: PhaseRun) -> Result[None, ReleaseError]:
        cleaned = self.clean(run.projects, run.result)
        if isinstance(cleaned, Err):
            return cleaned

        root = working_directory(run.descriptor)
        for project in run.projects:
            target = backup_path(project)
            try:
                copy_text(project.manifest, target)
            except OSError as e:
                return Err(_io_error(f"back up {project.manifest.name}", e))
            run.result.debug(f"Backed up {relative(project.manifest, root)}")
        return Ok(None)

    def clean(self, projects: list[Project], result: PhaseResult) -> Result[None, ReleaseError]:
        for project in projects:
            try:
                if remove_if_exists(backup_path(project)):
                    result.debug(f"Removed {backup_path(project).name}")
            except OSError as e:
                return Err(_io_error("remove a manifest backup", e))
        return Ok(None)


class RestoreBackupManifestsPhase(ReleasePhase):
    phase_id = "restore-backup-poms"

    def execute(self, run: PhaseRun) -> Result[None, ReleaseError]:
        root = working_directory(run.descriptor)
        for project in run.projects:
            backup = backup_path(project)
            if not backup.is_file():
                return Err(
                    ReleaseError(
                        kind=ErrorKind.EXECUTION,
                        message=f"Cannot restore from a missing backup: {relative(backup, root)}",
                        hint="backups are written by 'relflow prepare'",
                    )
                )
            try:
                copy_text(backup, project.manifest)
            except OSError as e:
                return Err(_io_error(f"restore {project.manifest.name}", e))
            run.result.info(f"Restored {relative(project.manifest, root)}")
        return Ok(None)

    def simulate(self, run: PhaseRun) -> Result[None, ReleaseError]:
        for project in run.projects:
            run.result.info(f"Full run would restore {project.manifest.name} from its backup")
        return Ok(None)


class GenerateReleaseManifestsPhase(ResourceGenerator):
    """Write ``release-<manifest>`` beside each (already rewritten) manifest.

    Does nothing unless ``generate_release_manifests`` is set.
    """

    phase_id = "generate-release-poms"

    def execute(self, run: PhaseRun) -> Result[None, ReleaseError]:
        if not run.descriptor.generate_release_manifests:
            run.result.info("Not generating release manifests")
            return Ok(None)

        root = working_directory(run.descriptor)
        for project in run.projects:
            target = release_manifest_path(project)
            try:
                copy_text(project.manifest, target)
            except OSError as e:
                return Err(_io_error(f"generate {target.name}", e))
            run.result.info(f"Generated {relative(target, root)}")
        return Ok(None)

    def simulate(self, run: PhaseRun) -> Result[None, ReleaseError]:
        if run.descriptor.generate_release_manifests:
            for project in run.projects:
                run.result.info(f"Full run would generate {release_manifest_path(project).name}")
        return Ok(None)

    def clean(self, projects: list[Project], result: PhaseResult) -> Result[None, ReleaseError]:
        return _remove_release_manifests(projects, result)


class RemoveReleaseManifestsPhase(ReleasePhase):
    phase_id = "remove-release-poms"

    def execute(self, run: PhaseRun) -> Result[None, ReleaseError]:
        if not run.descriptor.generate_release_manifests:
            return Ok(None)
        return _remove_release_manifests(run.projects, run.result)

    def simulate(self, run: PhaseRun) -> Result[None, ReleaseError]:
        if run.descriptor.generate_release_manifests:
            run.result.info("Full run would remove the release manifests")
        return Ok(None)


def _remove_release_manifests(projects: list[Project], result: PhaseResult) -> Result[None, ReleaseError]:
    for project in projects:
        target = release_manifest_path(project)
        try:
            if remove_if_exists(target):
                result.info(f"Removed {target.name}")
        except OSError as e:
            return Err(_io_error(f"remove {target.name}", e))
    return Ok(None)
