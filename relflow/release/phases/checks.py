"""Precondition phases: project sanity, local modifications, snapshot dependencies."""

from __future__ import annotations

import fnmatch
from pathlib import PurePosixPath

from relflow.core.errors import ErrorKind, ReleaseError
from relflow.core.result import Err, Ok, Result
from relflow.release.phase import PhaseRun, ReleasePhase
from relflow.release.store import RELEASE_PROPERTIES
from relflow.versions.info import is_snapshot_version, is_timestamped_snapshot, parse_version

from .common import BACKUP_SUFFIX, RELEASE_MANIFEST_PREFIX, PhaseDependencies, reactor_keys

__all__ = [
    "CheckDependencySnapshotsPhase",
    "CheckManifestsPhase",
    "ScmCheckModificationsPhase",
    "VerifyCompletedPreparePhase",
]

PREPARE_END_PHASE = "end-release"


class CheckManifestsPhase(ReleasePhase):
    """Validate the project list and resolve the SCM url of the root project.

    With ``require_scm`` false (``check-poms-updateversions``) neither the SCM
    url nor a snapshot version is required.
    """

    def __init__(self, phase_id: str, *, require_scm: bool = True) -> None:
        self.phase_id = phase_id
        self.require_scm = require_scm

    def execute(self, run: PhaseRun) -> Result[None, ReleaseError]:
        root = run.root_project
        if root is None:
            return Err(ReleaseError(kind=ErrorKind.FAILURE, message="No projects to release"))

        descriptor = run.descriptor
        if not self.require_scm:
            run.result.info(f"Checking {len(run.projects)} project(s) for version update")
            return Ok(None)

        if descriptor.scm_source_url is None and root.scm is not None:
            descriptor.scm_source_url = root.scm.developer_connection or root.scm.connection
        if descriptor.scm_source_url is None:
            return Err(
                ReleaseError(
                    kind=ErrorKind.FAILURE,
                    message="Missing required setting: scm connection or developer-connection "
                    "must be specified.",
                    hint=f"add [tool.relflow.scm] to {root.manifest.name} or pass --scm-url",
                )
            )
        run.result.info(f"SCM url: {descriptor.scm_source_url}")

        for project in run.projects:
            parsed = parse_version(project.version)
            if isinstance(parsed, Err):
                return parsed

        if not descriptor.branch_creation and not any(
            is_snapshot_version(p.version) for p in run.projects
        ):
            return Err(
                ReleaseError(
                    kind=ErrorKind.FAILURE,
                    message="You don't have a SNAPSHOT project in the projects list.",
                )
            )
        return Ok(None)


_DEFAULT_EXCLUDES = (
    RELEASE_PROPERTIES,
    f"*{BACKUP_SUFFIX}",
    f"{RELEASE_MANIFEST_PREFIX}*",
)


def _excluded(path: str, patterns: tuple[str, ...]) -> bool:
    posix = path.replace("\\", "/")
    name = PurePosixPath(posix).name
    return any(fnmatch.fnmatch(posix, p) or fnmatch.fnmatch(name, p) for p in patterns)


class ScmCheckModificationsPhase(ReleasePhase):
    phase_id = "scm-check-modifications"

    def __init__(self, deps: PhaseDependencies) -> None:
        self.deps = deps

    def execute(self, run: PhaseRun) -> Result[None, ReleaseError]:
        descriptor = run.descriptor
        patterns = _DEFAULT_EXCLUDES + tuple(descriptor.check_modification_excludes or ())
        run.result.info("Verifying that there are no local modifications...")
        run.result.info(f"  ignoring changes on: {', '.join(patterns)}")

        directory = descriptor.working_directory
        if directory is None:
            return Err(
                ReleaseError(kind=ErrorKind.FAILURE, message="No working directory to check")
            )
        status = self.deps.provider.status(directory)
        if isinstance(status, Err):
            return status

        changed = [f for f in status.value if not _excluded(f.path, patterns)]
        if changed:
            listing = "\n".join(f"  {f.code} {f.path}" for f in changed)
            return Err(
                ReleaseError(
                    kind=ErrorKind.FAILURE,
                    message=f"Cannot prepare the release because you have local modifications:\n{listing}",
                    hint="commit or stash them first",
                )
            )
        return Ok(None)


class CheckDependencySnapshotsPhase(ReleasePhase):
    """Refuse snapshot dependencies that are not part of the release.

    Interactive runs ask for the release and next development version of each
    one instead and record the answers in the descriptor.
    """

    phase_id = "check-dependency-snapshots"

    def __init__(self, deps: PhaseDependencies) -> None:
        self.deps = deps

    def execute(self, run: PhaseRun) -> Result[None, ReleaseError]:
        descriptor = run.descriptor
        keys = reactor_keys(run.projects)
        run.result.info("Checking dependencies for snapshots ...")

        problems: list[str] = []
        for project in run.projects:
            snapshots = [
                d
                for d in project.dependencies
                if d.key not in keys
                and is_snapshot_version(d.version)
                and not (descriptor.allow_timestamped_snapshots and is_timestamped_snapshot(d.version))
                and descriptor.resolved_snapshot_dependencies.get(d.key) is None
            ]
            if not snapshots:
                continue

            if not descriptor.interactive:
                problems.extend(
                    f"    {d.key}:{d.version} in project '{project.artifact_id}' ({project.key})"
                    for d in snapshots
                )
                continue

            for dependency in snapshots:
                self._resolve(run, dependency.key, dependency.version)

        if problems:
            return Err(
                ReleaseError(
                    kind=ErrorKind.FAILURE,
                    message="Can't release project due to non released dependencies:\n"
                    + "\n".join(problems),
                )
            )
        return Ok(None)

    def _resolve(self, run: PhaseRun, key: str, version: str) -> None:
        prompter = self.deps.prompter
        parsed = parse_version(version)
        release_default = version
        development_default = version
        if isinstance(parsed, Ok):
            release_default = parsed.value.release_version_string()
            nxt = parsed.value.next_version()
            if nxt is not None:
                development_default = nxt.snapshot_version_string()

        release = prompter.prompt(
            f"Dependency '{key}' is a snapshot ({version})\nWhich release version should it be set to?",
            release_default,
        )
        development = prompter.prompt(
            "What version should the dependency be reset to for development?",
            development_default,
        )
        run.descriptor.resolve_dependency(key, release=release, development=development)
        run.result.info(f"  {key}: release {release}, development {development}")


class VerifyCompletedPreparePhase(ReleasePhase):
    phase_id = "verify-completed-prepare-phases"

    def execute(self, run: PhaseRun) -> Result[None, ReleaseError]:
        completed = run.descriptor.completed_phase
        if completed == PREPARE_END_PHASE:
            return Ok(None)
        if completed is None:
            message = "Cannot perform release - the preparation step was not run"
        else:
            message = (
                f"Cannot perform release - the preparation step was stopped after "
                f"'{completed}' and hasn't completed"
            )
        return Err(
            ReleaseError(
                kind=ErrorKind.FAILURE,
                message=message,
                hint="run 'relflow prepare' to completion first",
            )
        )
