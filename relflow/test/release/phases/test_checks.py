"""Tests for the precondition phases."""

from pathlib import Path

import pytest

from relflow.core.errors import ErrorKind
from relflow.core.result import Err, Ok
from relflow.release.collaborators import FileStatus
from relflow.release.descriptor import ResolvedDependency, ScmInfo
from relflow.release.model import Dependency, Project
from relflow.release.phases.checks import (
    CheckDependencySnapshotsPhase,
    CheckManifestsPhase,
    ScmCheckModificationsPhase,
    VerifyCompletedPreparePhase,
)

from ._fakes import Fakes, make_run, read_tree, write_tree


def _project(tmp_path: Path, version: str = "1.2-SNAPSHOT", **kwargs: object) -> Project:
    return Project(
        group_id="org.acme",
        artifact_id="widget",
        version=version,
        manifest=tmp_path / "pyproject.toml",
        **kwargs,  # type: ignore[arg-type]
    )


class TestCheckManifests:
    def test_resolves_scm_url_from_root(self, tmp_path: Path) -> None:
        run = make_run(tmp_path, read_tree(write_tree(tmp_path)))

        assert CheckManifestsPhase("check-poms").execute(run) == Ok(None)
        assert run.descriptor.scm_source_url == "scm:git:https://example.org/acme/widget.git"

    def test_developer_connection_preferred(self, tmp_path: Path) -> None:
        scm = ScmInfo(connection="scm:git:https://a", developer_connection="scm:git:ssh://b")
        run = make_run(tmp_path, [_project(tmp_path, scm=scm)])

        CheckManifestsPhase("check-poms").execute(run)

        assert run.descriptor.scm_source_url == "scm:git:ssh://b"

    def test_no_projects(self, tmp_path: Path) -> None:
        result = CheckManifestsPhase("check-poms").execute(make_run(tmp_path))
        assert isinstance(result, Err)
        assert result.error.message == "No projects to release"

    def test_missing_scm(self, tmp_path: Path) -> None:
        result = CheckManifestsPhase("check-poms").execute(make_run(tmp_path, [_project(tmp_path)]))

        assert isinstance(result, Err)
        assert result.error.kind == ErrorKind.FAILURE
        assert "scm connection or developer-connection" in result.error.message
        assert result.error.hint is not None and "pyproject.toml" in result.error.hint

    def test_no_snapshot(self, tmp_path: Path) -> None:
        run = make_run(
            tmp_path,
            [_project(tmp_path, "1.2")],
            scm_source_url="scm:git:https://example.org/acme/widget.git",
        )
        result = CheckManifestsPhase("check-poms").execute(run)

        assert isinstance(result, Err)
        assert "SNAPSHOT project" in result.error.message

    def test_branch_accepts_released_versions(self, tmp_path: Path) -> None:
        run = make_run(
            tmp_path,
            [_project(tmp_path, "1.2")],
            scm_source_url="scm:git:https://example.org/acme/widget.git",
            branch_creation=True,
        )
        assert CheckManifestsPhase("check-poms").execute(run) == Ok(None)

    def test_update_versions_needs_neither_scm_nor_snapshot(self, tmp_path: Path) -> None:
        run = make_run(tmp_path, [_project(tmp_path, "1.2")])
        phase = CheckManifestsPhase("check-poms-updateversions", require_scm=False)

        assert phase.execute(run) == Ok(None)
        assert run.descriptor.scm_source_url is None


class TestScmCheckModifications:
    def test_release_files_are_ignored(self, tmp_path: Path) -> None:
        fakes = Fakes()
        fakes.provider.changed = [
            FileStatus("??", "release.properties"),
            FileStatus("??", "pyproject.toml.releaseBackup"),
            FileStatus("??", "core/release-pyproject.toml"),
        ]
        run = make_run(tmp_path)

        assert ScmCheckModificationsPhase(fakes.deps()).execute(run) == Ok(None)
        assert fakes.provider.names() == ["status"]

    def test_local_modifications_fail(self, tmp_path: Path) -> None:
        fakes = Fakes()
        fakes.provider.changed = [FileStatus(" M", "src/widget.py"), FileStatus("??", "release.properties")]

        result = ScmCheckModificationsPhase(fakes.deps()).execute(make_run(tmp_path))

        assert isinstance(result, Err)
        assert result.error.kind == ErrorKind.FAILURE
        assert "M src/widget.py" in result.error.message
        assert "release.properties" not in result.error.message

    def test_configured_excludes(self, tmp_path: Path) -> None:
        fakes = Fakes()
        fakes.provider.changed = [FileStatus(" M", "docs/notes.md"), FileStatus(" M", "CHANGES.md")]
        run = make_run(tmp_path, check_modification_excludes=("docs/*", "CHANGES.md"))

        assert ScmCheckModificationsPhase(fakes.deps()).execute(run) == Ok(None)


class TestCheckDependencySnapshots:
    def _projects(self, tmp_path: Path, version: str = "3.0-SNAPSHOT") -> list[Project]:
        root = _project(tmp_path)
        core = Project(
            group_id="org.acme",
            artifact_id="core",
            version="1.2-SNAPSHOT",
            manifest=tmp_path / "core" / "pyproject.toml",
            dependencies=(
                Dependency("org.acme:widget", "1.2-SNAPSHOT"),
                Dependency("com.example:lib", version),
            ),
        )
        return [root, core]

    def test_batch_mode_fails(self, tmp_path: Path) -> None:
        run = make_run(tmp_path, self._projects(tmp_path))

        result = CheckDependencySnapshotsPhase(Fakes().deps()).execute(run)

        assert isinstance(result, Err)
        assert result.error.kind == ErrorKind.FAILURE
        assert "com.example:lib:3.0-SNAPSHOT in project 'core' (org.acme:core)" in result.error.message
        # modules of the same release are not reported
        assert "org.acme:widget:" not in result.error.message

    def test_released_dependencies_pass(self, tmp_path: Path) -> None:
        run = make_run(tmp_path, self._projects(tmp_path, "3.0"))
        assert CheckDependencySnapshotsPhase(Fakes().deps()).execute(run) == Ok(None)

    @pytest.mark.parametrize(("allowed", "ok"), [(True, True), (False, False)])
    def test_timestamped_snapshots(self, tmp_path: Path, allowed: bool, ok: bool) -> None:
        run = make_run(
            tmp_path,
            self._projects(tmp_path, "3.0-20240101.120000-3"),
            allow_timestamped_snapshots=allowed,
        )
        result = CheckDependencySnapshotsPhase(Fakes().deps()).execute(run)
        assert isinstance(result, Ok) is ok

    def test_interactive_resolution(self, tmp_path: Path) -> None:
        fakes = Fakes()
        fakes.prompter.answers = ["3.0", "3.1-SNAPSHOT"]
        run = make_run(tmp_path, self._projects(tmp_path), interactive=True)

        assert CheckDependencySnapshotsPhase(fakes.deps()).execute(run) == Ok(None)
        assert run.descriptor.resolved_snapshot_dependencies == {
            "com.example:lib": ResolvedDependency(release="3.0", development="3.1-SNAPSHOT")
        }
        assert "com.example:lib" in fakes.prompter.prompts[0]

    def test_already_resolved_is_not_asked_again(self, tmp_path: Path) -> None:
        fakes = Fakes()
        run = make_run(tmp_path, self._projects(tmp_path))
        run.descriptor.resolve_dependency("com.example:lib", release="3.0", development="3.1-SNAPSHOT")

        assert CheckDependencySnapshotsPhase(fakes.deps()).execute(run) == Ok(None)
        assert fakes.prompter.prompts == []


class TestVerifyCompletedPrepare:
    def test_completed(self, tmp_path: Path) -> None:
        run = make_run(tmp_path, completed_phase="end-release")
        assert VerifyCompletedPreparePhase().execute(run) == Ok(None)

    def test_not_run(self, tmp_path: Path) -> None:
        result = VerifyCompletedPreparePhase().execute(make_run(tmp_path))
        assert isinstance(result, Err)
        assert result.error.message == "Cannot perform release - the preparation step was not run"

    def test_stopped(self, tmp_path: Path) -> None:
        result = VerifyCompletedPreparePhase().execute(make_run(tmp_path, completed_phase="scm-tag"))
        assert isinstance(result, Err)
        assert "stopped after 'scm-tag'" in result.error.message
