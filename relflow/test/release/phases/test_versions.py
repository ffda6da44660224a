"""Tests for the version mapping phases."""

from pathlib import Path

from relflow.core.errors import ErrorKind
from relflow.core.result import Err, Ok
from relflow.release.model import Project
from relflow.release.phases.versions import MapMode, MapVersionsPhase

from ._fakes import Fakes, make_run, read_tree, write_tree

ROOT_KEY = "org.acme:widget"
CORE_KEY = "org.acme:core"


def _phase(mode: MapMode, fakes: Fakes | None = None) -> MapVersionsPhase:
    return MapVersionsPhase(f"map-{mode.value}-versions", mode, (fakes or Fakes()).deps())


def _single(tmp_path: Path, version: str) -> list[Project]:
    return [Project("org.acme", "widget", version, tmp_path / "pyproject.toml")]


class TestReleaseMapping:
    def test_batch_mode_uses_policy(self, tmp_path: Path) -> None:
        run = make_run(tmp_path, read_tree(write_tree(tmp_path)))

        assert _phase(MapMode.RELEASE).execute(run) == Ok(None)
        assert run.descriptor.release_versions == {ROOT_KEY: "1.2", CORE_KEY: "1.2"}
        assert "[INFO] org.acme:widget: 1.2-SNAPSHOT -> 1.2" in run.result.output

    def test_given_version_wins(self, tmp_path: Path) -> None:
        run = make_run(tmp_path, _single(tmp_path, "1.2-SNAPSHOT"), release_versions={ROOT_KEY: "1.2.0"})

        _phase(MapMode.RELEASE).execute(run)

        assert run.descriptor.release_version(ROOT_KEY) == "1.2.0"

    def test_snapshot_default_is_invalid(self, tmp_path: Path) -> None:
        run = make_run(
            tmp_path, _single(tmp_path, "1.2-SNAPSHOT"), default_release_version="1.5-SNAPSHOT"
        )
        result = _phase(MapMode.RELEASE).execute(run)

        assert isinstance(result, Err)
        assert result.error.kind == ErrorKind.FAILURE
        assert result.error.message == "1.5-SNAPSHOT is invalid, expected a non-snapshot"

    def test_interactive_asks_until_valid(self, tmp_path: Path) -> None:
        fakes = Fakes()
        fakes.prompter.answers = ["1.5-SNAPSHOT", "  ", "1.5"]
        run = make_run(tmp_path, _single(tmp_path, "1.2-SNAPSHOT"), interactive=True)

        assert _phase(MapMode.RELEASE, fakes).execute(run) == Ok(None)
        assert run.descriptor.release_version(ROOT_KEY) == "1.5"
        assert len(fakes.prompter.prompts) == 3
        assert fakes.prompter.prompts[0] == 'What is the release version for "widget"? (org.acme:widget)'

    def test_unparsable_version_in_batch_mode(self, tmp_path: Path) -> None:
        run = make_run(tmp_path, _single(tmp_path, "next"))
        result = _phase(MapMode.RELEASE).execute(run)

        assert isinstance(result, Err)
        assert result.error.kind == ErrorKind.EXECUTION
        assert result.error.message.startswith("Error parsing version")

    def test_auto_version_submodules(self, tmp_path: Path) -> None:
        run = make_run(
            tmp_path,
            read_tree(write_tree(tmp_path)),
            auto_version_submodules=True,
            release_versions={ROOT_KEY: "2.0"},
        )

        _phase(MapMode.RELEASE).execute(run)

        assert run.descriptor.release_versions == {ROOT_KEY: "2.0", CORE_KEY: "2.0"}


class TestDevelopmentMapping:
    def test_follows_release_version(self, tmp_path: Path) -> None:
        run = make_run(tmp_path, _single(tmp_path, "1.2-SNAPSHOT"), release_versions={ROOT_KEY: "1.2"})

        _phase(MapMode.DEVELOPMENT).execute(run)

        assert run.descriptor.development_version(ROOT_KEY) == "1.3-SNAPSHOT"

    def test_released_default_is_invalid(self, tmp_path: Path) -> None:
        run = make_run(
            tmp_path,
            _single(tmp_path, "1.2-SNAPSHOT"),
            release_versions={ROOT_KEY: "1.2"},
            default_development_version="1.3",
        )
        result = _phase(MapMode.DEVELOPMENT).execute(run)

        assert isinstance(result, Err)
        assert result.error.message == "1.3 is invalid, expected a snapshot"

    def test_branch_keeps_working_copy(self, tmp_path: Path) -> None:
        run = make_run(
            tmp_path,
            _single(tmp_path, "1.2-SNAPSHOT"),
            branch_creation=True,
            update_working_copy_versions=False,
        )

        _phase(MapMode.DEVELOPMENT).execute(run)

        assert run.descriptor.development_version(ROOT_KEY) == "1.2-SNAPSHOT"

    def test_interactive_prompt_mentions_working_copy_for_branches(self, tmp_path: Path) -> None:
        fakes = Fakes()
        run = make_run(
            tmp_path,
            _single(tmp_path, "1.2-SNAPSHOT"),
            interactive=True,
            branch_creation=True,
        )

        _phase(MapMode.DEVELOPMENT, fakes).execute(run)

        assert fakes.prompter.prompts[0].startswith("What is the new working copy version")


class TestBranchMapping:
    def test_versions_kept_by_default(self, tmp_path: Path) -> None:
        run = make_run(tmp_path, _single(tmp_path, "1.2-SNAPSHOT"), branch_creation=True)

        _phase(MapMode.BRANCH).execute(run)

        assert run.descriptor.release_version(ROOT_KEY) == "1.2-SNAPSHOT"

    def test_update_branch_versions(self, tmp_path: Path) -> None:
        run = make_run(
            tmp_path,
            _single(tmp_path, "1.2-SNAPSHOT"),
            branch_creation=True,
            update_branch_versions=True,
        )

        _phase(MapMode.BRANCH).execute(run)

        assert run.descriptor.release_version(ROOT_KEY) == "1.2"
