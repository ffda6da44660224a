"""Tests for the tag and branch name phases."""

from pathlib import Path

from relflow.core.errors import ErrorKind
from relflow.core.result import Err, Ok
from relflow.release.model import Project
from relflow.release.phases.naming import InputVariablesPhase

from ._fakes import Fakes, make_run

ROOT_KEY = "org.acme:widget"


def _projects(tmp_path: Path) -> list[Project]:
    return [Project("org.acme", "widget", "1.2-SNAPSHOT", tmp_path / "pyproject.toml")]


def _tag_phase(fakes: Fakes | None = None) -> InputVariablesPhase:
    return InputVariablesPhase("input-variables", (fakes or Fakes()).deps())


class TestReleaseTag:
    def test_default_naming_policy(self, tmp_path: Path) -> None:
        run = make_run(tmp_path, _projects(tmp_path), release_versions={ROOT_KEY: "1.2"})

        assert _tag_phase().execute(run) == Ok(None)
        assert run.descriptor.scm_release_label == "widget-1.2"

    def test_tag_name_format(self, tmp_path: Path) -> None:
        run = make_run(
            tmp_path,
            _projects(tmp_path),
            release_versions={ROOT_KEY: "1.2"},
            scm_tag_name_format="v@{project.version}",
        )

        _tag_phase().execute(run)

        assert run.descriptor.scm_release_label == "v1.2"

    def test_given_label_is_kept(self, tmp_path: Path) -> None:
        fakes = Fakes()
        run = make_run(tmp_path, _projects(tmp_path), scm_release_label="custom", interactive=True)

        assert _tag_phase(fakes).execute(run) == Ok(None)
        assert run.descriptor.scm_release_label == "custom"
        assert fakes.prompter.prompts == []

    def test_needs_mapped_version(self, tmp_path: Path) -> None:
        result = _tag_phase().execute(make_run(tmp_path, _projects(tmp_path)))

        assert isinstance(result, Err)
        assert result.error.kind == ErrorKind.EXECUTION

    def test_unknown_naming_policy(self, tmp_path: Path) -> None:
        run = make_run(
            tmp_path,
            _projects(tmp_path),
            release_versions={ROOT_KEY: "1.2"},
            project_naming_policy_id="nope",
        )
        result = _tag_phase().execute(run)
        assert isinstance(result, Err)

    def test_interactive_answer(self, tmp_path: Path) -> None:
        fakes = Fakes()
        fakes.prompter.answers = ["release-1.2"]
        run = make_run(
            tmp_path, _projects(tmp_path), release_versions={ROOT_KEY: "1.2"}, interactive=True
        )

        _tag_phase(fakes).execute(run)

        assert run.descriptor.scm_release_label == "release-1.2"

    def test_interactive_blank_answer_takes_proposal(self, tmp_path: Path) -> None:
        fakes = Fakes()
        fakes.prompter.answers = [""]
        run = make_run(
            tmp_path, _projects(tmp_path), release_versions={ROOT_KEY: "1.2"}, interactive=True
        )

        _tag_phase(fakes).execute(run)

        assert run.descriptor.scm_release_label == "widget-1.2"


class TestBranchName:
    def test_batch_mode_requires_name(self, tmp_path: Path) -> None:
        phase = InputVariablesPhase("branch-input-variables", Fakes().deps(), branch=True)
        result = phase.execute(make_run(tmp_path, _projects(tmp_path)))

        assert isinstance(result, Err)
        assert result.error.message == "No branch name was given."
        assert result.error.hint == "pass --branch-name"

    def test_interactive_name(self, tmp_path: Path) -> None:
        fakes = Fakes()
        fakes.prompter.answers = ["widget-1.x"]
        phase = InputVariablesPhase("branch-input-variables", fakes.deps(), branch=True)
        run = make_run(tmp_path, _projects(tmp_path), interactive=True)

        assert phase.execute(run) == Ok(None)
        assert run.descriptor.scm_release_label == "widget-1.x"
        assert fakes.prompter.prompts == ['What is the branch name for "widget"? (org.acme:widget)']
