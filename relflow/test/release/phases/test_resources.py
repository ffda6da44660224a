"""Tests for manifest backups and release manifests."""

from pathlib import Path

from relflow.core.errors import ErrorKind
from relflow.core.result import Err, Ok
from relflow.release.model import PhaseResult
from relflow.release.phases.resources import (
    CreateBackupManifestsPhase,
    GenerateReleaseManifestsPhase,
    RemoveReleaseManifestsPhase,
    RestoreBackupManifestsPhase,
)

from ._fakes import ROOT, make_run, read_tree, write_tree

BACKUP = "pyproject.toml.releaseBackup"


class TestBackups:
    def test_create_backs_up_every_manifest(self, tmp_path: Path) -> None:
        run = make_run(tmp_path, read_tree(write_tree(tmp_path)))

        assert CreateBackupManifestsPhase().execute(run) == Ok(None)

        assert (tmp_path / BACKUP).read_text(encoding="utf-8") == ROOT
        assert (tmp_path / "core" / BACKUP).is_file()

    def test_clean_removes_backups(self, tmp_path: Path) -> None:
        projects = read_tree(write_tree(tmp_path))
        CreateBackupManifestsPhase().execute(make_run(tmp_path, projects))
        result = PhaseResult()

        assert CreateBackupManifestsPhase().clean(projects, result) == Ok(None)

        assert not (tmp_path / BACKUP).exists()
        assert not (tmp_path / "core" / BACKUP).exists()
        assert f"[DEBUG] Removed {BACKUP}" in result.output

    def test_restore(self, tmp_path: Path) -> None:
        projects = read_tree(write_tree(tmp_path))
        CreateBackupManifestsPhase().execute(make_run(tmp_path, projects))
        (tmp_path / "pyproject.toml").write_text("changed", encoding="utf-8")

        run = make_run(tmp_path, projects)
        assert RestoreBackupManifestsPhase().execute(run) == Ok(None)

        assert (tmp_path / "pyproject.toml").read_text(encoding="utf-8") == ROOT
        assert "[INFO] Restored core/pyproject.toml" in run.result.output

    def test_restore_without_backup(self, tmp_path: Path) -> None:
        run = make_run(tmp_path, read_tree(write_tree(tmp_path)))
        result = RestoreBackupManifestsPhase().execute(run)

        assert isinstance(result, Err)
        assert result.error.kind == ErrorKind.EXECUTION
        assert BACKUP in result.error.message

    def test_restore_simulation_leaves_files(self, tmp_path: Path) -> None:
        projects = read_tree(write_tree(tmp_path))
        CreateBackupManifestsPhase().execute(make_run(tmp_path, projects))
        (tmp_path / "pyproject.toml").write_text("changed", encoding="utf-8")

        RestoreBackupManifestsPhase().simulate(make_run(tmp_path, projects))

        assert (tmp_path / "pyproject.toml").read_text(encoding="utf-8") == "changed"


class TestReleaseManifests:
    def test_disabled_by_default(self, tmp_path: Path) -> None:
        run = make_run(tmp_path, read_tree(write_tree(tmp_path)))

        GenerateReleaseManifestsPhase().execute(run)

        assert not (tmp_path / "release-pyproject.toml").exists()

    def test_generate_and_remove(self, tmp_path: Path) -> None:
        projects = read_tree(write_tree(tmp_path))
        run = make_run(tmp_path, projects, generate_release_manifests=True)

        assert GenerateReleaseManifestsPhase().execute(run) == Ok(None)
        assert (tmp_path / "release-pyproject.toml").read_text(encoding="utf-8") == ROOT
        assert (tmp_path / "core" / "release-pyproject.toml").is_file()

        assert RemoveReleaseManifestsPhase().execute(run) == Ok(None)
        assert not (tmp_path / "release-pyproject.toml").exists()
        assert not (tmp_path / "core" / "release-pyproject.toml").exists()

    def test_clean(self, tmp_path: Path) -> None:
        projects = read_tree(write_tree(tmp_path))
        GenerateReleaseManifestsPhase().execute(
            make_run(tmp_path, projects, generate_release_manifests=True)
        )

        GenerateReleaseManifestsPhase().clean(projects, PhaseResult())

        assert not (tmp_path / "release-pyproject.toml").exists()
