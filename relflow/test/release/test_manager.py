"""Tests for relflow.release.manager workflows."""

from pathlib import Path

from relflow.core.errors import ErrorKind, ReleaseError
from relflow.core.result import Err, Ok, Result
from relflow.output.console import MockConsole
from relflow.release.descriptor import ReleaseDescriptor
from relflow.release.manager import ReleaseManager, ReleaseRequest
from relflow.release.model import PhaseResult, Project, ReleaseEnvironment
from relflow.release.phase import PhaseRegistry, PhaseRun, ReleasePhase, ResourceGenerator
from relflow.release.store import RELEASE_PROPERTIES, DescriptorStore
from relflow.release.strategy import Strategy, StrategyCatalog


class _Step(ReleasePhase):
    def __init__(self, phase_id: str, log: list[str]) -> None:
        self.phase_id = phase_id
        self.log = log

    def execute(self, run: PhaseRun) -> Result[None, ReleaseError]:
        self.log.append(self.phase_id)
        if self.phase_id == "map":
            for key, version in run.descriptor.release_versions.items():
                run.result.info(f"{key}={version}")
        return Ok(None)


class _Backup(ResourceGenerator):
    phase_id = "backup"

    def __init__(self, log: list[str]) -> None:
        self.log = log

    def execute(self, run: PhaseRun) -> Result[None, ReleaseError]:
        self.log.append("backup")
        return Ok(None)

    def clean(self, projects: list[Project], result: PhaseResult) -> Result[None, ReleaseError]:
        self.log.append("clean:backup")
        return Ok(None)


_STRATEGY = Strategy(
    prepare=("backup", "map", "tag", "end"),
    perform=("checkout", "deploy"),
    branch=("backup", "branch"),
    rollback=("restore", "untag"),
    update_versions=("backup", "map"),
)


def _manager(log: list[str]) -> ReleaseManager:
    ids = ["map", "tag", "end", "checkout", "deploy", "branch", "restore", "untag"]
    registry = PhaseRegistry([_Backup(log), *(_Step(i, log) for i in ids)])
    catalog = StrategyCatalog({"test": _STRATEGY})
    return ReleaseManager(DescriptorStore(), registry, catalog, MockConsole())


def _request(tmp_path: Path, **kwargs: object) -> ReleaseRequest:
    descriptor = ReleaseDescriptor(working_directory=tmp_path, release_strategy_id="test")
    return ReleaseRequest(
        descriptor=descriptor,
        environment=ReleaseEnvironment(),
        projects=[],
        **kwargs,  # type: ignore[arg-type]
    )


def _checkpoint(tmp_path: Path) -> Path:
    return tmp_path / RELEASE_PROPERTIES


class TestPrepare:
    def test_prepare_leaves_checkpoint(self, tmp_path: Path) -> None:
        log: list[str] = []
        result = _manager(log).prepare(_request(tmp_path))

        assert isinstance(result, Ok)
        assert log == ["backup", "map", "tag", "end"]
        saved = DescriptorStore().load(_checkpoint(tmp_path)).unwrap()
        assert saved.completed_phase == "end"

    def test_second_prepare_resumes(self, tmp_path: Path) -> None:
        log: list[str] = []
        manager = _manager(log)
        manager.prepare(_request(tmp_path))
        log.clear()

        result = manager.prepare(_request(tmp_path))

        assert log == []
        assert result.unwrap().skipped == ["backup", "map", "tag", "end"]

    def test_no_resume_starts_over(self, tmp_path: Path) -> None:
        log: list[str] = []
        manager = _manager(log)
        manager.prepare(_request(tmp_path))
        log.clear()

        manager.prepare(_request(tmp_path, resume=False))

        assert log == ["backup", "map", "tag", "end"]

    def test_user_versions_reach_phases(self, tmp_path: Path) -> None:
        log: list[str] = []
        result = _manager(log).prepare(
            _request(tmp_path, release_versions={"org.acme:widget": "1.0"})
        )
        assert "org.acme:widget=1.0" in result.unwrap().phases["map"].output

    def test_dry_run_writes_nothing(self, tmp_path: Path) -> None:
        log: list[str] = []
        result = _manager(log).prepare(_request(tmp_path, simulate=True))

        assert result.unwrap().simulated
        assert not _checkpoint(tmp_path).exists()

    def test_unknown_strategy(self, tmp_path: Path) -> None:
        request = _request(tmp_path)
        request.descriptor.release_strategy_id = "nightly"

        result = _manager([]).prepare(request)

        assert isinstance(result, Err)
        assert result.error.kind == ErrorKind.FAILURE


class TestOtherWorkflows:
    def test_perform_cleans_up(self, tmp_path: Path) -> None:
        log: list[str] = []
        manager = _manager(log)
        manager.prepare(_request(tmp_path))
        log.clear()

        result = manager.perform(_request(tmp_path))

        assert isinstance(result, Ok)
        assert log == ["checkout", "deploy", "clean:backup"]
        assert not _checkpoint(tmp_path).exists()

    def test_perform_without_clean_keeps_checkpoint(self, tmp_path: Path) -> None:
        log: list[str] = []
        manager = _manager(log)
        manager.prepare(_request(tmp_path))

        manager.perform(_request(tmp_path, clean=False))

        assert _checkpoint(tmp_path).exists()

    def test_branch_cleans_up(self, tmp_path: Path) -> None:
        log: list[str] = []
        _manager(log).branch(_request(tmp_path))

        assert log == ["backup", "branch", "clean:backup"]
        assert not _checkpoint(tmp_path).exists()

    def test_rollback_deletes_checkpoint(self, tmp_path: Path) -> None:
        log: list[str] = []
        manager = _manager(log)
        manager.prepare(_request(tmp_path))
        log.clear()

        manager.rollback(_request(tmp_path))

        assert log == ["restore", "untag", "clean:backup"]
        assert not _checkpoint(tmp_path).exists()

    def test_update_versions(self, tmp_path: Path) -> None:
        log: list[str] = []
        result = _manager(log).update_versions(
            _request(tmp_path, development_versions={"org.acme:widget": "2.0-SNAPSHOT"})
        )

        assert isinstance(result, Ok)
        assert log == ["backup", "map", "clean:backup"]

    def test_clean(self, tmp_path: Path) -> None:
        log: list[str] = []
        manager = _manager(log)
        manager.prepare(_request(tmp_path))
        log.clear()

        assert manager.clean(_request(tmp_path)) == Ok(None)
        assert log == ["clean:backup"]
        assert not _checkpoint(tmp_path).exists()
