"""Tests for relflow.release.phase."""

import pytest

from relflow.core.errors import ErrorKind, ReleaseError
from relflow.core.result import Err, Ok, Result
from relflow.release.phase import PhaseRegistry, PhaseRun, ReleasePhase
from relflow.release.strategy import Strategy, StrategyCatalog


class _Noop(ReleasePhase):
    def __init__(self, phase_id: str) -> None:
        self.phase_id = phase_id

    def execute(self, run: PhaseRun) -> Result[None, ReleaseError]:
        return Ok(None)


def test_registry_lookup() -> None:
    registry = PhaseRegistry([_Noop("a"), _Noop("b")])

    assert len(registry) == 2
    assert "a" in registry
    assert registry.ids == ("a", "b")
    assert isinstance(registry.get("b"), Ok)


def test_duplicate_ids_are_rejected() -> None:
    with pytest.raises(ValueError, match="Duplicate phase id: a"):
        PhaseRegistry([_Noop("a"), _Noop("a")])


def test_unknown_phase() -> None:
    result = PhaseRegistry([]).get("scm-tag")
    assert isinstance(result, Err)
    assert result.error.kind == ErrorKind.FAILURE
    assert result.error.message == "Unable to find phase 'scm-tag' to execute"


def test_resolve_stops_on_first_unknown() -> None:
    registry = PhaseRegistry([_Noop("a")])
    result = registry.resolve(["a", "x", "y"])
    assert isinstance(result, Err)
    assert "'x'" in result.error.message


def test_validate_against_catalog() -> None:
    catalog = StrategyCatalog(
        {"only": Strategy(prepare=("a",), perform=("a",), branch=("a",), rollback=("a",), update_versions=("a",))}
    )
    registry = PhaseRegistry([_Noop("a")])

    result = registry.validate(catalog)

    # the default strategy is always part of the catalog
    assert isinstance(result, Err)
    assert "check-poms" in result.error.message


def test_repr() -> None:
    assert repr(_Noop("a")) == "_Noop('a')"
