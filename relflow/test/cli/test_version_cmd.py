from __future__ import annotations

import pytest
from typer.testing import CliRunner

from relflow import __version__
from relflow.cli.app import app

runner = CliRunner()


def test_version_flag() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.output.strip() == __version__


@pytest.mark.parametrize(
    ("args", "expected"),
    [
        (["release", "1.0-SNAPSHOT"], "1.0"),
        (["release", "2.0-beta-1-SNAPSHOT"], "2.0-beta-1"),
        (["next", "1.0"], "1.1-SNAPSHOT"),
        (["next", "1.0.1", "--policy", "odd-even"], "1.0.3-SNAPSHOT"),
        (["compare", "1.0", "1.0.0"], "<"),
        (["compare", "1.10", "1.9"], ">"),
        (["compare", "1.0alpha1", "1.0-alpha-1"], "="),
    ],
)
def test_version_commands(args: list[str], expected: str) -> None:
    result = runner.invoke(app, ["version", *args])
    assert result.exit_code == 0, result.output
    assert result.output.strip() == expected


def test_unknown_policy_exits_with_user_error() -> None:
    result = runner.invoke(app, ["version", "release", "1.0-SNAPSHOT", "--policy", "nope"])
    assert result.exit_code == 1
    assert "nope" in result.output


def test_no_arguments_shows_help() -> None:
    result = runner.invoke(app, ["version"])
    assert "compare" in result.output
