"""Version arithmetic commands (no repository access)."""

from __future__ import annotations

import typer

from relflow.core.errors import ReleaseError
from relflow.core.result import Err, Result
from relflow.output.console import ConsoleProtocol, RichConsole
from relflow.output.errors import print_release_error, release_error_exit_code
from relflow.policy.version import VersionPolicyRequest, get_version_policy
from relflow.versions.info import parse_version

version_app = typer.Typer(add_completion=False, no_args_is_help=True)


def _echo_or_exit(result: Result[str, ReleaseError], console: ConsoleProtocol) -> None:
    if isinstance(result, Err):
        print_release_error(result.error, console)
        raise typer.Exit(code=release_error_exit_code(result.error))
    typer.echo(result.value)


@version_app.command("release")
def release(
    version: str = typer.Argument(..., help="Current version, e.g. 1.2-SNAPSHOT"),
    policy: str = typer.Option("default", "--policy", help="Version policy id"),
) -> None:
    """Print the release version of VERSION."""
    console = RichConsole()
    selected = get_version_policy(policy)
    if isinstance(selected, Err):
        _echo_or_exit(selected, console)
        return
    _echo_or_exit(selected.value.release_version(VersionPolicyRequest(version=version)), console)


@version_app.command("next")
def next_(
    version: str = typer.Argument(..., help="Released version, e.g. 1.2"),
    policy: str = typer.Option("default", "--policy", help="Version policy id"),
) -> None:
    """Print the next development version after VERSION."""
    console = RichConsole()
    selected = get_version_policy(policy)
    if isinstance(selected, Err):
        _echo_or_exit(selected, console)
        return
    _echo_or_exit(
        selected.value.development_version(VersionPolicyRequest(version=version)), console
    )


@version_app.command("compare")
def compare(
    left: str = typer.Argument(..., help="First version"),
    right: str = typer.Argument(..., help="Second version"),
) -> None:
    """Print '<', '=' or '>' comparing LEFT to RIGHT."""
    console = RichConsole()
    a = parse_version(left)
    if isinstance(a, Err):
        _echo_or_exit(a, console)
        return
    b = parse_version(right)
    if isinstance(b, Err):
        _echo_or_exit(b, console)
        return
    order = a.value.compare_to(b.value)
    typer.echo("<" if order < 0 else ">" if order > 0 else "=")
