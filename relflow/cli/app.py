from __future__ import annotations

import os
from pathlib import Path

import typer

from relflow import __version__
from relflow.cli.commands.release import (
    branch,
    clean,
    perform,
    prepare,
    rollback,
    update_versions,
)
from relflow.cli.commands.version import version_app
from relflow.cli.context import DIRECTORY_ENV
from relflow.core.errors import ErrorCode

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(prepare)
app.command()(perform)
app.command()(branch)
app.command()(rollback)
app.command("update-versions")(update_versions)
app.command()(clean)

# Sub-apps
app.add_typer(version_app, name="version")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    directory: Path | None = typer.Option(
        None,
        "--directory",
        "-C",
        help="Project root (defaults to the current directory)",
    ),
) -> None:
    if directory is not None:
        try:
            root = directory.expanduser().resolve()
        except OSError as e:
            typer.echo(f"error: invalid --directory: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

        if not root.is_dir():
            typer.echo(f"error: --directory '{root}' is not a directory", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

        os.environ[DIRECTORY_ENV] = str(root)


def main() -> None:
    app()
