"""Error presentation for the CLI."""

from __future__ import annotations

from typing import TYPE_CHECKING

from relflow.core.errors import ErrorKind, ReleaseError, exit_code_for
from relflow.output.console import Style

if TYPE_CHECKING:
    from relflow.output.console import ConsoleProtocol

__all__ = ["print_release_error", "release_error_exit_code"]


def print_release_error(error: ReleaseError, console: ConsoleProtocol) -> None:
    """Print a release error: cause, failing phase with its log, then hint."""
    match error.kind:
        case ErrorKind.REPOSITORY_COMMAND | ErrorKind.REPOSITORY_REPOSITORY:
            console.error(f"scm: {error.message}")
        case ErrorKind.POLICY:
            console.error(f"policy: {error.message}")
        case ErrorKind.PARSE:
            console.error(f"invalid version: {error.message}")
        case _:
            console.error(error.message)

    if error.phase is not None:
        console.print(f"phase: {error.phase}", Style.DIM)
    if error.partial is not None and error.partial.output:
        for line in error.partial.output.splitlines():
            console.print(line, Style.DIM)
    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)
    if error.phase is not None and error.is_failure:
        console.print("fix the problem and run the command again to resume", Style.DIM)


def release_error_exit_code(error: ReleaseError) -> int:
    return int(exit_code_for(error))
