"""Shared helpers for CLI commands."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from typing import TYPE_CHECKING, NoReturn

import typer

from relflow.core.errors import ErrorCode, ReleaseError
from relflow.core.result import Err, Result
from relflow.output.console import Style
from relflow.output.errors import print_release_error, release_error_exit_code
from relflow.release.manager import ReleaseRequest
from relflow.release.model import PipelineResult

if TYPE_CHECKING:
    from relflow.cli.context import CLIContext
    from relflow.release.descriptor import ReleaseDescriptor

type Workflow = Callable[[ReleaseRequest], Result[PipelineResult, ReleaseError]]


def exit_user_error(message: str) -> NoReturn:
    typer.echo(f"error: {message}", err=True)
    raise typer.Exit(code=int(ErrorCode.USER_ERROR))


def parse_versions(items: list[str], *, flag: str) -> dict[str, str]:
    """Parse repeated ``group:artifact=version`` options."""
    out: dict[str, str] = {}
    for item in items:
        if "=" not in item:
            exit_user_error(f"invalid {flag} (expected group:artifact=version): {item}")
        key, version = item.split("=", 1)
        key = key.strip()
        version = version.strip()
        if not key or not version:
            exit_user_error(f"invalid {flag} (expected group:artifact=version): {item}")
        out[key] = version
    return out


def caller_descriptor(ctx: CLIContext, **overrides: object) -> ReleaseDescriptor:
    """Descriptor from the config file; ``None`` overrides are ignored."""
    descriptor = ctx.config.to_descriptor(ctx.root)
    changes = {k: v for k, v in overrides.items() if v is not None}
    return replace(descriptor, **changes) if changes else descriptor


def run_workflow(ctx: CLIContext, workflow: Workflow, request: ReleaseRequest, done: str) -> None:
    result = workflow(request)
    if isinstance(result, Err):
        print_release_error(result.error, ctx.console)
        raise typer.Exit(code=release_error_exit_code(result.error))

    summary = result.value
    if summary.simulated:
        ctx.console.success(f"{done} (dry run)")
    else:
        ctx.console.success(done)
    if summary.skipped:
        ctx.console.print(f"{len(summary.skipped)} phase(s) already completed", Style.DIM)
