"""Build tool invocation.

Runs ``<build command> <goals...> <additional arguments...>`` in the project
directory, streaming its output to the console while keeping a copy for the
phase log. The manifest file name and the interactive flag are passed to the
build through ``RELFLOW_MANIFEST`` and ``RELFLOW_BATCH``.
"""

from __future__ import annotations

import os
import shlex
from pathlib import Path
from typing import TYPE_CHECKING

from relflow.core.errors import ErrorKind, ReleaseError
from relflow.core.result import Err, Ok, Result
from relflow.output.console import Style
from relflow.platform.process import run_streaming
from relflow.release.collaborators import BuildOutput

if TYPE_CHECKING:
    from relflow.output.console import ConsoleProtocol
    from relflow.release.model import ReleaseEnvironment

__all__ = ["SubprocessBuildInvoker", "build_command_line"]


def build_command_line(
    environment: ReleaseEnvironment,
    goals: str,
    additional_arguments: str | None,
) -> list[str]:
    cmd = [*environment.build_command, *shlex.split(goals)]
    if additional_arguments:
        cmd.extend(shlex.split(additional_arguments))
    return cmd


class SubprocessBuildInvoker:
    """``BuildInvoker`` running the configured build command as a subprocess."""

    def __init__(self, console: ConsoleProtocol | None = None) -> None:
        self.console = console

    def execute_goals(
        self,
        working_directory: Path,
        goals: str,
        environment: ReleaseEnvironment,
        interactive: bool,
        additional_arguments: str | None,
        manifest_file_name: str | None,
    ) -> Result[BuildOutput, ReleaseError]:
        cmd = build_command_line(environment, goals, additional_arguments)

        env = dict(os.environ)
        env.update(environment.environment)
        if environment.home is not None:
            env["RELFLOW_BUILD_HOME"] = str(environment.home)
        if manifest_file_name:
            env["RELFLOW_MANIFEST"] = manifest_file_name
        if not interactive:
            env["RELFLOW_BATCH"] = "1"

        lines: list[str] = []

        def sink(line: str) -> None:
            lines.append(line)
            if self.console is not None:
                self.console.print(line, Style.DIM)

        result = run_streaming(
            cmd,
            working_directory,
            sink,
            env,
            inherit_stdin=interactive,
            timeout=environment.timeout,
        )
        if isinstance(result, Err):
            error = result.error
            if error.returncode == -1:
                message = f"Can't run goals '{goals}': {error.stderr}"
            else:
                message = f"Build execution failed, exit code: '{error.returncode}'"
            return Err(
                ReleaseError(
                    kind=ErrorKind.EXECUTION,
                    message=message,
                    hint=shlex.join(cmd),
                )
            )
        return Ok(BuildOutput(command=tuple(cmd), returncode=0, output="\n".join(lines)))
