"""Subprocess execution with Result-based error handling.

``run`` captures output for short commands (git plumbing). ``run_streaming``
is for long-running builds: stdout and stderr are read by two pump threads and
forwarded line by line to a sink while the caller waits for the exit code.

Usage:
    result = run(["git", "status"], cwd=Path("."))
    match result:
        case Ok(stdout):
            print(stdout)
        case Err(error):
            print(f"Failed: {error.stderr}")
"""

from __future__ import annotations

import subprocess
import threading
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import IO

from relflow.core.result import Err, Ok, Result

__all__ = ["OutputSink", "ProcessError", "run", "run_streaming"]

type OutputSink = Callable[[str], None]


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Error from a failed subprocess execution.

    Attributes:
        command: The command that was executed.
        returncode: The exit code of the process (-1 if it never ran or timed out).
        stdout: Standard output (may be empty).
        stderr: Standard error (contains error details).
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        return f"{cmd_str} failed (exit {self.returncode})"


def run(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Execute a command and return stdout or error.

    Args:
        cmd: Command and arguments to execute.
        cwd: Working directory for the command.
        env: Environment variables (uses current env if None).
        timeout: Maximum seconds to wait (None for no limit).

    Returns:
        Ok(stdout) on success, Err(ProcessError) on failure.
    """
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout=e.stdout if isinstance(e.stdout, str) else "",
                stderr=f"Command timed out after {timeout}s",
            )
        )
    except OSError as e:
        return Err(ProcessError(command=tuple(cmd), returncode=-1, stdout="", stderr=str(e)))

    if proc.returncode != 0:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=proc.returncode,
                stdout=proc.stdout,
                stderr=proc.stderr,
            )
        )

    return Ok(proc.stdout)


class _Pump(threading.Thread):
    """Copy lines from a pipe to the sink, keeping a copy of what was read."""

    def __init__(self, stream: IO[str], sink: OutputSink, lock: threading.Lock) -> None:
        super().__init__(daemon=True)
        self._stream = stream
        self._sink = sink
        self._lock = lock
        self.lines: list[str] = []

    def run(self) -> None:
        with self._stream:
            for line in self._stream:
                text = line.rstrip("\r\n")
                self.lines.append(text)
                with self._lock:
                    self._sink(text)


def run_streaming(
    cmd: list[str],
    cwd: Path,
    sink: OutputSink,
    env: dict[str, str] | None = None,
    *,
    inherit_stdin: bool = True,
    timeout: float | None = None,
) -> Result[int, ProcessError]:
    """Execute a command, forwarding its output to ``sink`` as it is produced.

    Line order within one stream is preserved; stdout and stderr lines may
    interleave in any order. Without ``inherit_stdin`` the child reads from
    the null device. With a timeout, the process is killed when it
    expires and an error with returncode -1 is returned.

    Returns:
        Ok(0) on success, Err(ProcessError) on non-zero exit, spawn failure or timeout.
    """
    try:
        proc = subprocess.Popen(
            cmd,
            cwd=str(cwd),
            env=env,
            stdin=None if inherit_stdin else subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as e:
        return Err(ProcessError(command=tuple(cmd), returncode=-1, stdout="", stderr=str(e)))

    assert proc.stdout is not None and proc.stderr is not None
    lock = threading.Lock()
    out_pump = _Pump(proc.stdout, sink, lock)
    err_pump = _Pump(proc.stderr, sink, lock)
    out_pump.start()
    err_pump.start()

    timed_out = False
    try:
        returncode = proc.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        timed_out = True
        proc.kill()
        returncode = proc.wait()
    finally:
        out_pump.join()
        err_pump.join()

    stdout = "\n".join(out_pump.lines)
    stderr = "\n".join(err_pump.lines)

    if timed_out:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout=stdout,
                stderr=f"Command timed out after {timeout}s",
            )
        )
    if returncode != 0:
        return Err(
            ProcessError(command=tuple(cmd), returncode=returncode, stdout=stdout, stderr=stderr)
        )
    return Ok(returncode)
