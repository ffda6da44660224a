"""Error taxonomy and exit codes.

``ReleaseError`` is the single error payload used across relflow. Its ``kind``
tells callers whether the failure is something the operator can fix and retry
(``FAILURE``, ``POLICY``, ``PARSE``) or something unexpected (``EXECUTION`` and
the repository kinds). When raised from inside a release phase, the pipeline
attaches the phase id and the partial phase log.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from relflow.release.model import PhaseResult

__all__ = ["ErrorCode", "ErrorKind", "ReleaseError", "exit_code_for"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    These values are used as process exit codes and should remain stable:
    - 0: Success
    - 1: User error (bad input, unmet precondition, policy refusal)
    - 2: Environment error (I/O, subprocess, unexpected failure)
    - 3: Repository error (SCM command or repository configuration)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    SCM_ERROR = 3

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @property
    def is_error(self) -> bool:
        return self != ErrorCode.OK


class ErrorKind(Enum):
    """Kind of release error."""

    POLICY = "policy"
    PARSE = "parse"
    EXECUTION = "execution"
    FAILURE = "failure"
    REPOSITORY_COMMAND = "repository_command"
    REPOSITORY_REPOSITORY = "repository_repository"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Canonical release error payload.

    Attributes:
        kind: Error classification.
        message: Human readable cause.
        hint: Optional remediation or context (path, command output).
        phase: Id of the phase that failed, when raised inside a pipeline.
        partial: Log accumulated by the failing phase before it stopped.
    """

    kind: ErrorKind
    message: str
    hint: str | None = None
    phase: str | None = None
    partial: PhaseResult | None = None

    @property
    def is_failure(self) -> bool:
        """True when fixing the input and retrying is the expected remedy."""
        return self.kind in (ErrorKind.FAILURE, ErrorKind.POLICY, ErrorKind.PARSE)

    def in_phase(self, phase: str, partial: PhaseResult | None = None) -> ReleaseError:
        """Return a copy tagged with the phase id and its partial result."""
        return replace(
            self,
            phase=self.phase or phase,
            partial=self.partial if self.partial is not None else partial,
        )

    def pretty(self) -> str:
        prefix = f"[{self.phase}] " if self.phase else ""
        if self.hint:
            return f"{prefix}{self.message} (hint: {self.hint})"
        return f"{prefix}{self.message}"


def exit_code_for(error: ReleaseError) -> ErrorCode:
    """Map an error kind to the CLI exit code."""
    match error.kind:
        case ErrorKind.FAILURE | ErrorKind.POLICY | ErrorKind.PARSE:
            return ErrorCode.USER_ERROR
        case ErrorKind.REPOSITORY_COMMAND | ErrorKind.REPOSITORY_REPOSITORY:
            return ErrorCode.SCM_ERROR
        case ErrorKind.EXECUTION:
            return ErrorCode.ENV_ERROR
