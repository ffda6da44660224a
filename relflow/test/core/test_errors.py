"""Tests for relflow.core.errors module."""

import pytest

from relflow.core.errors import ErrorCode, ErrorKind, ReleaseError, exit_code_for
from relflow.release.model import PhaseResult


class TestErrorCode:
    def test_values_are_stable(self) -> None:
        assert ErrorCode.OK == 0
        assert ErrorCode.USER_ERROR == 1
        assert ErrorCode.ENV_ERROR == 2
        assert ErrorCode.SCM_ERROR == 3

    def test_str(self) -> None:
        assert str(ErrorCode.USER_ERROR) == "user error"

    def test_success_flags(self) -> None:
        assert ErrorCode.OK.is_success is True
        assert ErrorCode.OK.is_error is False
        assert ErrorCode.SCM_ERROR.is_success is False
        assert ErrorCode.SCM_ERROR.is_error is True


@pytest.mark.parametrize(
    ("kind", "code"),
    [
        (ErrorKind.FAILURE, ErrorCode.USER_ERROR),
        (ErrorKind.POLICY, ErrorCode.USER_ERROR),
        (ErrorKind.PARSE, ErrorCode.USER_ERROR),
        (ErrorKind.EXECUTION, ErrorCode.ENV_ERROR),
        (ErrorKind.REPOSITORY_COMMAND, ErrorCode.SCM_ERROR),
        (ErrorKind.REPOSITORY_REPOSITORY, ErrorCode.SCM_ERROR),
    ],
)
def test_exit_code_for(kind: ErrorKind, code: ErrorCode) -> None:
    assert exit_code_for(ReleaseError(kind=kind, message="x")) == code


class TestReleaseError:
    def test_is_failure(self) -> None:
        assert ReleaseError(kind=ErrorKind.FAILURE, message="x").is_failure is True
        assert ReleaseError(kind=ErrorKind.PARSE, message="x").is_failure is True
        assert ReleaseError(kind=ErrorKind.EXECUTION, message="x").is_failure is False

    def test_in_phase_sets_phase_and_partial(self) -> None:
        partial = PhaseResult()
        partial.info("halfway")
        error = ReleaseError(kind=ErrorKind.FAILURE, message="x").in_phase("scm-tag", partial)

        assert error.phase == "scm-tag"
        assert error.partial is partial

    def test_in_phase_keeps_existing_phase(self) -> None:
        """The innermost phase wins when errors are re-tagged."""
        error = ReleaseError(kind=ErrorKind.FAILURE, message="x", phase="inner")
        assert error.in_phase("outer").phase == "inner"

    def test_pretty(self) -> None:
        error = ReleaseError(kind=ErrorKind.FAILURE, message="broken", hint="fix it", phase="check-poms")
        assert error.pretty() == "[check-poms] broken (hint: fix it)"
        assert ReleaseError(kind=ErrorKind.FAILURE, message="broken").pretty() == "broken"
