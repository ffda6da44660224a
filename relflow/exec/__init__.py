"""Build tool invocation."""

from .build import SubprocessBuildInvoker, build_command_line

__all__ = ["SubprocessBuildInvoker", "build_command_line"]
