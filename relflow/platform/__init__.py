"""Platform abstraction layer: files and subprocesses."""

from .files import atomic_write_text, copy_text, remove_if_exists, remove_tree
from .process import OutputSink, ProcessError, run, run_streaming

__all__ = [
    # files
    "atomic_write_text",
    "copy_text",
    "remove_if_exists",
    "remove_tree",
    # process
    "OutputSink",
    "ProcessError",
    "run",
    "run_streaming",
]
