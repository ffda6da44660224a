"""Resumable release workflow engine."""

__version__ = "0.4.0"
