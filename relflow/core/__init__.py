"""Core types: results, errors, configuration."""

from .config import Config, ConfigError, load_config, load_config_or_default
from .errors import ErrorCode, ErrorKind, ReleaseError, exit_code_for
from .result import Err, Ok, Result, is_err, is_ok

__all__ = [
    # config
    "Config",
    "ConfigError",
    "load_config",
    "load_config_or_default",
    # errors
    "ErrorCode",
    "ErrorKind",
    "ReleaseError",
    "exit_code_for",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
]
