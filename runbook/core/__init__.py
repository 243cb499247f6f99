"""Core domain types and logic."""

from .config import (
    BumpType,
    ConfigError,
    FileConfig,
    ReleaseConfig,
    build_release_config,
    load_file_config,
)
from .errors import ErrorCode
from .result import Err, Ok, Result, is_err, is_ok

__all__ = [
    # config
    "BumpType",
    "ConfigError",
    "FileConfig",
    "ReleaseConfig",
    "build_release_config",
    "load_file_config",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
]
