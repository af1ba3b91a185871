"""Core types: Result, exit codes, configuration."""

from .config import Config, RefreshFlags, SshTarget
from .errors import ErrorCode
from .result import Err, Ok, Result

__all__ = [
    # config
    "Config",
    "RefreshFlags",
    "SshTarget",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
]
