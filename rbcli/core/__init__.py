"""Core types shared by every layer."""

from .config import Config, ConfigError, ServerDetails, load_config, resolve_server_details
from .errors import ErrorCode
from .result import Err, Ok, Result, is_err, is_ok

__all__ = [
    # config
    "Config",
    "ConfigError",
    "ServerDetails",
    "load_config",
    "resolve_server_details",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
]
