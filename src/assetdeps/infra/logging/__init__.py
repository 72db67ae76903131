from __future__ import annotations

from .config import LoggingConfig
from .core import configure_logging, get_default_log_path, get_logger, shutdown_logging

__all__ = [
    "LoggingConfig",
    "configure_logging",
    "shutdown_logging",
    "get_logger",
    "get_default_log_path",
]
