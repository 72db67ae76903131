from __future__ import annotations

"""
Logging Settings.

Frozen settings of the logging pipeline: verbosity, which outputs are
enabled and how the rotating log file rolls over.
"""

import logging
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class LoggingConfig:
    """
    Settings of the logging pipeline.

    Attributes:
        level: Severity name such as 'DEBUG' or 'WARN'; unknown names mean INFO.
        console: Echo records on stderr.
        log_file: Rotating log file, or None to stay console only.
        max_bytes: Size at which the log file rolls over.
        backup_count: Rolled-over files kept beside the active one.
    """
    level: str = "INFO"
    console: bool = True
    log_file: Optional[str] = None

    max_bytes: int = 1024 * 1024
    backup_count: int = 2

    console_fmt: str = "%(levelname)-8s %(message)s"
    file_fmt: str = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
    datefmt: str = "%Y-%m-%d %H:%M:%S"

    @property
    def level_number(self) -> int:
        number = logging.getLevelName(str(self.level or "").strip().upper())
        return number if isinstance(number, int) else logging.INFO
