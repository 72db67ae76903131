from __future__ import annotations

"""
Log Outputs.

Builds the stderr and rotating-file outputs that the queue listener drains.
Every handler created here carries a tag, so tearing the pipeline down only
removes what this package attached and leaves handlers from test runners or
host applications alone.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import List, Optional, TypeVar

from assetdeps.infra.logging.config import LoggingConfig

_HANDLER_TAG_ATTR: str = "_assetdeps_handler"

H = TypeVar("H", bound=logging.Handler)


def tag(handler: H) -> H:
    setattr(handler, _HANDLER_TAG_ATTR, True)
    return handler


def is_tagged(handler: logging.Handler) -> bool:
    return bool(getattr(handler, _HANDLER_TAG_ATTR, False))


def build_output_handlers(cfg: LoggingConfig) -> List[logging.Handler]:
    """
    Create the enabled outputs, all filtered at the configured level.

    A log file that cannot be opened is reported on stderr and skipped;
    the scan itself never fails because of it.
    """
    outputs: List[logging.Handler] = []

    if cfg.console:
        stream = logging.StreamHandler(sys.stderr)
        stream.setFormatter(logging.Formatter(cfg.console_fmt))
        outputs.append(stream)

    if cfg.log_file:
        rotating = _open_log_file(cfg)
        if rotating is not None:
            outputs.append(rotating)

    for handler in outputs:
        handler.setLevel(cfg.level_number)
        tag(handler)
    return outputs


def _open_log_file(cfg: LoggingConfig) -> Optional[RotatingFileHandler]:
    log_file = str(cfg.log_file)
    try:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        handler = RotatingFileHandler(
            log_file,
            maxBytes=cfg.max_bytes,
            backupCount=cfg.backup_count,
            encoding="utf-8",
        )
    except OSError as e:
        sys.stderr.write(f"WARNING: Cannot open log file '{log_file}', logging to console only: {e}\n")
        return None

    handler.setFormatter(logging.Formatter(cfg.file_fmt, datefmt=cfg.datefmt))
    return handler
