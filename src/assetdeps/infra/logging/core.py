from __future__ import annotations

"""
Logging Pipeline.

The root logger receives a single QueueHandler; a QueueListener thread
drains the queue into the configured outputs, so a long scan never waits on
console or file I/O. The pipeline is installed once per process and stays
until `shutdown_logging` removes it (also registered to run at exit).
"""

import atexit
import logging
import os
import queue
import sys
from logging.handlers import QueueHandler, QueueListener
from typing import Optional

from assetdeps.infra.fs import get_user_data_dir
from assetdeps.infra.logging.config import LoggingConfig
from assetdeps.infra.logging.handlers import build_output_handlers, is_tagged, tag

_listener: Optional[QueueListener] = None


# ==============================================================================
# PUBLIC API
# ==============================================================================

def get_default_log_path(file_name: str = "assetdeps.log") -> str:
    """Log file location used by `--log-file` without an explicit path."""
    return os.path.join(get_user_data_dir(), "logs", file_name)


def configure_logging(cfg: LoggingConfig) -> logging.Logger:
    """
    Install the queue-based pipeline on the root logger.

    Only the first call has an effect. Later calls return the root logger
    untouched until `shutdown_logging` has run.

    Args:
        cfg: Verbosity and outputs of the pipeline.

    Returns:
        logging.Logger: The root logger.
    """
    global _listener
    root = logging.getLogger()
    if _listener is not None:
        return root

    root.setLevel(cfg.level_number)
    outputs = build_output_handlers(cfg)
    if not outputs:
        return root

    log_queue: queue.Queue[logging.LogRecord] = queue.Queue()
    listener = QueueListener(log_queue, *outputs, respect_handler_level=True)
    try:
        listener.start()
    except RuntimeError as e:
        for output in outputs:
            output.close()
        _attach_emergency_console(root, e)
        return root

    root.addHandler(tag(QueueHandler(log_queue)))
    _listener = listener
    atexit.register(shutdown_logging)
    return root


def shutdown_logging() -> None:
    """Flush pending records and detach the pipeline. Safe to call repeatedly."""
    global _listener
    root = logging.getLogger()
    for handler in [h for h in root.handlers if is_tagged(h)]:
        root.removeHandler(handler)
        handler.close()

    listener, _listener = _listener, None
    if listener is not None:
        listener.stop()
        for output in listener.handlers:
            output.close()


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


# ==============================================================================
# PRIVATE HELPERS
# ==============================================================================

def _attach_emergency_console(root: logging.Logger, error: Exception) -> None:
    """Write straight to stderr when the listener thread cannot run."""
    handler = tag(logging.StreamHandler(sys.stderr))
    handler.setFormatter(logging.Formatter("LOGGING FALLBACK | %(levelname)s | %(message)s"))
    root.addHandler(handler)
    root.warning(f"Log queue unavailable ({error}); writing to stderr directly.")
