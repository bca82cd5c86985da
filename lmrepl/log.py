"""
Diagnostic logging for lmrepl.

The terminal belongs to the conversation: anything printed there lands in the
middle of streamed model output. Diagnostics therefore go to a log file, and
only when the user asks for one with `--log-file` (or LMREPL_LOG_FILE). With no
log file configured the package logger gets a NullHandler and stays silent.

Modules log through the standard library the usual way:

    logger = logging.getLogger(__name__)
    logger.error("stream failed", exc_info=True)

Passing exc_info on error paths writes the full traceback to the file, which is
the part worth having when a provider misbehaves mid-stream.
"""

import logging
import os
from pathlib import Path

PACKAGE_LOGGER = "lmrepl"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def expand_log_path(log_file: str) -> Path:
    """Expand $VARS and ~ in a configured log file path."""
    return Path(os.path.expandvars(log_file)).expanduser()


def setup_logging(log_file: str = "", level: int = logging.DEBUG) -> logging.Logger:
    """Configure the package logger and return it.

    Safe to call more than once; previously installed handlers are replaced.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handler: logging.Handler
    if log_file:
        handler = logging.FileHandler(expand_log_path(log_file), mode="a", encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    else:
        handler = logging.NullHandler()

    logger.addHandler(handler)
    logger.setLevel(level)
    # Keep records away from the root logger (and therefore the terminal)
    logger.propagate = False
    return logger
