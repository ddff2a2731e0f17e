"""Logging setup shared by the API server, CLI, and pipeline modules."""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# HTTP client libraries log every request at INFO.
_NOISY_LOGGERS = ("httpx", "httpcore", "openai", "PIL")


def setup_logging(level: str = "INFO") -> None:
    """Attach a stdout handler to the root logger once.

    Repeated calls are no-ops, so the CLI and the API entry point can both
    call this safely. Unknown level names fall back to INFO.

    Args:
        level: Logging level name, e.g. ``"DEBUG"`` or ``"WARNING"``.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(handler)
    root.setLevel(numeric_level)

    quiet_level = max(numeric_level, logging.WARNING)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
