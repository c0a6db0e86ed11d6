"""File logging for gitme.

The dashboard owns the terminal, so nothing may log to stderr while it runs.
Every module logs to a rotating file instead.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path


DEFAULT_LOG_FILE = Path.home() / ".gitme" / "gitme.log"


def log_file_path() -> Path:
    """Return the log file path, honouring GITME_LOG_FILE."""
    override = os.environ.get("GITME_LOG_FILE")
    if override:
        return Path(override).expanduser()
    return DEFAULT_LOG_FILE


def debug_enabled() -> bool:
    return bool(os.environ.get("GITME_DEBUG"))


def configure_logger(name: str, max_bytes: int = 5_000_000) -> logging.Logger:
    """Configure a logger that writes to the gitme log file with rotation.

    Args:
        name: Logger name (e.g., "gitme.reconciler")
        max_bytes: Maximum log file size before rotation

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Avoid adding duplicate handlers
    if logger.handlers:
        return logger

    log_path = log_file_path()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(log_path, maxBytes=max_bytes, backupCount=1)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s", datefmt="%H:%M:%S"
    ))
    logger.addHandler(handler)
    logger.propagate = False
    logger.setLevel(logging.DEBUG if debug_enabled() else logging.INFO)
    return logger
