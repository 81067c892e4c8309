from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

LOGGER_NAME = "querygrid"
LOG_FILE_NAME = "querygrid.log"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
SQL_LOG_EXCERPT_CHARS = 2000

LOGGER = logging.getLogger(LOGGER_NAME)

_FULL_SQL_OVERRIDE: bool | None = None


def _is_fallback_handler(handler: logging.Handler) -> bool:
    return bool(getattr(handler, "_querygrid_fallback", False))


def _install_fallback_handler() -> None:
    if LOGGER.handlers:
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.setLevel(logging.WARNING)
    setattr(handler, "_querygrid_fallback", True)
    LOGGER.addHandler(handler)


def attach_file_handler(log_dir: str) -> bool:
    """Point the rotating log file at log_dir.

    Idempotent: an existing rotating handler is replaced, never duplicated.
    On success the stderr fallback handler is dropped. Returns False when the
    directory cannot be created; handlers are then left as they were.
    """
    log_path = os.path.join(log_dir, LOG_FILE_NAME)
    try:
        os.makedirs(log_dir, exist_ok=True)
        new_handler = RotatingFileHandler(
            log_path,
            maxBytes=1_000_000,
            backupCount=3,
            encoding="utf-8",
            delay=True,
        )
    except OSError:
        LOGGER.warning("Cannot open log directory %s", log_dir, exc_info=True)
        return False

    new_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    for handler in list(LOGGER.handlers):
        if isinstance(handler, RotatingFileHandler) or _is_fallback_handler(handler):
            LOGGER.removeHandler(handler)
            if isinstance(handler, RotatingFileHandler):
                handler.close()

    LOGGER.addHandler(new_handler)
    return True


def setup_logging(log_dir: str | None = None, level: int = logging.INFO) -> logging.Logger:
    """Configure the package logger. Nothing is attached at import time."""
    LOGGER.setLevel(level)
    _install_fallback_handler()
    if log_dir:
        attach_file_handler(log_dir)
    return LOGGER


def set_full_sql_logging(enabled: bool | None) -> None:
    """Force full SQL logging on/off; None defers to QUERYGRID_LOG_FULL_SQL."""
    global _FULL_SQL_OVERRIDE
    _FULL_SQL_OVERRIDE = enabled


def full_sql_logging_enabled() -> bool:
    if _FULL_SQL_OVERRIDE is not None:
        return _FULL_SQL_OVERRIDE
    raw = os.environ.get("QUERYGRID_LOG_FULL_SQL", "")
    return raw.strip().lower() in ("1", "true", "yes", "on")


def sql_for_log(sql: str) -> tuple[str, str]:
    """Return (label, text) for logging a statement.

    Label is "full" or "excerpt"; the excerpt is a single line cut to
    SQL_LOG_EXCERPT_CHARS characters.
    """
    if full_sql_logging_enabled():
        return "full", sql
    one_line = " ".join((sql or "").split())
    if len(one_line) > SQL_LOG_EXCERPT_CHARS:
        one_line = one_line[:SQL_LOG_EXCERPT_CHARS] + " ..."
    return "excerpt", one_line
