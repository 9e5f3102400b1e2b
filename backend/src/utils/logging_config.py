"""
Structured logging configuration for the Event Planner CRM backend.

Development writes readable lines to stdout; production (CRM_ENV=production)
writes JSON lines to one rotating file per logger under CRM_LOG_DIR.

Loggers:
- api: HTTP requests, exception handlers, startup and shutdown
- services: Record mutations (events, payments, vendors, tasks, ...)
- auth: Login, token verification and role checks
- db: Engine setup, integrity and connection errors
- websocket: Real-time connections, rooms and relayed events

Anything passed through ``extra=`` is kept: JSON output merges it into the
record object, console output appends it as ``key=value`` pairs.
"""

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


LOGGER_NAMES = ("api", "services", "auth", "db", "websocket")
LOGGER_PREFIX = "planner_crm"

MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5

# Attributes every LogRecord has; anything else came in through extra=
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


def record_extras(record: logging.LogRecord) -> Dict[str, Any]:
    """Return the caller-supplied ``extra`` values attached to a record."""
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per record, extras merged at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        payload.update(record_extras(record))

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


class ConsoleFormatter(logging.Formatter):
    """
    Readable single-line output for development.

    Example:
        [2026-03-15 10:30:45] WARNING planner_crm.api: Validation error path=/api/events method=POST
    """

    def __init__(self):
        super().__init__(
            fmt="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = record_extras(record)
        if extras:
            line += " " + " ".join(f"{k}={v}" for k, v in extras.items())
        return line


def _build_handler(name: str, level: int, log_dir: Optional[Path]) -> logging.Handler:
    if log_dir is None:
        handler: logging.Handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(ConsoleFormatter())
    else:
        handler = logging.handlers.RotatingFileHandler(
            log_dir / f"{name}.log",
            maxBytes=MAX_LOG_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        handler.setFormatter(JSONFormatter())
    handler.setLevel(level)
    return handler


def configure_logging(
    level: Optional[str] = None,
    log_dir: Optional[str] = None,
) -> Dict[str, logging.Logger]:
    """
    Configure the named backend loggers.

    Args:
        level: Level name; defaults to CRM_LOG_LEVEL, then INFO
        log_dir: Directory for rotating JSON files. Defaults to CRM_LOG_DIR
            (or ./logs) in production; console output is used otherwise.

    Returns:
        Mapping of short logger name to Logger
    """
    level_name = (level or os.environ.get("CRM_LOG_LEVEL", "INFO")).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    directory: Optional[Path] = None
    if log_dir is not None:
        directory = Path(log_dir)
    elif os.environ.get("CRM_ENV", "development").lower() == "production":
        directory = Path(os.environ.get("CRM_LOG_DIR", "logs"))
    if directory is not None:
        directory.mkdir(parents=True, exist_ok=True)

    loggers = {}
    for name in LOGGER_NAMES:
        logger = logging.getLogger(f"{LOGGER_PREFIX}.{name}")
        logger.setLevel(log_level)
        logger.propagate = False
        logger.handlers.clear()
        logger.addHandler(_build_handler(name, log_level, directory))
        loggers[name] = logger

    return loggers


_loggers: Optional[Dict[str, logging.Logger]] = None


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger by short name, configuring on first use.

    Raises:
        ValueError: If the name is not one of LOGGER_NAMES
    """
    global _loggers

    if _loggers is None:
        _loggers = configure_logging()

    try:
        return _loggers[name]
    except KeyError:
        raise ValueError(
            f"Unknown logger name: {name}. Valid names: {', '.join(LOGGER_NAMES)}"
        ) from None


def init_logging() -> Dict[str, logging.Logger]:
    """(Re)configure logging; called once when the application module loads."""
    global _loggers
    _loggers = configure_logging()
    return _loggers
