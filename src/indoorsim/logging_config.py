"""Structured logging configuration for IndoorSim.

Both knobs come from the environment:
- LOG_LEVEL: DEBUG, INFO, WARNING (or WARN), ERROR, CRITICAL. Default: INFO
- LOG_FORMAT: "text" for humans, "json" for log shippers. Default: text

Usage:
    from indoorsim.logging_config import configure_logging
    configure_logging()  # Call once at startup, before the first run
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import UTC, datetime
from typing import Any, ClassVar

NAMESPACE = "indoorsim"

# Attributes every LogRecord has; anything else was passed through `extra=`.
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime", "taskName"}

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def _short_name(name: str) -> str:
    prefix = f"{NAMESPACE}."
    return name[len(prefix) :] if name.startswith(prefix) else name


class JSONFormatter(logging.Formatter):
    """JSON log formatter: one object per line, fixed key order."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format.

        Returns:
            JSON string with log data.
        """
        data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Source location only where it helps: debug traces and failures
        if record.levelno in (logging.DEBUG, logging.ERROR, logging.CRITICAL):
            data["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)

        extra = {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS}
        if extra:
            data["extra"] = extra

        return json.dumps(data, default=str)


class TextFormatter(logging.Formatter):
    """Human readable formatter.

    Format: TIMESTAMP LEVEL [LOGGER] MESSAGE
    For DEBUG/ERROR: includes file:line in source
    """

    LEVEL_COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[1;31m",
    }
    RESET: ClassVar[str] = "\033[0m"

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        level = f"{record.levelname:8s}"
        if self.use_colors:
            level = f"{self.LEVEL_COLORS.get(record.levelname, '')}{level}{self.RESET}"

        line = f"{timestamp} {level} [{_short_name(record.name)}] {record.getMessage()}"
        if record.levelno in (logging.DEBUG, logging.ERROR, logging.CRITICAL):
            line += f" ({record.filename}:{record.lineno})"
        if record.exc_info:
            line += f"\n{self.formatException(record.exc_info)}"
        return line


def get_log_level() -> int:
    """Get log level from the LOG_LEVEL environment variable (default INFO).

    Returns:
        Logging level constant (e.g., logging.INFO).
    """
    return _LEVELS.get(os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)


def get_log_format() -> str:
    """Get log format from the LOG_FORMAT environment variable.

    Returns:
        'json' or 'text' (the default, also used for unknown values).
    """
    format_name = os.environ.get("LOG_FORMAT", "text").lower()
    return format_name if format_name in ("text", "json") else "text"


def configure_logging(
    level: int | None = None,
    format_type: str | None = None,
    use_colors: bool = True,
) -> None:
    """Configure logging for the indoorsim namespace.

    Should be called once at startup before any logging. Warnings raised by
    numpy/scipy during a run are routed into the same handler.

    Args:
        level: Log level. If None, reads from LOG_LEVEL env var.
        format_type: Output format ('text' or 'json'). If None, reads LOG_FORMAT.
        use_colors: Whether to use colors in text format (only if stderr is TTY).
    """
    if level is None:
        level = get_log_level()
    if format_type is None:
        format_type = get_log_format()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        JSONFormatter() if format_type == "json" else TextFormatter(use_colors=use_colors)
    )

    namespace_logger = logging.getLogger(NAMESPACE)
    namespace_logger.setLevel(level)
    namespace_logger.handlers.clear()
    namespace_logger.addHandler(handler)
    namespace_logger.propagate = False

    logging.captureWarnings(True)
    warnings_logger = logging.getLogger("py.warnings")
    warnings_logger.handlers.clear()
    warnings_logger.addHandler(handler)
    warnings_logger.propagate = False

    namespace_logger.debug(
        "Logging configured: level=%s, format=%s",
        logging.getLevelName(level),
        format_type,
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the indoorsim namespace.

    Args:
        name: Module name (typically __name__).

    Returns:
        Logger instance.
    """
    if not name.startswith(NAMESPACE):
        name = f"{NAMESPACE}.{name}"
    return logging.getLogger(name)
