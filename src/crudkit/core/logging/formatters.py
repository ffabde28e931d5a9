# src/crudkit/core/logging/formatters.py
"""
Custom logging formatters.

  - JsonFormatter: structured JSON lines for log collectors. Extras passed via
    `extra={...}` (including the nested `context` dict the CRUD service attaches to
    fault logs) are emitted as JSON; anything not serializable is stringified.

  - ColorFormatter: compact, ANSI-colored lines for local development consoles.

Both are registered in the dictConfig built by builder.make_dict_config().
"""

import json
import logging
from importlib import metadata as importlib_metadata
from typing import Any
from logging import LogRecord

# Attributes every LogRecord carries; anything else on the record came from `extra`.
_RESERVED_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


def get_project_version(distribution: str = "crudkit", default: str = "unknown") -> str:
    try:
        return importlib_metadata.version(distribution)
    except importlib_metadata.PackageNotFoundError:
        return default


PROJECT_VERSION = get_project_version()


class JsonFormatter(logging.Formatter):
    """
    Structured JSON formatter.

    Construction:
      - env: environment name (e.g., "development" | "production"); optional.
      - service: logical service name included in every line.
      - datefmt: optional date format passed to logging.Formatter (used by formatTime).

    The formatter must never raise: `json.dumps(..., default=str)` is the final
    fallback for nested values (UUIDs, datetimes, ORM objects).
    """

    def __init__(self, *, env: str | None = None, service: str = "crudkit", datefmt: str | None = None):
        super().__init__(datefmt=datefmt)
        self.env = env
        self.service = service

    def format(self, record: LogRecord) -> str:
        log_record: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "pathname": record.pathname,
            "lineno": record.lineno,
            "request_id": getattr(record, "request_id", "-"),
            "service": self.service,
            "env": self.env,
            "version": PROJECT_VERSION,
        }

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            log_record["stack_info"] = self.formatStack(record.stack_info)

        for key, value in record.__dict__.items():
            if key in log_record or key in _RESERVED_ATTRS or key.startswith("_"):
                continue
            log_record[key] = value

        return json.dumps(log_record, ensure_ascii=False, default=str)


class ColorFormatter(logging.Formatter):
    """
    Development-friendly colored formatter:
    TIMESTAMP | LEVEL | LOGGER_NAME | REQUEST_ID | MESSAGE [| context]
    """

    COLOR_CODES = {
        "DEBUG": "\033[1;36;47m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[1;41m",
        "RESET": "\033[0m",
    }

    def format(self, record: LogRecord) -> str:
        color = self.COLOR_CODES.get(record.levelname, "")
        reset = self.COLOR_CODES["RESET"]
        timestamp = self.formatTime(record, self.datefmt)

        base = (
            f"{timestamp} | {color}{record.levelname:<10}{reset} | "
            f"{record.name:<30} | "
            f"{getattr(record, 'request_id', '-'):<10} | "
            f"{record.getMessage()}"
        )

        # The CRUD service attaches its structured fault data here; show it without the trace
        context = getattr(record, "context", None)
        if isinstance(context, dict):
            shown = {k: v for k, v in context.items() if k != "trace"}
            base = f"{base} | {shown}"

        if record.exc_info:
            base = base + "\n" + self.formatException(record.exc_info)

        return base
