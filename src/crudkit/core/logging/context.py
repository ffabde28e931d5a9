# src/crudkit/core/logging/context.py
"""
Build a structured logging context from a caught exception.

The result is a plain dict meant to be attached to a log call, e.g.:

    logger.error("Widget could not be created", extra={"context": build_logging_context(exc, [payload], True)})

Shape:
    {
        "file": "/app/services/crud_service.py",   # where the exception was raised
        "line": 120,
        "error": "UNIQUE constraint failed: widgets.id",
        "code": "gkpj",                            # exc.code when available, else None
        "trace": [...],                            # only when include_trace=True
        ...extra context keys...
    }

The message lives under "error" rather than "message" because "message" is a
reserved LogRecord attribute.
"""

import traceback
from typing import Any, Iterable, Mapping


def _origin(exc: BaseException) -> tuple[str | None, int | None]:
    # innermost frame = where the exception was actually raised
    tb = exc.__traceback__
    if tb is None:
        return None, None
    frame = traceback.extract_tb(tb)[-1]
    return frame.filename, frame.lineno


def build_logging_context(
    exc: BaseException,
    extra_contexts: Iterable[Mapping[str, Any]] = (),
    include_trace: bool = False,
) -> dict[str, Any]:
    """
    Convert an exception plus optional extra mappings into a logging context.

    `extra_contexts` are merged in order; on key collisions the later mapping wins,
    including over the built-in keys.
    """
    file, line = _origin(exc)
    context: dict[str, Any] = {
        "file": file,
        "line": line,
        "error": str(exc),
        "code": getattr(exc, "code", None),
    }

    if include_trace:
        context["trace"] = traceback.format_exception(type(exc), exc, exc.__traceback__)

    for extra in extra_contexts:
        context.update(extra)

    return context
