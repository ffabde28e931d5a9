# src/crudkit/core/logging/filters.py
"""
Logging filters

- RequestIdFilter: guarantees every LogRecord has a `request_id` attribute, taken
  from the record itself (extra=...), the current context, or the "-" sentinel.
- RedactFilter: masks sensitive values (passwords, tokens, ...) both on the record
  and inside nested dicts such as the `context` attached by the CRUD service,
  which routinely carries raw input payloads.

The request id lives in a `contextvars.ContextVar` so it follows the logical flow
of async code across awaits. Whoever drives the service (an HTTP middleware, a job
runner) calls `set_request_id()` at the start of a unit of work.
"""

import logging
from logging import LogRecord
import contextvars
from typing import Any

_request_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)


def set_request_id(request_id: str | None):
    """
    Set the request id in the current context and return the token to allow reset.
    """
    return _request_id_ctx.set(request_id)


def reset_request_id(token):
    """
    Reset the contextvar to the previously saved token returned by set_request_id().
    """
    _request_id_ctx.reset(token)


def get_request_id() -> str | None:
    return _request_id_ctx.get()


class RequestIdFilter(logging.Filter):
    """
    Logging filter that guarantees every LogRecord has a `request_id` attribute.

    Always returns True: it annotates records, it never drops them.
    """

    def filter(self, record: LogRecord) -> bool:
        record.request_id = (
            getattr(record, "request_id", None) or get_request_id() or "-"
        )
        return True


class RedactFilter(logging.Filter):
    SENSITIVE = {"password", "secret", "token", "access_token", "refresh_token", "ssn", "authorization"}
    MASK = "***REDACTED***"

    def _scrub(self, value: Any) -> Any:
        if isinstance(value, dict):
            return {
                k: self.MASK if isinstance(k, str) and k.lower() in self.SENSITIVE else self._scrub(v)
                for k, v in value.items()
            }
        if isinstance(value, list):
            return [self._scrub(v) for v in value]
        return value

    def filter(self, record: LogRecord) -> bool:
        for key, value in list(record.__dict__.items()):
            if key.lower() in self.SENSITIVE:
                record.__dict__[key] = self.MASK
            elif isinstance(value, dict):
                # copy, never mutate the caller's payload
                record.__dict__[key] = self._scrub(value)
        return True
