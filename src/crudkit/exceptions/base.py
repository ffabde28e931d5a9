"""
Domain faults raised by the CRUD service.

Callers above the service layer (controllers, API handlers, background jobs) only
ever see these exceptions. Raw SQLAlchemy errors are caught at the service boundary
and re-raised as one of the classes below, with the original error chained as
``__cause__``.
"""

from typing import Iterable


class CRUDError(Exception):
    """
    Base exception for CRUD service errors.

    - message: the underlying message (may contain the raw storage message; for logs)
    - fields: optional list of field names related to the error (e.g., ['name'])
    - constraint: optional DB constraint name or identifier (for logs only)
    - error_code: canonical short code (e.g., 'not_found', 'save_failed') used by clients
    - reason: optional classification of the storage fault (e.g., 'duplicate', 'not_null')
    """

    # Map canonical error_code -> default HTTP status.
    ERROR_CODE_TO_STATUS = {
        "not_found": 404,
        "invalid_argument": 400,
        "invalid_field": 422,
        "save_failed": 500,
        "delete_failed": 500,
        "operation_failed": 500,
    }

    # Detail shown to clients instead of `message` for server-side failures.
    # None means `message` is already safe to expose.
    public_detail: str | None = None

    def __init__(self, message: str, *, fields: Iterable[str] | None = None,
                 constraint: str | None = None, error_code: str | None = None,
                 reason: str | None = None):
        super().__init__(message)
        self.message = message
        self.fields = list(fields) if fields else None
        self.constraint = constraint
        self.error_code = error_code
        self.reason = reason

    @property
    def code(self) -> str | None:
        # Alias read by the logging context builder (SQLAlchemy errors expose `.code` too).
        return self.error_code

    def __str__(self) -> str:
        base = self.message
        parts = []
        if self.fields:
            parts.append(f"fields: {', '.join(self.fields)}")
        if self.constraint:
            parts.append(f"constraint: {self.constraint}")
        if self.error_code:
            parts.append(f"code: {self.error_code}")
        if parts:
            return f"{base} ({'; '.join(parts)})"
        return base

    def to_payload(self) -> dict:
        """
        Return a JSON-serializable dict suitable for HTTP responses.
        Standard shape:
            {
                "detail": "A human-friendly message",
                "code": "not_found",           # optional canonical code
                "fields": ["name"],            # optional list for client usage
                "reason": "duplicate",         # optional storage fault classification
            }
        `constraint` and raw storage messages are never included.
        """
        payload = {"detail": self.public_detail or self.message}
        if self.error_code:
            payload["code"] = self.error_code
        if self.fields:
            payload["fields"] = list(self.fields)
        if self.reason:
            payload["reason"] = self.reason
        return payload

    def http_status(self) -> int:
        """
        HTTP status for this error, looked up from `error_code`; 400 when unknown.
        """
        if self.error_code:
            return self.ERROR_CODE_TO_STATUS.get(self.error_code, 400)
        return 400


class NotFoundError(CRUDError):
    """The requested record does not exist (or could not be looked up)."""

    def __init__(self, message: str = "We were unable to locate this record", *,
                 fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields, error_code="not_found")


class InvalidArgumentError(CRUDError):
    """A caller passed an argument the service cannot work with (e.g. page='2')."""

    def __init__(self, message: str, *, fields: Iterable[str] | None = None,
                 error_code: str = "invalid_argument"):
        super().__init__(message, fields=fields, error_code=error_code)


class InvalidFieldError(InvalidArgumentError):
    """Raised when the caller passes unknown field or relationship names."""

    def __init__(self, message: str, *, fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields, error_code="invalid_field")


class SaveFailedError(CRUDError):
    public_detail = "There was an error saving the record"

    def __init__(self, message: str = "There was an error saving the record", *,
                 fields: Iterable[str] | None = None, constraint: str | None = None,
                 reason: str | None = None):
        super().__init__(message, fields=fields, constraint=constraint,
                         error_code="save_failed", reason=reason)


class DeleteFailedError(CRUDError):
    public_detail = "There was an error deleting the record"

    def __init__(self, message: str = "There was an error deleting the record", *,
                 fields: Iterable[str] | None = None, constraint: str | None = None,
                 reason: str | None = None):
        super().__init__(message, fields=fields, constraint=constraint,
                         error_code="delete_failed", reason=reason)


class OperationFailedError(CRUDError):
    public_detail = "There was an error retrieving the records"

    def __init__(self, message: str = "There was an error retrieving the records", *,
                 fields: Iterable[str] | None = None, constraint: str | None = None,
                 reason: str | None = None):
        super().__init__(message, fields=fields, constraint=constraint,
                         error_code="operation_failed", reason=reason)


__all__ = [
    "CRUDError",
    "NotFoundError",
    "InvalidArgumentError",
    "InvalidFieldError",
    "SaveFailedError",
    "DeleteFailedError",
    "OperationFailedError",
]
