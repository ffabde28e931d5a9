import logging
from contextlib import asynccontextmanager
from typing import Callable

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .base import CRUDError, NotFoundError
from .integrity_classifier import classify_integrity_error, extract_columns_from_integrity

logger = logging.getLogger(__name__)


def original_message(exc: SQLAlchemyError) -> str:
    """Message of the DB-API error wrapped by SQLAlchemy, or the SQLAlchemy message itself."""
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


def translate_storage_error(exc: SQLAlchemyError, fault_cls: type[CRUDError]) -> CRUDError:
    """
    Build (but do not raise) the domain fault that replaces a storage fault.

    The original message is preserved. Integrity violations additionally carry
    `reason`, `fields` and `constraint` where they can be worked out.
    """
    message = original_message(exc)

    if issubclass(fault_cls, NotFoundError):
        return fault_cls(message)

    if isinstance(exc, IntegrityError):
        violation, constraint_name = classify_integrity_error(exc)
        columns = extract_columns_from_integrity(exc)
        logger.info(
            "mapper.integrity_violation",
            extra={"reason": violation.value, "fields": columns, "constraint": constraint_name},
        )
        return fault_cls(message, fields=columns, constraint=constraint_name, reason=violation.value)

    return fault_cls(message)


@asynccontextmanager
async def storage_error_handler(
    db: AsyncSession,
    fault_cls: type[CRUDError],
    *,
    model_name: str | None = None,
    rollback: bool = True,
    on_error: Callable[[SQLAlchemyError], None] | None = None,
):
    """
    Usage:
        async with storage_error_handler(self.db, SaveFailedError, model_name="Widget"):
            ... DB ops that may raise SQLAlchemyError ...

    Any SQLAlchemyError raised inside the block rolls the session back (when
    `rollback` is set), is reported through `on_error`, and is re-raised as
    `fault_cls` chained to the original error. Domain faults raised inside the
    block pass through untouched.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        if rollback:
            try:
                await db.rollback()
            except SQLAlchemyError:
                logger.exception("Failed to rollback session after storage error", extra={"model": model_name})
        if on_error is not None:
            on_error(exc)
        raise translate_storage_error(exc, fault_cls) from exc
