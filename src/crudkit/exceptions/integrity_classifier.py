"""
Classify SQL integrity violations raised while persisting a record.

When a flush fails with ``sqlalchemy.exc.IntegrityError`` the CRUD service still
raises ``SaveFailedError`` (or ``DeleteFailedError``), but callers usually want to
know *what* failed: a duplicate key, a missing required column, a dangling foreign
key. This module inspects the DB-API error and returns a small classification that
the mapper attaches to the domain fault as ``reason``, ``fields`` and ``constraint``.

Postgres drivers expose a ``pgcode`` and diagnostics; other backends (SQLite, MySQL)
are classified by message content.
"""
import logging
import re
from enum import Enum

from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)


class IntegrityViolation(str, Enum):
    DUPLICATE = "duplicate"
    NOT_NULL = "not_null"
    FOREIGN_KEY = "foreign_key"
    CHECK = "check"
    UNKNOWN = "integrity"


# https://www.postgresql.org/docs/current/errcodes-appendix.html
class PostgresErrorCodes(str, Enum):
    UNIQUE_VIOLATION = "23505"
    NOT_NULL_VIOLATION = "23502"
    FOREIGN_KEY_VIOLATION = "23503"
    CHECK_VIOLATION = "23514"


PGCODE_VIOLATION_MAP = {
    PostgresErrorCodes.UNIQUE_VIOLATION: IntegrityViolation.DUPLICATE,
    PostgresErrorCodes.NOT_NULL_VIOLATION: IntegrityViolation.NOT_NULL,
    PostgresErrorCodes.FOREIGN_KEY_VIOLATION: IntegrityViolation.FOREIGN_KEY,
    PostgresErrorCodes.CHECK_VIOLATION: IntegrityViolation.CHECK,
}


def _match_any(msg: str, keywords: list[str]) -> bool:
    return any(keyword in msg for keyword in keywords)


def _classify_from_postgres_diag(orig) -> tuple[IntegrityViolation | None, str | None]:
    pgcode = getattr(orig, "pgcode", None)
    if not pgcode:
        return None, None

    diag = getattr(orig, "diag", None)
    constraint_name = getattr(diag, "constraint_name", None) if diag else None

    violation = PGCODE_VIOLATION_MAP.get(pgcode)
    if violation:
        logger.debug("Postgres integrity diagnostic",
                     extra={"pgcode": pgcode, "constraint_name": constraint_name})
        return violation, constraint_name

    logger.warning("Unknown Postgres integrity error code encountered",
                   extra={"pgcode": pgcode, "constraint_name": constraint_name})
    return IntegrityViolation.UNKNOWN, constraint_name


def _classify_from_generic_message(msg: str) -> IntegrityViolation:
    normalized = msg.lower()

    if _match_any(normalized, ["unique constraint", "unique failed", "unique violation", "duplicate"]):
        return IntegrityViolation.DUPLICATE

    if _match_any(normalized, ["not null constraint", "not null", "null value in column"]):
        return IntegrityViolation.NOT_NULL

    if _match_any(normalized, ["foreign key constraint", "foreign key", "is not present in table"]):
        return IntegrityViolation.FOREIGN_KEY

    if _match_any(normalized, ["check constraint", "check failed"]):
        return IntegrityViolation.CHECK

    logger.warning("Unknown integrity error message encountered",
                   extra={"message_snippet": (msg or "")[:200]})
    return IntegrityViolation.UNKNOWN


def classify_integrity_error(exc: IntegrityError) -> tuple[IntegrityViolation, str | None]:
    """
    Heuristically classify a SQLAlchemy IntegrityError.

    Returns:
        A tuple of (IntegrityViolation, constraint name if the driver reports one)
    """
    orig = exc.orig

    violation, constraint_name = _classify_from_postgres_diag(orig)
    if violation is not None:
        return violation, constraint_name

    return _classify_from_generic_message(str(orig) if orig is not None else str(exc)), None


# -----------------------
# Column extraction helpers
# -----------------------

def _extract_columns_postgres(msg: str) -> list[str] | None:
    # 'null value in column "name" violates not-null constraint'
    m = re.search(r'null value in column "(?P<col>[^"]+)"', msg, flags=re.IGNORECASE)
    if m:
        return [m.group("col")]

    # 'DETAIL:  Key (id)=(ab43...) already exists.'
    m = re.search(r'key \((?P<cols>[^)]+)\)=', msg, flags=re.IGNORECASE)
    if m:
        return [c.strip().strip('"') for c in m.group("cols").split(",")]

    return None


def _extract_columns_sqlite(msg: str) -> list[str] | None:
    # 'UNIQUE constraint failed: widgets.id' / 'NOT NULL constraint failed: widgets.name'
    m = re.search(r'(?:UNIQUE|NOT NULL) constraint failed: (?P<cols>.+)$', msg, flags=re.IGNORECASE)
    if m:
        return [c.split('.')[-1].strip() for c in re.split(r',\s*', m.group("cols"))]
    return None


def _extract_columns_mysql(msg: str) -> list[str] | None:
    # "Duplicate entry 'foo' for key 'widgets.name'"
    m = re.search(r"Duplicate entry .* for key '?([^']+)'?", msg, flags=re.IGNORECASE)
    if m:
        return [m.group(1).split('.')[-1]]
    # "Column 'name' cannot be null"
    m = re.search(r"Column '([^']+)' cannot be null", msg, flags=re.IGNORECASE)
    if m:
        return [m.group(1)]
    return None


def extract_columns_from_integrity(exc: IntegrityError) -> list[str] | None:
    """
    Best-effort extraction of column names from the DB message (Postgres, SQLite, MySQL).
    """
    orig = exc.orig
    msg = str(orig) if orig is not None else str(exc)

    for extractor in (_extract_columns_postgres, _extract_columns_sqlite, _extract_columns_mysql):
        cols = extractor(msg)
        if cols:
            return cols
    return None
