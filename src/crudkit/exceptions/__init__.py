# crudkit/
# │
# ├── exceptions/
# │   ├── __init__.py
# │   ├── base.py                    # Domain faults raised by the CRUD service (NotFoundError, SaveFailedError, ...)
# │   ├── integrity_classifier.py    # Classify SQL integrity violations (unique, not-null, FK, check)
# │   └── mapper.py                  # Translate storage faults into domain faults at the service boundary

from .base import (
    CRUDError,
    NotFoundError,
    InvalidArgumentError,
    InvalidFieldError,
    SaveFailedError,
    DeleteFailedError,
    OperationFailedError,
)

__all__ = [
    "CRUDError",
    "NotFoundError",
    "InvalidArgumentError",
    "InvalidFieldError",
    "SaveFailedError",
    "DeleteFailedError",
    "OperationFailedError",
]
