"""
crudkit: a generic CRUD service layer over SQLAlchemy async ORM models.

    from crudkit import CRUDService, NotFoundError

    service = CRUDService(session)
    try:
        widget = await service.retrieve(Widget, widget_id)
    except NotFoundError:
        ...
"""

from .config import MessageTemplates, Settings, get_settings
from .exceptions import (
    CRUDError,
    DeleteFailedError,
    InvalidArgumentError,
    InvalidFieldError,
    NotFoundError,
    OperationFailedError,
    SaveFailedError,
)
from .schemas import PageResult, WhereClause
from .services import CRUDService

__all__ = [
    "CRUDService",
    "PageResult",
    "WhereClause",
    "MessageTemplates",
    "Settings",
    "get_settings",
    "CRUDError",
    "NotFoundError",
    "InvalidArgumentError",
    "InvalidFieldError",
    "SaveFailedError",
    "DeleteFailedError",
    "OperationFailedError",
]
