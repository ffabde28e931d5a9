from .crud_service import CRUDService, OPERATORS

__all__ = ["CRUDService", "OPERATORS"]
