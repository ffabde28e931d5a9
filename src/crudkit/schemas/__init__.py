from .pagination import PageResult, WhereClause

__all__ = ["PageResult", "WhereClause"]
