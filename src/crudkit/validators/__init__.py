from .model_validators import (
    resolve_mapper,
    primary_key_attribute,
    find_unknown_fields,
    find_unknown_relationships,
    pagination_problem,
)

__all__ = [
    "resolve_mapper",
    "primary_key_attribute",
    "find_unknown_fields",
    "find_unknown_relationships",
    "pagination_problem",
]
