from typing import Any, Iterable

from sqlalchemy import Select, inspect as sa_inspect
from sqlalchemy.orm import Mapper

from crudkit.exceptions.base import InvalidArgumentError


def resolve_mapper(target: Any) -> Mapper:
    """
    Return the ORM mapper behind `target`.

    `target` may be a mapped class (Widget), a mapped instance (Widget()) or a
    `Select` whose first column entity is a mapped class (select(Widget).where(...)).

    Raises:
        InvalidArgumentError: for anything else.
    """
    if isinstance(target, Select):
        descriptions = target.column_descriptions
        entity = descriptions[0].get("entity") if descriptions else None
        if entity is None:
            raise InvalidArgumentError("The statement passed does not select a mapped model")
        return sa_inspect(entity)

    info = sa_inspect(target, raiseerr=False)
    if isinstance(info, Mapper):
        return info
    mapper = getattr(info, "mapper", None)
    if isinstance(mapper, Mapper):
        return mapper

    raise InvalidArgumentError(
        "A mapped model class, model instance or Select statement is required"
    )


def primary_key_attribute(mapper: Mapper) -> str:
    """
    Attribute name of the single primary key column (what callers call "id").
    """
    if len(mapper.primary_key) != 1:
        raise InvalidArgumentError(
            f"{mapper.class_.__name__} must have exactly one primary key column"
        )
    return mapper.get_property_by_column(mapper.primary_key[0]).key


def find_unknown_fields(mapper: Mapper, names: Iterable[str], include_relationships: bool = False) -> list[str]:
    """
    Return the names that are not column attributes of the model, in input order.

    With include_relationships=True relationship names are accepted too (input
    data may assign related records, e.g. {"parts": [Part(...)]}).
    """
    allowed = {attr.key for attr in mapper.column_attrs}
    if include_relationships:
        allowed |= set(mapper.relationships.keys())
    return [name for name in names if name not in allowed]


def find_unknown_relationships(mapper: Mapper, names: Iterable[str]) -> list[str]:
    allowed = set(mapper.relationships.keys())
    return [name for name in names if name not in allowed]


def _is_int(value: Any) -> bool:
    # bool is a subclass of int, but page=True is not a page number
    return isinstance(value, int) and not isinstance(value, bool)


def pagination_problem(page: Any, per_page: Any) -> str | None:
    """
    Describe what is wrong with `page` / `per_page`, or return None when both are usable.

    Numeric strings ("20"), floats, lists and other objects are rejected rather
    than coerced.
    """
    if not _is_int(page) or not _is_int(per_page):
        return "The value of the page and per_page values must be integers"
    if page < 1:
        return "The page value must be 1 or greater"
    if per_page == 0 or per_page < -1:
        return "The per_page value must be a positive integer or -1 for all records"
    return None
