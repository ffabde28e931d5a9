"""
Pagination types returned and accepted by CRUDService.retrieve_all().
"""

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field


class WhereClause(BaseModel):
    """
    A single `field <operator> value` filter.

    The default (`id != NULL`) matches every row that has an id, i.e. everything.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    field: str = "id"
    operator: str = "!="
    value: Any = None


class PageResult(BaseModel):
    """
    One page of records plus the numbers needed to render pagination controls.

    per_page == -1 means pagination was disabled and `models` holds every match.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    page: int = Field(ge=1)
    per_page: int
    total: int = Field(ge=0)
    total_pages: int = Field(ge=0)
    models: list[Any] = Field(default_factory=list)

    @computed_field
    @property
    def offset(self) -> int:
        if self.per_page == -1:
            return 0
        return (self.page - 1) * self.per_page

    @staticmethod
    def count_pages(total: int, per_page: int) -> int:
        # per_page == -1: everything fits on one page (or none, when empty)
        if per_page == -1:
            return 1 if total > 0 else 0
        return math.ceil(total / per_page)
