"""
Storefront Backend — Offset Pagination Helpers
================================================

Listings use page/perPage offset pagination: clients jump to arbitrary pages
and show "page 2 of 3", which a cursor cannot give them.
"""

import math
from dataclasses import dataclass
from typing import Mapping

from sqlalchemy import asc, desc
from sqlalchemy.orm import InstrumentedAttribute
from sqlalchemy.sql.elements import UnaryExpression

from storefront.exceptions import ValidationFailedError


@dataclass(frozen=True)
class PageRequest:
    """
    What:  Paging and sorting parameters of one listing request.
    How:   Built by the route from page/perPage/sortField/sortOrder after
           FastAPI enforced the bounds (page >= 1, 1 <= perPage <= max).
           An empty sort_field means the listing's default column.
    """

    page: int = 1
    per_page: int = 10
    sort_field: str = ""
    sort_order: str = "asc"

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page


def page_count(total: int, per_page: int) -> int:
    """ceil(total / per_page); zero items means zero pages."""
    return math.ceil(total / per_page) if per_page else 0


def resolve_order(
    request: PageRequest,
    columns: Mapping[str, InstrumentedAttribute],
    default_field: str,
) -> UnaryExpression:
    """
    Map the client's sortField/sortOrder onto an ORDER BY expression.

    Only whitelisted columns can be sorted on; anything other than "desc"
    sorts ascending.
    """
    column = columns.get(request.sort_field or default_field)
    if column is None:
        raise ValidationFailedError(errors={"sortField": "Invalid sort field"})
    return desc(column) if request.sort_order.lower() == "desc" else asc(column)
