"""Lenient page/limit parsing and the list response envelope."""

import math
from dataclasses import dataclass
from typing import Any, Callable, Optional

from fastapi import Query

from iplstats.config import get_settings
from iplstats.etl.parsing import parse_optional_int

# Keeps offset = (page - 1) * limit well inside a 64-bit SQL integer
MAX_PAGE = 1_000_000


@dataclass(frozen=True)
class PageParams:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def lenient_int(value: Optional[str], default: int, maximum: Optional[int] = None) -> int:
    """
    Leading integer of `value`; `default` when missing, non-numeric or < 1,
    and when above `maximum` if one is given.
    """
    number = parse_optional_int(value)
    if number is None or number < 1:
        return default
    if maximum is not None and number > maximum:
        return default
    return number


def pagination(default_limit: int) -> Callable[..., PageParams]:
    """
    Build a dependency that reads ?page=&limit= without ever rejecting them.

    Bad values fall back to page 1 / `default_limit`; a page above MAX_PAGE
    is bad too. limit is capped at MAX_PAGE_LIMIT.
    """

    def dependency(
        page: Optional[str] = Query(None, description="1-based page number"),
        limit: Optional[str] = Query(None, description=f"Page size (default {default_limit})"),
    ) -> PageParams:
        max_limit = get_settings().MAX_PAGE_LIMIT
        return PageParams(
            page=lenient_int(page, 1, maximum=MAX_PAGE),
            limit=min(lenient_int(limit, default_limit), max_limit),
        )

    return dependency


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit > 0 else 0


def paginated(items: list[Any], total: int, params: PageParams) -> dict:
    return {
        "data": items,
        "pagination": {
            "page": params.page,
            "limit": params.limit,
            "total": total,
            "totalPages": total_pages(total, params.limit),
        },
    }
