from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

from ..core.exceptions import ValidationError

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list[T]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def meta(self) -> dict:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "total_pages": self.total_pages,
        }


def page_args(page, limit, *, default_limit: int) -> tuple[int, int]:
    """Coerce raw page/limit query values into positive integers."""
    try:
        p = int(page) if page not in (None, "") else 1
        n = int(limit) if limit not in (None, "") else default_limit
    except (TypeError, ValueError):
        raise ValidationError("page and limit must be integers")
    if p < 1 or n < 1:
        raise ValidationError("page and limit must be positive")
    return p, n


def offset_of(page: int, limit: int) -> int:
    return (page - 1) * limit


def paginate(items: Sequence[T], *, page: int, limit: int) -> Page[T]:
    start = offset_of(page, limit)
    return Page(items=list(items[start:start + limit]), page=page, limit=limit, total=len(items))
