"""
Paged list results.
"""

from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")

MAX_LIMIT = 100


@dataclass
class Page(Generic[T]):
    page: int
    limit: int
    total: int
    items: list[T] = field(default_factory=list)


def parse_pagination(page: int | None = 1, limit: int | None = 10) -> tuple[int, int, int]:
    """Clamp page to >= 1 and limit to 1..100; return (page, limit, offset)."""
    page = max(int(page or 1), 1)
    limit = min(max(int(limit or 10), 1), MAX_LIMIT)
    return page, limit, (page - 1) * limit
