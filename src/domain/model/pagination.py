"""Pagination contract shared by list operations."""

import math
from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar('T')


@dataclass(frozen=True)
class PageMeta:
    current_page: int
    items_per_page: int
    total_items: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool

    @classmethod
    def build(cls, page: int, limit: int, total_items: int) -> 'PageMeta':
        """Derive page metadata from the requested window and the match count.

        Example:
            PageMeta.build(page=2, limit=10, total_items=25)
            → total_pages=3, has_next_page=True, has_previous_page=True
        """
        total_pages = math.ceil(total_items / limit)
        return cls(
            current_page=page,
            items_per_page=limit,
            total_items=total_items,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_previous_page=page > 1,
        )


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of results plus its metadata."""
    meta: PageMeta
    items: list[T] = field(default_factory=list)
