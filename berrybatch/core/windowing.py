"""Post-fetch windowing of a related record group: skip/limit and page/perPage."""
from __future__ import annotations

import math
from typing import Any, Generic, List, Optional, Sequence, TypeVar

import strawberry

from ..config import DEFAULT_PER_PAGE

T = TypeVar('T')


@strawberry.type(description="Pagination details for a page of related records")
class PageInfo:
    current_page: int
    per_page: int
    item_count: int
    page_count: int
    has_previous_page: bool
    has_next_page: bool


@strawberry.type(description="One page of related records")
class Page(Generic[T]):
    items: List[T]
    count: int
    page_info: PageInfo


def page_arg(value: Any) -> int:
    """Requested page number; missing or unparsable input means page 1."""
    try:
        page = int(value)
    except (TypeError, ValueError):
        return 1
    return page or 1


def per_page_arg(value: Any, default: int = DEFAULT_PER_PAGE) -> int:
    try:
        per_page = int(value)
    except (TypeError, ValueError):
        return default
    return per_page or default


def slice_window(group: Optional[Sequence[T]], skip: Optional[int] = 0, limit: Optional[int] = None) -> List[T]:
    """``group[skip:skip + limit]`` clipped to the group; ``limit=None`` means no limit."""
    skip = 0 if skip is None else skip
    if not isinstance(skip, int):
        raise ValueError("offset must be an integer")
    if skip < 0:
        raise ValueError("offset must be non-negative")
    if limit is not None:
        if not isinstance(limit, int):
            raise ValueError("limit must be an integer")
        if limit < 0:
            raise ValueError("limit must be non-negative")
    if not group:
        return []
    end = len(group) if limit is None else min(skip + limit, len(group))
    return list(group[skip:end])


def page_window(group: Optional[Sequence[T]], page: int = 1, per_page: int = DEFAULT_PER_PAGE) -> Page[T]:
    """Slice ``group`` to one page and describe where that page sits.

    The page number is clamped to the page count, so asking for page 9 of a
    three-page group returns page 3, and an empty group reports page 0.
    """
    if not isinstance(per_page, int) or per_page < 1:
        raise ValueError("per_page must be a positive integer")
    item_count = len(group) if group else 0
    page_count = math.ceil(item_count / per_page)
    page = min(page, page_count)
    start = max((page - 1) * per_page, 0)
    end = min(start + per_page, item_count) if page > 0 else item_count
    items = list(group[start:end]) if group else []
    return Page(
        items=items,
        count=item_count,
        page_info=PageInfo(
            current_page=page,
            per_page=per_page,
            item_count=item_count,
            page_count=page_count,
            has_previous_page=page > 1,
            has_next_page=page < page_count,
        ),
    )


__all__ = ['PageInfo', 'Page', 'page_arg', 'per_page_arg', 'slice_window', 'page_window']
