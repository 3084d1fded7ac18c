"""Offset pagination over insertion-ordered indexes.

Shared by series listings, assets-by-series and the factory's catalog list.
"""

from __future__ import annotations

from typing import Any, Sequence

from provreg.catalog.models import Page
from provreg.errors import InvalidOffset, InvalidPageSize

MAX_PAGE_SIZE = 100


def validate_page(offset: int, page_size: int) -> None:
    """Raise unless ``page_size`` is in ``[1, MAX_PAGE_SIZE]`` and ``offset >= 0``."""
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        raise InvalidPageSize(page_size=page_size, max_page_size=MAX_PAGE_SIZE)
    if offset < 0:
        raise InvalidOffset(offset=offset)


def paginate(index: Sequence[Any], offset: int, page_size: int, sentinel: Any) -> Page:
    """Return the slice ``[offset, offset + count)`` of *index*.

    ``count`` is ``min(page_size, total - offset)`` and never negative; an
    offset at or past the end yields an empty page rather than an error.
    Only the requested slice is copied.
    """
    validate_page(offset, page_size)
    total = len(index)
    count = max(0, min(page_size, total - offset)) if offset < total else 0
    items = list(index[offset : offset + count])
    items.extend([sentinel] * (page_size - count))
    return Page(items=tuple(items), count=count, total_count=total)
