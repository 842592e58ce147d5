from __future__ import annotations

import math
from typing import Any, List, Optional

from app.models import PageDescriptor, PageRange

DEFAULT_PAGE_SIZE = 25
DEFAULT_WINDOW = 5


def _as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def page_window(page: int, last: int, width: int = DEFAULT_WINDOW) -> List[int]:
    """Up to `width` consecutive page numbers around `page`, kept inside [1, last]."""
    width = max(1, width)
    start = max(1, page - width // 2)
    end = min(last, start + width - 1)
    start = max(1, end - width + 1)
    return list(range(start, end + 1))


def paginate(
    count: Any,
    size: Any = None,
    page: Any = None,
    *,
    default_size: int = DEFAULT_PAGE_SIZE,
    max_size: Optional[int] = None,
    window: int = DEFAULT_WINDOW,
) -> PageDescriptor:
    """
    Normalize a page request against `count` items.

    Invalid or missing `size` falls back to `default_size`; invalid or
    missing `page` falls back to 1. The page is clamped to the available range.
    """
    total = max(0, _as_int(count) or 0)

    n_size = _as_int(size)
    if n_size is None or n_size <= 0:
        n_size = default_size
    if max_size and n_size > max_size:
        n_size = max_size

    last = max(1, math.ceil(total / n_size))
    n_page = _as_int(page) or 1
    n_page = min(max(1, n_page), last)

    pages = PageRange(
        first=1,
        prev=n_page - 1 if n_page > 1 else None,
        next=n_page + 1 if n_page < last else None,
        last=last,
        window=page_window(n_page, last, window),
    )
    return PageDescriptor(count=total, size=n_size, page=n_page, pages=pages)
