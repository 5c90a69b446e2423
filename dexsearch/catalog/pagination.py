# ABOUTME: Pagination engine for the creature list.
# ABOUTME: Converts 1-based pages to offset/limit and computes the visible page-link window.

import math
from dataclasses import dataclass
from typing import Literal

ELLIPSIS: Literal["ellipsis"] = "ellipsis"

# Totals at or below this many pages are shown without collapsing
_FULL_WINDOW_MAX_PAGES = 7


@dataclass(frozen=True)
class PageWindow:
    """Offset/limit pair sent to the list provider."""

    offset: int
    limit: int


def normalize_page(page: object) -> int:
    """Coerce a raw page value to an integer >= 1.

    Accepts ints and numeric strings (as they arrive from query parameters).
    Anything non-numeric, zero, or negative becomes 1.

    Examples:
        >>> normalize_page("3")
        3
        >>> normalize_page(0)
        1
        >>> normalize_page("abc")
        1
    """
    if isinstance(page, bool):
        return 1
    if isinstance(page, int):
        value = page
    elif isinstance(page, str):
        try:
            value = int(page.strip())
        except ValueError:
            return 1
    else:
        return 1
    return max(1, value)


def page_window(page: object, page_size: int) -> PageWindow:
    """Compute the offset/limit for a page.

    Pages past the end are not clamped: they yield a valid offset with an empty result.

    Args:
        page: 1-based page number; values below 1 are clamped to 1.
        page_size: Number of entities per page.

    Returns:
        PageWindow with offset = (page - 1) * page_size.
    """
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    current = normalize_page(page)
    return PageWindow(offset=(current - 1) * page_size, limit=page_size)


def total_pages(total: int, page_size: int) -> int:
    """Number of pages needed for `total` entities; 0 when there are none."""
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    if total <= 0:
        return 0
    return math.ceil(total / page_size)


def visible_pages(current: int, total: int) -> list[int | Literal["ellipsis"]]:
    """Page links to render around the current page.

    Always shows the first and last page plus one neighbor on each side of the
    current page, collapsing each gap into a single ellipsis marker. With seven
    or fewer pages every page is listed.

    Args:
        current: The current 1-based page.
        total: Total number of pages.

    Returns:
        Ordered list of page numbers and ELLIPSIS markers.
    """
    if total <= 0:
        return []
    if total <= _FULL_WINDOW_MAX_PAGES:
        return list(range(1, total + 1))

    pages = {1, total}
    for number in range(max(2, current - 1), min(total - 1, current + 1) + 1):
        pages.add(number)

    result: list[int | Literal["ellipsis"]] = []
    previous: int | None = None
    for number in sorted(pages):
        if previous is not None and number - previous > 1:
            result.append(ELLIPSIS)
        result.append(number)
        previous = number
    return result
