"""Page arithmetic for user listings and author pages."""

import math

from app.schemas.pagination import Pagination


def paginate(total_items: int, items_per_page: int, current_page: int = 1) -> Pagination:
    """
    Build page metadata. There is always at least one page, and current_page is clamped
    into [1, total_pages] so out-of-range requests land on the nearest real page.
    """
    total_items = max(0, int(total_items))
    items_per_page = max(1, int(items_per_page))
    total_pages = max(1, math.ceil(total_items / items_per_page))
    current = min(max(1, int(current_page)), total_pages)
    return Pagination(
        total_items=total_items,
        items_per_page=items_per_page,
        total_pages=total_pages,
        current_page=current,
        previous_page=current - 1 if current > 1 else None,
        next_page=current + 1 if current < total_pages else None,
    )


def page_offset(pagination: Pagination) -> int:
    """Row offset of the first item on the current page."""
    return (pagination.current_page - 1) * pagination.items_per_page
