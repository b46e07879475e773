from __future__ import annotations

import math
from typing import Any, Dict


# PUBLIC_INTERFACE
def pagination_info(page: int, page_size: int, total: int) -> Dict[str, Any]:
    """
    Build the pagination block for page-numbered list endpoints.

    Args:
        page: The requested 1-based page.
        page_size: Maximum number of items per page (> 0).
        total: Total number of items that match the query (ignoring pagination).

    Returns:
        Dict with keys: current_page, page_size, total_pages, total_todos,
        has_next_page, has_prev_page. A page past the end is still described
        accurately; it simply has no items.
    """
    total = max(int(total), 0)
    total_pages = math.ceil(total / page_size) if page_size > 0 else 0
    return {
        "current_page": page,
        "page_size": page_size,
        "total_pages": total_pages,
        "total_todos": total,
        "has_next_page": page < total_pages,
        "has_prev_page": page > 1,
    }


def page_offset(page: int, page_size: int) -> int:
    """Number of rows to skip to reach the first item of `page`."""
    return (page - 1) * page_size
