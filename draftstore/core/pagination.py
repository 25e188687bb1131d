"""
Pagination utilities.

Listings use keyset (cursor) pagination on the surrogate id: the caller passes
the last id it has seen as ``after`` and receives at most ``limit`` rows with
larger ids, in ascending id order.
"""

from typing import Any, List, Optional

from sqlalchemy.sql.selectable import Select

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def apply_cursor(
    query: Select,
    id_column: Any,
    after: Optional[int] = None,
    limit: int = DEFAULT_LIMIT,
) -> Select:
    """
    Restrict a query to one page.

    IMPORTANT: Query should already carry its WHERE clauses; ordering is
    replaced by ascending ``id_column`` so the cursor stays stable.

    Args:
        query: Base query with filters applied
        id_column: Column the cursor refers to
        after: Exclusive lower bound on ``id_column`` (None = from the start)
        limit: Maximum rows to return, clamped to 0..MAX_LIMIT

    Returns:
        The paginated query
    """
    if after is not None:
        query = query.where(id_column > after)

    return query.order_by(None).order_by(id_column.asc()).limit(clamp_limit(limit))


def clamp_limit(limit: int) -> int:
    return min(max(limit, 0), MAX_LIMIT)


def build_paginated_response(items: List[Any]) -> dict:
    """
    Build the list envelope returned by listing endpoints.

    Returns:
        Dict with keys: data, count
    """
    return {
        "data": items,
        "count": len(items),
    }
