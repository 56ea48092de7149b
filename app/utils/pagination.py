"""Page/limit normalisation and pagination metadata."""

from __future__ import annotations

import math

from app.schemas.common import Pagination

# Upper bounds for client-supplied paging values; larger values would
# overflow the database's integer OFFSET.
MAX_PAGE = 1_000_000
MAX_OFFSET = 100_000_000


def normalize_page_params(
    page: int | None,
    limit: int | None,
    *,
    default_limit: int,
    max_limit: int,
) -> tuple[int, int]:
    """Coerce ``page`` into ``[1, MAX_PAGE]`` and ``limit`` into ``[1, max_limit]``.

    A missing or non-positive limit falls back to ``default_limit``.
    """
    page = page if page and page > 0 else 1
    limit = limit if limit and limit > 0 else default_limit
    return min(page, MAX_PAGE), min(limit, max_limit)


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def build_pagination(page: int, limit: int, total: int) -> Pagination:
    return Pagination(
        page=page,
        limit=limit,
        total=total,
        total_pages=math.ceil(total / limit) if limit else 0,
    )
