"""Tests for page/limit normalisation and pagination metadata."""

import pytest

from app.schemas.common import dump
from app.utils.pagination import (
    MAX_PAGE,
    build_pagination,
    normalize_page_params,
    page_offset,
)


@pytest.mark.parametrize(
    ("page", "limit", "expected"),
    [
        (None, None, (1, 10)),
        (0, 0, (1, 10)),
        (-3, -1, (1, 10)),
        (2, 25, (2, 25)),
        (1, 500, (1, 50)),
        (2**62, 10, (MAX_PAGE, 10)),
    ],
)
def test_normalize_page_params(page, limit, expected) -> None:
    assert normalize_page_params(page, limit, default_limit=10, max_limit=50) == expected


def test_page_offset() -> None:
    assert page_offset(1, 20) == 0
    assert page_offset(5, 20) == 80


def test_total_pages_rounds_up() -> None:
    pagination = build_pagination(5, 20, 95)

    assert pagination.total_pages == 5
    assert dump(pagination) == {"page": 5, "limit": 20, "total": 95, "totalPages": 5}


def test_no_rows_gives_zero_pages() -> None:
    assert build_pagination(1, 10, 0).total_pages == 0
