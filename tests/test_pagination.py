"""Tests for PaginationParser and the Page envelope."""

from __future__ import annotations

import pytest

from generic_crud.exceptions import TypeCoercionError
from generic_crud.pagination import Page, PageRequest, PaginationParser


def test_defaults() -> None:
    r = PaginationParser(default_size=10).parse({})
    assert r == PageRequest(page=0, size=10)
    assert r.offset == 0
    assert r.limit == 10


def test_parse_page_and_size() -> None:
    r = PaginationParser().parse({"page": "2", "size": ["15"]})
    assert r.page == 2
    assert r.offset == 30
    assert r.limit == 15


def test_size_capped() -> None:
    r = PaginationParser(max_size=50).parse({"size": "500"})
    assert r.size == 50


def test_custom_keys() -> None:
    r = PaginationParser().parse({"p": "1", "n": "5"}, page_key="p", size_key="n")
    assert (r.page, r.size) == (1, 5)


@pytest.mark.parametrize(
    "params", [{"page": "x"}, {"page": "-1"}, {"size": "0"}, {"size": "1.5"}]
)
def test_invalid_values(params) -> None:
    with pytest.raises(TypeCoercionError):
        PaginationParser().parse(params)


def test_page_envelope() -> None:
    page = Page(items=[1, 2], total=5, page=0, size=2)
    assert page.pages == 3
    assert page.has_next
    assert not page.has_previous

    last = Page(items=[5], total=5, page=2, size=2)
    assert not last.has_next
    assert last.has_previous


def test_page_map_and_to_dict() -> None:
    page = Page(items=[1, 2], total=2, page=0, size=10).map(lambda x: x * 10)
    assert page.to_dict() == {
        "items": [10, 20],
        "total": 2,
        "page": 0,
        "size": 10,
        "pages": 1,
    }


def test_empty_page() -> None:
    assert Page().pages == 0
    assert not Page().has_next
