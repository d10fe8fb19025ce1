"""Immutable configuration shared by parsers, projectors and services."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CrudSettings:
    """
    Container for library-wide defaults.

    Attributes:
        default_page_size: Page size when the request does not give one.
        max_page_size: Upper bound applied to requested page sizes.
        strict_validation: Raise ``ValidationError`` on invalid input
            instead of returning the error map.
        list_delimiter: Separator for IN / BETWEEN filter values.
        page_param: Query parameter holding the zero-based page index.
        size_param: Query parameter holding the page size.
        sort_param: Query parameter holding the sort terms.
        direction_param: Query parameter holding the default direction.
    """

    default_page_size: int = 20
    max_page_size: int = 100
    strict_validation: bool = True
    list_delimiter: str = ","
    page_param: str = "page"
    size_param: str = "size"
    sort_param: str = "sort"
    direction_param: str = "direction"

    def __post_init__(self) -> None:
        if self.default_page_size < 1 or self.max_page_size < 1:
            raise ValueError("page sizes must be positive")
        if self.default_page_size > self.max_page_size:
            raise ValueError("default_page_size exceeds max_page_size")
        if not self.list_delimiter:
            raise ValueError("list_delimiter must not be empty")


DEFAULT_SETTINGS = CrudSettings()
