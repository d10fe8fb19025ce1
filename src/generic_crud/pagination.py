"""PageRequest and Page envelope; page/size parsing from query params."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from .exceptions import TypeCoercionError

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class PageRequest:
    """Zero-based page index and page size."""

    page: int = 0
    size: int = 20

    @property
    def offset(self) -> int:
        return self.page * self.size

    @property
    def limit(self) -> int:
        return self.size


@dataclass(frozen=True)
class Page(Generic[T]):
    """Paginated result envelope."""

    items: list[T] = field(default_factory=list)
    total: int = 0
    page: int = 0
    size: int = 20

    @property
    def pages(self) -> int:
        if self.size <= 0:
            return 0
        return math.ceil(self.total / self.size)

    @property
    def has_next(self) -> bool:
        return self.page + 1 < self.pages

    @property
    def has_previous(self) -> bool:
        return self.page > 0

    def map(self, fn: Callable[[T], U]) -> Page[U]:
        return Page(
            items=[fn(item) for item in self.items],
            total=self.total,
            page=self.page,
            size=self.size,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": list(self.items),
            "total": self.total,
            "page": self.page,
            "size": self.size,
            "pages": self.pages,
        }


class PaginationParser:
    """Parse page index and page size from query params."""

    def __init__(self, *, default_size: int = 20, max_size: int = 100) -> None:
        self.default_size = default_size
        self.max_size = max_size

    def parse(
        self,
        query_params: Mapping[str, Any],
        *,
        page_key: str = "page",
        size_key: str = "size",
    ) -> PageRequest:
        page = self._int_param(query_params.get(page_key), page_key)
        size = self._int_param(query_params.get(size_key), size_key)
        if page is None:
            page = 0
        if size is None:
            size = self.default_size
        if page < 0:
            raise TypeCoercionError(page, "non-negative integer", page_key)
        if size < 1:
            raise TypeCoercionError(size, "positive integer", size_key)
        return PageRequest(page=page, size=min(size, self.max_size))

    @staticmethod
    def _int_param(value: Any, key: str) -> int | None:
        if isinstance(value, list | tuple):
            value = value[0] if value else None
        if value is None or value == "":
            return None
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise TypeCoercionError(value, "integer", key) from exc
