"""QueryParser: raw query params -> ListQuery (criteria, ordering, page)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .filters import FilterSet, SearchCriteria
from .pagination import PageRequest, PaginationParser
from .settings import DEFAULT_SETTINGS, CrudSettings
from .sorting import SortOrder, SortWhitelist, parse_sort

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from .paths import FieldPath

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ListQuery:
    """
    Immutable description of one list request.

    The persistence layer consumes it; nothing here performs I/O.
    """

    criteria: tuple[SearchCriteria, ...] = ()
    order_by: tuple[SortOrder, ...] = ()
    page: PageRequest = field(default_factory=PageRequest)

    def with_criteria(self, *criteria: SearchCriteria) -> ListQuery:
        """Return a copy with *criteria* appended to the existing ones."""
        return ListQuery(
            criteria=self.criteria + tuple(criteria),
            order_by=self.order_by,
            page=self.page,
        )

    def with_ordering(self, *orders: SortOrder) -> ListQuery:
        return ListQuery(criteria=self.criteria, order_by=tuple(orders), page=self.page)

    def with_page(self, page: PageRequest) -> ListQuery:
        return ListQuery(criteria=self.criteria, order_by=self.order_by, page=page)

    def to_dict(self) -> dict[str, Any]:
        return {
            "criteria": [c.to_dict() for c in self.criteria],
            "order_by": [str(o) for o in self.order_by],
            "page": self.page.page,
            "size": self.page.size,
        }


class QueryParser:
    """Parse API params into a :class:`ListQuery`."""

    def __init__(
        self,
        filter_set: FilterSet | None = None,
        sort_whitelist: SortWhitelist | None = None,
        *,
        sort_aliases: Mapping[str, FieldPath] | None = None,
        settings: CrudSettings = DEFAULT_SETTINGS,
    ) -> None:
        self.filter_set = filter_set or FilterSet()
        self.sort_whitelist = sort_whitelist or SortWhitelist()
        self._sort_aliases = dict(sort_aliases or {})
        self._settings = settings
        self._pagination = PaginationParser(
            default_size=settings.default_page_size,
            max_size=settings.max_page_size,
        )

    def parse(
        self,
        query_params: Mapping[str, Any],
        extra_criteria: Iterable[SearchCriteria] = (),
    ) -> ListQuery:
        """
        Return the ListQuery for *query_params*.

        ``extra_criteria`` (e.g. from request-derived customization) is
        appended after the criteria built from the filter parameters.
        """
        s = self._settings
        criteria = self.filter_set.criteria_from_params(query_params, s.list_delimiter)
        criteria.extend(extra_criteria)
        orders = parse_sort(
            query_params.get(s.sort_param),
            self.sort_whitelist,
            direction=_single(query_params.get(s.direction_param)),
            aliases=self._sort_aliases,
        )
        page = self._pagination.parse(
            query_params, page_key=s.page_param, size_key=s.size_param
        )
        query = ListQuery(criteria=tuple(criteria), order_by=tuple(orders), page=page)
        logger.debug("Parsed list query: %s", query.to_dict())
        return query


def _single(value: Any) -> Any:
    if isinstance(value, list | tuple):
        return value[0] if value else None
    return value
