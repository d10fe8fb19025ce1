"""
Compile search criteria into SQLAlchemy expressions.

Each :class:`SearchCriteria` is resolved through a :class:`PathResolver`
into a traversal plan; the terminal column is compiled by the operator
registry and then wrapped, innermost hop first, in ``has()`` (to-one) or
``any()`` (to-many) EXISTS clauses for every relationship on the path.
Multiple criteria are combined with AND.

``apply_ordering`` joins (outer, aliased, one join per distinct prefix) the
to-one relationships a nested sort path needs, and ``apply_page`` applies
LIMIT/OFFSET.  ``build_select`` always ends the ordering with the primary
key so that pages are stable.  Nothing here executes a statement.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import ColumnElement, Select, and_, asc, desc, func, select, true
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import aliased

from ..exceptions import PathResolutionError
from ..paths import default_resolver
from .operators import DEFAULT_SQLA_REGISTRY

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ..filters import SearchCriteria
    from ..pagination import PageRequest
    from ..paths import PathResolver
    from ..query import ListQuery
    from ..sorting import SortOrder
    from .operators import SQLAlchemyOperatorRegistry

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def build_predicate(
    model: type[Any],
    criteria: Iterable[SearchCriteria],
    *,
    resolver: PathResolver | None = None,
    registry: SQLAlchemyOperatorRegistry | None = None,
) -> ColumnElement[bool]:
    """
    Build a SQLAlchemy boolean expression ANDing every criteria.

    Args:
        model: The SQLAlchemy model class the paths start from.
        criteria: Typed criteria, usually from :class:`QueryParser`.
        resolver: Optional path resolver; defaults to the process-wide one.
        registry: Optional custom operator registry.  Falls back to
            ``DEFAULT_SQLA_REGISTRY``.

    Returns:
        ``true()`` when there are no criteria.
    """
    res = resolver or default_resolver
    reg = registry or DEFAULT_SQLA_REGISTRY
    clauses = [compile_criteria(model, c, resolver=res, registry=reg) for c in criteria]
    if not clauses:
        return true()
    if len(clauses) == 1:
        return clauses[0]
    return and_(*clauses)


def compile_criteria(
    model: type[Any],
    criteria: SearchCriteria,
    *,
    resolver: PathResolver | None = None,
    registry: SQLAlchemyOperatorRegistry | None = None,
) -> ColumnElement[bool]:
    """Compile a single criteria, wrapping relationship hops in EXISTS."""
    res = resolver or default_resolver
    reg = registry or DEFAULT_SQLA_REGISTRY
    plan = res.resolve_scalar(model, criteria.path)

    expr = reg.apply(plan.terminal.attribute(), criteria)
    for hop in reversed(plan.relations):
        rel_attr = hop.attribute()
        if hop.uselist:
            expr = cast("ColumnElement[bool]", rel_attr.any(expr))
        else:
            expr = cast("ColumnElement[bool]", rel_attr.has(expr))

    logger.debug("Compiled %s %s on %s", criteria.path, criteria.operation.value, model.__name__)
    return expr


def apply_ordering(
    stmt: Select[Any],
    model: type[Any],
    orders: Iterable[SortOrder],
    *,
    resolver: PathResolver | None = None,
) -> Select[Any]:
    """Apply ORDER BY terms, joining the to-one relationships they need."""
    res = resolver or default_resolver
    alias_cache: dict[tuple[str, ...], Any] = {}
    clauses: list[Any] = []

    for order in orders:
        plan = res.resolve_scalar(model, order.path)
        current: Any = model
        prefix: tuple[str, ...] = ()
        for hop in plan.relations:
            if hop.uselist:
                raise PathResolutionError(
                    hop.name,
                    hop.owner.__name__,
                    str(plan.path),
                    reason=f"cannot order by a field across to-many relationship '{hop.name}'",
                )
            prefix = (*prefix, hop.name)
            target = alias_cache.get(prefix)
            if target is None:
                target = aliased(hop.target)
                stmt = stmt.outerjoin(target, getattr(current, hop.name))
                alias_cache[prefix] = target
            current = target
        column = getattr(current, plan.terminal.name)
        clauses.append(desc(column) if order.descending else asc(column))

    if clauses:
        return stmt.order_by(*clauses)
    return stmt


def apply_page(stmt: Select[Any], page: PageRequest | None) -> Select[Any]:
    """Apply LIMIT/OFFSET for *page*."""
    if page is None:
        return stmt
    return stmt.limit(page.limit).offset(page.offset)


def build_select(
    model: type[Any],
    query: ListQuery,
    *,
    resolver: PathResolver | None = None,
    registry: SQLAlchemyOperatorRegistry | None = None,
) -> tuple[Select[Any], Select[Any]]:
    """
    Return ``(rows_statement, count_statement)`` for a :class:`ListQuery`.

    Rows are ordered by the requested sort terms, then by primary key.
    The count statement ignores ordering and pagination.
    """
    predicate = build_predicate(
        model, query.criteria, resolver=resolver, registry=registry
    )
    rows = select(model).where(predicate)
    rows = apply_ordering(rows, model, query.order_by, resolver=resolver)
    rows = rows.order_by(*sa_inspect(model).primary_key)
    rows = apply_page(rows, query.page)
    count = select(func.count()).select_from(model).where(predicate)
    return rows, count
