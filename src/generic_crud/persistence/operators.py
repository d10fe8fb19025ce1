"""
SQLAlchemy operators and their registry.

Every :class:`FilterOperation` compiles through one ``SQLAlchemyOperator``
looked up in a ``SQLAlchemyOperatorRegistry``.  Registering an operator for
an operation that already has one replaces it, so projects can override
single operations without rebuilding the whole table::

    registry = build_default_sqla_registry()
    registry.register(MyEqual())
    expr = registry.apply(User.name, criteria)

CONTAINS is case-insensitive unless the criteria is flagged
``case_sensitive``; the case-sensitive form is a plain ``LIKE`` whose
behaviour follows the engine's collation.
"""

from __future__ import annotations

import operator as op_module
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, cast

from sqlalchemy import func

from ..exceptions import ArityError
from ..operators import FilterOperation

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.sql.elements import ColumnElement

    from ..filters import SearchCriteria

_ESCAPE = "/"


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so *value* matches literally."""
    return (
        value.replace(_ESCAPE, _ESCAPE * 2)
        .replace("%", f"{_ESCAPE}%")
        .replace("_", f"{_ESCAPE}_")
    )


class SQLAlchemyOperator(ABC):
    """Compiles one operation against a column into a boolean clause."""

    operation: ClassVar[FilterOperation]

    @abstractmethod
    def apply(self, column: Any, criteria: SearchCriteria) -> ColumnElement[bool]:
        """Return the clause for *column* compared with ``criteria.value``."""


class SQLAlchemyOperatorRegistry:
    """Operators keyed by the operation they compile."""

    def __init__(self, operators: tuple[SQLAlchemyOperator, ...] = ()) -> None:
        self._operators: dict[FilterOperation, SQLAlchemyOperator] = {}
        self.register(*operators)

    def register(self, *operators: SQLAlchemyOperator) -> None:
        for operator in operators:
            self._operators[operator.operation] = operator

    def __contains__(self, operation: object) -> bool:
        return operation in self._operators

    @property
    def supported_operators(self) -> frozenset[FilterOperation]:
        return frozenset(self._operators)

    def apply(self, column: Any, criteria: SearchCriteria) -> ColumnElement[bool]:
        """
        Compile *criteria* against *column*.

        Raises:
            ValueError: If no operator is registered for the operation.
        """
        try:
            operator = self._operators[criteria.operation]
        except KeyError:
            raise ValueError(
                f"Unsupported operation for SQLAlchemy: {criteria.operation}"
            ) from None
        return operator.apply(column, criteria)


class _Comparison(SQLAlchemyOperator):
    compare: ClassVar[Callable[[Any, Any], Any]]

    def apply(self, column: Any, criteria: SearchCriteria) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", type(self).compare(column, criteria.value))


class EqualOperator(_Comparison):
    operation = FilterOperation.EQUAL
    compare = op_module.eq


class GreaterThanOperator(_Comparison):
    operation = FilterOperation.GREATER
    compare = op_module.gt


class GreaterEqualOperator(_Comparison):
    operation = FilterOperation.GREATER_OR_EQUAL
    compare = op_module.ge


class LessThanOperator(_Comparison):
    operation = FilterOperation.LESS
    compare = op_module.lt


class LessEqualOperator(_Comparison):
    operation = FilterOperation.LESS_OR_EQUAL
    compare = op_module.le


class BetweenOperator(SQLAlchemyOperator):
    operation = FilterOperation.BETWEEN

    def apply(self, column: Any, criteria: SearchCriteria) -> ColumnElement[bool]:
        bounds = tuple(criteria.value)
        if len(bounds) != 2:
            raise ArityError(str(criteria.path), 2, len(bounds))
        return cast("ColumnElement[bool]", column.between(*bounds))


class InOperator(SQLAlchemyOperator):
    operation = FilterOperation.IN

    def apply(self, column: Any, criteria: SearchCriteria) -> ColumnElement[bool]:
        return cast("ColumnElement[bool]", column.in_(list(criteria.value)))


class ContainsOperator(SQLAlchemyOperator):
    operation = FilterOperation.CONTAINS

    def apply(self, column: Any, criteria: SearchCriteria) -> ColumnElement[bool]:
        pattern = f"%{escape_like(str(criteria.value))}%"
        if criteria.case_sensitive:
            return cast("ColumnElement[bool]", column.like(pattern, escape=_ESCAPE))
        return cast(
            "ColumnElement[bool]",
            func.lower(column).like(func.lower(pattern), escape=_ESCAPE),
        )


def build_default_sqla_registry() -> SQLAlchemyOperatorRegistry:
    """Create a registry with all built-in SQLAlchemy operators."""
    return SQLAlchemyOperatorRegistry(
        (
            EqualOperator(),
            GreaterThanOperator(),
            GreaterEqualOperator(),
            LessThanOperator(),
            LessEqualOperator(),
            BetweenOperator(),
            InOperator(),
            ContainsOperator(),
        )
    )


DEFAULT_SQLA_REGISTRY: SQLAlchemyOperatorRegistry = build_default_sqla_registry()

__all__ = [
    "DEFAULT_SQLA_REGISTRY",
    "SQLAlchemyOperator",
    "SQLAlchemyOperatorRegistry",
    "build_default_sqla_registry",
    "escape_like",
]
