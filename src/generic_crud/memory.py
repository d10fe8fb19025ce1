"""
In-memory operator evaluation strategy.

Provides the ``MemoryOperator`` interface, a registry mapping
:class:`FilterOperation` to evaluation strategies, and helpers that apply
:class:`SearchCriteria` to plain objects or dicts.  Useful for
repositories without a SQL backend and for checking criteria in tests.

CONTAINS is case-insensitive unless the criteria is flagged
``case_sensitive``, in which case it is an exact substring test.
"""

from __future__ import annotations

import datetime
import operator as op_module
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar

from .exceptions import ArityError, TypeCoercionError
from .operators import FilterOperation

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from .filters import SearchCriteria
    from .paths import FieldPath


class MemoryOperator(ABC):
    """
    Strategy interface for in-memory operator evaluation.

    Each operator is an isolated class with a single ``evaluate`` method.
    """

    @property
    @abstractmethod
    def name(self) -> FilterOperation:
        """The operation this strategy handles."""
        ...

    @abstractmethod
    def evaluate(self, field_value: Any, criteria: SearchCriteria) -> bool:
        """
        Evaluate the operator against a concrete value.

        Args:
            field_value: The actual value resolved from the candidate object.
            criteria: The criteria holding the comparison value(s).
        """
        ...


class MemoryOperatorRegistry:
    """
    Registry of MemoryOperator instances keyed by FilterOperation.

    Usage::

        registry = build_default_memory_registry()
        registry.evaluate(actual, criteria)
    """

    def __init__(self) -> None:
        self._operators: dict[FilterOperation, MemoryOperator] = {}

    def register(self, operator: MemoryOperator) -> None:
        self._operators[operator.name] = operator

    def register_all(self, *operators: MemoryOperator) -> None:
        for op in operators:
            self.register(op)

    def get(self, name: FilterOperation) -> MemoryOperator | None:
        return self._operators.get(name)

    @property
    def supported_operators(self) -> set[FilterOperation]:
        return set(self._operators.keys())

    def evaluate(self, field_value: Any, criteria: SearchCriteria) -> bool:
        """
        Look up the operation and evaluate.

        A list value (path through a to-many relation) matches when any
        item matches.

        Raises:
            ValueError: If the operation is not registered.
        """
        op = self.get(criteria.operation)
        if op is None:
            raise ValueError(
                f"Unsupported operation for in-memory evaluation: {criteria.operation}"
            )
        if isinstance(field_value, list):
            return any(self.evaluate(item, criteria) for item in field_value)
        return op.evaluate(field_value, criteria)


# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------


def _align(value: Any, other: Any) -> Any:
    """Read a naive datetime as UTC when it is compared with an aware one."""
    if (
        isinstance(value, datetime.datetime)
        and isinstance(other, datetime.datetime)
        and value.tzinfo is None
        and other.tzinfo is not None
    ):
        return value.replace(tzinfo=datetime.timezone.utc)
    return value


def _compare(
    compare: Callable[[Any, Any], Any],
    field_value: Any,
    bound: Any,
    criteria: SearchCriteria,
) -> bool:
    left, right = _align(field_value, bound), _align(bound, field_value)
    try:
        return bool(compare(left, right))
    except TypeError as exc:
        raise TypeCoercionError(
            bound, type(field_value).__name__, str(criteria.path)
        ) from exc


class EqualOperator(MemoryOperator):
    @property
    def name(self) -> FilterOperation:
        return FilterOperation.EQUAL

    def evaluate(self, field_value: Any, criteria: SearchCriteria) -> bool:
        return _compare(op_module.eq, field_value, criteria.value, criteria)


class _OrderingOperator(MemoryOperator):
    operation: ClassVar[FilterOperation]
    compare: ClassVar[Callable[[Any, Any], Any]]

    @property
    def name(self) -> FilterOperation:
        return self.operation

    def evaluate(self, field_value: Any, criteria: SearchCriteria) -> bool:
        if field_value is None:
            return False
        return _compare(type(self).compare, field_value, criteria.value, criteria)


class GreaterThanOperator(_OrderingOperator):
    operation = FilterOperation.GREATER
    compare = op_module.gt


class GreaterEqualOperator(_OrderingOperator):
    operation = FilterOperation.GREATER_OR_EQUAL
    compare = op_module.ge


class LessThanOperator(_OrderingOperator):
    operation = FilterOperation.LESS
    compare = op_module.lt


class LessEqualOperator(_OrderingOperator):
    operation = FilterOperation.LESS_OR_EQUAL
    compare = op_module.le


class BetweenOperator(MemoryOperator):
    @property
    def name(self) -> FilterOperation:
        return FilterOperation.BETWEEN

    def evaluate(self, field_value: Any, criteria: SearchCriteria) -> bool:
        bounds = tuple(criteria.value)
        if len(bounds) != 2:
            raise ArityError(str(criteria.path), 2, len(bounds))
        if field_value is None:
            return False
        low, high = bounds
        return _compare(op_module.ge, field_value, low, criteria) and _compare(
            op_module.le, field_value, high, criteria
        )


class InOperator(MemoryOperator):
    @property
    def name(self) -> FilterOperation:
        return FilterOperation.IN

    def evaluate(self, field_value: Any, criteria: SearchCriteria) -> bool:
        return field_value in criteria.value


class ContainsOperator(MemoryOperator):
    @property
    def name(self) -> FilterOperation:
        return FilterOperation.CONTAINS

    def evaluate(self, field_value: Any, criteria: SearchCriteria) -> bool:
        if field_value is None:
            return False
        if criteria.case_sensitive:
            return str(criteria.value) in str(field_value)
        return str(criteria.value).lower() in str(field_value).lower()


def build_default_memory_registry() -> MemoryOperatorRegistry:
    """Create a registry with all built-in operators."""
    registry = MemoryOperatorRegistry()
    registry.register_all(
        EqualOperator(),
        GreaterThanOperator(),
        GreaterEqualOperator(),
        LessThanOperator(),
        LessEqualOperator(),
        BetweenOperator(),
        InOperator(),
        ContainsOperator(),
    )
    return registry


DEFAULT_MEMORY_REGISTRY = build_default_memory_registry()


# ---------------------------------------------------------------------------
# Evaluation helpers
# ---------------------------------------------------------------------------


def resolve_field(obj: Any, path: FieldPath) -> Any:
    """
    Resolve *path* on *obj* (object attributes or dict keys).

    Supports implicit list traversal: ``items__name`` where ``items`` is
    a list returns ``[item.name for item in items]``.
    """
    for index, part in enumerate(path.segments):
        if obj is None:
            return None
        if isinstance(obj, list | tuple):
            rest = type(path)(path.segments[index:])
            return [resolve_field(item, rest) for item in obj]
        obj = obj.get(part) if isinstance(obj, dict) else getattr(obj, part, None)
    return obj


def matches(
    candidate: Any,
    criteria: Iterable[SearchCriteria],
    registry: MemoryOperatorRegistry | None = None,
) -> bool:
    """True if *candidate* satisfies every criteria (logical AND)."""
    reg = registry or DEFAULT_MEMORY_REGISTRY
    return all(reg.evaluate(resolve_field(candidate, c.path), c) for c in criteria)


def filter_objects(
    candidates: Iterable[Any],
    criteria: Iterable[SearchCriteria],
    registry: MemoryOperatorRegistry | None = None,
) -> list[Any]:
    """Return the candidates satisfying every criteria, in input order."""
    criteria = list(criteria)
    return [c for c in candidates if matches(c, criteria, registry)]
