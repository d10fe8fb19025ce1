"""
Filter declarations and runtime search criteria.

A :class:`Filter` is declared once per endpoint and shared read-only across
requests.  :meth:`Filter.criteria` turns the raw request string for that
filter into a typed :class:`SearchCriteria`.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from .coercion import coerce_list, coerce_value, parse_list_value
from .exceptions import ArityError, ConfigurationError, UnknownFilterError
from .operators import FilterOperation, ValueType
from .paths import FieldPath

if TYPE_CHECKING:
    from collections.abc import Iterable


@dataclass(frozen=True)
class SearchCriteria:
    """
    One concrete filter instance for a single request.

    ``value`` is already typed: a scalar, a two-item tuple for BETWEEN or a
    tuple of items for IN.
    """

    path: FieldPath
    operation: FilterOperation
    value: Any
    case_sensitive: bool = False

    @classmethod
    def of(
        cls,
        path: str | FieldPath,
        operation: FilterOperation | str,
        value: Any,
        *,
        case_sensitive: bool = False,
    ) -> SearchCriteria:
        """Build criteria programmatically (e.g. from request customization)."""
        op = FilterOperation(operation)
        if op.expects_list:
            value = tuple(parse_list_value(value))
            if op is FilterOperation.BETWEEN and len(value) != 2:
                raise ArityError(str(path), 2, len(value))
        return cls(FieldPath.parse(path), op, value, case_sensitive)

    def to_dict(self) -> dict[str, Any]:
        val = list(self.value) if isinstance(self.value, tuple) else self.value
        return {"op": self.operation.value, "attr": str(self.path), "val": val}


@dataclass(frozen=True)
class Filter:
    """
    A named, typed filter exposed by an endpoint.

    Attributes:
        name: Public query-parameter name.
        path: Source path on the model (``"country__name"``).
        operation: The comparison applied.
        value_type: Declared type of the value(s).
        help_text: Optional description for API documentation.
        case_sensitive: Only meaningful for CONTAINS; case-insensitive
            by default.
    """

    name: str
    path: FieldPath
    operation: FilterOperation = FilterOperation.EQUAL
    value_type: ValueType = ValueType.STRING
    help_text: str | None = None
    case_sensitive: bool = False

    def __init__(
        self,
        name: str,
        path: str | FieldPath | None = None,
        operation: FilterOperation | str = FilterOperation.EQUAL,
        value_type: ValueType | str = ValueType.STRING,
        help_text: str | None = None,
        *,
        case_sensitive: bool = False,
    ) -> None:
        if not name:
            raise ConfigurationError("Filter name must not be empty")
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "path", FieldPath.parse(path or name))
        object.__setattr__(self, "operation", FilterOperation(operation))
        object.__setattr__(self, "value_type", ValueType(value_type))
        object.__setattr__(self, "help_text", help_text)
        object.__setattr__(self, "case_sensitive", case_sensitive)

    def parse_value(self, raw: Any, delimiter: str = ",") -> Any:
        """
        Coerce a raw request value for this filter's operation.

        Raises:
            TypeCoercionError: If an item is malformed for ``value_type``.
            ArityError: If BETWEEN does not receive exactly two values.
        """
        # query-string parsers hand over single values as one-item lists
        if isinstance(raw, list | tuple) and len(raw) == 1:
            raw = raw[0]

        if self.operation is FilterOperation.BETWEEN:
            values = coerce_list(raw, self.value_type, field=self.name, delimiter=delimiter)
            if len(values) != 2:
                raise ArityError(self.name, 2, len(values))
            return tuple(values)
        if self.operation is FilterOperation.IN:
            return tuple(
                coerce_list(raw, self.value_type, field=self.name, delimiter=delimiter)
            )
        if isinstance(raw, list | tuple):
            raise ArityError(self.name, 1, len(raw))
        return coerce_value(raw, self.value_type, field=self.name)

    def criteria(self, raw: Any, delimiter: str = ",") -> SearchCriteria:
        return SearchCriteria(
            path=self.path,
            operation=self.operation,
            value=self.parse_value(raw, delimiter),
            case_sensitive=self.case_sensitive,
        )

    def describe(self) -> dict[str, Any]:
        """Documentation entry for this filter."""
        return {
            "name": self.name,
            "operation": self.operation.value,
            "type": self.value_type.value,
            "help": self.help_text or "",
        }


def _is_blank(raw: Any) -> bool:
    # `?pop=` arrives as "" or [""] depending on the query-string parser
    if isinstance(raw, list | tuple):
        return all(_is_blank(item) for item in raw)
    return raw is None or raw == ""


class FilterSet(Mapping[str, Filter]):
    """Filters keyed by public name; names are unique within one set."""

    def __init__(self, filters: Iterable[Filter] = ()) -> None:
        keyed: dict[str, Filter] = {}
        for flt in filters:
            if flt.name in keyed:
                raise ConfigurationError(f"Duplicate filter name '{flt.name}'")
            keyed[flt.name] = flt
        self.filters: Mapping[str, Filter] = MappingProxyType(keyed)

    def __getitem__(self, name: str) -> Filter:
        return self.filters[name]

    def require(self, name: str) -> Filter:
        """Return the filter called *name* or raise UnknownFilterError."""
        try:
            return self.filters[name]
        except KeyError:
            raise UnknownFilterError(name, list(self.filters)) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self.filters)

    def __len__(self) -> int:
        return len(self.filters)

    def criteria_from_params(
        self, params: Mapping[str, Any], delimiter: str = ","
    ) -> list[SearchCriteria]:
        """
        Build criteria for every declared filter present in *params*.

        Parameters that are absent or empty are skipped; parameters that
        are not declared filters are ignored.
        """
        result: list[SearchCriteria] = []
        for name, flt in self.filters.items():
            raw = params.get(name)
            if _is_blank(raw):
                continue
            result.append(flt.criteria(raw, delimiter))
        return result

    def criteria(self, name: str, raw: Any, delimiter: str = ",") -> SearchCriteria:
        """Build criteria for the filter called *name* from a raw value."""
        return self.require(name).criteria(raw, delimiter)

    def describe(self) -> list[dict[str, Any]]:
        return [flt.describe() for flt in self.filters.values()]
