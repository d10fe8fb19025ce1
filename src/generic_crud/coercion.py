"""
Value coercion helpers.

Request parameters arrive as strings; filters and lookup fields declare a
:class:`ValueType`.  Unlike best-effort casting, every function here raises
:class:`TypeCoercionError` on malformed input instead of passing the raw
value through.
"""

from __future__ import annotations

import datetime
import decimal
import math
import uuid as uuid_module
from typing import TYPE_CHECKING, Any

from .exceptions import TypeCoercionError
from .operators import ValueType

if TYPE_CHECKING:
    from collections.abc import Callable

_TRUE_VALUES = frozenset({"true", "1", "yes", "on"})
_FALSE_VALUES = frozenset({"false", "0", "no", "off"})


# ---------------------------------------------------------------------------
# List parsing
# ---------------------------------------------------------------------------


def parse_list_value(value: Any, delimiter: str = ",") -> list[Any]:
    """
    Parse a value into a list.

    Supports:
    - Python collections (list, tuple, set)
    - Delimited strings: ``"val1, val2"``
    - Bracketed strings: ``"[val1, val2]"``

    Empty items are dropped.
    """
    if isinstance(value, list | tuple | set):
        return list(value)
    if isinstance(value, str):
        content = value.strip()
        if content.startswith("[") and content.endswith("]"):
            content = content[1:-1].strip()
        if not content:
            return []
        items = (v.strip() for v in content.split(delimiter))
        return [v for v in items if v]
    return [value]


# ---------------------------------------------------------------------------
# Scalar casting
# ---------------------------------------------------------------------------


def _to_integer(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("booleans are not integers")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return int(str(value).strip())


def _to_float(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError("booleans are not numbers")
    result = float(value)
    if not math.isfinite(result):
        raise ValueError("non-finite float")
    return result


def _to_decimal(value: Any) -> decimal.Decimal:
    if isinstance(value, decimal.Decimal):
        return value
    try:
        result = decimal.Decimal(str(value).strip())
    except decimal.InvalidOperation as exc:
        raise ValueError(str(exc)) from exc
    if not result.is_finite():
        raise ValueError("non-finite decimal")
    return result


def _to_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _to_date(value: Any) -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    return datetime.date.fromisoformat(str(value).strip())


def _to_datetime(value: Any) -> datetime.datetime:
    if isinstance(value, datetime.datetime):
        result = value
    else:
        result = datetime.datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    if result.tzinfo is not None:
        result = result.astimezone(datetime.timezone.utc)
    return result


def _to_time(value: Any) -> datetime.time:
    if isinstance(value, datetime.time):
        return value
    return datetime.time.fromisoformat(str(value).strip())


def _to_uuid(value: Any) -> uuid_module.UUID:
    if isinstance(value, uuid_module.UUID):
        return value
    return uuid_module.UUID(str(value).strip())


_CASTERS: dict[ValueType, Callable[[Any], Any]] = {
    ValueType.STRING: str,
    ValueType.INTEGER: _to_integer,
    ValueType.FLOAT: _to_float,
    ValueType.DECIMAL: _to_decimal,
    ValueType.BOOLEAN: _to_boolean,
    ValueType.DATE: _to_date,
    ValueType.DATETIME: _to_datetime,
    ValueType.TIME: _to_time,
    ValueType.UUID: _to_uuid,
}


def coerce_value(
    value: Any,
    value_type: ValueType | str,
    *,
    field: str | None = None,
) -> Any:
    """
    Coerce *value* to *value_type*.

    ``None`` passes through unchanged.  Raises :class:`TypeCoercionError`
    when the value is malformed for the declared type.
    """
    if value is None:
        return None
    vt = ValueType(value_type)
    try:
        return _CASTERS[vt](value)
    except (TypeError, ValueError) as exc:
        raise TypeCoercionError(value, vt.value, field) from exc


def coerce_list(
    value: Any,
    value_type: ValueType | str,
    *,
    field: str | None = None,
    delimiter: str = ",",
) -> list[Any]:
    """Split a delimited value and coerce every item."""
    return [
        coerce_value(item, value_type, field=field)
        for item in parse_list_value(value, delimiter)
    ]


def infer_value_type(python_type: type | None) -> ValueType:
    """Map a column's Python type to the matching :class:`ValueType`."""
    if python_type is None:
        return ValueType.STRING
    # bool before int: bool is an int subclass
    for candidate, vt in (
        (bool, ValueType.BOOLEAN),
        (int, ValueType.INTEGER),
        (float, ValueType.FLOAT),
        (decimal.Decimal, ValueType.DECIMAL),
        (datetime.datetime, ValueType.DATETIME),
        (datetime.date, ValueType.DATE),
        (datetime.time, ValueType.TIME),
        (uuid_module.UUID, ValueType.UUID),
    ):
        if issubclass(python_type, candidate):
            return vt
    return ValueType.STRING
