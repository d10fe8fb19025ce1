"""
Numeric output formatting for serialized fields.

Patterns follow the familiar ``#,##0.00`` notation:

- a ``,`` in the integer part enables thousands grouping;
- each ``0`` after the ``.`` is a mandatory decimal place, each ``#`` an
  optional one (trailing zeros beyond the mandatory places are dropped).

Rounding is always ROUND_HALF_UP.
"""

from __future__ import annotations

import decimal
from dataclasses import dataclass
from typing import Any

from .exceptions import ConfigurationError, TypeCoercionError

ROUNDING = decimal.ROUND_HALF_UP


@dataclass(frozen=True)
class NumberFormat:
    """
    Attributes:
        min_decimals: Decimal places always shown.
        max_decimals: Decimal places the value is rounded to.
        grouping: Insert ``thousands_separator`` every three digits.
        thousands_separator: Group separator.
        decimal_separator: Separator between integer and fraction.
    """

    min_decimals: int = 0
    max_decimals: int = 0
    grouping: bool = False
    thousands_separator: str = ","
    decimal_separator: str = "."

    def __post_init__(self) -> None:
        if self.min_decimals < 0 or self.max_decimals < self.min_decimals:
            raise ConfigurationError(
                f"Invalid decimal places: min={self.min_decimals}, max={self.max_decimals}"
            )

    @classmethod
    def parse(
        cls,
        pattern: str,
        *,
        thousands_separator: str = ",",
        decimal_separator: str = ".",
    ) -> NumberFormat:
        """Build a NumberFormat from a ``#,##0.00`` style pattern."""
        if not pattern or any(ch not in "#0,." for ch in pattern) or pattern.count(".") > 1:
            raise ConfigurationError(f"Invalid number format pattern: {pattern!r}")
        integer, _, fraction = pattern.partition(".")
        if "," in fraction:
            raise ConfigurationError(f"Grouping in fraction part: {pattern!r}")
        if "#" in fraction.rstrip("#"):
            raise ConfigurationError(f"Optional digits must follow mandatory ones: {pattern!r}")
        return cls(
            min_decimals=fraction.count("0"),
            max_decimals=len(fraction),
            grouping="," in integer,
            thousands_separator=thousands_separator,
            decimal_separator=decimal_separator,
        )

    def format(self, value: Any) -> str | None:
        """
        Format a number.  ``None`` stays ``None``.

        Raises:
            TypeCoercionError: If *value* is not numeric.
        """
        if value is None:
            return None
        if isinstance(value, bool):
            raise TypeCoercionError(value, "number")
        try:
            number = decimal.Decimal(str(value))
        except decimal.InvalidOperation as exc:
            raise TypeCoercionError(value, "number") from exc
        if not number.is_finite():
            raise TypeCoercionError(value, "number")

        quantum = decimal.Decimal(1).scaleb(-self.max_decimals)
        rounded = number.quantize(quantum, rounding=ROUNDING)
        text = f"{abs(rounded):f}"
        integer, _, fraction = text.partition(".")

        fraction = fraction.ljust(self.max_decimals, "0")
        while len(fraction) > self.min_decimals and fraction.endswith("0"):
            fraction = fraction[:-1]

        if self.grouping:
            integer = f"{int(integer):,}".replace(",", self.thousands_separator)

        sign = "-" if rounded < 0 else ""
        if fraction:
            return f"{sign}{integer}{self.decimal_separator}{fraction}"
        return f"{sign}{integer}"


def as_number_format(fmt: NumberFormat | str | None) -> NumberFormat | None:
    """Accept a NumberFormat, a pattern string, or ``None``."""
    if fmt is None or isinstance(fmt, NumberFormat):
        return fmt
    return NumberFormat.parse(fmt)
