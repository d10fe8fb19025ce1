"""Tests for NumberFormat."""

from __future__ import annotations

from decimal import Decimal

import pytest

from generic_crud.exceptions import ConfigurationError, TypeCoercionError
from generic_crud.formatting import NumberFormat, as_number_format


@pytest.mark.parametrize(
    ("pattern", "value", "expected"),
    [
        ("#,##0.00", 1234567.891, "1,234,567.89"),
        ("#,##0.00", 1234.5, "1,234.50"),
        ("0.00", 2.675, "2.68"),
        ("0.00", Decimal("2.665"), "2.67"),
        ("0", 2.5, "3"),
        ("0", -2.5, "-3"),
        ("0.0#", 1.5, "1.5"),
        ("0.0#", 1.25, "1.25"),
        ("0.0#", 1.256, "1.26"),
        ("0.##", 3, "3"),
        ("0.00", -0.001, "0.00"),
    ],
)
def test_format_rounds_half_up(pattern: str, value, expected: str) -> None:
    assert NumberFormat.parse(pattern).format(value) == expected


def test_custom_separators() -> None:
    fmt = NumberFormat.parse("#,##0.00", thousands_separator=".", decimal_separator=",")
    assert fmt.format(1234567.5) == "1.234.567,50"


def test_parse_pattern() -> None:
    fmt = NumberFormat.parse("#,##0.0##")
    assert fmt == NumberFormat(min_decimals=1, max_decimals=3, grouping=True)


@pytest.mark.parametrize("pattern", ["", "abc", "0.0.0", "0.0,0", "0.#0"])
def test_invalid_patterns(pattern: str) -> None:
    with pytest.raises(ConfigurationError):
        NumberFormat.parse(pattern)


def test_none_passes_through() -> None:
    assert NumberFormat.parse("0.00").format(None) is None


@pytest.mark.parametrize("value", ["abc", True, float("inf")])
def test_non_numeric_raises(value) -> None:
    with pytest.raises(TypeCoercionError):
        NumberFormat.parse("0.00").format(value)


def test_as_number_format() -> None:
    fmt = NumberFormat(max_decimals=2)
    assert as_number_format(fmt) is fmt
    assert as_number_format(None) is None
    assert as_number_format("0.00") == NumberFormat(min_decimals=2, max_decimals=2)


def test_invalid_decimal_places() -> None:
    with pytest.raises(ConfigurationError):
        NumberFormat(min_decimals=3, max_decimals=1)
