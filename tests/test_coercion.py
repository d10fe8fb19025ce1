"""Tests for value coercion helpers."""

from __future__ import annotations

import datetime
import uuid
from decimal import Decimal

import pytest

from generic_crud.coercion import (
    coerce_list,
    coerce_value,
    infer_value_type,
    parse_list_value,
)
from generic_crud.exceptions import TypeCoercionError
from generic_crud.operators import ValueType


@pytest.mark.parametrize(
    ("raw", "value_type", "expected"),
    [
        ("42", ValueType.INTEGER, 42),
        (" 7 ", ValueType.INTEGER, 7),
        (3.0, ValueType.INTEGER, 3),
        ("2.5", ValueType.FLOAT, 2.5),
        ("1.50", ValueType.DECIMAL, Decimal("1.50")),
        ("yes", ValueType.BOOLEAN, True),
        ("0", ValueType.BOOLEAN, False),
        ("2024-01-02", ValueType.DATE, datetime.date(2024, 1, 2)),
        ("12:30:00", ValueType.TIME, datetime.time(12, 30)),
        (123, ValueType.STRING, "123"),
    ],
)
def test_coerce_value(raw, value_type: ValueType, expected) -> None:
    assert coerce_value(raw, value_type) == expected


def test_coerce_datetime_normalises_to_utc() -> None:
    result = coerce_value("2024-01-02T03:04:05+02:00", ValueType.DATETIME)
    assert result == datetime.datetime(2024, 1, 2, 1, 4, 5, tzinfo=datetime.timezone.utc)

    zulu = coerce_value("2024-01-02T03:04:05Z", "datetime")
    assert zulu.tzinfo == datetime.timezone.utc


def test_coerce_uuid() -> None:
    value = uuid.uuid4()
    assert coerce_value(str(value), ValueType.UUID) == value


def test_none_passes_through() -> None:
    assert coerce_value(None, ValueType.INTEGER) is None


@pytest.mark.parametrize(
    ("raw", "value_type"),
    [
        ("4x", ValueType.INTEGER),
        (True, ValueType.INTEGER),
        ("abc", ValueType.FLOAT),
        ("nan", ValueType.FLOAT),
        ("-inf", ValueType.FLOAT),
        (float("inf"), ValueType.FLOAT),
        ("nan", ValueType.DECIMAL),
        ("maybe", ValueType.BOOLEAN),
        ("2024-13-01", ValueType.DATE),
        ("not-a-uuid", ValueType.UUID),
    ],
)
def test_malformed_values_raise(raw, value_type: ValueType) -> None:
    with pytest.raises(TypeCoercionError) as exc_info:
        coerce_value(raw, value_type, field="population")
    assert exc_info.value.field == "population"
    assert exc_info.value.value_type == value_type.value


def test_parse_list_value() -> None:
    assert parse_list_value("a, b,,c") == ["a", "b", "c"]
    assert parse_list_value("[1, 2]") == ["1", "2"]
    assert parse_list_value("a;b", delimiter=";") == ["a", "b"]
    assert parse_list_value(["x", "y"]) == ["x", "y"]
    assert parse_list_value("  ") == []
    assert parse_list_value(5) == [5]


def test_coerce_list() -> None:
    assert coerce_list("1,2,3", ValueType.INTEGER) == [1, 2, 3]
    with pytest.raises(TypeCoercionError):
        coerce_list("1,two", ValueType.INTEGER)


@pytest.mark.parametrize(
    ("python_type", "expected"),
    [
        (bool, ValueType.BOOLEAN),
        (int, ValueType.INTEGER),
        (float, ValueType.FLOAT),
        (Decimal, ValueType.DECIMAL),
        (datetime.datetime, ValueType.DATETIME),
        (datetime.date, ValueType.DATE),
        (uuid.UUID, ValueType.UUID),
        (str, ValueType.STRING),
        (None, ValueType.STRING),
    ],
)
def test_infer_value_type(python_type, expected: ValueType) -> None:
    assert infer_value_type(python_type) is expected
