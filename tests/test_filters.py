"""Tests for Filter, FilterSet and SearchCriteria."""

from __future__ import annotations

import datetime

import pytest

from generic_crud.exceptions import (
    ArityError,
    ConfigurationError,
    TypeCoercionError,
    UnknownFilterError,
)
from generic_crud.filters import Filter, FilterSet, SearchCriteria
from generic_crud.operators import FilterOperation, ValueType
from generic_crud.paths import FieldPath


def test_filter_defaults() -> None:
    flt = Filter("name")
    assert flt.path == FieldPath(("name",))
    assert flt.operation is FilterOperation.EQUAL
    assert flt.value_type is ValueType.STRING
    assert not flt.case_sensitive


def test_filter_accepts_string_enums() -> None:
    flt = Filter("min_population", "population", "gte", "integer")
    assert flt.operation is FilterOperation.GREATER_OR_EQUAL
    assert flt.value_type is ValueType.INTEGER
    assert flt.criteria("1000").value == 1000


def test_empty_filter_name_rejected() -> None:
    with pytest.raises(ConfigurationError):
        Filter("")


def test_scalar_value_coerced() -> None:
    flt = Filter("founded_after", "founded", FilterOperation.GREATER, ValueType.DATE)
    criteria = flt.criteria("1900-01-01")
    assert criteria.path == FieldPath(("founded",))
    assert criteria.value == datetime.date(1900, 1, 1)


def test_scalar_value_malformed() -> None:
    flt = Filter("population", operation="eq", value_type="integer")
    with pytest.raises(TypeCoercionError):
        flt.criteria("many")


def test_single_item_list_is_unwrapped() -> None:
    flt = Filter("population", value_type=ValueType.INTEGER)
    assert flt.parse_value(["5"]) == 5


def test_scalar_operation_rejects_multiple_values() -> None:
    flt = Filter("population", value_type=ValueType.INTEGER)
    with pytest.raises(ArityError):
        flt.parse_value(["1", "2"])


def test_between_requires_two_values() -> None:
    flt = Filter("population", operation="between", value_type="integer")
    assert flt.parse_value("10,20") == (10, 20)
    assert flt.parse_value(["10", "20"]) == (10, 20)

    for raw in ("10", "10,20,30"):
        with pytest.raises(ArityError) as exc_info:
            flt.parse_value(raw)
        assert exc_info.value.expected == 2


def test_in_values_coerced() -> None:
    flt = Filter("ids", "id", FilterOperation.IN, ValueType.INTEGER)
    assert flt.parse_value("1, 2,3") == (1, 2, 3)
    assert flt.parse_value("1|2", delimiter="|") == (1, 2)


def test_case_sensitive_flag_propagates() -> None:
    flt = Filter("name", operation="contains", case_sensitive=True)
    assert flt.criteria("Ale").case_sensitive


def test_search_criteria_of() -> None:
    criteria = SearchCriteria.of("country__name", "in", "Greece,Italy")
    assert criteria.path == FieldPath(("country", "name"))
    assert criteria.value == ("Greece", "Italy")
    assert criteria.to_dict() == {
        "op": "in",
        "attr": "country__name",
        "val": ["Greece", "Italy"],
    }

    with pytest.raises(ArityError):
        SearchCriteria.of("population", FilterOperation.BETWEEN, [1])


def test_filter_set_rejects_duplicates() -> None:
    with pytest.raises(ConfigurationError, match="Duplicate"):
        FilterSet([Filter("name"), Filter("name", "country__name")])


def test_filter_set_lookup() -> None:
    filters = FilterSet([Filter("name"), Filter("country", "country__name")])
    assert len(filters) == 2
    assert list(filters) == ["name", "country"]
    assert "country" in filters
    assert "continent" not in filters
    assert filters.get("continent") is None
    assert filters.require("country").path == FieldPath(("country", "name"))

    with pytest.raises(UnknownFilterError) as exc_info:
        filters.require("contry")
    assert exc_info.value.suggestions == ["country"]


def test_criteria_from_params_skips_absent_and_empty() -> None:
    filters = FilterSet(
        [
            Filter("name", operation="contains"),
            Filter("country", "country__name"),
            Filter("min_population", "population", "gte", "integer"),
        ]
    )
    params = {"name": "ath", "country": "", "min_population": ["1000"], "other": "x"}

    criteria = filters.criteria_from_params(params)

    assert [str(c.path) for c in criteria] == ["name", "population"]
    assert criteria[1].value == 1000


def test_criteria_from_params_skips_blank_list_values() -> None:
    filters = FilterSet(
        [
            Filter("min_population", "population", "gte", "integer"),
            Filter("ids", "id", "in", "integer"),
        ]
    )

    assert filters.criteria_from_params({"min_population": [""], "ids": ["", ""]}) == []
    assert filters.criteria_from_params({"min_population": ()}) == []


def test_filter_set_criteria_by_name() -> None:
    filters = FilterSet([Filter("country", "country__name")])
    assert filters.criteria("country", "Greece").value == "Greece"
    with pytest.raises(UnknownFilterError):
        filters.criteria("continent", "Europe")


def test_describe() -> None:
    filters = FilterSet([Filter("name", operation="contains", help_text="Name fragment")])
    assert filters.describe() == [
        {"name": "name", "operation": "contains", "type": "string", "help": "Name fragment"}
    ]
