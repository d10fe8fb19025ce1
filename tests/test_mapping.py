"""Tests for FieldMapping, DtoMapping and DtoMappingBuilder."""

from __future__ import annotations

import pytest
from crud_models import City, Country, Person

from generic_crud.exceptions import ConfigurationError, PathResolutionError
from generic_crud.formatting import NumberFormat
from generic_crud.mapping import MISSING, DtoMappingBuilder, FieldMapping
from generic_crud.operators import ValueType
from generic_crud.paths import FieldPath


def test_builder_declares_fields() -> None:
    mapping = (
        DtoMappingBuilder()
        .field("id", read_only=True)
        .field("name", required=True, max_length=50)
        .field("country", source="country__name", read_only=True)
        .field("area", format="#,##0.00")
        .build()
    )

    names = [f.name for f in mapping.fields]
    assert names == ["id", "name", "country", "area"]
    country = mapping.fields[2]
    assert country.source == FieldPath(("country", "name"))
    assert not country.writable
    assert mapping.fields[1].constraints.max_length == 50
    assert mapping.fields[3].format == NumberFormat(2, 2, grouping=True)


def test_named_transforms_resolved_at_build() -> None:
    def shout(v):
        return v.upper()

    mapping = (
        DtoMappingBuilder()
        .transforms({"shout": shout})
        .field("name", transform="shout")
        .field("code", transform=str.lower)
        .build()
    )
    assert mapping.fields[0].transform is shout
    assert mapping.fields[1].transform is str.lower


def test_unknown_transform_rejected() -> None:
    builder = DtoMappingBuilder().field("name", transform="missing")
    with pytest.raises(ConfigurationError, match="unknown transform 'missing'"):
        builder.build()


def test_transform_registered_twice() -> None:
    builder = DtoMappingBuilder().transform("t", str)
    with pytest.raises(ConfigurationError):
        builder.transform("t", str)


def test_duplicate_field_names() -> None:
    builder = DtoMappingBuilder().field("name").field("name", source="country__name")
    with pytest.raises(ConfigurationError, match="Duplicate"):
        builder.build()


def test_read_only_and_write_only_conflict() -> None:
    with pytest.raises(ConfigurationError):
        DtoMappingBuilder().field("name", read_only=True, write_only=True).build()


def test_default_value() -> None:
    assert not FieldMapping("a", FieldPath.parse("a")).has_default
    assert FieldMapping("a", FieldPath.parse("a")).default is MISSING
    fm = FieldMapping("a", FieldPath.parse("a"), default=list)
    assert fm.has_default
    assert fm.default_value() == []
    assert FieldMapping("b", FieldPath.parse("b"), default=0).default_value() == 0


def test_bind_resolves_paths(resolver) -> None:
    mapping = (
        DtoMappingBuilder()
        .field("id", read_only=True)
        .field("population")
        .field("continent", source="country__continent__name", read_only=True)
        .field("country", reference=True)
        .field("founded", value_type="string")
        .build()
    )
    bound = mapping.bind(City, resolver)

    assert bound.model is City
    assert bound.get("population").value_type is ValueType.INTEGER
    assert bound.get("continent").plan.is_nested
    assert bound.get("country").value_type is None
    assert bound.get("country").reference_target is Country
    assert bound.get("founded").value_type is ValueType.STRING
    assert bound.get("missing") is None
    assert [f.name for f in bound.writable] == ["population", "country", "founded"]


def test_bind_unknown_path_is_configuration_error(resolver) -> None:
    mapping = DtoMappingBuilder().field("country", source="country__nmae").build()
    with pytest.raises(ConfigurationError, match="Field 'country' of City") as exc_info:
        mapping.bind(City, resolver)
    assert isinstance(exc_info.value.__cause__, PathResolutionError)


def test_relationship_terminal_requires_reference(resolver) -> None:
    mapping = DtoMappingBuilder().field("company").build()
    with pytest.raises(ConfigurationError, match="reference=True"):
        mapping.bind(Person, resolver)


def test_reference_must_end_on_to_one(resolver) -> None:
    scalar = DtoMappingBuilder().field("name", reference=True).build()
    with pytest.raises(ConfigurationError, match="to-one"):
        scalar.bind(Person, resolver)

    to_many = DtoMappingBuilder().field("cities", reference=True).build()
    with pytest.raises(ConfigurationError, match="to-one"):
        to_many.bind(Country, resolver)


def test_writable_field_through_collection_rejected(resolver) -> None:
    writable = DtoMappingBuilder().field("city_names", source="cities__name").build()
    with pytest.raises(ConfigurationError, match="to-many"):
        writable.bind(Country, resolver)

    read_only = (
        DtoMappingBuilder()
        .field("city_names", source="cities__name", read_only=True)
        .build()
    )
    assert read_only.bind(Country, resolver).get("city_names").plan.traverses_collection


def test_sort_aliases(resolver) -> None:
    mapping = (
        DtoMappingBuilder()
        .field("id", read_only=True)
        .field("country_name", source="country__name", read_only=True)
        .field("secret", source="name", write_only=True)
        .field("country", reference=True)
        .build()
    )
    aliases = mapping.bind(City, resolver).sort_aliases()
    assert aliases == {
        "id": FieldPath(("id",)),
        "country_name": FieldPath(("country", "name")),
    }
