"""Tests for FieldPath parsing and PathResolver."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest
from crud_models import City, Continent, Country

from generic_crud.exceptions import PathResolutionError
from generic_crud.operators import ValueType
from generic_crud.paths import FieldPath, resolve_path


def test_field_path_parse() -> None:
    path = FieldPath.parse("country__continent__name")
    assert path.segments == ("country", "continent", "name")
    assert str(path) == "country__continent__name"
    assert path.dotted == "country.continent.name"
    assert len(path) == 3
    assert FieldPath.parse(["a", "b"]) == FieldPath(("a", "b"))
    assert FieldPath.parse(path) is path


def test_resolve_nested_path(resolver) -> None:
    plan = resolver.resolve(City, "country__continent__name")

    assert len(plan) == 3
    assert [hop.name for hop in plan.hops] == ["country", "continent", "name"]
    assert [hop.target for hop in plan.relations] == [Country, Continent]
    assert plan.terminal.owner is Continent
    assert plan.terminal.python_type is str
    assert plan.is_nested
    assert not plan.is_relation
    assert not plan.traverses_collection


def test_resolve_is_cached(resolver) -> None:
    first = resolver.resolve(City, "country__name")
    second = resolver.resolve(City, FieldPath.parse("country__name"))
    assert first is second
    assert len(resolver) == 1

    resolver.clear()
    assert len(resolver) == 0
    assert resolver.resolve(City, "country__name") == first


def test_resolve_concurrently_returns_one_plan(resolver) -> None:
    with ThreadPoolExecutor(max_workers=8) as pool:
        plans = list(pool.map(lambda _: resolver.resolve(City, "country__code"), range(32)))
    assert len({id(plan) for plan in plans}) == 1


def test_resolve_to_many(resolver) -> None:
    plan = resolver.resolve(Country, "cities__population")
    assert plan.traverses_collection
    assert plan.relations[0].uselist
    assert plan.value_type is ValueType.INTEGER


def test_resolve_relationship_terminal(resolver) -> None:
    plan = resolver.resolve(City, "country")
    assert plan.is_relation
    assert plan.terminal.target is Country

    with pytest.raises(PathResolutionError, match="relationship"):
        resolver.resolve_scalar(City, "country")


def test_resolve_hybrid_property(resolver) -> None:
    plan = resolver.resolve(City, "is_large")
    assert not plan.is_relation
    assert plan.terminal.python_type is None


def test_unknown_segment(resolver) -> None:
    with pytest.raises(PathResolutionError) as exc_info:
        resolver.resolve(City, "country__nam")

    err = exc_info.value
    assert err.segment == "nam"
    assert err.model_name == "Country"
    assert err.full_path == "country__nam"
    assert "name" in err.suggestions
    assert "Did you mean" in str(err)
    assert len(resolver) == 0


def test_scalar_segment_cannot_be_traversed(resolver) -> None:
    with pytest.raises(PathResolutionError, match="cannot be traversed"):
        resolver.resolve(City, "name__length")


@pytest.mark.parametrize("path", ["", "country____name", "country__"])
def test_empty_segments(resolver, path: str) -> None:
    with pytest.raises(PathResolutionError):
        resolver.resolve(City, path)


def test_unmapped_class(resolver) -> None:
    class NotMapped:
        pass

    with pytest.raises(PathResolutionError, match="not a mapped class"):
        resolver.resolve(NotMapped, "name")


def test_get_value() -> None:
    europe = Continent(name="Europe")
    city = City(name="Athens", country=Country(name="Greece", continent=europe))
    orphan = City(name="Atlantis")

    plan = resolve_path(City, "country__continent__name")
    assert plan.get_value(city) == "Europe"
    assert plan.get_value(orphan) is None


def test_get_value_through_collection(resolver) -> None:
    greece = Country(name="Greece")
    greece.cities = [City(name="Athens"), City(name="Patras")]

    plan = resolver.resolve(Country, "cities__name")
    assert plan.get_value(greece) == ["Athens", "Patras"]


def test_set_value_creates_intermediates(resolver) -> None:
    city = City(name="Athens")
    plan = resolver.resolve(City, "country__continent__name")

    plan.set_value(city, "Europe")

    assert isinstance(city.country, Country)
    assert isinstance(city.country.continent, Continent)
    assert city.country.continent.name == "Europe"


def test_set_value_keeps_existing_intermediates(resolver) -> None:
    greece = Country(name="Greece")
    city = City(name="Athens", country=greece)

    resolver.resolve(City, "country__code").set_value(city, "GR")

    assert city.country is greece
    assert greece.code == "GR"
