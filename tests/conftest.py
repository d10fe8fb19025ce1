"""Shared fixtures: in-memory SQLite database seeded with a small world."""

from __future__ import annotations

import datetime
from decimal import Decimal

import pytest
from crud_models import Base, City, Company, Continent, Country, Person
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from generic_crud.paths import PathResolver


@pytest.fixture
def engine():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        europe = Continent(id=1, name="Europe")
        asia = Continent(id=2, name="Asia")
        greece = Country(id=1, name="Greece", code="GR", continent=europe)
        japan = Country(id=2, name="Japan", code="JP", continent=asia)
        italy = Country(id=3, name="Italy", code="IT", continent=europe)
        session.add_all(
            [
                City(
                    id=1,
                    name="Athens",
                    population=3_150_000,
                    area=Decimal("412.00"),
                    founded=datetime.date(1834, 9, 18),
                    country=greece,
                ),
                City(id=2, name="Thessaloniki", population=1_000_000, country=greece),
                City(id=3, name="Tokyo", population=13_960_000, country=japan),
                City(id=4, name="Rome", population=2_870_000, country=italy),
                City(id=5, name="Patras", population=215_000, country=greece),
            ]
        )
        acme = Company(id=1, name="Acme")
        globex = Company(id=2, name="Globex")
        session.add_all(
            [
                Person(id=1, name="Alex", email="alex@acme.test", company=acme),
                Person(id=2, name="Bob", email="bob@globex.test", company=globex),
            ]
        )
        session.flush()
        yield session
        session.rollback()


@pytest.fixture
def resolver():
    """A fresh resolver so cache assertions are not shared between tests."""
    return PathResolver()
