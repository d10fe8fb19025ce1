"""Tests for the authorization adapters."""

from __future__ import annotations

from generic_crud.authorization import (
    AllowAll,
    CallableAuthorizer,
    IAuthorizer,
    MethodPermissions,
)


def test_allow_all() -> None:
    assert AllowAll().is_permitted("anything", "DELETE")


def test_method_permissions_default() -> None:
    auth = MethodPermissions(default={"get", "POST"})
    assert auth.is_permitted("cities", "GET")
    assert auth.is_permitted("cities", "post")
    assert not auth.is_permitted("cities", "DELETE")


def test_method_permissions_per_resource() -> None:
    auth = MethodPermissions(
        default={"GET"}, per_resource={"companies": {"GET", "PUT", "PATCH"}}
    )
    assert auth.is_permitted("companies", "PATCH")
    assert not auth.is_permitted("cities", "PATCH")


def test_everything_permitted_by_default() -> None:
    auth = MethodPermissions()
    assert all(auth.is_permitted("x", m) for m in ("GET", "POST", "PUT", "PATCH", "DELETE"))


def test_adapters_satisfy_protocol() -> None:
    for auth in (AllowAll(), MethodPermissions(), CallableAuthorizer(lambda r, m: False)):
        assert isinstance(auth, IAuthorizer)
    assert not CallableAuthorizer(lambda r, m: 0).is_permitted("x", "GET")
