"""IAuthorizer: permit/deny decision per resource and HTTP method."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

GET = "GET"
POST = "POST"
PUT = "PUT"
PATCH = "PATCH"
DELETE = "DELETE"

METHODS = frozenset({GET, POST, PUT, PATCH, DELETE})


@runtime_checkable
class IAuthorizer(Protocol):
    """Consulted before any mapping or filtering runs."""

    def is_permitted(self, resource: str, method: str) -> bool:
        """Return ``True`` to permit *method* on *resource*."""
        ...


class AllowAll:
    """Permits everything."""

    def is_permitted(self, resource: str, method: str) -> bool:
        return True


class MethodPermissions:
    """
    Static allow-list of HTTP methods, optionally per resource.

    Usage::

        auth = MethodPermissions(
            default={"GET"},
            per_resource={"companies": {"GET", "POST"}},
        )
    """

    def __init__(
        self,
        default: Iterable[str] = METHODS,
        per_resource: Mapping[str, Iterable[str]] | None = None,
    ) -> None:
        self._default = frozenset(m.upper() for m in default)
        self._per_resource = {
            name: frozenset(m.upper() for m in methods)
            for name, methods in (per_resource or {}).items()
        }

    def is_permitted(self, resource: str, method: str) -> bool:
        allowed = self._per_resource.get(resource, self._default)
        return method.upper() in allowed


class CallableAuthorizer:
    """Adapts a ``(resource, method) -> bool`` callable."""

    def __init__(self, fn: Callable[[str, str], bool]) -> None:
        self._fn = fn

    def is_permitted(self, resource: str, method: str) -> bool:
        return bool(self._fn(resource, method))
