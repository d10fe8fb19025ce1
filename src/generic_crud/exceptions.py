"""
Exception hierarchy for generic-crud.

All exceptions inherit from ``CrudError`` and provide ``to_dict()`` for
API-friendly error responses.  ``ConfigurationError`` is raised while
resources are registered and is fatal at startup; everything derived from
``RequestError`` describes malformed caller input and is never retried.
"""

from __future__ import annotations

from difflib import get_close_matches
from typing import Any


class CrudError(Exception):
    """Root exception for the generic-crud toolkit."""

    code = "CRUD_ERROR"

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": str(self),
        }


class ConfigurationError(CrudError):
    """Invalid resource, mapping or filter configuration."""

    code = "CONFIGURATION_ERROR"


class RequestError(CrudError):
    """Base class for request-scoped errors caused by caller input."""

    code = "REQUEST_ERROR"


class PathResolutionError(RequestError):
    """
    A field path does not resolve against a model.

    Raised when a segment does not exist on the current hop's model, or
    when a non-terminal segment is not a navigable relationship.  Provides
    fuzzy-matched suggestions for likely intended segments.
    """

    code = "PATH_RESOLUTION_ERROR"

    def __init__(
        self,
        segment: str,
        model_name: str,
        full_path: str,
        *,
        available: list[str] | None = None,
        reason: str | None = None,
    ) -> None:
        self.segment = segment
        self.model_name = model_name
        self.full_path = full_path
        self.available = sorted(available or [])
        self.suggestions = get_close_matches(segment, self.available, n=3, cutoff=0.6)

        if reason is None:
            reason = f"'{model_name}' has no attribute '{segment}'"
        message = f"Cannot resolve '{full_path}': {reason}."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": str(self),
            "segment": self.segment,
            "model": self.model_name,
            "path": self.full_path,
            "suggestions": self.suggestions,
        }


class TypeCoercionError(RequestError):
    """A raw value could not be coerced to the declared value type."""

    code = "TYPE_COERCION_ERROR"

    def __init__(self, value: Any, value_type: str, field: str | None = None) -> None:
        self.value = value
        self.value_type = value_type
        self.field = field
        target = f" for '{field}'" if field else ""
        super().__init__(f"Cannot convert {value!r} to {value_type}{target}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": str(self),
            "field": self.field,
            "value_type": self.value_type,
        }


class ArityError(RequestError):
    """An operation received the wrong number of values."""

    code = "ARITY_ERROR"

    def __init__(self, field: str, expected: int, received: int) -> None:
        self.field = field
        self.expected = expected
        self.received = received
        super().__init__(
            f"Filter '{field}' expects exactly {expected} values, got {received}"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": str(self),
            "field": self.field,
            "expected": self.expected,
            "received": self.received,
        }


class InvalidSortFieldError(RequestError):
    """Ordering was requested on a field outside the sort allow-list."""

    code = "INVALID_SORT_FIELD"

    def __init__(self, field: str, allowed: list[str] | None = None) -> None:
        self.field = field
        self.allowed = sorted(f for f in (allowed or []) if f)
        if self.allowed:
            message = (
                f"Field '{field}' is not sortable. "
                f"Sortable fields: {', '.join(self.allowed)}"
            )
        else:
            message = f"Field '{field}' is not sortable: sorting is disabled"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": str(self),
            "field": self.field,
            "allowed": self.allowed,
        }


class UnknownFilterError(RequestError):
    """A criterion referenced a filter name the filter set does not declare."""

    code = "UNKNOWN_FILTER"

    def __init__(self, name: str, available: list[str]) -> None:
        self.name = name
        self.suggestions = get_close_matches(name, available, n=3, cutoff=0.6)
        message = f"Unknown filter '{name}'."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(message)


class MissingRequiredFieldError(RequestError):
    """A required field is absent from the input and has no default."""

    code = "MISSING_REQUIRED_FIELD"

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"Field '{field}' is required")

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": str(self),
            "field": self.field,
        }


class ReferenceNotFoundError(RequestError):
    """A reference field names an entity that does not exist."""

    code = "REFERENCE_NOT_FOUND"

    def __init__(self, field: str, target: str, value: Any, key: str = "id") -> None:
        self.field = field
        self.target = target
        self.value = value
        super().__init__(f"{target} with {key}={value!r} does not exist")


class ValidationError(RequestError):
    """Deserialized input failed validation.

    Carries structured errors: ``{field: [messages]}``.
    """

    code = "VALIDATION_ERROR"

    def __init__(self, errors: dict[str, list[str]] | str | None = None) -> None:
        if isinstance(errors, str):
            self.errors: dict[str, list[str]] = {"__root__": [errors]}
        elif errors is None:
            self.errors = {}
        else:
            self.errors = errors
        super().__init__(str(self.errors))

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": "Validation failed",
            "errors": self.errors,
        }


class NotFoundError(RequestError):
    """No record matches the lookup value."""

    code = "NOT_FOUND"

    def __init__(self, resource: str, lookup: Any) -> None:
        self.resource = resource
        self.lookup = lookup
        super().__init__(f"{resource} with lookup={lookup!r} not found")


class PermissionDeniedError(RequestError):
    """The authorization layer denied the operation."""

    code = "PERMISSION_DENIED"

    def __init__(self, resource: str, method: str) -> None:
        self.resource = resource
        self.method = method
        super().__init__(f"{method} on '{resource}' is not permitted")


__all__: list[str] = [
    "ArityError",
    "ConfigurationError",
    "CrudError",
    "InvalidSortFieldError",
    "MissingRequiredFieldError",
    "NotFoundError",
    "PathResolutionError",
    "PermissionDeniedError",
    "ReferenceNotFoundError",
    "RequestError",
    "TypeCoercionError",
    "UnknownFilterError",
    "ValidationError",
]
