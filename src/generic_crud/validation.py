"""ValidationResult and declarative per-field constraints."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from .exceptions import ConfigurationError


def default_errors_factory() -> dict[str, list[str]]:
    """Factory for the mutable errors dict of ValidationResult."""
    return {}


@dataclass
class ValidationResult:
    """Collects field-level validation errors.

    Usage::

        result = ValidationResult.success()
        result = ValidationResult.failure({"name": ["is required"]})
    """

    errors: dict[str, list[str]] = field(default_factory=default_errors_factory)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    # ── Factory methods ──────────────────────────────────────────

    @classmethod
    def success(cls) -> ValidationResult:
        return cls()

    @classmethod
    def failure(cls, errors: dict[str, list[str]]) -> ValidationResult:
        return cls(errors=errors)

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError) -> ValidationResult:
        """Convert a Pydantic ``ValidationError`` to field errors."""
        result = cls()
        for error in exc.errors():
            loc = ".".join(str(p) for p in error.get("loc", ("__root__",))) or "__root__"
            result.add_error(loc, error.get("msg", "validation error"))
        return result

    # ── Merging ──────────────────────────────────────────────────

    def merge(self, other: ValidationResult) -> ValidationResult:
        """Merge another result into this one, combining all errors."""
        merged = {k: list(v) for k, v in self.errors.items()}
        for field_name, messages in other.errors.items():
            merged.setdefault(field_name, []).extend(messages)
        return ValidationResult(errors=merged)

    def add_error(self, field_name: str, message: str) -> None:
        """Add a single error for *field_name*."""
        self.errors.setdefault(field_name, []).append(message)

    def __contains__(self, field_name: object) -> bool:
        return field_name in self.errors

    def __bool__(self) -> bool:
        return self.is_valid


@dataclass(frozen=True)
class FieldConstraints:
    """
    Declarative constraints checked on deserialized values.

    Attributes:
        nullable: ``False`` rejects an explicit ``None``.
        min_length: Minimum ``len()`` for sized values.
        max_length: Maximum ``len()`` for sized values.
    """

    nullable: bool = True
    min_length: int | None = None
    max_length: int | None = None

    def __post_init__(self) -> None:
        if self.min_length is not None and self.min_length < 0:
            raise ConfigurationError("min_length must not be negative")
        if (
            self.min_length is not None
            and self.max_length is not None
            and self.max_length < self.min_length
        ):
            raise ConfigurationError("max_length is smaller than min_length")

    def check(self, value: Any) -> list[str]:
        """Return the constraint violations for *value*."""
        if value is None:
            return [] if self.nullable else ["must not be null"]
        messages: list[str] = []
        if self.min_length is None and self.max_length is None:
            return messages
        try:
            size = len(value)
        except TypeError:
            return messages
        if self.min_length is not None and size < self.min_length:
            messages.append(f"length must be at least {self.min_length}")
        if self.max_length is not None and size > self.max_length:
            messages.append(f"length must be at most {self.max_length}")
        return messages
