"""
DtoProjector: bidirectional mapping between model instances and the wire
representation.

Serialize
---------
For every readable field: resolve the source path on the instance, apply
``transform`` then ``format``, and store the result under the exposed
name.  The mapping's ``post_serialize`` hook may then wrap, rename or
augment the whole dict.

Deserialize
-----------
For every writable field present in the input (or with a default): coerce
the value, look up referenced entities through the session, and write it
at the resolved path.  ``post_deserialize`` runs after base assignment and
before validation.  Declarative constraints are checked first, then the
mapping's ``validator`` hook may add entries.  In strict mode a non-empty
error map raises :class:`ValidationError`; otherwise it is returned.

Nothing is added to or flushed through the session here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select

from .coercion import coerce_value
from .exceptions import (
    MissingRequiredFieldError,
    ReferenceNotFoundError,
    RequestError,
    TypeCoercionError,
    ValidationError,
)
from .validation import ValidationResult

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from sqlalchemy.orm import Session

    from .mapping import BoundDtoMapping, BoundFieldMapping

logger = logging.getLogger(__name__)

T_Model = TypeVar("T_Model")


@dataclass
class DeserializationResult(Generic[T_Model]):
    """Outcome of :meth:`DtoProjector.deserialize` in non-strict mode."""

    instance: T_Model
    errors: ValidationResult = field(default_factory=ValidationResult)

    @property
    def is_valid(self) -> bool:
        return self.errors.is_valid


class DtoProjector(Generic[T_Model]):
    """
    Serializes and deserializes instances of one model through a
    :class:`BoundDtoMapping`.

    Parameters
    ----------
    mapping:
        The bound mapping (see :meth:`DtoMapping.bind`).
    strict:
        Default validation mode for :meth:`deserialize`.
    """

    def __init__(self, mapping: BoundDtoMapping, *, strict: bool = True) -> None:
        self.mapping = mapping
        self.model: type[T_Model] = mapping.model
        self.strict = strict

    # ------------------------------------------------------------------
    # Model → wire
    # ------------------------------------------------------------------

    def serialize(self, instance: T_Model) -> dict[str, Any]:
        output: dict[str, Any] = {}
        for bound in self.mapping.readable:
            output[bound.name] = self._read_field(instance, bound)

        hook = self.mapping.mapping.post_serialize
        if hook is not None:
            output = hook(output, instance)
        return output

    def serialize_many(self, instances: Iterable[T_Model]) -> list[dict[str, Any]]:
        return [self.serialize(instance) for instance in instances]

    def to_dto(self, instance: T_Model) -> BaseModel:
        """Serialize and validate into the mapping's Pydantic DTO class."""
        dto_cls = self.mapping.mapping.dto_cls
        if dto_cls is None:
            raise TypeError(f"No DTO class configured for {self.model.__name__}")
        return dto_cls.model_validate(self.serialize(instance))

    @staticmethod
    def _read_field(instance: Any, bound: BoundFieldMapping) -> Any:
        fm = bound.mapping
        value = bound.plan.get_value(instance)
        if fm.reference and value is not None:
            value = getattr(value, fm.reference_key)
        if fm.transform is not None:
            value = fm.transform(value)
        if fm.format is not None:
            value = fm.format.format(value)
        return value

    # ------------------------------------------------------------------
    # Wire → model
    # ------------------------------------------------------------------

    def deserialize(
        self,
        data: Mapping[str, Any] | BaseModel,
        instance: T_Model | None = None,
        *,
        session: Session | None = None,
        partial: bool = False,
        strict: bool | None = None,
    ) -> DeserializationResult[T_Model]:
        """
        Map *data* onto *instance* (a new model instance when ``None``).

        Args:
            data: Input dict or Pydantic DTO instance.
            instance: Existing instance to update.
            session: Persistence context for reference look-ups and the
                ``post_deserialize`` hook.
            partial: Skip absent fields entirely (no defaults, no
                required check).
            strict: Override the projector's validation mode.

        Raises:
            ValidationError: In strict mode, if any error was collected.
        """
        strict = self.strict if strict is None else strict
        payload = self._to_payload(data)
        target: Any = instance if instance is not None else self.model()
        errors = ValidationResult()
        assigned: dict[str, Any] = {}

        for bound in self.mapping.writable:
            try:
                present, value = self._input_value(bound, payload, partial)
                if not present:
                    continue
                value = self._convert(bound, value, session)
            except RequestError as exc:
                errors.add_error(bound.name, str(exc))
                continue
            bound.plan.set_value(target, value)
            assigned[bound.name] = value

        hook = self.mapping.mapping.post_deserialize
        if hook is not None:
            hook(target, payload, session)

        errors = errors.merge(self._check_constraints(assigned))
        validator = self.mapping.mapping.validator
        if validator is not None:
            validator(target, errors)

        if not errors.is_valid:
            logger.debug(
                "Deserialization of %s failed: %s", self.model.__name__, errors.errors
            )
            if strict:
                raise ValidationError(errors.errors)
        return DeserializationResult(instance=target, errors=errors)

    def validate_input(self, data: Mapping[str, Any] | BaseModel) -> ValidationResult:
        """Validate *data* against the DTO class, if one is configured."""
        dto_cls = self.mapping.mapping.dto_cls
        if dto_cls is None or isinstance(data, BaseModel):
            return ValidationResult.success()
        try:
            dto_cls.model_validate(dict(data))
        except PydanticValidationError as exc:
            return ValidationResult.from_pydantic(exc)
        return ValidationResult.success()

    # -- internals -----------------------------------------------------

    @staticmethod
    def _to_payload(data: Mapping[str, Any] | BaseModel) -> dict[str, Any]:
        if isinstance(data, BaseModel):
            return data.model_dump(exclude_unset=True)
        return dict(data)

    @staticmethod
    def _input_value(
        bound: BoundFieldMapping, payload: Mapping[str, Any], partial: bool
    ) -> tuple[bool, Any]:
        """Return ``(present, value)`` after default substitution."""
        fm = bound.mapping
        if fm.name in payload:
            return True, payload[fm.name]
        if partial:
            return False, None
        if fm.has_default:
            return True, fm.default_value()
        if fm.required:
            raise MissingRequiredFieldError(fm.name)
        return False, None

    def _convert(
        self, bound: BoundFieldMapping, value: Any, session: Session | None
    ) -> Any:
        fm = bound.mapping
        if fm.reference:
            return self._lookup_reference(bound, value, session)
        value_type = bound.value_type
        if value is None or value_type is None:
            return value
        if fm.value_type is None and not isinstance(value, str):
            return value
        return coerce_value(value, value_type, field=fm.name)

    @staticmethod
    def _lookup_reference(
        bound: BoundFieldMapping, value: Any, session: Session | None
    ) -> Any:
        if value is None:
            return None
        target = bound.reference_target
        if isinstance(value, target):
            return value
        if session is None:
            raise TypeCoercionError(value, target.__name__, bound.name)
        key = value
        if bound.key_type is not None:
            key = coerce_value(value, bound.key_type, field=bound.name)
        key_name = bound.mapping.reference_key
        if bound.key_is_primary:
            related = session.get(target, key)
        else:
            related = session.scalars(
                select(target).where(getattr(target, key_name) == key)
            ).first()
        if related is None:
            raise ReferenceNotFoundError(bound.name, target.__name__, value, key_name)
        return related

    def _check_constraints(self, assigned: Mapping[str, Any]) -> ValidationResult:
        result = ValidationResult()
        for name, value in assigned.items():
            bound = self.mapping.get(name)
            if bound is None:
                continue
            for message in bound.mapping.constraints.check(value):
                result.add_error(name, message)
        return result

