"""
Declarative DTO field mappings.

A :class:`DtoMapping` lists the :class:`FieldMapping` of every exposed
field and the hooks that run around serialization.  It is built in code
with :class:`DtoMappingBuilder` and bound to a model with
:meth:`DtoMapping.bind`, which resolves every source path once; binding
failures are :class:`ConfigurationError` and are meant to surface at
startup.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from sqlalchemy import inspect as sa_inspect

from .exceptions import ConfigurationError, PathResolutionError
from .formatting import NumberFormat, as_number_format
from .operators import ValueType
from .paths import FieldPath, default_resolver
from .validation import FieldConstraints

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from pydantic import BaseModel

    from .paths import PathResolver, TraversalPlan
    from .validation import ValidationResult

    Transform = Callable[[Any], Any]
    PostSerializeHook = Callable[[dict[str, Any], Any], dict[str, Any]]
    PostDeserializeHook = Callable[[Any, dict[str, Any], Any], None]
    ValidatorHook = Callable[[Any, ValidationResult], None]

logger = logging.getLogger(__name__)


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


@dataclass(frozen=True)
class FieldMapping:
    """
    Mapping of one exposed DTO field onto a model path.

    Attributes:
        name: Exposed (wire) field name.
        source: Source path on the model; defaults to ``name``.
        format: Numeric output format applied after ``transform``.
        transform: Function applied to the raw resolved value on output.
        required: Input must contain the field unless ``default`` is set.
        default: Substituted when the field is absent from input.
        read_only: Serialized, never written from input.
        write_only: Written from input, never serialized.
        constraints: Declarative checks run after deserialization.
        reference: The field carries the identifier of a related entity;
            ``source`` must end on a to-one relationship.
        reference_key: Attribute of the related entity used as identifier.
        value_type: Type used to coerce string input; inferred from the
            column when omitted.
    """

    name: str
    source: FieldPath
    format: NumberFormat | None = None
    transform: Transform | None = None
    required: bool = False
    default: Any = MISSING
    read_only: bool = False
    write_only: bool = False
    constraints: FieldConstraints = field(default_factory=FieldConstraints)
    reference: bool = False
    reference_key: str = "id"
    value_type: ValueType | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ConfigurationError("Field name must not be empty")
        if self.read_only and self.write_only:
            raise ConfigurationError(
                f"Field '{self.name}' cannot be both read-only and write-only"
            )

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING

    @property
    def readable(self) -> bool:
        return not self.write_only

    @property
    def writable(self) -> bool:
        return not self.read_only

    def default_value(self) -> Any:
        """Return the default, calling it if it is a zero-argument factory."""
        return self.default() if callable(self.default) else self.default


@dataclass(frozen=True)
class BoundFieldMapping:
    """
    A FieldMapping together with its resolved traversal plan.

    For reference fields ``key_plan`` is the identifier attribute on the
    related model and ``key_is_primary`` tells whether it is that model's
    sole primary key (looked up through the identity map).
    """

    mapping: FieldMapping
    plan: TraversalPlan
    key_plan: TraversalPlan | None = None
    key_is_primary: bool = False

    @property
    def name(self) -> str:
        return self.mapping.name

    @property
    def value_type(self) -> ValueType | None:
        if self.mapping.value_type is not None:
            return self.mapping.value_type
        if self.plan.is_relation or self.plan.terminal.python_type is None:
            return None
        return self.plan.value_type

    @property
    def key_type(self) -> ValueType | None:
        """Type reference identifiers are coerced to."""
        if self.mapping.value_type is not None:
            return self.mapping.value_type
        if self.key_plan is None or self.key_plan.terminal.python_type is None:
            return None
        return self.key_plan.value_type

    @property
    def reference_target(self) -> type[Any]:
        target = self.plan.terminal.target
        assert target is not None
        return target


@dataclass(frozen=True)
class DtoMapping:
    """Exposed fields plus the hooks around (de)serialization."""

    fields: tuple[FieldMapping, ...]
    post_serialize: PostSerializeHook | None = None
    post_deserialize: PostDeserializeHook | None = None
    validator: ValidatorHook | None = None
    dto_cls: type[BaseModel] | None = None

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for fm in self.fields:
            if fm.name in seen:
                raise ConfigurationError(f"Duplicate field name '{fm.name}'")
            seen.add(fm.name)

    def bind(
        self, model: type[Any], resolver: PathResolver | None = None
    ) -> BoundDtoMapping:
        """
        Resolve every source path against *model*.

        Raises:
            ConfigurationError: If a path does not resolve, a reference
                field does not end on a to-one relationship, or a writable
                field is reached through a to-many relationship.
        """
        res = resolver or default_resolver
        bound = tuple(_bind_field(model, fm, res) for fm in self.fields)
        logger.debug("Bound %d fields onto %s", len(bound), model.__name__)
        return BoundDtoMapping(model=model, mapping=self, fields=bound)


def _bind_field(model: type[Any], fm: FieldMapping, resolver: PathResolver) -> BoundFieldMapping:
    try:
        plan = resolver.resolve(model, fm.source)
    except PathResolutionError as exc:
        raise ConfigurationError(
            f"Field '{fm.name}' of {model.__name__}: {exc}"
        ) from exc

    if fm.writable and plan.traverses_collection:
        raise ConfigurationError(
            f"Writable field '{fm.name}' cannot be reached through a to-many relationship"
        )
    if not fm.reference:
        if plan.is_relation:
            raise ConfigurationError(
                f"Field '{fm.name}' ends on relationship '{plan.terminal.name}'; "
                f"declare it with reference=True"
            )
        return BoundFieldMapping(mapping=fm, plan=plan)

    target = plan.terminal.target
    if target is None or plan.terminal.uselist:
        raise ConfigurationError(
            f"Reference field '{fm.name}' must end on a to-one relationship"
        )
    try:
        key_plan = resolver.resolve_scalar(target, fm.reference_key)
    except PathResolutionError as exc:
        raise ConfigurationError(
            f"Reference field '{fm.name}' of {model.__name__}: {exc}"
        ) from exc
    return BoundFieldMapping(
        mapping=fm,
        plan=plan,
        key_plan=key_plan,
        key_is_primary=_primary_key_names(target) == [fm.reference_key],
    )


def _primary_key_names(model: type[Any]) -> list[str]:
    mapper = sa_inspect(model)
    return [mapper.get_property_by_column(col).key for col in mapper.primary_key]


@dataclass(frozen=True)
class BoundDtoMapping:
    """A DtoMapping whose paths are resolved against ``model``."""

    model: type[Any]
    mapping: DtoMapping
    fields: tuple[BoundFieldMapping, ...]

    @property
    def readable(self) -> tuple[BoundFieldMapping, ...]:
        return tuple(f for f in self.fields if f.mapping.readable)

    @property
    def writable(self) -> tuple[BoundFieldMapping, ...]:
        return tuple(f for f in self.fields if f.mapping.writable)

    def get(self, name: str) -> BoundFieldMapping | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def sort_aliases(self) -> dict[str, FieldPath]:
        """Exposed names usable in sort parameters, mapped to source paths."""
        return {
            f.name: f.plan.path
            for f in self.fields
            if f.mapping.readable and not f.plan.is_relation
        }


class DtoMappingBuilder:
    """
    Fluent builder for :class:`DtoMapping`.

    Example::

        mapping = (
            DtoMappingBuilder()
            .field("id", read_only=True)
            .field("name", required=True, max_length=100)
            .field("country", source="country__name", read_only=True)
            .field("price", format="#,##0.00", transform="cents")
            .transform("cents", lambda v: v / 100)
            .build()
        )

    Transforms may be given inline or by name; named transforms are looked
    up in the builder's table when ``build()`` runs.
    """

    def __init__(self) -> None:
        self._fields: list[tuple[dict[str, Any], str | None]] = []
        self._transforms: dict[str, Transform] = {}
        self._post_serialize: PostSerializeHook | None = None
        self._post_deserialize: PostDeserializeHook | None = None
        self._validator: ValidatorHook | None = None
        self._dto_cls: type[BaseModel] | None = None

    def field(
        self,
        name: str,
        *,
        source: str | FieldPath | None = None,
        format: NumberFormat | str | None = None,  # noqa: A002
        transform: Transform | str | None = None,
        required: bool = False,
        default: Any = MISSING,
        read_only: bool = False,
        write_only: bool = False,
        nullable: bool = True,
        min_length: int | None = None,
        max_length: int | None = None,
        reference: bool = False,
        reference_key: str = "id",
        value_type: ValueType | str | None = None,
    ) -> DtoMappingBuilder:
        """Declare one exposed field."""
        transform_name = transform if isinstance(transform, str) else None
        kwargs: dict[str, Any] = {
            "name": name,
            "source": FieldPath.parse(source or name),
            "format": as_number_format(format),
            "transform": None if transform_name else transform,
            "required": required,
            "default": default,
            "read_only": read_only,
            "write_only": write_only,
            "constraints": FieldConstraints(
                nullable=nullable, min_length=min_length, max_length=max_length
            ),
            "reference": reference,
            "reference_key": reference_key,
            "value_type": ValueType(value_type) if value_type is not None else None,
        }
        self._fields.append((kwargs, transform_name))
        return self

    def transform(self, name: str, fn: Transform) -> DtoMappingBuilder:
        """Register a named transform function."""
        if name in self._transforms:
            raise ConfigurationError(f"Transform '{name}' registered twice")
        self._transforms[name] = fn
        return self

    def transforms(self, table: Mapping[str, Transform]) -> DtoMappingBuilder:
        for name, fn in table.items():
            self.transform(name, fn)
        return self

    def post_serialize(self, fn: PostSerializeHook) -> DtoMappingBuilder:
        self._post_serialize = fn
        return self

    def post_deserialize(self, fn: PostDeserializeHook) -> DtoMappingBuilder:
        self._post_deserialize = fn
        return self

    def validator(self, fn: ValidatorHook) -> DtoMappingBuilder:
        self._validator = fn
        return self

    def dto(self, dto_cls: type[BaseModel]) -> DtoMappingBuilder:
        """Use a Pydantic model as the wire schema."""
        self._dto_cls = dto_cls
        return self

    def build(self) -> DtoMapping:
        """
        Finalise the mapping.

        Raises:
            ConfigurationError: If a named transform is unknown or the
                field declarations are inconsistent.
        """
        fields: list[FieldMapping] = []
        for kwargs, transform_name in self._fields:
            if transform_name is not None:
                if transform_name not in self._transforms:
                    raise ConfigurationError(
                        f"Field '{kwargs['name']}' uses unknown transform '{transform_name}'"
                    )
                kwargs = {**kwargs, "transform": self._transforms[transform_name]}
            fields.append(FieldMapping(**kwargs))
        return DtoMapping(
            fields=tuple(fields),
            post_serialize=self._post_serialize,
            post_deserialize=self._post_deserialize,
            validator=self._validator,
            dto_cls=self._dto_cls,
        )
