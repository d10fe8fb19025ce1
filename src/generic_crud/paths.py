"""
Field-path resolution against SQLAlchemy declarative models.

A path such as ``"country__continent__name"`` is parsed once into a
:class:`FieldPath` (an ordered tuple of segments) and resolved against a
root model into a :class:`TraversalPlan`: one :class:`PathHop` per
segment, every hop but the last being a relationship.

Resolution is purely structural (mapper inspection, no I/O).  Plans are
immutable and memoized per ``(model, path)`` by :class:`PathResolver`;
the cache is read without locking and written under a lock, at most once
per distinct key.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import NoInspectionAvailable
from sqlalchemy.ext.hybrid import HybridExtensionType

from .coercion import infer_value_type
from .exceptions import PathResolutionError

if TYPE_CHECKING:
    from sqlalchemy.orm import Mapper

    from .operators import ValueType

logger = logging.getLogger(__name__)

SEPARATOR = "__"


@dataclass(frozen=True)
class FieldPath:
    """Pre-parsed, ordered list of path segments."""

    segments: tuple[str, ...]

    @classmethod
    def parse(cls, path: str | FieldPath | list[str] | tuple[str, ...]) -> FieldPath:
        if isinstance(path, FieldPath):
            return path
        if isinstance(path, list | tuple):
            return cls(tuple(path))
        return cls(tuple(path.split(SEPARATOR)))

    def __str__(self) -> str:
        return SEPARATOR.join(self.segments)

    def __len__(self) -> int:
        return len(self.segments)

    @property
    def dotted(self) -> str:
        """Dot-notation form, as used in error paths and hook contexts."""
        return ".".join(self.segments)


@dataclass(frozen=True)
class PathHop:
    """
    One resolved segment.

    Attributes:
        name: Attribute name on ``owner``.
        owner: Model class the attribute is declared on.
        target: Related model class for relationship hops, else ``None``.
        uselist: ``True`` for to-many relationships.
        python_type: Python type of a scalar column, when known.
    """

    name: str
    owner: type[Any]
    target: type[Any] | None = None
    uselist: bool = False
    python_type: type | None = None

    @property
    def is_relation(self) -> bool:
        return self.target is not None

    def attribute(self) -> Any:
        """The instrumented class attribute for this hop."""
        return getattr(self.owner, self.name)


@dataclass(frozen=True)
class TraversalPlan:
    """Immutable result of resolving a :class:`FieldPath` on a root model."""

    root: type[Any]
    path: FieldPath
    hops: tuple[PathHop, ...]

    def __len__(self) -> int:
        return len(self.hops)

    @property
    def terminal(self) -> PathHop:
        return self.hops[-1]

    @property
    def relations(self) -> tuple[PathHop, ...]:
        """The relationship hops leading to the terminal attribute."""
        return self.hops[:-1]

    @property
    def is_relation(self) -> bool:
        """True if the terminal hop is itself a relationship."""
        return self.terminal.is_relation

    @property
    def is_nested(self) -> bool:
        return len(self.hops) > 1

    @property
    def traverses_collection(self) -> bool:
        return any(hop.uselist for hop in self.relations)

    @property
    def value_type(self) -> ValueType:
        return infer_value_type(self.terminal.python_type)

    def require_scalar(self) -> TraversalPlan:
        """Return ``self`` or raise if the path ends on a relationship."""
        if self.is_relation:
            hop = self.terminal
            raise PathResolutionError(
                hop.name,
                hop.owner.__name__,
                str(self.path),
                reason=f"'{hop.name}' is a relationship, not a scalar attribute",
            )
        return self

    # -- instance access -----------------------------------------------------

    def get_value(self, instance: Any) -> Any:
        """
        Read the value at this path from *instance*.

        Returns ``None`` when an intermediate relation is ``None``; a
        to-many hop maps the remaining path over the collection.
        """
        return _read(instance, [hop.name for hop in self.hops])

    def set_value(self, instance: Any, value: Any) -> None:
        """
        Write *value* at this path on *instance*.

        Missing to-one intermediate objects are created with their model's
        no-argument constructor.
        """
        obj = instance
        for hop in self.relations:
            child = getattr(obj, hop.name)
            if child is None:
                assert hop.target is not None
                child = hop.target()
                setattr(obj, hop.name, child)
            obj = child
        setattr(obj, self.terminal.name, value)


def _read(obj: Any, names: list[str]) -> Any:
    for index, name in enumerate(names):
        if obj is None:
            return None
        if isinstance(obj, list | tuple | set):
            rest = names[index:]
            return [_read(item, rest) for item in obj]
        obj = getattr(obj, name, None)
    if isinstance(obj, list | tuple | set):
        return list(obj)
    return obj


class PathResolver:
    """
    Resolves field paths into :class:`TraversalPlan` objects.

    Usage::

        resolver = PathResolver()
        plan = resolver.resolve(City, "country__continent__name")
        [hop.name for hop in plan.hops]
        # ['country', 'continent', 'name']
    """

    def __init__(self) -> None:
        self._cache: dict[tuple[type[Any], FieldPath], TraversalPlan] = {}
        self._lock = threading.Lock()

    def resolve(
        self, model: type[Any], path: str | FieldPath | list[str] | tuple[str, ...]
    ) -> TraversalPlan:
        """
        Resolve *path* against *model*.

        Raises:
            PathResolutionError: If a segment does not exist or a
                non-terminal segment is not a relationship.
        """
        field_path = FieldPath.parse(path)
        key = (model, field_path)
        plan = self._cache.get(key)
        if plan is not None:
            return plan

        plan = self._build(model, field_path)
        with self._lock:
            plan = self._cache.setdefault(key, plan)
        logger.debug("Resolved %s on %s (%d hops)", field_path, model.__name__, len(plan))
        return plan

    def resolve_scalar(
        self, model: type[Any], path: str | FieldPath | list[str] | tuple[str, ...]
    ) -> TraversalPlan:
        """Resolve and require the path to end on a scalar attribute."""
        return self.resolve(model, path).require_scalar()

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)

    # -- internals -----------------------------------------------------------

    def _build(self, model: type[Any], path: FieldPath) -> TraversalPlan:
        full = str(path)
        if not path.segments:
            raise PathResolutionError("", model.__name__, full, reason="empty path")

        hops: list[PathHop] = []
        current = model
        last = len(path.segments) - 1
        for index, segment in enumerate(path.segments):
            mapper = _mapper_for(current, segment, full)
            if not segment:
                raise PathResolutionError(
                    segment,
                    current.__name__,
                    full,
                    reason=f"empty segment at position {index}",
                )
            hop = _resolve_segment(mapper, current, segment, full)
            if index < last and not hop.is_relation:
                raise PathResolutionError(
                    segment,
                    current.__name__,
                    full,
                    reason=f"'{segment}' is not a relationship and cannot be traversed",
                )
            hops.append(hop)
            if hop.target is not None:
                current = hop.target
        return TraversalPlan(root=model, path=path, hops=tuple(hops))


def _mapper_for(model: type[Any], segment: str, full: str) -> Mapper[Any]:
    try:
        return sa_inspect(model)
    except NoInspectionAvailable as exc:
        raise PathResolutionError(
            segment,
            getattr(model, "__name__", repr(model)),
            full,
            reason=f"'{model!r}' is not a mapped class",
        ) from exc


def _available(mapper: Mapper[Any]) -> list[str]:
    names = [attr.key for attr in mapper.column_attrs]
    names.extend(rel.key for rel in mapper.relationships)
    names.extend(
        key
        for key, desc in mapper.all_orm_descriptors.items()
        if getattr(desc, "extension_type", None) is HybridExtensionType.HYBRID_PROPERTY
    )
    return names


def _column_python_type(prop: Any) -> type | None:
    try:
        return prop.columns[0].type.python_type  # type: ignore[no-any-return]
    except (NotImplementedError, AttributeError, IndexError):
        return None


def _resolve_segment(
    mapper: Mapper[Any], owner: type[Any], segment: str, full: str
) -> PathHop:
    relationships = mapper.relationships
    if segment in relationships:
        rel = relationships[segment]
        return PathHop(
            name=segment,
            owner=owner,
            target=rel.mapper.class_,
            uselist=bool(rel.uselist),
        )

    column_attrs = mapper.column_attrs
    if segment in column_attrs:
        return PathHop(
            name=segment,
            owner=owner,
            python_type=_column_python_type(column_attrs[segment]),
        )

    descriptor = mapper.all_orm_descriptors.get(segment)
    if (
        descriptor is not None
        and getattr(descriptor, "extension_type", None)
        is HybridExtensionType.HYBRID_PROPERTY
    ):
        return PathHop(name=segment, owner=owner)

    raise PathResolutionError(
        segment, owner.__name__, full, available=_available(mapper)
    )


default_resolver = PathResolver()


def resolve_path(
    model: type[Any], path: str | FieldPath | list[str] | tuple[str, ...]
) -> TraversalPlan:
    """Resolve *path* with the process-wide :data:`default_resolver`."""
    return default_resolver.resolve(model, path)
