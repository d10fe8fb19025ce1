"""
Resource registration.

A :class:`Resource` is the declarative configuration of one endpoint: the
model, its DTO mapping, the filters it exposes, the sortable fields and
the lookup field.  :meth:`ResourceRegistry.register` resolves every path
the configuration mentions, so a typo in a mapping or a filter fails at
startup with :class:`ConfigurationError` instead of on the first request.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .exceptions import ConfigurationError, PathResolutionError
from .filters import FilterSet
from .operators import ValueType
from .paths import FieldPath, default_resolver
from .projector import DtoProjector
from .query import QueryParser
from .settings import DEFAULT_SETTINGS, CrudSettings
from .sorting import SortWhitelist

if TYPE_CHECKING:
    from .mapping import BoundDtoMapping, DtoMapping
    from .paths import PathResolver, TraversalPlan

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resource:
    """
    Configuration of one CRUD resource.

    Attributes:
        name: Unique resource name (also passed to the authorizer).
        model: SQLAlchemy declarative model class.
        mapping: DTO field mapping.
        filters: Named filters accepted on list requests.
        sort_whitelist: Sortable fields (exposed names or model paths).
        lookup_field: Model path identifying a single record.
        lookup_type: Type the raw lookup value is coerced to; inferred
            from the column when omitted.
    """

    name: str
    model: type[Any]
    mapping: DtoMapping
    filters: FilterSet = field(default_factory=FilterSet)
    sort_whitelist: SortWhitelist = field(default_factory=SortWhitelist)
    lookup_field: str = "id"
    lookup_type: ValueType | None = None


@dataclass(frozen=True)
class BoundResource:
    """A registered :class:`Resource` with every path resolved."""

    resource: Resource
    mapping: BoundDtoMapping
    lookup_plan: TraversalPlan
    settings: CrudSettings

    @property
    def name(self) -> str:
        return self.resource.name

    @property
    def model(self) -> type[Any]:
        return self.resource.model

    @property
    def lookup_type(self) -> ValueType:
        if self.resource.lookup_type is not None:
            return self.resource.lookup_type
        return self.lookup_plan.value_type

    def projector(self, *, strict: bool | None = None) -> DtoProjector[Any]:
        if strict is None:
            strict = self.settings.strict_validation
        return DtoProjector(self.mapping, strict=strict)

    def query_parser(self) -> QueryParser:
        return QueryParser(
            self.resource.filters,
            self.resource.sort_whitelist,
            sort_aliases=self.mapping.sort_aliases(),
            settings=self.settings,
        )

    def describe(self) -> dict[str, Any]:
        """Endpoint documentation: fields, filters and sortable names."""
        return {
            "name": self.name,
            "fields": [f.name for f in self.mapping.readable],
            "filters": self.resource.filters.describe(),
            "sortable": sorted(f for f in self.resource.sort_whitelist.fields if f),
            "lookup": self.resource.lookup_field,
        }


class ResourceRegistry(Mapping[str, BoundResource]):
    """
    Process-wide table of registered resources.

    Usage::

        registry = ResourceRegistry()
        registry.register(
            Resource(
                name="cities",
                model=City,
                mapping=city_mapping,
                filters=FilterSet([Filter("country", "country__name")]),
                sort_whitelist=SortWhitelist({"name", "population"}),
            )
        )
    """

    def __init__(
        self,
        *,
        resolver: PathResolver | None = None,
        settings: CrudSettings = DEFAULT_SETTINGS,
    ) -> None:
        self._resolver = resolver or default_resolver
        self._settings = settings
        self._resources: dict[str, BoundResource] = {}

    def register(self, resource: Resource) -> BoundResource:
        """
        Bind *resource* and add it to the registry.

        Raises:
            ConfigurationError: On a duplicate name or on any path of the
                mapping, filters, sort allow-list or lookup field that does
                not resolve.
        """
        if not resource.name:
            raise ConfigurationError("Resource name must not be empty")
        if resource.name in self._resources:
            raise ConfigurationError(f"Resource '{resource.name}' is already registered")

        mapping = resource.mapping.bind(resource.model, self._resolver)
        self._check_filters(resource)
        self._check_sort_fields(resource, mapping)
        lookup_plan = self._resolve(resource, resource.lookup_field, "lookup field:")

        bound = BoundResource(
            resource=resource,
            mapping=mapping,
            lookup_plan=lookup_plan,
            settings=self._settings,
        )
        self._resources[resource.name] = bound
        logger.info(
            "Registered resource '%s' (%s): %d fields, %d filters",
            resource.name,
            resource.model.__name__,
            len(mapping.fields),
            len(resource.filters),
        )
        return bound

    def __getitem__(self, name: str) -> BoundResource:
        return self._resources[name]

    def require(self, name: str) -> BoundResource:
        """Return the resource called *name* or raise ConfigurationError."""
        try:
            return self._resources[name]
        except KeyError:
            raise ConfigurationError(f"Unknown resource '{name}'") from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._resources)

    def __len__(self) -> int:
        return len(self._resources)

    # -- internals -----------------------------------------------------------

    def _resolve(
        self, resource: Resource, path: str | FieldPath, what: str
    ) -> TraversalPlan:
        try:
            return self._resolver.resolve_scalar(resource.model, path)
        except PathResolutionError as exc:
            raise ConfigurationError(
                f"Resource '{resource.name}': {what} {exc}"
            ) from exc

    def _check_filters(self, resource: Resource) -> None:
        for flt in resource.filters.values():
            self._resolve(resource, flt.path, f"filter '{flt.name}':")

    def _check_sort_fields(self, resource: Resource, mapping: BoundDtoMapping) -> None:
        aliases = mapping.sort_aliases()
        for name in resource.sort_whitelist.fields:
            if not name:
                continue
            path = aliases.get(name) or FieldPath.parse(name)
            plan = self._resolve(resource, path, f"sort field '{name}':")
            if plan.traverses_collection:
                raise ConfigurationError(
                    f"Resource '{resource.name}': sort field '{name}' crosses a "
                    f"to-many relationship"
                )
