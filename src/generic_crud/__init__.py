from .authorization import AllowAll, CallableAuthorizer, IAuthorizer, MethodPermissions
from .coercion import coerce_value, parse_list_value
from .exceptions import (
    ArityError,
    ConfigurationError,
    CrudError,
    InvalidSortFieldError,
    MissingRequiredFieldError,
    NotFoundError,
    PathResolutionError,
    PermissionDeniedError,
    ReferenceNotFoundError,
    RequestError,
    TypeCoercionError,
    UnknownFilterError,
    ValidationError,
)
from .filters import Filter, FilterSet, SearchCriteria
from .formatting import NumberFormat
from .mapping import DtoMapping, DtoMappingBuilder, FieldMapping
from .memory import MemoryOperator, MemoryOperatorRegistry, filter_objects, matches
from .operators import FilterOperation, ValueType
from .pagination import Page, PageRequest, PaginationParser
from .paths import FieldPath, PathResolver, TraversalPlan, resolve_path
from .projector import DeserializationResult, DtoProjector
from .query import ListQuery, QueryParser
from .registry import BoundResource, Resource, ResourceRegistry
from .service import CrudService
from .settings import CrudSettings
from .sorting import SortOrder, SortWhitelist
from .validation import FieldConstraints, ValidationResult

__all__ = [
    # Configuration
    "CrudSettings",
    "Resource",
    "BoundResource",
    "ResourceRegistry",
    "DtoMapping",
    "DtoMappingBuilder",
    "FieldMapping",
    "FieldConstraints",
    "NumberFormat",
    # Paths
    "FieldPath",
    "PathResolver",
    "TraversalPlan",
    "resolve_path",
    # Filtering / sorting / paging
    "FilterOperation",
    "ValueType",
    "Filter",
    "FilterSet",
    "SearchCriteria",
    "SortOrder",
    "SortWhitelist",
    "Page",
    "PageRequest",
    "PaginationParser",
    "ListQuery",
    "QueryParser",
    "MemoryOperator",
    "MemoryOperatorRegistry",
    "filter_objects",
    "matches",
    # Mapping
    "DtoProjector",
    "DeserializationResult",
    "ValidationResult",
    # Controller
    "CrudService",
    "IAuthorizer",
    "AllowAll",
    "CallableAuthorizer",
    "MethodPermissions",
    # Utilities
    "coerce_value",
    "parse_list_value",
    # Exceptions
    "CrudError",
    "ConfigurationError",
    "RequestError",
    "PathResolutionError",
    "TypeCoercionError",
    "ArityError",
    "InvalidSortFieldError",
    "UnknownFilterError",
    "MissingRequiredFieldError",
    "ReferenceNotFoundError",
    "ValidationError",
    "NotFoundError",
    "PermissionDeniedError",
]
