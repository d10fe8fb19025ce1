from enum import Enum


class FilterOperation(str, Enum):
    """Supported filter operations."""

    EQUAL = "eq"
    GREATER = "gt"
    GREATER_OR_EQUAL = "gte"
    LESS = "lt"
    LESS_OR_EQUAL = "lte"
    BETWEEN = "between"
    CONTAINS = "contains"
    IN = "in"

    @property
    def expects_list(self) -> bool:
        """True if the raw value is a delimited list."""
        return self in (FilterOperation.BETWEEN, FilterOperation.IN)


class ValueType(str, Enum):
    """Declared value types used to coerce request-supplied strings."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    TIME = "time"
    UUID = "uuid"
