"""SortWhitelist and sort-parameter parsing."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .exceptions import InvalidSortFieldError, TypeCoercionError
from .paths import FieldPath

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

_DIRECTIONS = {"asc": False, "ascending": False, "desc": True, "descending": True}


class SortWhitelist:
    """
    Per-resource sortable fields.

    - An empty allow-list means sorting is unrestricted.
    - An allow-list containing only the empty string disables sorting:
      every request is rejected, including an empty field name.
    """

    def __init__(self, fields: Iterable[str] = ()) -> None:
        self.fields = frozenset(fields)

    @property
    def disabled(self) -> bool:
        return self.fields == frozenset({""})

    @property
    def unrestricted(self) -> bool:
        return not self.fields

    def allow_sort(self, field: str) -> None:
        """Raise InvalidSortFieldError if *field* may not be sorted on."""
        if self.disabled or not field:
            raise InvalidSortFieldError(field, list(self.fields))
        if not self.unrestricted and field not in self.fields:
            raise InvalidSortFieldError(field, list(self.fields))


@dataclass(frozen=True)
class SortOrder:
    """One ordering term: public name, source path and direction."""

    name: str
    path: FieldPath
    descending: bool = False

    def __str__(self) -> str:
        return f"-{self.name}" if self.descending else self.name


def parse_direction(raw: Any) -> bool:
    """Return ``True`` for descending, ``False`` for ascending."""
    if raw is None or raw == "":
        return False
    text = str(raw).strip().lower()
    if text not in _DIRECTIONS:
        raise TypeCoercionError(raw, "sort direction", "direction")
    return _DIRECTIONS[text]


def parse_sort(
    raw: Any,
    whitelist: SortWhitelist,
    *,
    direction: Any = None,
    aliases: Mapping[str, FieldPath] | None = None,
) -> list[SortOrder]:
    """
    Parse ``sort`` into ordering terms.

    Accepts ``"name,-age"``, ``["name", "-age"]`` or ``"name:desc"``.
    ``direction`` applies to every term without an explicit ``-`` prefix
    or ``:dir`` suffix.  ``aliases`` maps public names to source paths;
    names without an alias are parsed as paths.
    """
    if raw is None:
        return []
    items: list[str] = []
    for chunk in raw if isinstance(raw, list | tuple) else [raw]:
        items.extend(str(chunk).split(","))

    default_desc = parse_direction(direction)
    aliases = aliases or {}
    orders: list[SortOrder] = []
    for item in items:
        text = item.strip()
        if not text:
            if whitelist.disabled:
                whitelist.allow_sort(text)
            continue
        name, descending = _split_term(text, default_desc)
        whitelist.allow_sort(name)
        path = aliases.get(name) or FieldPath.parse(name)
        orders.append(SortOrder(name=name, path=path, descending=descending))
    return orders


def _split_term(text: str, default_desc: bool) -> tuple[str, bool]:
    if text.startswith("-"):
        return text[1:].strip(), True
    if text.startswith("+"):
        return text[1:].strip(), False
    if ":" in text:
        name, _, dir_raw = text.partition(":")
        return name.strip(), parse_direction(dir_raw)
    return text, default_desc
