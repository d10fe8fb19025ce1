"""
SearchCriteria-to-SQLAlchemy compilation.

Public API:
    - ``build_predicate(model, criteria)``: AND of compiled criteria as a
      ``ColumnElement[bool]``
    - ``apply_ordering(stmt, model, orders)`` / ``apply_page(stmt, page)``
    - ``build_select(model, query)``: rows and count statements for a
      :class:`~generic_crud.query.ListQuery`
    - ``DEFAULT_SQLA_REGISTRY``: the default operator registry
    - ``SQLAlchemyOperator`` / ``SQLAlchemyOperatorRegistry``: extension
      points for custom operators
"""

from .compiler import (
    apply_ordering,
    apply_page,
    build_predicate,
    build_select,
    compile_criteria,
)
from .operators import (
    DEFAULT_SQLA_REGISTRY,
    SQLAlchemyOperator,
    SQLAlchemyOperatorRegistry,
    build_default_sqla_registry,
)

__all__ = [
    "build_predicate",
    "build_select",
    "compile_criteria",
    "apply_ordering",
    "apply_page",
    "DEFAULT_SQLA_REGISTRY",
    "build_default_sqla_registry",
    "SQLAlchemyOperator",
    "SQLAlchemyOperatorRegistry",
]
