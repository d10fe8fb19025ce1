"""
CrudService: the generic controller.

One service instance serves one registered resource for one unit of work
(one SQLAlchemy ``Session``).  Every operation consults the authorizer
first; a denied call raises :class:`PermissionDeniedError` before any
parsing, mapping or I/O happens.

The service flushes so that generated keys are available for the
response, but never commits: transaction control belongs to the caller.
Create and update only touch the session after the input has been fully
mapped and validated; a failed update reverts the in-memory changes the
projector made to the loaded entity.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import select

from .authorization import DELETE, GET, PATCH, POST, PUT, AllowAll
from .coercion import coerce_value
from .exceptions import NotFoundError, PermissionDeniedError
from .filters import SearchCriteria
from .operators import FilterOperation
from .pagination import Page
from .persistence import build_select, compile_criteria

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from pydantic import BaseModel
    from sqlalchemy.orm import Session

    from .authorization import IAuthorizer
    from .paths import PathResolver
    from .persistence import SQLAlchemyOperatorRegistry
    from .registry import BoundResource

logger = logging.getLogger(__name__)


class CrudService:
    """
    List / retrieve / create / update / delete for one resource.

    Usage::

        service = CrudService(registry.require("cities"), session)
        page = service.list({"country": "Greece", "sort": "-population"})
        city = service.create({"name": "Patras", "country": 1})
        session.commit()

    Args:
        resource: A resource returned by :meth:`ResourceRegistry.register`.
        session: The unit of work to read from and write to.
        authorizer: Permission check; everything is allowed by default.
        resolver: Path resolver for filter and sort compilation.
        operators: Custom SQLAlchemy operator registry.
    """

    def __init__(
        self,
        resource: BoundResource,
        session: Session,
        *,
        authorizer: IAuthorizer | None = None,
        resolver: PathResolver | None = None,
        operators: SQLAlchemyOperatorRegistry | None = None,
    ) -> None:
        self.resource = resource
        self.session = session
        self.authorizer = authorizer or AllowAll()
        self._resolver = resolver
        self._operators = operators
        self._projector = resource.projector()
        self._parser = resource.query_parser()

    @property
    def model(self) -> type[Any]:
        return self.resource.model

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def list(
        self,
        params: Mapping[str, Any],
        extra_criteria: Iterable[SearchCriteria] | None = None,
    ) -> Page[dict[str, Any]]:
        """
        Return one page of serialized records matching *params*.

        ``extra_criteria`` (e.g. tenant scoping derived from the request)
        is ANDed with the criteria built from the filter parameters.
        """
        self._authorize(GET)
        query = self._parser.parse(params, extra_criteria or ())
        rows_stmt, count_stmt = build_select(
            self.model, query, resolver=self._resolver, registry=self._operators
        )
        total = self.session.scalar(count_stmt) or 0
        instances = self.session.scalars(rows_stmt).all()
        logger.debug(
            "Listed %d of %d %s records", len(instances), total, self.resource.name
        )
        return Page(
            items=self._projector.serialize_many(instances),
            total=total,
            page=query.page.page,
            size=query.page.size,
        )

    def retrieve(self, lookup: Any) -> dict[str, Any]:
        self._authorize(GET)
        return self._projector.serialize(self._get_or_404(lookup))

    def create(self, body: Mapping[str, Any] | BaseModel) -> dict[str, Any]:
        """
        Map *body* onto a new record, add it to the session and flush.

        Raises:
            ValidationError: If the body does not validate; nothing is
                added to the session.
        """
        self._authorize(POST)
        with self.session.no_autoflush:
            result = self._projector.deserialize(body, session=self.session, strict=True)
        instance = result.instance
        self.session.add(instance)
        self.session.flush()
        logger.debug("Created %s record", self.resource.name)
        return self._projector.serialize(instance)

    def update(
        self,
        lookup: Any,
        body: Mapping[str, Any] | BaseModel,
        *,
        partial: bool = False,
    ) -> dict[str, Any]:
        """
        Map *body* onto an existing record and flush.

        ``partial=True`` (PATCH) leaves fields absent from *body*
        untouched; otherwise (PUT) defaults and required checks apply as
        on create.
        """
        self._authorize(PATCH if partial else PUT)
        instance = self._get_or_404(lookup)
        pending = set(self.session.new)
        dirty = set(self.session.dirty)
        try:
            with self.session.no_autoflush:
                self._projector.deserialize(
                    body,
                    instance,
                    session=self.session,
                    partial=partial,
                    strict=True,
                )
        except Exception:
            self._revert(instance, pending, dirty)
            raise
        self.session.flush()
        logger.debug("Updated %s record %r", self.resource.name, lookup)
        return self._projector.serialize(instance)

    def delete(self, lookup: Any) -> None:
        self._authorize(DELETE)
        instance = self._get_or_404(lookup)
        self.session.delete(instance)
        self.session.flush()
        logger.debug("Deleted %s record %r", self.resource.name, lookup)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _authorize(self, method: str) -> None:
        if not self.authorizer.is_permitted(self.resource.name, method):
            logger.warning("Denied %s on resource '%s'", method, self.resource.name)
            raise PermissionDeniedError(self.resource.name, method)

    def _get_or_404(self, lookup: Any) -> Any:
        plan = self.resource.lookup_plan
        value = coerce_value(
            lookup, self.resource.lookup_type, field=self.resource.resource.lookup_field
        )
        criteria = SearchCriteria(plan.path, FilterOperation.EQUAL, value)
        stmt = select(self.model).where(
            compile_criteria(
                self.model, criteria, resolver=self._resolver, registry=self._operators
            )
        )
        instance = self.session.scalars(stmt).first()
        if instance is None:
            raise NotFoundError(self.resource.name, lookup)
        return instance

    def _revert(self, instance: Any, pending: set[Any], dirty: set[Any]) -> None:
        """Discard unflushed changes made while mapping onto *instance*."""
        for obj in list(self.session.new):
            if obj not in pending:
                self.session.expunge(obj)
        for obj in list(self.session.dirty):
            if obj not in dirty:
                self.session.expire(obj)
        self.session.expire(instance)
