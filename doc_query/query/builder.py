"""Fluent query builder.

Builders are immutable: every method returns a new builder carrying an
extended QuerySpec, so a partially built query can be reused as a template.
Execution is deferred to the bound repository.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, TypeVar

from doc_query.core.enums import Direction, Operator
from doc_query.core.exceptions import InvalidArgumentError
from doc_query.mapping.fields import FieldRef, resolve_field_path
from doc_query.query.spec import OrderByClause, QueryLine, QuerySpec

if TYPE_CHECKING:
    from doc_query.repository.base import BaseRepository

T = TypeVar("T")


def check_limit(limit: int) -> int:
    """Validate a limit value.

    Raises:
        InvalidArgumentError: If the limit is not a non-negative integer.
    """
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise InvalidArgumentError(f"limit must be an integer, got {limit!r}")
    if limit < 0:
        raise InvalidArgumentError(f"limit must be greater or equal than 0, got {limit}")
    return limit


class QueryBuilder(Generic[T]):
    """Accumulates filters, a limit and sort keys for one repository."""

    __slots__ = ("_repository", "_spec")

    def __init__(self, repository: BaseRepository[T], spec: QuerySpec | None = None) -> None:
        self._repository = repository
        self._spec = spec or QuerySpec()

    @property
    def spec(self) -> QuerySpec:
        return self._spec

    def _derive(self, spec: QuerySpec) -> QueryBuilder[T]:
        return QueryBuilder(self._repository, spec)

    def _where(self, field: FieldRef, operator: Operator, value: Any) -> QueryBuilder[T]:
        line = QueryLine(field=resolve_field_path(field), operator=operator, value=value)
        return self._derive(self._spec.with_query(line))

    def where_equal_to(self, field: FieldRef, value: Any) -> QueryBuilder[T]:
        return self._where(field, Operator.EQUAL, value)

    def where_greater_than(self, field: FieldRef, value: Any) -> QueryBuilder[T]:
        return self._where(field, Operator.GREATER_THAN, value)

    def where_greater_or_equal_than(self, field: FieldRef, value: Any) -> QueryBuilder[T]:
        return self._where(field, Operator.GREATER_OR_EQUAL, value)

    def where_less_than(self, field: FieldRef, value: Any) -> QueryBuilder[T]:
        return self._where(field, Operator.LESS_THAN, value)

    def where_less_or_equal_than(self, field: FieldRef, value: Any) -> QueryBuilder[T]:
        return self._where(field, Operator.LESS_OR_EQUAL, value)

    def where_array_contains(self, field: FieldRef, value: Any) -> QueryBuilder[T]:
        return self._where(field, Operator.ARRAY_CONTAINS, value)

    def limit(self, limit: int) -> QueryBuilder[T]:
        """Cap the number of results. A later call replaces an earlier one."""
        return self._derive(self._spec.with_limit(check_limit(limit)))

    def order_by_ascending(self, field: FieldRef) -> QueryBuilder[T]:
        clause = OrderByClause(resolve_field_path(field), Direction.ASCENDING)
        return self._derive(self._spec.with_order(clause))

    def order_by_descending(self, field: FieldRef) -> QueryBuilder[T]:
        clause = OrderByClause(resolve_field_path(field), Direction.DESCENDING)
        return self._derive(self._spec.with_order(clause))

    async def find(self) -> list[T]:
        """Execute the query and return every matching entity."""
        return await self._repository.execute(
            list(self._spec.queries),
            self._spec.limit,
            list(self._spec.order_by),
            single=False,
        )

    async def find_one(self) -> T | None:
        """Execute the query and return the first match, or None."""
        results = await self._repository.execute(
            list(self._spec.queries),
            self._spec.limit,
            list(self._spec.order_by),
            single=True,
        )
        return results[0] if results else None

    def __repr__(self) -> str:
        return f"QueryBuilder({self._repository.path!r}, {self._spec!r})"
