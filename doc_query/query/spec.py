"""Query specification data classes.

Frozen dataclasses holding the accumulated state of a query. Every
chaining call on a builder produces a new QuerySpec.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from doc_query.core.enums import Direction, Operator


@dataclass(frozen=True)
class QueryLine:
    """One filter predicate."""

    field: str  # dotted path
    operator: Operator
    value: Any


@dataclass(frozen=True)
class OrderByClause:
    """One sort key."""

    field: str
    direction: Direction = Direction.ASCENDING


@dataclass(frozen=True)
class QuerySpec:
    """Filters, optional limit and sort keys of one query."""

    queries: tuple[QueryLine, ...] = ()
    limit: int | None = None
    order_by: tuple[OrderByClause, ...] = ()

    def with_query(self, line: QueryLine) -> QuerySpec:
        return replace(self, queries=(*self.queries, line))

    def with_limit(self, limit: int) -> QuerySpec:
        return replace(self, limit=limit)

    def with_order(self, clause: OrderByClause) -> QuerySpec:
        return replace(self, order_by=(*self.order_by, clause))
