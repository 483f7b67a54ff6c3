"""Query layer - immutable query specs and the fluent builder."""

from __future__ import annotations

from doc_query.query.builder import QueryBuilder
from doc_query.query.spec import OrderByClause, QueryLine, QuerySpec

__all__ = [
    "QueryBuilder",
    "QueryLine",
    "OrderByClause",
    "QuerySpec",
]
