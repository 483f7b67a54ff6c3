"""In-memory adapter - a dict-backed document store.

Used for tests and local development. It follows the store's query
semantics closely enough for the mapping layer: documents missing a
filtered or ordered field are excluded, results default to document-id
order, and transactional writes are applied only on commit.
"""

from __future__ import annotations

import copy
import secrets
import string
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from doc_query.core.enums import Direction, Operator
from doc_query.mapping.values import (
    DocumentReference,
    GeoPoint,
    StoredDocument,
    Timestamp,
    encode_native,
)
from doc_query.query.spec import QueryLine, QuerySpec

R = TypeVar("R")

_ID_ALPHABET = string.ascii_letters + string.digits
_ID_LENGTH = 20
_MISSING = object()


def _normalize_path(path: str) -> str:
    return "/".join(part for part in path.split("/") if part)


def _lookup(data: dict[str, Any], field_path: str) -> Any:
    value: Any = data
    for part in field_path.split("."):
        if not isinstance(value, dict) or part not in value:
            return _MISSING
        value = value[part]
    return value


def _matches(data: dict[str, Any], line: QueryLine) -> bool:
    value = _lookup(data, line.field)
    if value is _MISSING:
        return False
    target = encode_native(line.value)
    if line.operator is Operator.EQUAL:
        return bool(value == target)
    if line.operator is Operator.ARRAY_CONTAINS:
        return isinstance(value, list) and target in value
    try:
        if line.operator is Operator.LESS_THAN:
            return bool(value < target)
        if line.operator is Operator.LESS_OR_EQUAL:
            return bool(value <= target)
        if line.operator is Operator.GREATER_THAN:
            return bool(value > target)
        if line.operator is Operator.GREATER_OR_EQUAL:
            return bool(value >= target)
    except TypeError:
        # Values of different types never match a range filter.
        return False
    raise ValueError(f"Unsupported operator: {line.operator}")


def _sort_key(value: Any) -> tuple[Any, ...]:
    """Total order across value types: null, bool, number, timestamp, string,
    reference, geopoint, array, map."""
    if value is None:
        return (0,)
    if isinstance(value, bool):
        return (1, value)
    if isinstance(value, (int, float)):
        return (2, value)
    if isinstance(value, Timestamp):
        return (3, value.seconds, value.nanoseconds)
    if isinstance(value, str):
        return (4, value)
    if isinstance(value, bytes):
        return (5, value)
    if isinstance(value, DocumentReference):
        return (6, value.path)
    if isinstance(value, GeoPoint):
        return (7, value.latitude, value.longitude)
    if isinstance(value, list):
        return (8, tuple(_sort_key(v) for v in value))
    if isinstance(value, dict):
        return (9, tuple((k, _sort_key(v)) for k, v in sorted(value.items())))
    return (10, repr(value))


def evaluate(documents: dict[str, dict[str, Any]], spec: QuerySpec) -> list[StoredDocument]:
    """Apply a QuerySpec to a collection's documents."""
    rows = [
        (doc_id, data)
        for doc_id, data in sorted(documents.items())
        if all(_matches(data, line) for line in spec.queries)
    ]

    for clause in spec.order_by:
        rows = [row for row in rows if _lookup(row[1], clause.field) is not _MISSING]
    # Stable sorts applied from the last key to the first give a multi-key order.
    for clause in reversed(spec.order_by):
        rows.sort(
            key=lambda row, f=clause.field: _sort_key(_lookup(row[1], f)),
            reverse=clause.direction is Direction.DESCENDING,
        )

    if spec.limit is not None:
        rows = rows[: spec.limit]
    return [StoredDocument(id=doc_id, data=copy.deepcopy(data)) for doc_id, data in rows]


class MemoryTransaction:
    """Transaction handle that buffers writes until commit."""

    def __init__(self, adapter: MemoryAdapter) -> None:
        self._adapter = adapter
        self._writes: list[tuple[str, str, dict[str, Any] | None]] = []

    async def get_document(self, path: str, doc_id: str) -> StoredDocument | None:
        return await self._adapter.get_document(path, doc_id)

    async def run_query(self, path: str, spec: QuerySpec) -> list[StoredDocument]:
        return await self._adapter.run_query(path, spec)

    async def set_document(self, path: str, doc_id: str, data: dict[str, Any]) -> None:
        self._writes.append((path, doc_id, encode_native(copy.deepcopy(data))))

    async def delete_document(self, path: str, doc_id: str) -> None:
        self._writes.append((path, doc_id, None))

    @property
    def pending_writes(self) -> int:
        return len(self._writes)

    def commit(self) -> None:
        for path, doc_id, data in self._writes:
            if data is None:
                self._adapter._delete(path, doc_id)
            else:
                self._adapter._set(path, doc_id, data)
        self._writes.clear()

    def rollback(self) -> None:
        self._writes.clear()


class MemoryAdapter:
    """Dict-backed StoreAdapter implementation."""

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}

    def new_id(self, path: str) -> str:
        return "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_LENGTH))

    async def get_document(self, path: str, doc_id: str) -> StoredDocument | None:
        data = self._collections.get(_normalize_path(path), {}).get(doc_id)
        if data is None:
            return None
        return StoredDocument(id=doc_id, data=copy.deepcopy(data))

    async def run_query(self, path: str, spec: QuerySpec) -> list[StoredDocument]:
        return evaluate(self._collections.get(_normalize_path(path), {}), spec)

    async def set_document(self, path: str, doc_id: str, data: dict[str, Any]) -> None:
        self._set(path, doc_id, encode_native(copy.deepcopy(data)))

    async def delete_document(self, path: str, doc_id: str) -> None:
        self._delete(path, doc_id)

    async def run_transaction(self, fn: Callable[[MemoryTransaction], Awaitable[R]]) -> R:
        transaction = MemoryTransaction(self)
        try:
            result = await fn(transaction)
        except BaseException:
            transaction.rollback()
            raise
        transaction.commit()
        return result

    async def close(self) -> None:
        self._collections.clear()

    def document_ids(self, path: str) -> list[str]:
        """Ids stored under a collection path, sorted."""
        return sorted(self._collections.get(_normalize_path(path), {}))

    def _set(self, path: str, doc_id: str, data: dict[str, Any]) -> None:
        self._collections.setdefault(_normalize_path(path), {})[doc_id] = data

    def _delete(self, path: str, doc_id: str) -> None:
        self._collections.get(_normalize_path(path), {}).pop(doc_id, None)
