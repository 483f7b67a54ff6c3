"""Document store adapter protocols.

Every adapter module MUST implement these protocols. Adapters hand the core
decoded values (see ``doc_query.mapping.values``) and accept the same
variants, plus native datetimes, on write.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Protocol, TypeVar, runtime_checkable

from doc_query.mapping.values import StoredDocument
from doc_query.query.spec import QuerySpec

R = TypeVar("R")


@runtime_checkable
class TransactionHandle(Protocol):
    """Transaction-scoped store operations."""

    async def get_document(self, path: str, doc_id: str) -> StoredDocument | None:
        """Read one document inside the transaction, or None if absent."""
        ...

    async def run_query(self, path: str, spec: QuerySpec) -> list[StoredDocument]:
        """Run a query inside the transaction."""
        ...

    async def set_document(self, path: str, doc_id: str, data: dict[str, Any]) -> None:
        """Stage a full overwrite of one document."""
        ...

    async def delete_document(self, path: str, doc_id: str) -> None:
        """Stage a delete. Absent documents are not an error."""
        ...


@runtime_checkable
class StoreAdapter(Protocol):
    """Asynchronous document store adapter protocol."""

    def new_id(self, path: str) -> str:
        """Generate a fresh document id for a collection."""
        ...

    async def get_document(self, path: str, doc_id: str) -> StoredDocument | None:
        """Read one document, or None if absent."""
        ...

    async def run_query(self, path: str, spec: QuerySpec) -> list[StoredDocument]:
        """Apply filters, ordering and limit server-side."""
        ...

    async def set_document(self, path: str, doc_id: str, data: dict[str, Any]) -> None:
        """Overwrite one document entirely."""
        ...

    async def delete_document(self, path: str, doc_id: str) -> None:
        """Delete one document. Absent documents are not an error."""
        ...

    async def run_transaction(self, fn: Callable[[TransactionHandle], Awaitable[R]]) -> R:
        """Run ``fn`` in a store transaction; the store owns commit and retry."""
        ...

    async def close(self) -> None:
        """Release client resources."""
        ...
