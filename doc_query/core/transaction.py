"""Transaction management.

``run_transaction`` runs a coroutine function inside a store transaction.
The function receives a TransactionContext whose repositories route every
read and write through the same store transaction. Commit and retry belong
to the store; the context only tracks whether it may still be used.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, TypeVar

import structlog

from doc_query.core.exceptions import TransactionStateError
from doc_query.core.registry import MetadataStorage, get_metadata_storage
from doc_query.mapping.values import StoredDocument
from doc_query.query.spec import QuerySpec

logger = structlog.get_logger(__name__)

R = TypeVar("R")


class _TxState(Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class TransactionContext:
    """One store transaction as seen by repositories."""

    def __init__(self, handle: Any, storage: MetadataStorage | None = None) -> None:
        self._handle = handle
        self._storage = storage or get_metadata_storage()
        self._state = _TxState.IDLE

    @property
    def state(self) -> str:
        return self._state.value

    def get_repository(self, path_or_entity: str | type) -> Any:
        """A transaction-scoped repository bound to this transaction."""
        from doc_query.repository.factory import repository_factory

        return repository_factory.create(path_or_entity, transaction=self, storage=self._storage)

    async def get_document(self, path: str, doc_id: str) -> StoredDocument | None:
        self._check_active()
        return await self._handle.get_document(path, doc_id)  # type: ignore[no-any-return]

    async def run_query(self, path: str, spec: QuerySpec) -> list[StoredDocument]:
        self._check_active()
        return await self._handle.run_query(path, spec)  # type: ignore[no-any-return]

    async def set_document(self, path: str, doc_id: str, data: dict[str, Any]) -> None:
        self._check_active()
        await self._handle.set_document(path, doc_id, data)

    async def delete_document(self, path: str, doc_id: str) -> None:
        self._check_active()
        await self._handle.delete_document(path, doc_id)

    def _begin(self) -> None:
        if self._state != _TxState.IDLE:
            raise TransactionStateError(self._state.value, "begin")
        self._state = _TxState.ACTIVE

    def _finish(self, failed: bool) -> None:
        self._state = _TxState.ROLLED_BACK if failed else _TxState.COMMITTED

    def _check_active(self) -> None:
        if self._state != _TxState.ACTIVE:
            raise TransactionStateError(self._state.value, "execute")


async def run_transaction(
    fn: Callable[[TransactionContext], Awaitable[R]],
    *,
    storage: MetadataStorage | None = None,
) -> R:
    """Run ``fn`` atomically; its result is returned once the store commits.

    Raises:
        UninitializedStoreError: If no store has been initialized.
    """
    storage = storage or get_metadata_storage()
    store = storage.store

    async def _body(handle: Any) -> R:
        context = TransactionContext(handle, storage)
        context._begin()
        try:
            result = await fn(context)
        except BaseException:
            context._finish(failed=True)
            logger.debug("transaction_rolled_back")
            raise
        context._finish(failed=False)
        return result

    result = await store.run_transaction(_body)
    logger.debug("transaction_committed")
    return result  # type: ignore[no-any-return]
