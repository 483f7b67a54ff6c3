"""Transaction-scoped repository."""

from __future__ import annotations

from typing import Any, TypeVar

from doc_query.core.registry import CollectionDescriptor, MetadataStorage
from doc_query.core.transaction import TransactionContext
from doc_query.repository.base import BaseRepository
from doc_query.repository.factory import TRANSACTIONAL, repository_factory

T = TypeVar("T")


class TransactionRepository(BaseRepository[T]):
    """Repository whose reads and writes all go through one transaction.

    Sub-collection repositories attached to its entities share the same
    transaction. Using it after the transaction has finished raises
    TransactionStateError.
    """

    def __init__(
        self,
        path_or_entity: str | type[T],
        transaction: TransactionContext,
        *,
        descriptor: CollectionDescriptor | None = None,
        storage: MetadataStorage | None = None,
    ) -> None:
        super().__init__(path_or_entity, descriptor=descriptor, storage=storage)
        self._transaction = transaction

    @property
    def transaction(self) -> TransactionContext:
        return self._transaction

    def _backend(self) -> Any:
        return self._transaction


repository_factory.register(TRANSACTIONAL, TransactionRepository)
