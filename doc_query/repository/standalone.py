"""Standalone repository - reads and writes go straight to the store."""

from __future__ import annotations

from typing import Any, TypeVar

from doc_query.repository.base import BaseRepository
from doc_query.repository.factory import STANDALONE, repository_factory

T = TypeVar("T")


class Repository(BaseRepository[T]):
    """Repository over the initialized store.

    Subclass it (and register with ``custom_repository``) to add
    collection-specific queries.
    """

    def _backend(self) -> Any:
        return self._storage.store


repository_factory.register(STANDALONE, Repository)
