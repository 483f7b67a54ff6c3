"""Repository layer - typed repositories over mapped collections."""

from __future__ import annotations

from doc_query.repository.base import BaseRepository
from doc_query.repository.factory import (
    RepositoryFactory,
    get_base_repository,
    get_custom_repository,
    get_repository,
    repository_factory,
)
from doc_query.repository.standalone import Repository
from doc_query.repository.transactional import TransactionRepository

__all__ = [
    "BaseRepository",
    "Repository",
    "TransactionRepository",
    "RepositoryFactory",
    "repository_factory",
    "get_repository",
    "get_base_repository",
    "get_custom_repository",
]
