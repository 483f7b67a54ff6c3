"""DocQuery - entity mapping and fluent queries over a document store."""

from __future__ import annotations

from doc_query.core.connection import StoreConfig, initialize
from doc_query.core.enums import Direction, Operator
from doc_query.core.exceptions import (
    AdapterError,
    DocQueryError,
    HydrationError,
    InvalidArgumentError,
    MappingError,
    MetadataError,
    TransactionError,
    TransactionStateError,
    UninitializedStoreError,
    UnregisteredCollectionError,
    ValidationFailure,
    ValidationSetupError,
)
from doc_query.core.registry import (
    CollectionDescriptor,
    MetadataStorage,
    MetadataStorageConfig,
    SubCollectionDescriptor,
    get_metadata_storage,
)
from doc_query.core.transaction import TransactionContext, run_transaction
from doc_query.decorators import collection, custom_repository, sub_collection
from doc_query.mapping.values import DocumentReference, GeoPoint, Timestamp
from doc_query.query.builder import QueryBuilder
from doc_query.repository import (
    BaseRepository,
    Repository,
    TransactionRepository,
    get_base_repository,
    get_custom_repository,
    get_repository,
)
from doc_query.validation import Violation

__all__ = [
    # Setup
    "StoreConfig",
    "initialize",
    # Registry
    "MetadataStorage",
    "MetadataStorageConfig",
    "CollectionDescriptor",
    "SubCollectionDescriptor",
    "get_metadata_storage",
    # Decorators
    "collection",
    "sub_collection",
    "custom_repository",
    # Repositories
    "BaseRepository",
    "Repository",
    "TransactionRepository",
    "get_repository",
    "get_base_repository",
    "get_custom_repository",
    # Queries
    "QueryBuilder",
    "Operator",
    "Direction",
    # Transactions
    "TransactionContext",
    "run_transaction",
    # Values
    "Timestamp",
    "GeoPoint",
    "DocumentReference",
    "Violation",
    # Exceptions
    "DocQueryError",
    "MetadataError",
    "UnregisteredCollectionError",
    "UninitializedStoreError",
    "InvalidArgumentError",
    "MappingError",
    "HydrationError",
    "ValidationSetupError",
    "ValidationFailure",
    "TransactionError",
    "TransactionStateError",
    "AdapterError",
]
