"""Repository base class.

Owns a bound collection path, hands out query builders, and hydrates stored
documents into typed entities. Concrete repositories only choose where
reads and writes go: straight to the store or through a transaction.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

import structlog

from doc_query.core.exceptions import (
    InvalidArgumentError,
    UninitializedStoreError,
    ValidationFailure,
)
from doc_query.core.registry import CollectionDescriptor, MetadataStorage, get_metadata_storage
from doc_query.mapping.fields import FieldRef
from doc_query.mapping.model import (
    EntityMapper,
    entity_to_dict,
    get_entity_id,
    set_entity_attr,
)
from doc_query.mapping.transcoder import deserialize_from_storage, serialize_for_storage
from doc_query.mapping.values import StoredDocument
from doc_query.query.builder import QueryBuilder, check_limit
from doc_query.query.spec import OrderByClause, QueryLine, QuerySpec
from doc_query.repository.factory import repository_factory
from doc_query.validation import Violation, load_validator

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class BaseRepository(ABC, Generic[T]):
    """Base repository for one collection.

    Args:
        path_or_entity: A literal collection path or a registered entity type.
        descriptor: A pre-resolved descriptor (used for sub-collections).
        storage: Metadata storage; the process-wide one by default.

    Raises:
        UninitializedStoreError: If the store has not been initialized.
        UnregisteredCollectionError: If the entity type was never registered.
    """

    def __init__(
        self,
        path_or_entity: str | type[T],
        *,
        descriptor: CollectionDescriptor | None = None,
        storage: MetadataStorage | None = None,
    ) -> None:
        self._storage = storage or get_metadata_storage()
        if not self._storage.has_store:
            raise UninitializedStoreError()

        self.descriptor = descriptor or self._storage.get_collection(path_or_entity)
        self.path = path_or_entity if isinstance(path_or_entity, str) else self.descriptor.name
        self.mapper: EntityMapper[T] = EntityMapper(self.descriptor.entity_type)

    @property
    def config(self) -> Any:
        return self._storage.config

    @property
    def transaction(self) -> Any:
        """The transaction this repository is bound to, if any."""
        return None

    @abstractmethod
    def _backend(self) -> Any:
        """Target of reads and writes: the store or a transaction context."""

    # --- query builder entry points ---

    def where_equal_to(self, field: FieldRef, value: Any) -> QueryBuilder[T]:
        return QueryBuilder(self).where_equal_to(field, value)

    def where_greater_than(self, field: FieldRef, value: Any) -> QueryBuilder[T]:
        return QueryBuilder(self).where_greater_than(field, value)

    def where_greater_or_equal_than(self, field: FieldRef, value: Any) -> QueryBuilder[T]:
        return QueryBuilder(self).where_greater_or_equal_than(field, value)

    def where_less_than(self, field: FieldRef, value: Any) -> QueryBuilder[T]:
        return QueryBuilder(self).where_less_than(field, value)

    def where_less_or_equal_than(self, field: FieldRef, value: Any) -> QueryBuilder[T]:
        return QueryBuilder(self).where_less_or_equal_than(field, value)

    def where_array_contains(self, field: FieldRef, value: Any) -> QueryBuilder[T]:
        return QueryBuilder(self).where_array_contains(field, value)

    def limit(self, limit: int) -> QueryBuilder[T]:
        return QueryBuilder(self).limit(limit)

    def order_by_ascending(self, field: FieldRef) -> QueryBuilder[T]:
        return QueryBuilder(self).order_by_ascending(field)

    def order_by_descending(self, field: FieldRef) -> QueryBuilder[T]:
        return QueryBuilder(self).order_by_descending(field)

    async def find(self) -> list[T]:
        """Every entity in the collection."""
        return await QueryBuilder(self).find()

    async def find_one(self) -> T | None:
        return await QueryBuilder(self).find_one()

    # --- execution and CRUD ---

    async def execute(
        self,
        queries: list[QueryLine],
        limit: int | None = None,
        order_by: list[OrderByClause] | None = None,
        single: bool = False,
    ) -> list[T]:
        """Run accumulated query state against the backend.

        With ``single`` the store is asked for at most one document.
        """
        if limit is not None:
            check_limit(limit)
        if single:
            limit = 1 if limit is None else min(limit, 1)
        spec = QuerySpec(queries=tuple(queries), limit=limit, order_by=tuple(order_by or ()))

        documents = await self._backend().run_query(self.path, spec)
        logger.debug(
            "query_executed",
            path=self.path,
            filters=len(spec.queries),
            limit=spec.limit,
            single=single,
            results=len(documents),
        )
        return [self._hydrate(doc) for doc in documents]

    async def find_by_id(self, doc_id: str) -> T | None:
        """The entity stored under ``doc_id``, or None."""
        return self._hydrate(await self._backend().get_document(self.path, doc_id))

    async def create(self, item: T | dict[str, Any]) -> T:
        """Persist a new entity, generating an id when it has none.

        Datetimes are stored as UTC instants (naive values are taken as UTC)
        and always read back timezone-aware, so a naive input compares equal
        to its hydrated value only after ``.replace(tzinfo=timezone.utc)``.

        Raises:
            ValidationFailure: If validation is enabled and the item is invalid.
        """
        doc_id = get_entity_id(item) or self._storage.store.new_id(self.path)
        self._check_valid(item, doc_id)

        await self._backend().set_document(self.path, doc_id, self._serialize(item))
        logger.debug("document_created", path=self.path, id=doc_id)
        return self._materialize(item, doc_id)

    async def update(self, item: T | dict[str, Any]) -> T:
        """Overwrite the stored document of an existing entity.

        Raises:
            InvalidArgumentError: If the item has no id.
            ValidationFailure: If validation is enabled and the item is invalid.
        """
        doc_id = get_entity_id(item)
        if not doc_id:
            raise InvalidArgumentError("update requires an entity with an id")
        self._check_valid(item, doc_id)

        await self._backend().set_document(self.path, doc_id, self._serialize(item))
        logger.debug("document_updated", path=self.path, id=doc_id)
        return self._materialize(item, doc_id)

    async def delete(self, doc_id: str) -> None:
        """Delete a document; deleting a missing id is a no-op."""
        await self._backend().delete_document(self.path, doc_id)
        logger.debug("document_deleted", path=self.path, id=doc_id)

    # --- validation ---

    def validate(self, item: T | dict[str, Any]) -> list[Violation]:
        """Check an entity against the rules declared on its type.

        Raises:
            ValidationSetupError: If the configured validator is unavailable.
        """
        entity_type = self.descriptor.entity_type
        validator = load_validator(self.config.validator)
        if entity_type is None:
            return []
        return validator.validate(
            entity_type, self._validation_payload(item), exclude=self._sub_collection_keys()
        )

    def _sub_collection_keys(self) -> frozenset[str]:
        return frozenset(sub.property_key for sub in self.descriptor.sub_collections)

    def _validation_payload(self, item: Any) -> dict[str, Any]:
        return entity_to_dict(item, exclude=self._sub_collection_keys())

    def _check_valid(self, item: Any, doc_id: str) -> None:
        if not self.config.validate_models or self.descriptor.entity_type is None:
            return
        validator = load_validator(self.config.validator)
        payload = self._validation_payload(item)
        payload["id"] = doc_id
        violations = validator.validate(
            self.descriptor.entity_type, payload, exclude=self._sub_collection_keys()
        )
        if violations:
            raise ValidationFailure(violations)

    # --- hydration ---

    def _serialize(self, item: Any) -> dict[str, Any]:
        return serialize_for_storage(item, self.descriptor.sub_collections)

    def _hydrate(self, doc: StoredDocument | None) -> T | None:
        if doc is None:
            return None
        data = deserialize_from_storage(doc.data, self.config.timestamps_in_milliseconds)
        data["id"] = doc.id
        entity = self.mapper.map_one(data)
        self._initialize_sub_collections(entity)
        return entity

    def _materialize(self, item: Any, doc_id: str) -> T:
        entity_type = self.descriptor.entity_type
        if entity_type is not None and not isinstance(item, entity_type):
            entity = self.mapper.map_one({**item, "id": doc_id})
        else:
            entity = item
            set_entity_attr(entity, "id", doc_id)
        self._initialize_sub_collections(entity)
        return entity  # type: ignore[no-any-return]

    def _initialize_sub_collections(self, entity: Any) -> None:
        """Attach one repository per sub-collection, bound to this entity's path.

        Inside a transaction the attached repositories share it. Deeper
        levels are wired only when their own entities are hydrated.
        """
        entity_id = get_entity_id(entity)
        for sub in self.descriptor.sub_collections:
            repository = repository_factory.create(
                f"{self.path}/{entity_id}/{sub.name}",
                descriptor=self._storage.sub_collection_descriptor(sub),
                transaction=self.transaction,
                storage=self._storage,
            )
            set_entity_attr(entity, sub.property_key, repository)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.path!r})"
