"""Metadata registry - binds entity types to collection paths.

The registry is process-wide, single-writer-at-startup state: populate it
(normally through the decorators) before the first repository is built,
then treat it as read-only. ``reset()`` exists for test isolation.

Sub-collections are stored by parent type and resolved lazily, so they may
be registered before or after their parent collection.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict

from doc_query.core.exceptions import (
    InvalidArgumentError,
    MetadataError,
    UninitializedStoreError,
    UnregisteredCollectionError,
)
from doc_query.mapping.model import field_names

logger = structlog.get_logger(__name__)

_CONSONANT_Y = re.compile(r"[^aeiou]y$", re.IGNORECASE)
_SIBILANT = re.compile(r"(s|x|z|ch|sh)$", re.IGNORECASE)


def pluralize(name: str) -> str:
    """Default collection name for a type name: ``User`` -> ``Users``."""
    if _CONSONANT_Y.search(name):
        return name[:-1] + "ies"
    if _SIBILANT.search(name):
        return name + "es"
    return name + "s"


@dataclass(frozen=True)
class SubCollectionDescriptor:
    """A collection nested under each document of a parent collection."""

    name: str
    entity_type: type
    parent_entity_type: type
    property_key: str


@dataclass(frozen=True)
class CollectionDescriptor:
    """A mapped collection.

    ``entity_type`` is None for ad-hoc untyped access by literal path; such
    collections hydrate into plain dicts.
    """

    name: str
    entity_type: type | None
    sub_collections: tuple[SubCollectionDescriptor, ...] = ()
    custom_repository_type: type | None = None


class MetadataStorageConfig(BaseModel):
    """Process-wide mapping configuration."""

    model_config = ConfigDict(frozen=True)

    validate_models: bool = True
    timestamps_in_milliseconds: bool = False
    validator: str = "pydantic"


class MetadataStorage:
    """Holds collection descriptors, custom repositories, config and the store."""

    def __init__(self) -> None:
        self._collections: dict[type, CollectionDescriptor] = {}
        self._sub_collections: dict[type, list[SubCollectionDescriptor]] = {}
        self._repositories: dict[type, type] = {}
        self._config = MetadataStorageConfig()
        self._store: Any = None

    # --- registration ---

    def register_collection(self, descriptor: CollectionDescriptor) -> None:
        """Insert or overwrite the descriptor for ``descriptor.entity_type``.

        Sub-collections and a custom repository carried by the descriptor are
        merged into their own maps, as if registered separately.
        """
        if descriptor.entity_type is None:
            raise MetadataError("A registered collection needs an entity type")
        if not descriptor.name:
            raise MetadataError(
                f"Collection name for {descriptor.entity_type.__name__} must be non-empty"
            )
        if descriptor.entity_type in self._collections:
            logger.warning(
                "collection_overwritten",
                entity=descriptor.entity_type.__name__,
                old=self._collections[descriptor.entity_type].name,
                new=descriptor.name,
            )
        self._collections[descriptor.entity_type] = replace(
            descriptor, sub_collections=(), custom_repository_type=None
        )
        logger.debug(
            "collection_registered",
            entity=descriptor.entity_type.__name__,
            name=descriptor.name,
        )
        for sub in descriptor.sub_collections:
            sub = replace(sub, parent_entity_type=descriptor.entity_type)
            if sub not in self._sub_collections.get(descriptor.entity_type, ()):
                self.register_sub_collection(sub)
        if descriptor.custom_repository_type is not None:
            self.register_custom_repository(
                descriptor.entity_type, descriptor.custom_repository_type
            )

    def register_sub_collection(self, descriptor: SubCollectionDescriptor) -> None:
        """Attach a sub-collection to its parent type (resolved lazily)."""
        if not descriptor.property_key:
            raise MetadataError("A sub-collection needs a property key")
        self._sub_collections.setdefault(descriptor.parent_entity_type, []).append(descriptor)
        logger.debug(
            "sub_collection_registered",
            parent=descriptor.parent_entity_type.__name__,
            entity=descriptor.entity_type.__name__,
            name=descriptor.name,
            property_key=descriptor.property_key,
        )

    def register_custom_repository(self, entity_type: type, repository_type: type) -> None:
        """Bind a repository subclass to an entity type."""
        from doc_query.repository.base import BaseRepository

        if not (isinstance(repository_type, type) and issubclass(repository_type, BaseRepository)):
            raise MetadataError(
                f"{getattr(repository_type, '__name__', repository_type)!s} "
                "is not a repository type"
            )
        self._repositories[entity_type] = repository_type
        logger.debug(
            "custom_repository_registered",
            entity=entity_type.__name__,
            repository=repository_type.__name__,
        )

    # --- lookup ---

    def get_collection(self, path_or_entity: str | type) -> CollectionDescriptor:
        """Resolve a descriptor by entity type or by literal collection path.

        Raises:
            UnregisteredCollectionError: If an entity type was never registered.
            InvalidArgumentError: If a path does not address a collection.
        """
        if isinstance(path_or_entity, str):
            return self._get_by_path(path_or_entity)

        base = self._collections.get(path_or_entity)
        if base is None:
            key = getattr(path_or_entity, "__name__", str(path_or_entity))
            raise UnregisteredCollectionError(key)
        return replace(
            base,
            sub_collections=self._resolve_sub_collections(path_or_entity),
            custom_repository_type=self._repositories.get(path_or_entity),
        )

    def sub_collection_descriptor(self, sub: SubCollectionDescriptor) -> CollectionDescriptor:
        """Collection descriptor for the documents of a sub-collection."""
        return CollectionDescriptor(
            name=sub.name,
            entity_type=sub.entity_type,
            sub_collections=self._resolve_sub_collections(sub.entity_type),
            custom_repository_type=self._repositories.get(sub.entity_type),
        )

    def get_custom_repository(self, entity_type: type) -> type | None:
        return self._repositories.get(entity_type)

    def _get_by_path(self, path: str) -> CollectionDescriptor:
        segments = [s for s in path.split("/") if s]
        if not segments or len(segments) % 2 == 0:
            raise InvalidArgumentError(f"'{path}' is not a collection path")

        untyped = CollectionDescriptor(name=segments[-1], entity_type=None)
        root = next((d for d in self._collections.values() if d.name == segments[0]), None)
        if root is None:
            return untyped

        descriptor = self.get_collection(root.entity_type)  # type: ignore[arg-type]
        for name in segments[2::2]:
            sub = next((s for s in descriptor.sub_collections if s.name == name), None)
            if sub is None:
                return untyped
            descriptor = self.sub_collection_descriptor(sub)
        return descriptor

    def _resolve_sub_collections(self, parent: type) -> tuple[SubCollectionDescriptor, ...]:
        subs = tuple(self._sub_collections.get(parent, ()))
        known = set(field_names(parent))
        if known:
            for sub in subs:
                if sub.property_key not in known:
                    raise MetadataError(
                        f"Sub-collection '{sub.name}' is exposed through "
                        f"'{sub.property_key}', which is not a field of {parent.__name__}"
                    )
        return subs

    # --- config and store ---

    @property
    def config(self) -> MetadataStorageConfig:
        return self._config

    def get_config(self) -> MetadataStorageConfig:
        return self._config

    def set_config(self, config: MetadataStorageConfig) -> None:
        self._config = config

    @property
    def store(self) -> Any:
        """The initialized store adapter.

        Raises:
            UninitializedStoreError: If ``initialize()`` has not run.
        """
        if self._store is None:
            raise UninitializedStoreError()
        return self._store

    def set_store(self, store: Any) -> None:
        self._store = store

    @property
    def has_store(self) -> bool:
        return self._store is not None

    def reset(self) -> None:
        """Clear all registered state, config and store."""
        self._collections.clear()
        self._sub_collections.clear()
        self._repositories.clear()
        self._config = MetadataStorageConfig()
        self._store = None


_storage = MetadataStorage()


def get_metadata_storage() -> MetadataStorage:
    """Return the process-wide metadata storage."""
    return _storage
