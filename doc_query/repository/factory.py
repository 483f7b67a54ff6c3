"""Repository factory and lookup helpers.

The base repository needs to build sub-collection repositories of either
kind without importing the concrete classes, so both concrete repositories
register themselves here when their modules load.
"""

from __future__ import annotations

from typing import Any

from doc_query.core.exceptions import MetadataError
from doc_query.core.registry import (
    CollectionDescriptor,
    MetadataStorage,
    get_metadata_storage,
)

STANDALONE = "standalone"
TRANSACTIONAL = "transactional"


class RepositoryFactory:
    """Builds standalone or transaction-scoped repositories."""

    def __init__(self) -> None:
        self._kinds: dict[str, type] = {}

    def register(self, kind: str, repository_type: type) -> type:
        self._kinds[kind] = repository_type
        return repository_type

    def create(
        self,
        path_or_entity: str | type,
        *,
        descriptor: CollectionDescriptor | None = None,
        transaction: Any = None,
        storage: MetadataStorage | None = None,
        use_custom: bool = True,
    ) -> Any:
        """A transaction-scoped repository when ``transaction`` is given, else standalone.

        Standalone repositories use the custom repository type bound to the
        collection's entity, if any, unless ``use_custom`` is false.
        """
        if transaction is None:
            repository_type = self._kind(STANDALONE)
            if use_custom:
                storage = storage or get_metadata_storage()
                descriptor = descriptor or storage.get_collection(path_or_entity)
                repository_type = descriptor.custom_repository_type or repository_type
            return repository_type(path_or_entity, descriptor=descriptor, storage=storage)
        return self._kind(TRANSACTIONAL)(
            path_or_entity, transaction, descriptor=descriptor, storage=storage
        )

    def _kind(self, kind: str) -> type:
        try:
            return self._kinds[kind]
        except KeyError:
            raise MetadataError(f"No {kind} repository type is registered") from None


repository_factory = RepositoryFactory()


def get_repository(path_or_entity: str | type) -> Any:
    """The custom repository bound to the collection's entity, else a standalone one.

    Literal paths resolve through the registry first, so ``"posts"`` and
    ``"posts/<id>/comments"`` pick up custom repositories too.
    """
    return repository_factory.create(path_or_entity)


def get_base_repository(path_or_entity: str | type) -> Any:
    """Always a standalone repository, ignoring custom bindings."""
    return repository_factory.create(path_or_entity, use_custom=False)


def get_custom_repository(entity_type: type) -> Any:
    """The custom repository registered for ``entity_type``.

    Raises:
        MetadataError: If no custom repository is registered.
    """
    custom = get_metadata_storage().get_custom_repository(entity_type)
    if custom is None:
        raise MetadataError(f"No custom repository registered for {entity_type.__name__}")
    return custom(entity_type)
