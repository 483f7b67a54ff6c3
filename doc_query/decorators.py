"""Declarative registration.

Class decorators that record mapping metadata in the process-wide registry::

    @collection("posts")
    @sub_collection(Comment, "comments")
    @dataclass
    class Post:
        id: str | None = None
        title: str = ""
        comments: Any = None

Decorators apply bottom-up, so ``sub_collection`` usually runs before the
parent's ``collection``; the registry resolves sub-collections lazily.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

from doc_query.core.registry import (
    CollectionDescriptor,
    SubCollectionDescriptor,
    get_metadata_storage,
    pluralize,
)

C = TypeVar("C", bound=type)


def collection(name: str | None = None) -> Callable[[C], C]:
    """Register the decorated class as a collection (default name: pluralized class name)."""

    def decorator(cls: C) -> C:
        get_metadata_storage().register_collection(
            CollectionDescriptor(name=name or pluralize(cls.__name__), entity_type=cls)
        )
        return cls

    return decorator


def sub_collection(
    entity_type: type,
    property_key: str,
    name: str | None = None,
) -> Callable[[C], C]:
    """Declare a sub-collection of ``entity_type`` exposed as ``property_key``."""

    def decorator(cls: C) -> C:
        get_metadata_storage().register_sub_collection(
            SubCollectionDescriptor(
                name=name or pluralize(entity_type.__name__),
                entity_type=entity_type,
                parent_entity_type=cls,
                property_key=property_key,
            )
        )
        return cls

    return decorator


def custom_repository(entity_type: type) -> Callable[[C], C]:
    """Bind the decorated repository class to ``entity_type``."""

    def decorator(cls: C) -> C:
        get_metadata_storage().register_custom_repository(entity_type, cls)
        return cls

    return decorator
