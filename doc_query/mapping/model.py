"""Entity mapper - turns field dicts into typed entities and back.

Supports Pydantic models, dataclasses, plain classes and untyped (dict)
collections.
"""

from __future__ import annotations

import dataclasses
import inspect
from typing import Any, Generic, TypeVar

from doc_query.core.exceptions import HydrationError
from doc_query.mapping.values import DocumentReference, GeoPoint, Timestamp

T = TypeVar("T")


def _is_pydantic_model(cls: Any) -> bool:
    """Check if a class is a Pydantic BaseModel."""
    try:
        from pydantic import BaseModel

        return isinstance(cls, type) and issubclass(cls, BaseModel)
    except ImportError:
        return False


def field_names(cls: type | None) -> list[str]:
    """Declared field names of an entity class (empty when unknown)."""
    if cls is None:
        return []

    # Pydantic model
    if hasattr(cls, "model_fields"):
        return list(cls.model_fields.keys())

    # Dataclass
    if dataclasses.is_dataclass(cls):
        return [f.name for f in dataclasses.fields(cls)]

    # Plain class - annotations plus __init__ parameters
    names: list[str] = []
    for klass in reversed(cls.__mro__):
        for name in inspect.get_annotations(klass):
            if name not in names:
                names.append(name)
    try:
        sig = inspect.signature(cls.__init__)  # type: ignore[misc]
    except (ValueError, TypeError):
        return names
    for name, param in sig.parameters.items():
        if name == "self" or param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        if name not in names:
            names.append(name)
    return names


def to_plain(value: Any) -> Any:
    """Recursively turn nested models and dataclasses into dicts."""
    if isinstance(value, (Timestamp, GeoPoint, DocumentReference)):
        return value
    if _is_pydantic_model(type(value)):
        return {name: to_plain(getattr(value, name)) for name in type(value).model_fields}
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_plain(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, dict):
        return {k: to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    return value


def entity_to_dict(
    entity: Any,
    exclude: set[str] | frozenset[str] = frozenset(),
) -> dict[str, Any]:
    """Shallow field dict of an entity, nested values made plain.

    Excluded keys are never converted, so live repositories attached to an
    entity are left alone.
    """
    if isinstance(entity, dict):
        items = entity.items()
    elif _is_pydantic_model(type(entity)):
        items = ((name, getattr(entity, name)) for name in type(entity).model_fields)
    elif dataclasses.is_dataclass(entity) and not isinstance(entity, type):
        items = ((f.name, getattr(entity, f.name)) for f in dataclasses.fields(entity))
    else:
        items = vars(entity).items()
    return {key: to_plain(value) for key, value in items if key not in exclude}


def get_entity_id(entity: Any) -> Any:
    if isinstance(entity, dict):
        return entity.get("id")
    return getattr(entity, "id", None)


def set_entity_attr(entity: Any, name: str, value: Any) -> None:
    """Set an attribute even on frozen dataclasses; dicts get a key."""
    if isinstance(entity, dict):
        entity[name] = value
    else:
        object.__setattr__(entity, name, value)


class EntityMapper(Generic[T]):
    """Document-data-to-entity mapper.

    Detection order:
    1. No target class -> plain dict
    2. Pydantic BaseModel -> model_validate(data)
    3. dataclass -> target_class(**known_fields)
    4. Plain class -> target_class(**data)

    Args:
        target_class: The entity class, or None for untyped collections.
    """

    def __init__(self, target_class: type[T] | None) -> None:
        self._target_class = target_class
        self._is_pydantic = _is_pydantic_model(target_class)
        self._is_dataclass = target_class is not None and dataclasses.is_dataclass(target_class)

    def map_one(self, data: dict[str, Any]) -> T:
        """Map one document's field dict (including ``id``) to an entity."""
        if self._target_class is None:
            return dict(data)  # type: ignore[return-value]

        if self._is_pydantic:
            try:
                return self._target_class.model_validate(data)  # type: ignore[attr-defined, no-any-return]
            except Exception as e:
                raise HydrationError(self._target_class.__name__, str(e)) from e

        if self._is_dataclass:
            init_names = {
                f.name
                for f in dataclasses.fields(self._target_class)  # type: ignore[arg-type]
                if f.init
            }
            data = {k: v for k, v in data.items() if k in init_names}

        try:
            return self._target_class(**data)
        except TypeError as e:
            raise HydrationError(self._target_class.__name__, str(e)) from e
