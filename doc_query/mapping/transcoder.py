"""Value transcoder - entity state to stored documents and back."""

from __future__ import annotations

from typing import Any

from doc_query.mapping.model import entity_to_dict
from doc_query.mapping.values import DocumentReference, GeoPoint, Timestamp


def serialize_for_storage(
    entity: Any,
    sub_collections: tuple[Any, ...] | list[Any] = (),
) -> dict[str, Any]:
    """Produce the field data persisted for an entity.

    The ``id`` is carried by the document identity and every sub-collection
    property key holds a repository, so neither is stored.
    """
    exclude = {"id", *(sub.property_key for sub in sub_collections)}
    return entity_to_dict(entity, exclude=exclude)


def deserialize_from_storage(raw: dict[str, Any], milliseconds: bool = False) -> dict[str, Any]:
    """Convert decoded store values to plain in-memory values.

    Timestamp -> datetime, GeoPoint -> {latitude, longitude},
    DocumentReference -> {id, path}. Composites are walked recursively;
    None values are kept as is.
    """
    return {key: _convert(value, milliseconds) for key, value in raw.items()}


def _convert(value: Any, milliseconds: bool) -> Any:
    if value is None:
        return None
    if isinstance(value, Timestamp):
        return value.to_datetime(milliseconds=milliseconds)
    if isinstance(value, (GeoPoint, DocumentReference)):
        return value.to_plain()
    if isinstance(value, dict):
        return {k: _convert(v, milliseconds) for k, v in value.items()}
    if isinstance(value, list):
        return [_convert(v, milliseconds) for v in value]
    return value
