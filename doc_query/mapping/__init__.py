"""Mapping layer - stored documents to typed entities and back."""

from __future__ import annotations

from doc_query.mapping.fields import resolve_field_path
from doc_query.mapping.model import EntityMapper
from doc_query.mapping.transcoder import deserialize_from_storage, serialize_for_storage
from doc_query.mapping.values import (
    DocumentReference,
    GeoPoint,
    StoredDocument,
    Timestamp,
)

__all__ = [
    "EntityMapper",
    "resolve_field_path",
    "serialize_for_storage",
    "deserialize_from_storage",
    "Timestamp",
    "GeoPoint",
    "DocumentReference",
    "StoredDocument",
]
