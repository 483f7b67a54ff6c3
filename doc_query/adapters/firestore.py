"""Firestore adapter - google-cloud-firestore AsyncClient.

The Google library is imported lazily so the rest of the package works
without it. Native values are recognized by capability rather than by
concrete class, since the client library wraps them in its own types.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any, TypeVar

from doc_query.core.enums import Direction, Operator
from doc_query.mapping.values import (
    DocumentReference,
    GeoPoint,
    StoredDocument,
    Timestamp,
)
from doc_query.query.spec import QuerySpec

R = TypeVar("R")

_OPERATORS: dict[Operator, str] = {
    Operator.EQUAL: "==",
    Operator.LESS_THAN: "<",
    Operator.LESS_OR_EQUAL: "<=",
    Operator.GREATER_THAN: ">",
    Operator.GREATER_OR_EQUAL: ">=",
    Operator.ARRAY_CONTAINS: "array_contains",
}

_DIRECTIONS: dict[Direction, str] = {
    Direction.ASCENDING: "ASCENDING",
    Direction.DESCENDING: "DESCENDING",
}


def decode_value(value: Any) -> Any:
    """Turn a client-library value into a tagged store value."""
    if value is None:
        return None
    if isinstance(value, datetime):
        # DatetimeWithNanoseconds carries precision beyond microseconds.
        return Timestamp.from_datetime(value, getattr(value, "nanosecond", None))
    if isinstance(value, dict):
        return {k: decode_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [decode_value(v) for v in value]
    if hasattr(value, "latitude") and hasattr(value, "longitude"):
        return GeoPoint(latitude=value.latitude, longitude=value.longitude)
    if hasattr(value, "path") and hasattr(value, "id") and hasattr(value, "parent"):
        return DocumentReference(id=value.id, path=value.path)
    return value


def decode_snapshot(snapshot: Any) -> StoredDocument | None:
    if not snapshot.exists:
        return None
    return StoredDocument(id=snapshot.id, data=decode_value(snapshot.to_dict() or {}))


class FirestoreTransaction:
    """TransactionHandle over an AsyncTransaction."""

    def __init__(self, adapter: FirestoreAdapter, transaction: Any) -> None:
        self._adapter = adapter
        self._transaction = transaction

    async def get_document(self, path: str, doc_id: str) -> StoredDocument | None:
        ref = self._adapter.client.collection(path).document(doc_id)
        return decode_snapshot(await ref.get(transaction=self._transaction))

    async def run_query(self, path: str, spec: QuerySpec) -> list[StoredDocument]:
        query = self._adapter.build_query(path, spec)
        snapshots = await query.get(transaction=self._transaction)
        return [doc for doc in map(decode_snapshot, snapshots) if doc is not None]

    async def set_document(self, path: str, doc_id: str, data: dict[str, Any]) -> None:
        ref = self._adapter.client.collection(path).document(doc_id)
        self._transaction.set(ref, self._adapter.encode_value(data))

    async def delete_document(self, path: str, doc_id: str) -> None:
        ref = self._adapter.client.collection(path).document(doc_id)
        self._transaction.delete(ref)


class FirestoreAdapter:
    """StoreAdapter implementation over google.cloud.firestore.AsyncClient.

    Args:
        client: An existing AsyncClient. Built from the keyword arguments
            when omitted.
        project: Google Cloud project id.
        database: Firestore database id.
        credentials_path: Service-account JSON file.
    """

    def __init__(
        self,
        client: Any = None,
        *,
        project: str | None = None,
        database: str | None = None,
        credentials_path: str | None = None,
    ) -> None:
        if client is None:
            from google.cloud import firestore

            credentials = None
            if credentials_path is not None:
                from google.oauth2 import service_account

                credentials = service_account.Credentials.from_service_account_file(
                    credentials_path
                )
            kwargs: dict[str, Any] = {"project": project, "credentials": credentials}
            if database is not None:
                kwargs["database"] = database
            client = firestore.AsyncClient(**kwargs)
        self.client = client

    def encode_value(self, value: Any) -> Any:
        """Turn tagged store values back into client-library values."""
        if isinstance(value, Timestamp):
            return value.to_datetime()
        if isinstance(value, GeoPoint):
            from google.cloud.firestore import GeoPoint as NativeGeoPoint

            return NativeGeoPoint(value.latitude, value.longitude)
        if isinstance(value, DocumentReference):
            return self.client.document(value.path)
        if isinstance(value, dict):
            return {k: self.encode_value(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self.encode_value(v) for v in value]
        return value

    def build_query(self, path: str, spec: QuerySpec) -> Any:
        from google.cloud.firestore_v1.base_query import FieldFilter

        query = self.client.collection(path)
        for line in spec.queries:
            value = self.encode_value(line.value)
            query = query.where(filter=FieldFilter(line.field, _OPERATORS[line.operator], value))
        for clause in spec.order_by:
            query = query.order_by(clause.field, direction=_DIRECTIONS[clause.direction])
        if spec.limit is not None:
            query = query.limit(spec.limit)
        return query

    def new_id(self, path: str) -> str:
        return str(self.client.collection(path).document().id)

    async def get_document(self, path: str, doc_id: str) -> StoredDocument | None:
        snapshot = await self.client.collection(path).document(doc_id).get()
        return decode_snapshot(snapshot)

    async def run_query(self, path: str, spec: QuerySpec) -> list[StoredDocument]:
        snapshots = await self.build_query(path, spec).get()
        return [doc for doc in map(decode_snapshot, snapshots) if doc is not None]

    async def set_document(self, path: str, doc_id: str, data: dict[str, Any]) -> None:
        await self.client.collection(path).document(doc_id).set(self.encode_value(data))

    async def delete_document(self, path: str, doc_id: str) -> None:
        await self.client.collection(path).document(doc_id).delete()

    async def run_transaction(self, fn: Callable[[FirestoreTransaction], Awaitable[R]]) -> R:
        from google.cloud.firestore import async_transactional

        @async_transactional
        async def _run(transaction: Any) -> R:
            return await fn(FirestoreTransaction(self, transaction))

        return await _run(self.client.transaction())  # type: ignore[no-any-return]

    async def close(self) -> None:
        self.client.close()
