"""Unit tests for the in-memory store adapter."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from doc_query.adapters.memory import MemoryAdapter, MemoryTransaction, evaluate
from doc_query.core.enums import Direction, Operator
from doc_query.mapping.values import StoredDocument, Timestamp
from doc_query.query.spec import OrderByClause, QueryLine, QuerySpec

DOCS = {
    "a": {
        "name": "Wire",
        "year": 1976,
        "genres": ["punk", "post-punk"],
        "city": {"name": "London"},
    },
    "b": {"name": "Can", "year": 1968, "genres": ["krautrock"], "city": {"name": "Cologne"}},
    "c": {"name": "Fall", "year": 1976, "genres": ["post-punk"]},
    "d": {"name": "Slits"},
}


def _ids(docs: list[StoredDocument]) -> list[str]:
    return [d.id for d in docs]


class TestEvaluate:
    def test_no_constraints_returns_all_by_id(self) -> None:
        assert _ids(evaluate(DOCS, QuerySpec())) == ["a", "b", "c", "d"]

    @pytest.mark.parametrize(
        ("operator", "value", "expected"),
        [
            (Operator.EQUAL, 1976, ["a", "c"]),
            (Operator.LESS_THAN, 1976, ["b"]),
            (Operator.LESS_OR_EQUAL, 1976, ["a", "b", "c"]),
            (Operator.GREATER_THAN, 1968, ["a", "c"]),
            (Operator.GREATER_OR_EQUAL, 1968, ["a", "b", "c"]),
        ],
    )
    def test_comparison_operators(
        self, operator: Operator, value: int, expected: list[str]
    ) -> None:
        spec = QuerySpec(queries=(QueryLine("year", operator, value),))
        assert _ids(evaluate(DOCS, spec)) == expected

    def test_array_contains(self) -> None:
        spec = QuerySpec(queries=(QueryLine("genres", Operator.ARRAY_CONTAINS, "post-punk"),))
        assert _ids(evaluate(DOCS, spec)) == ["a", "c"]

    def test_nested_field_path(self) -> None:
        spec = QuerySpec(queries=(QueryLine("city.name", Operator.EQUAL, "Cologne"),))
        assert _ids(evaluate(DOCS, spec)) == ["b"]

    def test_missing_field_never_matches(self) -> None:
        spec = QuerySpec(queries=(QueryLine("year", Operator.LESS_THAN, 3000),))
        assert "d" not in _ids(evaluate(DOCS, spec))

    def test_mixed_types_do_not_match_range(self) -> None:
        spec = QuerySpec(queries=(QueryLine("name", Operator.GREATER_THAN, 5),))
        assert evaluate(DOCS, spec) == []

    def test_filters_are_conjunctive(self) -> None:
        spec = QuerySpec(
            queries=(
                QueryLine("year", Operator.EQUAL, 1976),
                QueryLine("genres", Operator.ARRAY_CONTAINS, "punk"),
            )
        )
        assert _ids(evaluate(DOCS, spec)) == ["a"]

    def test_order_excludes_documents_missing_field(self) -> None:
        spec = QuerySpec(order_by=(OrderByClause("year"),))
        assert _ids(evaluate(DOCS, spec)) == ["b", "a", "c"]

    def test_multi_key_order(self) -> None:
        spec = QuerySpec(
            order_by=(
                OrderByClause("year", Direction.DESCENDING),
                OrderByClause("name", Direction.ASCENDING),
            )
        )
        assert _ids(evaluate(DOCS, spec)) == ["c", "a", "b"]

    def test_limit_applied_after_order(self) -> None:
        spec = QuerySpec(order_by=(OrderByClause("name", Direction.DESCENDING),), limit=2)
        assert _ids(evaluate(DOCS, spec)) == ["a", "d"]

    def test_limit_zero(self) -> None:
        assert evaluate(DOCS, QuerySpec(limit=0)) == []

    def test_results_are_copies(self) -> None:
        (doc,) = evaluate(DOCS, QuerySpec(queries=(QueryLine("name", Operator.EQUAL, "Wire"),)))
        doc.data["genres"].append("art-punk")
        assert DOCS["a"]["genres"] == ["punk", "post-punk"]

    def test_datetime_filter_value_compared_as_timestamp(self) -> None:
        moment = datetime(2020, 1, 1, tzinfo=timezone.utc)
        docs = {"x": {"at": Timestamp.from_datetime(moment)}}
        spec = QuerySpec(queries=(QueryLine("at", Operator.GREATER_OR_EQUAL, moment),))
        assert _ids(evaluate(docs, spec)) == ["x"]


class TestMemoryAdapter:
    def test_new_id_shape(self) -> None:
        adapter = MemoryAdapter()
        first, second = adapter.new_id("bands"), adapter.new_id("bands")
        assert len(first) == 20
        assert first.isalnum()
        assert first != second

    async def test_set_get_delete(self) -> None:
        adapter = MemoryAdapter()
        await adapter.set_document("bands", "a", {"name": "Wire"})
        doc = await adapter.get_document("bands", "a")
        assert doc == StoredDocument(id="a", data={"name": "Wire"})
        await adapter.delete_document("bands", "a")
        assert await adapter.get_document("bands", "a") is None
        await adapter.delete_document("bands", "a")

    async def test_datetimes_stored_as_timestamps(self) -> None:
        adapter = MemoryAdapter()
        moment = datetime(2021, 5, 4, 12, 0, tzinfo=timezone.utc)
        await adapter.set_document("events", "e", {"at": moment, "log": [moment]})
        doc = await adapter.get_document("events", "e")
        assert doc is not None
        assert doc.data["at"] == Timestamp.from_datetime(moment)
        assert doc.data["log"] == [Timestamp.from_datetime(moment)]

    async def test_paths_normalized(self) -> None:
        adapter = MemoryAdapter()
        await adapter.set_document("/bands/a/albums/", "x", {"title": "Pink Flag"})
        assert adapter.document_ids("bands/a/albums") == ["x"]

    async def test_stored_data_isolated_from_caller(self) -> None:
        adapter = MemoryAdapter()
        data = {"tags": ["a"]}
        await adapter.set_document("items", "i", data)
        data["tags"].append("b")
        doc = await adapter.get_document("items", "i")
        assert doc is not None
        assert doc.data == {"tags": ["a"]}

    async def test_transaction_buffers_until_commit(self) -> None:
        adapter = MemoryAdapter()
        seen: list[list[str]] = []

        async def body(tx: MemoryTransaction) -> int:
            await tx.set_document("bands", "a", {"name": "Wire"})
            seen.append(adapter.document_ids("bands"))
            return tx.pending_writes

        assert await adapter.run_transaction(body) == 1
        assert seen == [[]]
        assert adapter.document_ids("bands") == ["a"]

    async def test_transaction_rollback(self) -> None:
        adapter = MemoryAdapter()
        await adapter.set_document("bands", "a", {"name": "Wire"})

        async def body(tx: MemoryTransaction) -> None:
            await tx.delete_document("bands", "a")
            raise RuntimeError("abort")

        with pytest.raises(RuntimeError):
            await adapter.run_transaction(body)
        assert adapter.document_ids("bands") == ["a"]

    async def test_close_clears(self) -> None:
        adapter = MemoryAdapter()
        await adapter.set_document("bands", "a", {"name": "Wire"})
        await adapter.close()
        assert adapter.document_ids("bands") == []
