"""Unit tests for Repository and the repository helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock

import pytest
from pydantic import BaseModel

from doc_query.adapters.memory import MemoryAdapter
from doc_query.core.exceptions import (
    InvalidArgumentError,
    MetadataError,
    UninitializedStoreError,
    UnregisteredCollectionError,
    ValidationFailure,
    ValidationSetupError,
)
from doc_query.core.registry import MetadataStorage
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


@dataclass
class Band:
    id: str | None = None
    name: str = ""
    formed: int = 0
    genres: list[str] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)
    albums: Any = None


@dataclass
class Album:
    id: str | None = None
    title: str = ""
    tracks: Any = None


@dataclass
class Track:
    id: str | None = None
    name: str = ""


class Member(BaseModel):
    id: str | None = None
    name: str
    age: int


@dataclass
class Song:
    id: str | None = None
    title: str = ""


@dataclass
class Gig:
    id: str | None = None
    venue: str = ""
    setlist: Repository | None = None


@dataclass
class Roadie:
    id: str | None = None
    van: Repository | None = None


class Spot(BaseModel):
    where: GeoPoint
    label: DocumentReference | None = None


class Place(BaseModel):
    id: str | None = None
    spot: Spot


@pytest.fixture
def bands(store: MemoryAdapter) -> Repository[Band]:
    collection("bands")(Band)
    sub_collection(Album, "albums")(Band)
    sub_collection(Track, "tracks")(Album)
    return Repository(Band)


class TestConstruction:
    def test_requires_initialized_store(self, storage: MetadataStorage) -> None:
        collection("bands")(Band)
        with pytest.raises(UninitializedStoreError):
            Repository(Band)

    def test_requires_registered_entity(self, store: MemoryAdapter) -> None:
        with pytest.raises(UnregisteredCollectionError):
            Repository(Band)

    def test_path_from_descriptor_name(self, bands: Repository[Band]) -> None:
        assert bands.path == "bands"

    def test_literal_path(self, store: MemoryAdapter) -> None:
        repo: Repository[dict[str, Any]] = Repository("logs")
        assert repo.path == "logs"
        assert repo.descriptor.entity_type is None

    def test_default_collection_name(self, store: MemoryAdapter) -> None:
        collection()(Track)
        assert Repository(Track).path == "Tracks"

    def test_base_repository_is_abstract(self, store: MemoryAdapter) -> None:
        with pytest.raises(TypeError):
            BaseRepository("logs")  # type: ignore[abstract]


class TestEntryPoints:
    def test_where_returns_builder(self, bands: Repository[Band]) -> None:
        builder = bands.where_equal_to("name", "Wire")
        assert isinstance(builder, QueryBuilder)
        assert builder.spec.queries[0].field == "name"

    def test_negative_limit_raises_before_store_call(self, bands: Repository[Band]) -> None:
        bands._storage.store.run_query = AsyncMock()
        with pytest.raises(InvalidArgumentError):
            bands.limit(-1)
        bands._storage.store.run_query.assert_not_called()

    async def test_execute_single_requests_one_document(self, bands: Repository[Band]) -> None:
        run_query = AsyncMock(return_value=[])
        bands._storage.store.run_query = run_query
        await bands.find_one()
        spec = run_query.await_args.args[1]
        assert spec.limit == 1

    async def test_execute_single_keeps_zero_limit(self, bands: Repository[Band]) -> None:
        run_query = AsyncMock(return_value=[])
        bands._storage.store.run_query = run_query
        await bands.limit(0).find_one()
        assert run_query.await_args.args[1].limit == 0


class TestCrud:
    async def test_create_generates_id(self, bands: Repository[Band]) -> None:
        band = await bands.create(Band(name="Wire", formed=1976))
        assert band.id
        assert len(band.id) == 20

    async def test_create_keeps_given_id(self, bands: Repository[Band]) -> None:
        band = await bands.create(Band(id="wire", name="Wire"))
        assert band.id == "wire"
        found = await bands.find_by_id("wire")
        assert found is not None
        assert found.name == "Wire"

    async def test_create_from_dict_returns_entity(self, bands: Repository[Band]) -> None:
        band = await bands.create({"name": "Can", "formed": 1968})
        assert isinstance(band, Band)
        assert band.name == "Can"

    async def test_stored_document_excludes_id_and_sub_collections(
        self, bands: Repository[Band], store: MemoryAdapter
    ) -> None:
        band = await bands.create(Band(name="Wire"))
        doc = await store.get_document("bands", band.id)  # type: ignore[arg-type]
        assert doc is not None
        assert "id" not in doc.data
        assert "albums" not in doc.data

    async def test_find_by_id_missing_returns_none(self, bands: Repository[Band]) -> None:
        assert await bands.find_by_id("missing") is None

    async def test_id_comes_from_document_identity(
        self, bands: Repository[Band], store: MemoryAdapter
    ) -> None:
        await store.set_document("bands", "real", {"id": "fake", "name": "Wire"})
        band = await bands.find_by_id("real")
        assert band is not None
        assert band.id == "real"

    async def test_update_overwrites(self, bands: Repository[Band]) -> None:
        band = await bands.create(Band(name="Wire", genres=["punk"]))
        band.genres = []
        band.name = "Wire!"
        await bands.update(band)
        stored = await bands.find_by_id(band.id)  # type: ignore[arg-type]
        assert stored is not None
        assert stored.name == "Wire!"
        assert stored.genres == []

    async def test_update_requires_id(self, bands: Repository[Band]) -> None:
        with pytest.raises(InvalidArgumentError):
            await bands.update(Band(name="Wire"))

    async def test_delete_and_delete_missing(self, bands: Repository[Band]) -> None:
        band = await bands.create(Band(name="Wire"))
        await bands.delete(band.id)  # type: ignore[arg-type]
        assert await bands.find_by_id(band.id) is None  # type: ignore[arg-type]
        await bands.delete("never-existed")

    async def test_find_on_empty_builder_returns_collection(self, bands: Repository[Band]) -> None:
        await bands.create(Band(id="a", name="Wire"))
        await bands.create(Band(id="b", name="Can"))
        assert [b.name for b in await bands.find()] == ["Wire", "Can"]
        first = await bands.find_one()
        assert first is not None
        assert first.id == "a"

    async def test_foreign_values_hydrated(
        self, bands: Repository[Band], store: MemoryAdapter
    ) -> None:
        moment = datetime(2020, 1, 1, tzinfo=timezone.utc)
        await store.set_document(
            "bands",
            "wire",
            {
                "name": "Wire",
                "extra": {
                    "signed": Timestamp.from_datetime(moment),
                    "studio": GeoPoint(51.5, -0.1),
                    "label": DocumentReference("harvest", "labels/harvest"),
                },
            },
        )
        band = await bands.find_by_id("wire")
        assert band is not None
        assert band.extra == {
            "signed": moment,
            "studio": {"latitude": 51.5, "longitude": -0.1},
            "label": {"id": "harvest", "path": "labels/harvest"},
        }

    async def test_nested_model_keeps_store_values(
        self, store: MemoryAdapter
    ) -> None:
        collection("places")(Place)
        places: Repository[Place] = Repository(Place)
        label = DocumentReference("l1", "labels/l1")
        place = await places.create(Place(spot=Spot(where=GeoPoint(1.0, 2.0), label=label)))

        doc = await store.get_document("places", place.id)  # type: ignore[arg-type]
        assert doc is not None
        assert isinstance(doc.data["spot"]["where"], GeoPoint)
        assert doc.data["spot"] == {"where": GeoPoint(1.0, 2.0), "label": label}

        found = await places.find_by_id(place.id)  # type: ignore[arg-type]
        assert found is not None
        assert found.spot.where == GeoPoint(1.0, 2.0)


class TestSubCollections:
    async def test_hydrated_entity_gets_sub_repository(self, bands: Repository[Band]) -> None:
        band = await bands.create(Band(id="wire", name="Wire"))
        assert isinstance(band.albums, Repository)
        assert band.albums.path == "bands/wire/albums"
        assert band.albums.descriptor.entity_type is Album

        found = await bands.find_by_id("wire")
        assert found is not None
        assert found.albums.path == "bands/wire/albums"

    async def test_nested_levels_wired_lazily(self, bands: Repository[Band]) -> None:
        band = await bands.create(Band(id="wire", name="Wire"))
        album = await band.albums.create(Album(id="pink-flag", title="Pink Flag"))
        assert album.tracks.path == "bands/wire/albums/pink-flag/tracks"

        await album.tracks.create(Track(name="Reuters"))
        tracks = await album.tracks.find()
        assert [t.name for t in tracks] == ["Reuters"]

    async def test_sub_repository_by_literal_path(self, bands: Repository[Band]) -> None:
        await bands.create(Band(id="wire", name="Wire"))
        albums = get_repository("bands/wire/albums")
        await albums.create({"title": "Chairs Missing"})
        found = await albums.find_one()
        assert isinstance(found, Album)
        assert found.title == "Chairs Missing"


class TestValidation:
    @pytest.fixture
    def members(self, store: MemoryAdapter) -> Repository[Member]:
        collection("members")(Member)
        return Repository(Member)

    def test_validate_valid(self, members: Repository[Member]) -> None:
        assert members.validate({"name": "Colin", "age": 30}) == []

    def test_validate_returns_violations(self, members: Repository[Member]) -> None:
        violations = members.validate({"name": "Colin", "age": "old"})
        assert [v.field for v in violations] == ["age"]

    async def test_create_raises_validation_failure(self, members: Repository[Member]) -> None:
        with pytest.raises(ValidationFailure) as exc_info:
            await members.create({"name": "Colin", "age": "old"})
        assert exc_info.value.violations[0].field == "age"

    async def test_validation_disabled(self, unvalidated_store: MemoryAdapter) -> None:
        collection("members")(Member)
        members: Repository[Member] = Repository(Member)
        member = await members.create(Member.model_construct(name="Colin", age="old"))
        assert member.id

    async def test_typed_sub_collection_field(self, store: MemoryAdapter) -> None:
        collection("gigs")(Gig)
        sub_collection(Song, "setlist")(Gig)
        gigs: Repository[Gig] = Repository(Gig)

        gig = await gigs.create(Gig(venue="Roundhouse"))
        assert isinstance(gig.setlist, Repository)
        assert gig.setlist.path == f"gigs/{gig.id}/Songs"
        assert [v.field for v in gigs.validate({"venue": 5})] == ["venue"]

    async def test_unsupported_field_type_is_setup_error(self, store: MemoryAdapter) -> None:
        collection("roadies")(Roadie)
        roadies: Repository[Roadie] = Repository(Roadie)
        with pytest.raises(ValidationSetupError, match="Roadie"):
            await roadies.create(Roadie())


class TestHelpers:
    def test_get_repository_standalone(self, bands: Repository[Band]) -> None:
        assert type(get_repository(Band)) is Repository

    def test_get_repository_prefers_custom(self, bands: Repository[Band]) -> None:
        @custom_repository(Band)
        class BandRepository(Repository[Band]):
            async def founded_before(self, year: int) -> list[Band]:
                return await self.where_less_than("formed", year).find()

        repo = get_repository(Band)
        assert isinstance(repo, BandRepository)
        assert isinstance(get_custom_repository(Band), BandRepository)
        assert type(get_base_repository(Band)) is Repository

    async def test_custom_repository_queries(self, bands: Repository[Band]) -> None:
        @custom_repository(Band)
        class BandRepository(Repository[Band]):
            async def founded_before(self, year: int) -> list[Band]:
                return await self.where_less_than("formed", year).find()

        await bands.create(Band(name="Can", formed=1968))
        await bands.create(Band(name="Wire", formed=1976))
        repo = get_custom_repository(Band)
        assert [b.name for b in await repo.founded_before(1970)] == ["Can"]

    def test_get_custom_repository_missing(self, bands: Repository[Band]) -> None:
        with pytest.raises(MetadataError):
            get_custom_repository(Band)

    def test_literal_path_uses_custom_repository(self, bands: Repository[Band]) -> None:
        @custom_repository(Band)
        class BandRepository(Repository[Band]):
            pass

        assert isinstance(get_repository("bands"), BandRepository)
        assert type(get_base_repository("bands")) is Repository

    async def test_sub_collection_uses_custom_repository(self, bands: Repository[Band]) -> None:
        @custom_repository(Album)
        class AlbumRepository(Repository[Album]):
            pass

        band = await bands.create(Band(id="wire", name="Wire"))
        assert isinstance(band.albums, AlbumRepository)
        assert band.albums.path == "bands/wire/albums"
        assert isinstance(get_repository("bands/wire/albums"), AlbumRepository)

    async def test_transaction_sub_collection_ignores_custom_repository(
        self, bands: Repository[Band]
    ) -> None:
        @custom_repository(Album)
        class AlbumRepository(Repository[Album]):
            pass

        await bands.create(Band(id="wire", name="Wire"))

        async def body(tx: TransactionContext) -> Any:
            band = await tx.get_repository(Band).find_by_id("wire")
            return band.albums

        albums = await run_transaction(body)
        assert isinstance(albums, TransactionRepository)
        assert not isinstance(albums, AlbumRepository)
