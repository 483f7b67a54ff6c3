"""Unit tests for validator loading and the Pydantic validator."""

from __future__ import annotations

from dataclasses import dataclass

import pytest
from pydantic import BaseModel, Field

from doc_query.adapters.memory import MemoryAdapter
from doc_query.core.connection import initialize
from doc_query.core.exceptions import ValidationFailure, ValidationSetupError
from doc_query.core.registry import MetadataStorageConfig
from doc_query.decorators import collection
from doc_query.repository import Repository
from doc_query.validation import Validator, Violation, load_validator
from doc_query.validation.pydantic_validator import PydanticValidator


class Venue(BaseModel):
    id: str | None = None
    name: str = Field(min_length=1)
    capacity: int = Field(ge=0)


@dataclass
class Setlist:
    id: str | None = None
    songs: int = 0


class Untyped:
    def __init__(self, name: str) -> None:
        self.name = name


class TestLoadValidator:
    def test_pydantic_backend(self) -> None:
        validator = load_validator("pydantic")
        assert isinstance(validator, PydanticValidator)
        assert isinstance(validator, Validator)

    def test_unknown_backend(self) -> None:
        with pytest.raises(ValidationSetupError, match="validate_models=False"):
            load_validator("cerberus")


class TestPydanticValidator:
    def test_valid_model(self) -> None:
        assert PydanticValidator().validate(Venue, {"name": "Roundhouse", "capacity": 3300}) == []

    def test_violations_per_field(self) -> None:
        violations = PydanticValidator().validate(Venue, {"name": "", "capacity": -1})
        assert sorted(v.field for v in violations) == ["capacity", "name"]
        assert all(isinstance(v, Violation) for v in violations)

    def test_constraint_and_message(self) -> None:
        (violation,) = PydanticValidator().validate(Venue, {"name": "Roundhouse", "capacity": -1})
        assert violation.constraint == "greater_than_equal"
        assert violation.message

    def test_model_instance(self) -> None:
        venue = Venue.model_construct(name="", capacity=10)
        assert [v.field for v in PydanticValidator().validate(Venue, venue)] == ["name"]

    def test_dataclass(self) -> None:
        validator = PydanticValidator()
        assert validator.validate(Setlist, Setlist(songs=12)) == []
        assert [v.field for v in validator.validate(Setlist, {"songs": "many"})] == ["songs"]

    def test_plain_class_has_no_rules(self) -> None:
        assert PydanticValidator().validate(Untyped, Untyped("x")) == []


class TestRepositoryValidation:
    async def test_update_validates(self, store: MemoryAdapter) -> None:
        collection("venues")(Venue)
        venues: Repository[Venue] = Repository(Venue)
        venue = await venues.create(Venue(name="Roundhouse", capacity=3300))

        broken = venue.model_copy(update={"capacity": -5})
        with pytest.raises(ValidationFailure, match="capacity"):
            await venues.update(broken)
        stored = await venues.find_by_id(venue.id)  # type: ignore[arg-type]
        assert stored is not None
        assert stored.capacity == 3300

    async def test_unknown_backend_is_setup_error(self, storage: object) -> None:
        initialize(MemoryAdapter(), MetadataStorageConfig(validator="missing"))
        collection("venues")(Venue)
        venues: Repository[Venue] = Repository(Venue)
        with pytest.raises(ValidationSetupError):
            await venues.create(Venue(name="Roundhouse", capacity=1))
        with pytest.raises(ValidationSetupError):
            venues.validate({"name": "Roundhouse", "capacity": 1})

    async def test_disabled_validation_skips_backend(self, storage: object) -> None:
        initialize(
            MemoryAdapter(),
            MetadataStorageConfig(validate_models=False, validator="missing"),
        )
        collection("venues")(Venue)
        venues: Repository[Venue] = Repository(Venue)
        venue = await venues.create(Venue(name="Roundhouse", capacity=1))
        assert venue.id
