"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from doc_query.adapters.memory import MemoryAdapter
from doc_query.core.connection import initialize
from doc_query.core.registry import MetadataStorage, MetadataStorageConfig, get_metadata_storage


@pytest.fixture(autouse=True)
def storage() -> Iterator[MetadataStorage]:
    """Process-wide metadata storage, cleared around every test."""
    storage = get_metadata_storage()
    storage.reset()
    yield storage
    storage.reset()


@pytest.fixture
def store(storage: MetadataStorage) -> MemoryAdapter:
    """In-memory store bound as the process-wide store."""
    adapter = MemoryAdapter()
    initialize(adapter)
    return adapter


@pytest.fixture
def unvalidated_store(storage: MetadataStorage) -> MemoryAdapter:
    """In-memory store with model validation switched off."""
    adapter = MemoryAdapter()
    initialize(adapter, MetadataStorageConfig(validate_models=False))
    return adapter
