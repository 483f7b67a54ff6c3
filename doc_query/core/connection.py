"""Store configuration and initialization.

StoreConfig is a Pydantic model for type-safe store configuration.
``initialize()`` binds a store adapter and the mapping config to the
process-wide metadata storage; it must run before any repository is built.
"""

from __future__ import annotations

import importlib
from typing import Any

import structlog
from pydantic import BaseModel

from doc_query.core.exceptions import AdapterError
from doc_query.core.registry import MetadataStorageConfig, get_metadata_storage

logger = structlog.get_logger(__name__)


class StoreConfig(BaseModel):
    """Configuration for the document store."""

    driver: str
    project: str | None = None
    database: str | None = None
    credentials_path: str | None = None
    validate_models: bool = True
    timestamps_in_milliseconds: bool = False
    validator: str = "pydantic"
    extra: dict[str, Any] = {}

    def metadata_config(self) -> MetadataStorageConfig:
        return MetadataStorageConfig(
            validate_models=self.validate_models,
            timestamps_in_milliseconds=self.timestamps_in_milliseconds,
            validator=self.validator,
        )


# Adapter module mapping: driver name -> (module_path, class_name)
_ADAPTER_MAP: dict[str, tuple[str, str]] = {
    "memory": ("doc_query.adapters.memory", "MemoryAdapter"),
    "firestore": ("doc_query.adapters.firestore", "FirestoreAdapter"),
}


def load_adapter(config: StoreConfig) -> Any:
    """Load a store adapter by driver name."""
    driver = config.driver.lower()
    if driver not in _ADAPTER_MAP:
        raise AdapterError(f"Unsupported store driver: {config.driver}")

    module_path, cls_name = _ADAPTER_MAP[driver]
    kwargs: dict[str, Any] = dict(config.extra)
    if driver == "firestore":
        kwargs.update(
            project=config.project,
            database=config.database,
            credentials_path=config.credentials_path,
        )

    try:
        module = importlib.import_module(module_path)
        return getattr(module, cls_name)(**kwargs)
    except (ImportError, AttributeError) as e:
        raise AdapterError(f"Failed to load adapter for '{config.driver}': {e}") from e


def initialize(
    store: Any,
    config: MetadataStorageConfig | None = None,
) -> Any:
    """Bind the document store used by every repository.

    Args:
        store: A StoreAdapter instance, or a StoreConfig to build one from.
        config: Mapping configuration. Taken from the StoreConfig when
            omitted, else the defaults.

    Returns:
        The bound adapter.
    """
    storage = get_metadata_storage()
    if isinstance(store, StoreConfig):
        if config is None:
            config = store.metadata_config()
        store = load_adapter(store)

    storage.set_store(store)
    storage.set_config(config or MetadataStorageConfig())
    logger.debug(
        "store_initialized",
        adapter=type(store).__name__,
        validate_models=storage.config.validate_models,
    )
    return store
