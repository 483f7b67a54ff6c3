"""DocQuery exception hierarchy.

Errors raised while resolving metadata or building queries surface before
any store call is made. Store-originated exceptions are never wrapped.
"""

from __future__ import annotations

from typing import Any


class DocQueryError(Exception):
    """Base exception for all DocQuery errors."""


# --- Metadata ---


class MetadataError(DocQueryError):
    """Raised on invalid collection, sub-collection or repository registration."""


class UnregisteredCollectionError(MetadataError):
    """Raised when no collection descriptor exists for a path or entity type."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f'There is no metadata stored for "{key}"')


# --- Store ---


class UninitializedStoreError(DocQueryError):
    """Raised when a repository is used before the store is initialized."""

    def __init__(self) -> None:
        super().__init__("The document store must be initialized first")


class AdapterError(DocQueryError):
    """Raised when a store adapter cannot be loaded."""


# --- Arguments ---


class InvalidArgumentError(DocQueryError):
    """Raised on invalid arguments such as a negative limit."""


# --- Mapping ---


class MappingError(DocQueryError):
    """Base for mapping errors."""


class HydrationError(MappingError):
    """Raised when a stored document cannot construct the entity type."""

    def __init__(self, target_class: str, detail: str) -> None:
        self.target_class = target_class
        super().__init__(f"Cannot hydrate {target_class}: {detail}")


# --- Validation ---


class ValidationSetupError(DocQueryError):
    """Raised when validation is enabled but no validator can be loaded.

    This is a configuration problem, not a data problem.
    """


class ValidationFailure(DocQueryError):
    """Raised by create/update when an entity violates its declared rules."""

    def __init__(self, violations: list[Any]) -> None:
        self.violations = violations
        fields = sorted({v.field for v in violations})
        super().__init__(f"Validation failed for fields {fields}")


# --- Transaction ---


class TransactionError(DocQueryError):
    """Base for transaction errors."""


class TransactionStateError(TransactionError):
    """Raised on use of a transaction outside of its active state."""

    def __init__(self, current_state: str, attempted_action: str) -> None:
        self.current_state = current_state
        self.attempted_action = attempted_action
        super().__init__(f"Cannot {attempted_action} transaction in state '{current_state}'")
