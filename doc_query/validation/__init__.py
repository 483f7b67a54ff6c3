"""Validation collaborators.

A validator turns an entity (or a plain dict destined for an entity type)
into a list of violations. Validators are loaded by backend name, so an
unknown or uninstalled backend surfaces as ``ValidationSetupError`` rather
than as a validation failure.
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from doc_query.core.exceptions import ValidationSetupError


@dataclass(frozen=True)
class Violation:
    """One broken rule."""

    field: str
    constraint: str
    message: str


@runtime_checkable
class Validator(Protocol):
    """Validation collaborator protocol."""

    def validate(
        self,
        entity_type: type,
        item: Any,
        exclude: frozenset[str] = frozenset(),
    ) -> list[Violation]:
        """Return the violations of ``item`` against ``entity_type``'s rules.

        Fields named in ``exclude`` are neither checked nor part of the schema.
        """
        ...


# Backend name -> (module_path, class_name)
_VALIDATOR_MAP: dict[str, tuple[str, str]] = {
    "pydantic": ("doc_query.validation.pydantic_validator", "PydanticValidator"),
}


def load_validator(backend: str) -> Validator:
    """Instantiate the validator registered under ``backend``.

    Raises:
        ValidationSetupError: If the backend is unknown or cannot be imported.
    """
    if backend not in _VALIDATOR_MAP:
        raise ValidationSetupError(
            f"Unknown validation backend '{backend}'. Install a supported backend "
            "or initialize with validate_models=False to disable validation."
        )
    module_path, cls_name = _VALIDATOR_MAP[backend]
    try:
        module = importlib.import_module(module_path)
        return getattr(module, cls_name)()  # type: ignore[no-any-return]
    except (ImportError, AttributeError) as e:
        raise ValidationSetupError(
            f"Validation backend '{backend}' is not available: {e}. "
            "Install it or initialize with validate_models=False."
        ) from e


__all__ = ["Violation", "Validator", "load_validator"]
