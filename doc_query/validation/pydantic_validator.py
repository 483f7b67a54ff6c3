"""Pydantic-backed validation.

Pydantic models validate through their own schema; stdlib dataclasses
through a schema built from their annotations. Other classes declare no
rules and are always valid.

Fields named in ``exclude`` (sub-collection properties, which hold
repositories) are left out of dataclass schemas entirely, so their
annotations never reach pydantic.
"""

from __future__ import annotations

import dataclasses
import typing
from functools import lru_cache
from typing import Any

from pydantic import BaseModel, Field, PydanticSchemaGenerationError, TypeAdapter, create_model
from pydantic import ValidationError as PydanticValidationError

from doc_query.core.exceptions import ValidationSetupError
from doc_query.validation import Violation


@lru_cache(maxsize=None)
def _adapter_for(entity_type: type, exclude: frozenset[str] = frozenset()) -> TypeAdapter[Any]:
    try:
        if not exclude:
            return TypeAdapter(entity_type)
        hints = typing.get_type_hints(entity_type)
        fields: dict[str, Any] = {}
        for f in dataclasses.fields(entity_type):
            if f.name in exclude or not f.init:
                continue
            if f.default is not dataclasses.MISSING:
                default: Any = f.default
            elif f.default_factory is not dataclasses.MISSING:
                default = Field(default_factory=f.default_factory)
            else:
                default = ...
            fields[f.name] = (hints.get(f.name, Any), default)
        model = create_model(entity_type.__name__, **fields)  # type: ignore[call-overload]
        return TypeAdapter(model)
    except (PydanticSchemaGenerationError, NameError, TypeError) as e:
        raise ValidationSetupError(
            f"Cannot build a validation schema for {entity_type.__name__}: {e}"
        ) from e


class PydanticValidator:
    """Validates entities against Pydantic model and dataclass annotations."""

    def validate(
        self,
        entity_type: type,
        item: Any,
        exclude: frozenset[str] = frozenset(),
    ) -> list[Violation]:
        if isinstance(item, dict):
            payload = item
        elif isinstance(item, BaseModel):
            payload = {name: getattr(item, name) for name in type(item).model_fields}
        elif dataclasses.is_dataclass(item) and not isinstance(item, type):
            payload = {f.name: getattr(item, f.name) for f in dataclasses.fields(item)}
        else:
            payload = dict(vars(item))
        payload = {k: v for k, v in payload.items() if k not in exclude}

        try:
            if issubclass(entity_type, BaseModel):
                entity_type.model_validate(payload)
            elif dataclasses.is_dataclass(entity_type):
                _adapter_for(entity_type, frozenset(exclude)).validate_python(payload)
            else:
                return []
        except PydanticValidationError as e:
            return [
                Violation(
                    field=".".join(str(part) for part in err["loc"]),
                    constraint=err["type"],
                    message=err["msg"],
                )
                for err in e.errors()
            ]
        return []
