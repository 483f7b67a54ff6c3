"""Field path resolution.

A field may be named by a dotted path (``"address.city"``) or by an accessor
such as ``lambda u: u.address.city``. Accessors are evaluated against a
recording stand-in for the entity that remembers every attribute read.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from doc_query.core.exceptions import InvalidArgumentError


class _PathRecorder:
    __slots__ = ("_parts",)

    def __init__(self, parts: tuple[str, ...] = ()) -> None:
        object.__setattr__(self, "_parts", parts)

    def __getattr__(self, name: str) -> _PathRecorder:
        if name.startswith("__"):
            raise AttributeError(name)
        return _PathRecorder((*self._parts, name))

    def __getitem__(self, key: Any) -> _PathRecorder:
        return _PathRecorder((*self._parts, str(key)))

    def __setattr__(self, name: str, value: Any) -> None:
        raise InvalidArgumentError("Field accessors must not assign attributes")


FieldRef = str | Callable[[Any], Any]


def resolve_field_path(field: FieldRef) -> str:
    """Return the dotted path named by a string or an accessor.

    Raises:
        InvalidArgumentError: If the path is empty or the accessor does not
            end on an attribute of the entity.
    """
    if isinstance(field, str):
        path = field.strip()
    elif callable(field):
        result = field(_PathRecorder())
        if not isinstance(result, _PathRecorder):
            raise InvalidArgumentError(
                "Field accessor must return an attribute of the entity, "
                f"got {type(result).__name__}"
            )
        path = ".".join(result._parts)
    else:
        raise InvalidArgumentError(f"Unsupported field reference: {field!r}")

    if not path or any(not part for part in path.split(".")):
        raise InvalidArgumentError(f"Invalid field path: {path!r}")
    return path
