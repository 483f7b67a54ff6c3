"""Query operator and sort direction enumerations."""

from __future__ import annotations

from enum import Enum


class Operator(Enum):
    """Filter operators supported by the store."""

    EQUAL = "=="
    LESS_THAN = "<"
    LESS_OR_EQUAL = "<="
    GREATER_THAN = ">"
    GREATER_OR_EQUAL = ">="
    ARRAY_CONTAINS = "array-contains"


class Direction(Enum):
    """Sort directions."""

    ASCENDING = "asc"
    DESCENDING = "desc"
