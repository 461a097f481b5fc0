"""Configuration enumerations."""

from __future__ import annotations

from enum import Enum


class CaseTransform(Enum):
    """How attribute names are converted into column names."""

    SNAKE_CASE = "snake_case"
    CAMEL_CASE = "camelCase"
    NONE = "none"


class RelationshipKind(Enum):
    """Relationship cardinality from the owning record's side."""

    TO_ONE = "hasOne"
    TO_MANY = "hasMany"
