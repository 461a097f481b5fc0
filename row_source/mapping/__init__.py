"""Mapping layer - normalized records, schema and row transformation."""

from __future__ import annotations

from row_source.mapping.records import (
    NormalizedRecord,
    RecordIdentity,
    RelationshipRef,
    ToMany,
    ToOne,
)
from row_source.mapping.schema import (
    AttributeDefinition,
    ModelDefinition,
    RecordSchema,
    RelationshipDefinition,
    validate_settings,
)
from row_source.mapping.transformer import RecordTransformer

__all__ = [
    "NormalizedRecord",
    "RecordIdentity",
    "RelationshipRef",
    "ToOne",
    "ToMany",
    "RecordSchema",
    "ModelDefinition",
    "AttributeDefinition",
    "RelationshipDefinition",
    "validate_settings",
    "RecordTransformer",
]
