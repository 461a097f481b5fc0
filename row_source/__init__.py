"""RowSource - maps normalized records onto relational table rows."""

from __future__ import annotations

from row_source.adapters.protocol import (
    NOT_FOUND_CODE,
    Backend,
    BackendError,
    BackendResponse,
    Embed,
    select_clause,
)
from row_source.core.connection import ConnectionConfig, load_backend
from row_source.core.conventions import Conventions
from row_source.core.enums import CaseTransform, RelationshipKind
from row_source.core.exceptions import (
    BackendRequestError,
    ConfigurationError,
    MissingSubjectError,
    RowSourceError,
    TransformError,
    UnknownRelationshipError,
    UnsupportedOperationError,
)
from row_source.core.inflection import Inflector
from row_source.core.policy import AccessPolicy
from row_source.core.settings import (
    AccessControlConfig,
    AttributeConfig,
    RelationshipConfig,
    SourceSettings,
    TimestampConfig,
    TypeConfig,
)
from row_source.mapping.records import NormalizedRecord, RecordIdentity, ToMany, ToOne
from row_source.mapping.schema import RecordSchema, validate_settings
from row_source.mapping.transformer import RecordTransformer
from row_source.operations import (
    AddRecord,
    AddToRelatedRecords,
    FindRecord,
    FindRecords,
    RemoveFromRelatedRecords,
    RemoveRecord,
    ReplaceRelatedRecord,
    ReplaceRelatedRecords,
    UpdateRecord,
)
from row_source.repository.base import Repository
from row_source.source import RecordSource

__all__ = [
    # Source
    "RecordSource",
    "Repository",
    # Settings
    "SourceSettings",
    "TypeConfig",
    "AttributeConfig",
    "RelationshipConfig",
    "TimestampConfig",
    "AccessControlConfig",
    "ConnectionConfig",
    "load_backend",
    # Resolution
    "Inflector",
    "Conventions",
    "AccessPolicy",
    "RecordTransformer",
    # Records
    "NormalizedRecord",
    "RecordIdentity",
    "ToOne",
    "ToMany",
    "RecordSchema",
    "validate_settings",
    # Intents
    "FindRecords",
    "FindRecord",
    "AddRecord",
    "UpdateRecord",
    "RemoveRecord",
    "ReplaceRelatedRecord",
    "ReplaceRelatedRecords",
    "AddToRelatedRecords",
    "RemoveFromRelatedRecords",
    # Backend
    "Backend",
    "BackendResponse",
    "BackendError",
    "Embed",
    "select_clause",
    "NOT_FOUND_CODE",
    # Enums
    "CaseTransform",
    "RelationshipKind",
    # Exceptions
    "RowSourceError",
    "ConfigurationError",
    "UnknownRelationshipError",
    "UnsupportedOperationError",
    "MissingSubjectError",
    "BackendRequestError",
    "TransformError",
]
