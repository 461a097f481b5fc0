"""Adapter settings.

Settings are assembled once when the source is constructed and are never
mutated afterwards; every resolver and transformer receives them
explicitly. Models are frozen and their mappings are read-only views.
Scalar options can also be supplied through ``ROW_SOURCE_*`` environment
variables, e.g. ``ROW_SOURCE_ACCESS_COLUMN=owner_id``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from row_source.core.enums import CaseTransform, RelationshipKind


def _read_only(value: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(value))


class AttributeConfig(BaseModel):
    """Per-attribute column override and value hooks."""

    model_config = ConfigDict(frozen=True)

    column: str | None = None
    serialize: Callable[[Any], Any] | None = None
    deserialize: Callable[[Any], Any] | None = None


class RelationshipConfig(BaseModel):
    """Per-relationship kind, foreign key override and related type."""

    model_config = ConfigDict(frozen=True)

    kind: RelationshipKind
    foreign_key: str | None = None
    inverse_type: str | None = None


class TimestampConfig(BaseModel):
    """Backend-managed timestamp column names."""

    model_config = ConfigDict(frozen=True)

    created_at: str = "created_at"
    updated_at: str = "updated_at"


class AccessControlConfig(BaseModel):
    """Per-type override of row-level access control."""

    model_config = ConfigDict(frozen=True)

    enabled: bool | None = None
    column: str | None = None


class TypeConfig(BaseModel):
    """Everything configurable for one record type."""

    model_config = ConfigDict(frozen=True)

    table_name: str | None = None
    attributes: Mapping[str, AttributeConfig] = Field(default_factory=dict, validate_default=True)
    relationships: Mapping[str, RelationshipConfig] = Field(
        default_factory=dict, validate_default=True
    )
    timestamps: TimestampConfig = Field(default_factory=TimestampConfig)
    access_control: AccessControlConfig = Field(default_factory=AccessControlConfig)

    @field_validator("attributes", "relationships")
    @classmethod
    def _freeze_maps(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return _read_only(value)


class SourceSettings(BaseSettings):
    """Global settings for a record source.

    Attributes:
        name: Source name, used in log events.
        type_map: Per-type overrides keyed by record type.
        access_column: Default access-control column.
        access_control_default: Whether types without an override are
            access controlled.
        case_transform: Attribute to column case conversion.
        select_relationships: Eager-load configured to-many relationships.
        order_by_created: Order multi-row reads by the created timestamp.
        filter_writes: Also scope update/delete by the access column.
        pluralize: Replacement pluralization function.
        singularize: Replacement singularization function.
        subject_accessor: Returns the current subject identifier, or None.
    """

    model_config = SettingsConfigDict(
        env_prefix="ROW_SOURCE_",
        frozen=True,
        extra="ignore",
    )

    name: str = "remote"
    type_map: Mapping[str, TypeConfig] = Field(default_factory=dict, validate_default=True)
    access_column: str = "user_id"
    access_control_default: bool = True
    case_transform: CaseTransform = CaseTransform.SNAKE_CASE
    select_relationships: bool = True
    order_by_created: bool = True
    filter_writes: bool = False
    pluralize: Callable[[str], str] | None = None
    singularize: Callable[[str], str] | None = None
    subject_accessor: Callable[[], Any] | None = None

    @field_validator("type_map")
    @classmethod
    def _freeze_type_map(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return _read_only(value)

    @field_validator("access_column")
    @classmethod
    def _validate_access_column(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("access_column must not be blank")
        return stripped
