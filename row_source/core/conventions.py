"""Naming conventions.

Every name is resolved by a fixed precedence: per-attribute or
per-relationship override, then per-type override, then the global
default. Resolution is a pure function of the settings (and schema), so
the same inputs always produce the same table and column names.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from row_source.adapters.protocol import Embed
from row_source.core.enums import CaseTransform, RelationshipKind
from row_source.core.inflection import Inflector
from row_source.core.settings import (
    AttributeConfig,
    RelationshipConfig,
    SourceSettings,
    TimestampConfig,
    TypeConfig,
)

if TYPE_CHECKING:
    from row_source.mapping.schema import RecordSchema

_EMPTY_TYPE_CONFIG = TypeConfig()


class Conventions:
    """Resolves table, column and foreign-key names for record types.

    Args:
        settings: Global settings, including the per-type ``type_map``.
        schema: Optional record schema, used when the type map does not
            describe a relationship.
    """

    def __init__(self, settings: SourceSettings, schema: RecordSchema | None = None) -> None:
        self._settings = settings
        self._schema = schema
        self._inflector = Inflector(settings.pluralize, settings.singularize)

    @property
    def settings(self) -> SourceSettings:
        return self._settings

    @property
    def inflector(self) -> Inflector:
        return self._inflector

    def type_config(self, record_type: str) -> TypeConfig:
        return self._settings.type_map.get(record_type, _EMPTY_TYPE_CONFIG)

    def attribute_config(self, record_type: str, attribute: str) -> AttributeConfig | None:
        return self.type_config(record_type).attributes.get(attribute)

    # --- Tables and columns ---

    def table_name(self, record_type: str) -> str:
        override = self.type_config(record_type).table_name
        if override is not None:
            return override
        return self._inflector.pluralize(record_type)

    def column_name(self, record_type: str, attribute: str) -> str:
        attr_config = self.attribute_config(record_type, attribute)
        if attr_config is not None and attr_config.column is not None:
            return attr_config.column
        return self._to_column(attribute)

    def attribute_name(self, record_type: str, column: str) -> str:
        """Reverse of ``column_name``: explicit overrides first, then case conversion."""
        for attribute, attr_config in self.type_config(record_type).attributes.items():
            if attr_config.column == column:
                return attribute
        return self._from_column(column)

    def timestamp_columns(self, record_type: str) -> TimestampConfig:
        return self.type_config(record_type).timestamps

    # Only snake_case converts; in camelCase and none modes the columns
    # already carry the attribute names.

    def _to_column(self, name: str) -> str:
        if self._settings.case_transform is CaseTransform.SNAKE_CASE:
            return self._inflector.to_snake_case(name)
        return name

    def _from_column(self, column: str) -> str:
        if self._settings.case_transform is CaseTransform.SNAKE_CASE:
            return self._inflector.to_camel_case(column)
        return column

    # --- Relationships ---

    def relationship_config(self, record_type: str, relationship: str) -> RelationshipConfig | None:
        return self.type_config(record_type).relationships.get(relationship)

    def relationship_kind(self, record_type: str, relationship: str) -> RelationshipKind | None:
        rel_config = self.relationship_config(record_type, relationship)
        if rel_config is not None:
            return rel_config.kind
        if self._schema is not None:
            definition = self._schema.relationship(record_type, relationship)
            if definition is not None:
                return definition.kind
        return None

    def related_type(self, record_type: str, relationship: str) -> str:
        rel_config = self.relationship_config(record_type, relationship)
        if rel_config is not None and rel_config.inverse_type is not None:
            return rel_config.inverse_type
        if self._schema is not None:
            definition = self._schema.relationship(record_type, relationship)
            if definition is not None:
                return definition.type
        return relationship

    def foreign_key_column(self, record_type: str, relationship: str) -> str:
        rel_config = self.relationship_config(record_type, relationship)
        if rel_config is not None and rel_config.foreign_key is not None:
            return rel_config.foreign_key
        return self._inflector.to_snake_case(f"{relationship}_id")

    def relationship_names(self, record_type: str) -> list[str]:
        """Configured relationships, followed by schema-only ones."""
        names = list(self.type_config(record_type).relationships)
        if self._schema is not None and self._schema.has_type(record_type):
            for name in self._schema.models[record_type].relationships:
                if name not in names:
                    names.append(name)
        return names

    def to_one_relationships(self, record_type: str) -> list[str]:
        return [
            name
            for name in self.relationship_names(record_type)
            if self.relationship_kind(record_type, name) is RelationshipKind.TO_ONE
        ]

    def to_many_relationships(self, record_type: str) -> list[str]:
        return [
            name
            for name in self.relationship_names(record_type)
            if self.relationship_kind(record_type, name) is RelationshipKind.TO_MANY
        ]

    def embeds(self, record_type: str) -> tuple[Embed, ...]:
        """Eager-load descriptors for to-many relationships in the type map.

        Children point at their parent through ``{parent type}_id``, unless
        the child type configures a foreign key for a relationship named
        after the parent type.
        """
        if not self._settings.select_relationships:
            return ()
        embeds = []
        for name, rel_config in self.type_config(record_type).relationships.items():
            if rel_config.kind is not RelationshipKind.TO_MANY:
                continue
            child_type = self.related_type(record_type, name)
            embeds.append(
                Embed(
                    alias=name,
                    table=self.table_name(child_type),
                    foreign_key=self.foreign_key_column(child_type, record_type),
                )
            )
        return tuple(embeds)

    # --- Access control ---

    def access_control_enabled(self, record_type: str) -> bool:
        enabled = self.type_config(record_type).access_control.enabled
        if enabled is not None:
            return enabled
        return self._settings.access_control_default

    def access_control_column(self, record_type: str) -> str:
        column = self.type_config(record_type).access_control.column
        if column is not None:
            return column
        return self._settings.access_column
