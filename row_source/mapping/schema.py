"""Record schema and configuration validation.

The schema describes which attributes and relationships each record type
has. It is consulted once, when settings are validated, and to fill in
relationship kinds and related types that the type map leaves out.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from row_source.core.enums import RelationshipKind
from row_source.core.exceptions import ConfigurationError
from row_source.core.settings import SourceSettings


class AttributeDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str | None = None


class RelationshipDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: RelationshipKind
    type: str
    inverse: str | None = None


class ModelDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    attributes: dict[str, AttributeDefinition] = Field(default_factory=dict)
    relationships: dict[str, RelationshipDefinition] = Field(default_factory=dict)


class RecordSchema(BaseModel):
    """Attribute and relationship catalog for every record type.

    Example:
        RecordSchema.model_validate({
            "models": {
                "post": {
                    "attributes": {"title": {"type": "string"}},
                    "relationships": {"author": {"kind": "hasOne", "type": "user"}},
                },
            },
        })
    """

    model_config = ConfigDict(frozen=True)

    models: dict[str, ModelDefinition] = Field(default_factory=dict)

    def has_type(self, record_type: str) -> bool:
        return record_type in self.models

    def relationship(self, record_type: str, name: str) -> RelationshipDefinition | None:
        model = self.models.get(record_type)
        if model is None:
            return None
        return model.relationships.get(name)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RecordSchema:
        return cls.model_validate(data)


def validate_settings(settings: SourceSettings, schema: RecordSchema) -> None:
    """Check the type map against the schema.

    Raises:
        ConfigurationError: Listing every problem found.
    """
    problems: list[str] = []

    for record_type, type_config in settings.type_map.items():
        model = schema.models.get(record_type)
        if model is None:
            problems.append(f"type '{record_type}' is not defined in the schema")
            continue

        for attribute in type_config.attributes:
            if attribute not in model.attributes:
                problems.append(f"attribute '{record_type}.{attribute}' is not defined")

        for name, rel_config in type_config.relationships.items():
            definition = model.relationships.get(name)
            if definition is None:
                problems.append(f"relationship '{record_type}.{name}' is not defined")
                continue
            if definition.kind is not rel_config.kind:
                problems.append(
                    f"relationship '{record_type}.{name}' is {definition.kind.value} "
                    f"in the schema but configured as {rel_config.kind.value}"
                )
            if rel_config.inverse_type is not None and not schema.has_type(rel_config.inverse_type):
                problems.append(
                    f"relationship '{record_type}.{name}' points to unknown type "
                    f"'{rel_config.inverse_type}'"
                )

    if problems:
        raise ConfigurationError(problems)
