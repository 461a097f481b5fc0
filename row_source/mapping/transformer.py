"""Record <-> row transformation.

``serialize`` flattens a normalized record into a row: attributes become
columns, to-one relationships become foreign-key columns. Timestamp
columns are never written; they belong to the backend. To-many
relationships are not serialized because their foreign keys live on the
other table.

``deserialize`` rebuilds a record from a row, dropping ``id`` and the
access column from the attributes, and turning embedded child arrays and
foreign-key columns back into relationships.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from row_source.core.conventions import Conventions
from row_source.core.enums import RelationshipKind
from row_source.core.exceptions import TransformError
from row_source.mapping.records import (
    NormalizedRecord,
    RecordIdentity,
    RelationshipRef,
    ToMany,
    ToOne,
)


def _is_embedded_rows(value: Any) -> bool:
    """True for a non-empty list of row dicts (an eager-loaded relationship)."""
    return isinstance(value, list) and len(value) > 0 and isinstance(value[0], dict)


class RecordTransformer:
    """Converts records to rows and back using the naming conventions."""

    def __init__(self, conventions: Conventions) -> None:
        self._conventions = conventions

    def serialize(self, record: NormalizedRecord) -> dict[str, Any]:
        """Map a record to a row."""
        conventions = self._conventions
        row: dict[str, Any] = {}
        if record.id is not None:
            row["id"] = record.id

        timestamps = conventions.timestamp_columns(record.type)
        managed = {timestamps.created_at, timestamps.updated_at}

        for attribute, value in record.attributes.items():
            column = conventions.column_name(record.type, attribute)
            if column in managed:
                continue
            attr_config = conventions.attribute_config(record.type, attribute)
            if attr_config is not None and attr_config.serialize is not None:
                value = self._apply_hook(
                    attr_config.serialize, value, record.type, attribute, "serialize", record.id
                )
            row[column] = value

        for name, ref in record.relationships.items():
            if conventions.relationship_kind(record.type, name) is not RelationshipKind.TO_ONE:
                continue
            if not isinstance(ref, ToOne):
                continue
            column = conventions.foreign_key_column(record.type, name)
            row[column] = ref.data.id if ref.data is not None else None

        return row

    def deserialize(self, record_type: str, row: Mapping[str, Any]) -> NormalizedRecord:
        """Map a row to a record of ``record_type``."""
        conventions = self._conventions
        record_id = row.get("id")
        access_column = conventions.access_control_column(record_type)
        to_many = conventions.to_many_relationships(record_type)

        attributes: dict[str, Any] = {}
        for column, value in row.items():
            if column == "id" or column == access_column:
                continue
            if _is_embedded_rows(value) or (column in to_many and isinstance(value, list)):
                continue
            attribute = conventions.attribute_name(record_type, column)
            attr_config = conventions.attribute_config(record_type, attribute)
            if attr_config is not None and attr_config.deserialize is not None:
                value = self._apply_hook(
                    attr_config.deserialize, value, record_type, attribute, "deserialize", record_id
                )
            attributes[attribute] = value

        relationships: dict[str, RelationshipRef] = {}
        for name in to_many:
            children = row.get(name)
            if isinstance(children, list):
                related_type = conventions.related_type(record_type, name)
                relationships[name] = ToMany.of(
                    RecordIdentity(related_type, child["id"]) for child in children
                )

        for name in conventions.to_one_relationships(record_type):
            value = row.get(conventions.foreign_key_column(record_type, name))
            if value is not None:
                relationships[name] = ToOne(
                    RecordIdentity(conventions.related_type(record_type, name), value)
                )

        return NormalizedRecord(
            type=record_type,
            id=record_id,
            attributes=attributes,
            relationships=relationships,
        )

    def deserialize_many(
        self,
        record_type: str,
        rows: Iterable[Mapping[str, Any]],
    ) -> list[NormalizedRecord]:
        return [self.deserialize(record_type, row) for row in rows]

    @staticmethod
    def _apply_hook(
        hook: Callable[[Any], Any],
        value: Any,
        record_type: str,
        attribute: str,
        direction: str,
        record_id: Any,
    ) -> Any:
        try:
            return hook(value)
        except Exception as e:
            raise TransformError(record_type, attribute, direction, record_id=record_id) from e
