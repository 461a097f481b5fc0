"""Repository base class.

Thin per-type wrapper over ``RecordSource`` for DDD-oriented usage.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from row_source.mapping.records import NormalizedRecord, RecordIdentity, RelationshipRef
from row_source.source import RecordSource


class Repository:
    """Record access bound to one record type.

    Subclasses add domain-specific methods that delegate to ``self.source``.
    """

    def __init__(self, source: RecordSource, record_type: str) -> None:
        self.source = source
        self.record_type = record_type

    def identity(self, record_id: Any) -> RecordIdentity:
        return RecordIdentity(self.record_type, record_id)

    async def all(self) -> list[NormalizedRecord]:
        return await self.source.find_all(self.record_type)

    async def get(self, record_id: Any) -> NormalizedRecord | None:
        return await self.source.find_one(self.record_type, record_id)

    async def add(
        self,
        attributes: Mapping[str, Any],
        relationships: Mapping[str, RelationshipRef] | None = None,
        *,
        record_id: Any = None,
    ) -> NormalizedRecord:
        record = NormalizedRecord(
            type=self.record_type,
            id=record_id,
            attributes=dict(attributes),
            relationships=dict(relationships or {}),
        )
        return await self.source.create(record)

    async def save(self, record: NormalizedRecord) -> NormalizedRecord:
        if record.type != self.record_type:
            raise ValueError(
                f"Repository for '{self.record_type}' cannot save a '{record.type}' record"
            )
        return await self.source.update(record)

    async def remove(self, record_id: Any) -> None:
        await self.source.delete(self.identity(record_id))
