"""Read and write intents accepted by ``RecordSource``."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from row_source.mapping.records import NormalizedRecord, RecordIdentity

# --- Queries ---


@dataclass(frozen=True)
class FindRecords:
    """All records of a type visible to the current subject."""

    type: str


@dataclass(frozen=True)
class FindRecord:
    """One record by identity; absence yields no result, not an error."""

    record: RecordIdentity


# --- Record operations ---


@dataclass(frozen=True)
class AddRecord:
    record: NormalizedRecord


@dataclass(frozen=True)
class UpdateRecord:
    record: NormalizedRecord


@dataclass(frozen=True)
class RemoveRecord:
    record: RecordIdentity


# --- Relationship operations ---


@dataclass(frozen=True)
class ReplaceRelatedRecord:
    """Point ``relationship`` of ``record`` at ``related_record`` (None clears a to-one)."""

    record: RecordIdentity
    relationship: str
    related_record: RecordIdentity | None


@dataclass(frozen=True)
class ReplaceRelatedRecords:
    """Link every record in ``related_records`` to ``record``.

    Children that are no longer listed are only unlinked when the caller
    passes the previous membership in ``previous_records``.
    """

    record: RecordIdentity
    relationship: str
    related_records: tuple[RecordIdentity, ...]
    previous_records: tuple[RecordIdentity, ...] | None = None


@dataclass(frozen=True)
class AddToRelatedRecords:
    record: RecordIdentity
    relationship: str
    related_record: RecordIdentity


@dataclass(frozen=True)
class RemoveFromRelatedRecords:
    """Accepted and ignored: unlink a child by clearing its own to-one instead."""

    record: RecordIdentity
    relationship: str
    related_record: RecordIdentity


QueryExpression = Union[FindRecords, FindRecord]

RecordOperation = Union[
    AddRecord,
    UpdateRecord,
    RemoveRecord,
    ReplaceRelatedRecord,
    ReplaceRelatedRecords,
    AddToRelatedRecords,
    RemoveFromRelatedRecords,
]
