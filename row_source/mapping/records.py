"""Normalized record model.

A record is a typed entity with an identity, flat attributes and named
relationships. A missing attribute or relationship key means "not
loaded", never "null".
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class RecordIdentity:
    """Type and id of a record."""

    type: str
    id: Any


@dataclass(frozen=True)
class ToOne:
    """To-one relationship data. ``data=None`` is a cleared relationship."""

    data: RecordIdentity | None = None


@dataclass(frozen=True)
class ToMany:
    """To-many relationship data. Membership order is irrelevant."""

    data: frozenset[RecordIdentity] = frozenset()

    @classmethod
    def of(cls, identities: Iterable[RecordIdentity]) -> ToMany:
        return cls(frozenset(identities))


RelationshipRef = Union[ToOne, ToMany]


@dataclass(frozen=True)
class NormalizedRecord:
    """A typed record. ``id`` is None until the backend assigns one."""

    type: str
    id: Any = None
    attributes: Mapping[str, Any] = field(default_factory=dict)
    relationships: Mapping[str, RelationshipRef] = field(default_factory=dict)

    @property
    def identity(self) -> RecordIdentity:
        return RecordIdentity(self.type, self.id)
