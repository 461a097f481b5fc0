"""Backend collaborator protocol.

The mapping layer never talks to a database directly. It issues exactly
one request per intent through an object implementing ``Backend``; the
backend owns connections, pooling, retries and cancellation. Errors are
returned, not raised, as a ``BackendError`` with a PostgREST-style code.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

# PostgREST: single-object request matched no row.
NOT_FOUND_CODE = "PGRST116"


@dataclass(frozen=True)
class BackendError:
    """Structured error reported by a backend."""

    code: str | None
    message: str
    details: str | None = None


@dataclass(frozen=True)
class BackendResponse:
    """Outcome of one backend request: ``data`` or ``error``."""

    data: Any = None
    error: BackendError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class Embed:
    """An eager-loaded to-many relationship.

    Child rows of ``table`` whose ``foreign_key`` equals the parent ``id``
    are nested in the parent row under ``alias``.
    """

    alias: str
    table: str
    foreign_key: str

    def clause(self) -> str:
        return f"{self.alias}:{self.table}(*)"


def select_clause(embeds: Sequence[Embed]) -> str:
    """Render embeds as a PostgREST select string, e.g. ``*, comments:comments(*)``."""
    if not embeds:
        return "*"
    return "*, " + ", ".join(embed.clause() for embed in embeds)


@runtime_checkable
class Backend(Protocol):
    """Asynchronous single-statement table access."""

    async def select(
        self,
        table: str,
        *,
        filters: Mapping[str, Any] | None = None,
        embeds: Sequence[Embed] = (),
        single: bool = False,
        order_by: str | None = None,
    ) -> BackendResponse:
        """Return matching rows (a list), or one row dict when ``single``."""
        ...

    async def insert(self, table: str, row: Mapping[str, Any]) -> BackendResponse:
        """Insert a row and return it as stored."""
        ...

    async def update(
        self,
        table: str,
        values: Mapping[str, Any],
        filters: Mapping[str, Any],
    ) -> BackendResponse:
        """Update the single row matching ``filters`` and return it."""
        ...

    async def delete(self, table: str, filters: Mapping[str, Any]) -> BackendResponse:
        """Delete rows matching ``filters``."""
        ...
