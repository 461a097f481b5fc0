"""SQLite backend using aiosqlite.

Implements the ``Backend`` protocol over a single aiosqlite connection.
Embedded to-many relationships are loaded with one child lookup per
parent row. Identifiers are validated and double-quoted; values are
always bound as named parameters.
"""

from __future__ import annotations

import re
import sqlite3
from collections.abc import Mapping, Sequence
from typing import Any

import structlog

from row_source.adapters.protocol import (
    NOT_FOUND_CODE,
    BackendError,
    BackendResponse,
    Embed,
)
from row_source.core.connection import ConnectionConfig

logger = structlog.get_logger("row_source.adapters.sqlite")

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _quote(identifier: str) -> str:
    if not _IDENTIFIER.match(identifier):
        raise ValueError(f"Invalid SQL identifier: {identifier!r}")
    return f'"{identifier}"'


def _where(filters: Mapping[str, Any], prefix: str = "w") -> tuple[str, dict[str, Any]]:
    if not filters:
        return "", {}
    clauses = []
    params: dict[str, Any] = {}
    for i, (column, value) in enumerate(filters.items()):
        name = f"{prefix}{i}"
        clauses.append(f"{_quote(column)} = :{name}")
        params[name] = value
    return " WHERE " + " AND ".join(clauses), params


def _error(e: Exception) -> BackendResponse:
    return BackendResponse(error=BackendError(code=type(e).__name__, message=str(e)))


def _not_found(row_count: int) -> BackendResponse:
    return BackendResponse(
        error=BackendError(
            code=NOT_FOUND_CODE,
            message="JSON object requested, multiple (or no) rows returned",
            details=f"The result contains {row_count} rows",
        )
    )


class SqliteBackend:
    """Asynchronous SQLite backend.

    Args:
        config: ``database`` is the SQLite path (or ``:memory:``).
    """

    def __init__(self, config: ConnectionConfig) -> None:
        self.config = config
        self._connection: Any = None

    async def connect(self) -> Any:
        """Open the connection on first use."""
        if self._connection is None:
            import aiosqlite

            self._connection = await aiosqlite.connect(self.config.database)
            self._connection.row_factory = aiosqlite.Row
        return self._connection

    async def close(self) -> None:
        if self._connection is not None:
            await self._connection.close()
            self._connection = None

    async def __aenter__(self) -> SqliteBackend:
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def executescript(self, script: str) -> None:
        """Run a multi-statement script, e.g. to create tables."""
        conn = await self.connect()
        await conn.executescript(script)
        await conn.commit()

    # --- Backend protocol ---

    async def select(
        self,
        table: str,
        *,
        filters: Mapping[str, Any] | None = None,
        embeds: Sequence[Embed] = (),
        single: bool = False,
        order_by: str | None = None,
    ) -> BackendResponse:
        try:
            where, params = _where(filters or {})
            sql = f"SELECT * FROM {_quote(table)}{where}"
            if order_by is not None and order_by in await self._columns(table):
                sql += f" ORDER BY {_quote(order_by)}"
            rows = await self._fetch(sql, params)
            for row in rows:
                for embed in embeds:
                    row[embed.alias] = await self._fetch(
                        f"SELECT * FROM {_quote(embed.table)} "
                        f"WHERE {_quote(embed.foreign_key)} = :parent_id",
                        {"parent_id": row["id"]},
                    )
        except (sqlite3.Error, ValueError) as e:
            return _error(e)

        if single:
            if len(rows) != 1:
                return _not_found(len(rows))
            return BackendResponse(data=rows[0])
        return BackendResponse(data=rows)

    async def insert(self, table: str, row: Mapping[str, Any]) -> BackendResponse:
        try:
            if row:
                columns = ", ".join(_quote(column) for column in row)
                placeholders = ", ".join(f":v{i}" for i in range(len(row)))
                sql = f"INSERT INTO {_quote(table)} ({columns}) VALUES ({placeholders})"
            else:
                sql = f"INSERT INTO {_quote(table)} DEFAULT VALUES"
            params = {f"v{i}": value for i, value in enumerate(row.values())}

            conn = await self.connect()
            logger.debug("sqlite.execute", sql=sql)
            cursor = await conn.execute(sql, params)
            rowid = cursor.lastrowid
            await cursor.close()
            await conn.commit()

            rows = await self._fetch(
                f"SELECT * FROM {_quote(table)} WHERE rowid = :rowid", {"rowid": rowid}
            )
        except (sqlite3.Error, ValueError) as e:
            return _error(e)
        return BackendResponse(data=rows[0])

    async def update(
        self,
        table: str,
        values: Mapping[str, Any],
        filters: Mapping[str, Any],
    ) -> BackendResponse:
        try:
            where, params = _where(filters)
            if values:
                assignments = ", ".join(
                    f"{_quote(column)} = :v{i}" for i, column in enumerate(values)
                )
                params.update({f"v{i}": value for i, value in enumerate(values.values())})
                sql = f"UPDATE {_quote(table)} SET {assignments}{where}"

                conn = await self.connect()
                logger.debug("sqlite.execute", sql=sql)
                cursor = await conn.execute(sql, params)
                affected = cursor.rowcount
                await cursor.close()
                await conn.commit()
                if affected == 0:
                    return _not_found(0)

            # With no UPDATE issued the full filters scope the read. After one,
            # the filtered columns may have changed.
            refetch = filters
            if values and "id" in filters:
                refetch = {"id": filters["id"]}
            where, params = _where(refetch)
            rows = await self._fetch(f"SELECT * FROM {_quote(table)}{where}", params)
        except (sqlite3.Error, ValueError) as e:
            return _error(e)

        if len(rows) != 1:
            return _not_found(len(rows))
        return BackendResponse(data=rows[0])

    async def delete(self, table: str, filters: Mapping[str, Any]) -> BackendResponse:
        try:
            where, params = _where(filters)
            sql = f"DELETE FROM {_quote(table)}{where}"
            conn = await self.connect()
            logger.debug("sqlite.execute", sql=sql)
            cursor = await conn.execute(sql, params)
            await cursor.close()
            await conn.commit()
        except (sqlite3.Error, ValueError) as e:
            return _error(e)
        return BackendResponse()

    # --- Helpers ---

    async def _fetch(self, sql: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        conn = await self.connect()
        logger.debug("sqlite.execute", sql=sql)
        async with conn.execute(sql, params) as cursor:
            rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def _columns(self, table: str) -> set[str]:
        rows = await self._fetch(f"PRAGMA table_info({_quote(table)})", {})
        return {row["name"] for row in rows}
