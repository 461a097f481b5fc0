"""Contract tests for backend protocol compliance."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest

from row_source.adapters.protocol import (
    NOT_FOUND_CODE,
    Backend,
    BackendError,
    BackendResponse,
    Embed,
    select_clause,
)
from row_source.adapters.sqlite import SqliteBackend
from row_source.core.connection import ConnectionConfig


@pytest.fixture
def sqlite_config() -> ConnectionConfig:
    return ConnectionConfig(driver="sqlite", database=":memory:")


@pytest.fixture
async def sqlite_backend(sqlite_config: ConnectionConfig) -> AsyncIterator[SqliteBackend]:
    async with SqliteBackend(sqlite_config) as backend:
        await backend.executescript(
            "CREATE TABLE posts (id TEXT PRIMARY KEY, title TEXT, created_at TEXT);"
            "CREATE TABLE comments (id TEXT PRIMARY KEY, post_id TEXT);"
        )
        yield backend


class TestSelectClause:
    def test_no_embeds(self) -> None:
        assert select_clause(()) == "*"

    def test_embeds(self) -> None:
        embeds = (
            Embed(alias="comments", table="comments", foreign_key="post_id"),
            Embed(alias="tags", table="post_tags", foreign_key="post_id"),
        )
        assert select_clause(embeds) == "*, comments:comments(*), tags:post_tags(*)"

    def test_response_ok(self) -> None:
        assert BackendResponse(data=[]).ok
        assert not BackendResponse(error=BackendError("23505", "duplicate")).ok


class TestSqliteBackendProtocol:
    def test_implements_protocol(self, sqlite_config: ConnectionConfig) -> None:
        assert isinstance(SqliteBackend(sqlite_config), Backend)

    async def test_lifecycle(self, sqlite_config: ConnectionConfig) -> None:
        backend = SqliteBackend(sqlite_config)
        conn = await backend.connect()
        assert conn is await backend.connect()
        await backend.close()
        await backend.close()

    async def test_insert_returns_stored_row(self, sqlite_backend: SqliteBackend) -> None:
        response = await sqlite_backend.insert("posts", {"id": "p1", "title": "a"})
        assert response.ok
        assert response.data == {"id": "p1", "title": "a", "created_at": None}

    async def test_single_select_not_found(self, sqlite_backend: SqliteBackend) -> None:
        response = await sqlite_backend.select("posts", filters={"id": "nope"}, single=True)
        assert response.data is None
        assert response.error.code == NOT_FOUND_CODE

    async def test_select_nests_embeds(self, sqlite_backend: SqliteBackend) -> None:
        await sqlite_backend.insert("posts", {"id": "p1"})
        await sqlite_backend.insert("comments", {"id": "c1", "post_id": "p1"})

        response = await sqlite_backend.select(
            "posts",
            filters={"id": "p1"},
            embeds=(Embed(alias="comments", table="comments", foreign_key="post_id"),),
            single=True,
        )

        assert response.data["comments"] == [{"id": "c1", "post_id": "p1"}]

    async def test_order_by_skipped_for_missing_column(
        self, sqlite_backend: SqliteBackend
    ) -> None:
        await sqlite_backend.insert("comments", {"id": "c1"})
        response = await sqlite_backend.select("comments", order_by="created_at")
        assert response.data == [{"id": "c1", "post_id": None}]

    async def test_update_missing_row(self, sqlite_backend: SqliteBackend) -> None:
        response = await sqlite_backend.update("posts", {"title": "x"}, {"id": "nope"})
        assert response.error.code == NOT_FOUND_CODE

    async def test_empty_update_respects_every_filter(self, sqlite_backend: SqliteBackend) -> None:
        await sqlite_backend.insert("posts", {"id": "p1", "title": "secret"})

        hidden = await sqlite_backend.update("posts", {}, {"id": "p1", "title": "other"})
        visible = await sqlite_backend.update("posts", {}, {"id": "p1", "title": "secret"})

        assert hidden.error.code == NOT_FOUND_CODE
        assert visible.data["id"] == "p1"

    async def test_errors_are_returned(self, sqlite_backend: SqliteBackend) -> None:
        await sqlite_backend.insert("posts", {"id": "p1"})
        response = await sqlite_backend.insert("posts", {"id": "p1"})
        assert response.error.code == "IntegrityError"

    async def test_invalid_identifier_rejected(self, sqlite_backend: SqliteBackend) -> None:
        response = await sqlite_backend.select('posts"; DROP TABLE posts; --')
        assert response.error.code == "ValueError"
        assert "Invalid SQL identifier" in response.error.message
