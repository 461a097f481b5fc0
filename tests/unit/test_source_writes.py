"""Unit tests for RecordSource create/update/delete."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from row_source.adapters.protocol import BackendError, BackendResponse
from row_source.core.exceptions import (
    BackendRequestError,
    MissingSubjectError,
    RowSourceError,
    TransformError,
)
from row_source.core.settings import SourceSettings
from row_source.mapping.records import NormalizedRecord, RecordIdentity, ToOne
from row_source.operations import AddRecord, RemoveRecord, UpdateRecord
from row_source.source import RecordSource


class TestCreate:
    async def test_injects_subject_and_skips_timestamps(
        self, backend: AsyncMock, make_source
    ) -> None:
        backend.insert.return_value = BackendResponse(
            data={
                "id": "p1",
                "title": "x",
                "user_id": "u1",
                "created_at": "2024-01-01T00:00:00Z",
                "updated_at": "2024-01-01T00:00:00Z",
            }
        )
        source = make_source(subject="u1")

        record = await source.create(
            NormalizedRecord(
                type="post",
                attributes={"title": "x", "createdAt": "t0", "updatedAt": "t1"},
            )
        )

        table, row = backend.insert.await_args.args
        assert table == "posts"
        assert row == {"title": "x", "user_id": "u1"}
        assert record.id == "p1"
        assert record.attributes["createdAt"] == "2024-01-01T00:00:00Z"
        assert "userId" not in record.attributes

    async def test_caller_access_value_is_overwritten(
        self, backend: AsyncMock, make_source
    ) -> None:
        source = make_source(subject="u1", case_transform="none")
        await source.create(
            NormalizedRecord(type="post", id="p1", attributes={"user_id": "intruder"})
        )
        assert backend.insert.await_args.args[1] == {"id": "p1", "user_id": "u1"}

    async def test_converts_attributes_and_relationships(
        self, backend: AsyncMock, make_source
    ) -> None:
        source = make_source(
            subject="user-123",
            type_map={"post": {"relationships": {"author": {"kind": "hasOne", "foreign_key": "author_id"}}}},
        )
        await source.create(
            NormalizedRecord(
                type="post",
                id="post-1",
                attributes={"title": "Hello World", "publishedAt": "2024-01-01", "viewCount": 42},
                relationships={"author": ToOne(RecordIdentity("user", "user-456"))},
            )
        )
        assert backend.insert.await_args.args[1] == {
            "id": "post-1",
            "title": "Hello World",
            "published_at": "2024-01-01",
            "view_count": 42,
            "author_id": "user-456",
            "user_id": "user-123",
        }

    async def test_subject_resolved_once(self, backend: AsyncMock) -> None:
        accessor = MagicMock(return_value="u1")
        source = RecordSource(backend, SourceSettings(), subject_accessor=accessor)

        await source.create(NormalizedRecord(type="post", attributes={"title": "x"}))

        accessor.assert_called_once_with()
        assert backend.insert.await_args.args[1] == {"title": "x", "user_id": "u1"}

    async def test_no_injection_when_disabled(self, backend: AsyncMock, make_source) -> None:
        source = make_source(type_map={"tag": {"access_control": {"enabled": False}}})
        await source.create(NormalizedRecord(type="tag", attributes={"label": "x"}))
        assert backend.insert.await_args.args == ("tags", {"label": "x"})

    async def test_missing_subject_before_backend_call(
        self, backend: AsyncMock, make_source
    ) -> None:
        source = make_source(subject=None)
        with pytest.raises(MissingSubjectError):
            await source.create(NormalizedRecord(type="post", attributes={"title": "x"}))
        backend.insert.assert_not_awaited()

    async def test_serialize_hook_failure(self, backend: AsyncMock, make_source) -> None:
        source = make_source(
            subject="u1",
            type_map={"post": {"attributes": {"title": {"serialize": lambda v: v.upper()}}}},
        )
        with pytest.raises(TransformError) as exc_info:
            await source.create(NormalizedRecord(type="post", attributes={"title": 3}))
        assert exc_info.value.stage == "transforming"
        assert isinstance(exc_info.value.__cause__, AttributeError)
        backend.insert.assert_not_awaited()

    async def test_insert_error(self, backend: AsyncMock, make_source) -> None:
        backend.insert.return_value = BackendResponse(
            error=BackendError(code="23505", message="duplicate key value")
        )
        source = make_source(subject="u1")
        with pytest.raises(BackendRequestError, match="duplicate key value") as exc_info:
            await source.create(NormalizedRecord(type="post", id="p1"))
        assert exc_info.value.operation == "insert"
        assert exc_info.value.index == 0


class TestUpdate:
    async def test_id_is_filter_not_column(self, backend: AsyncMock, make_source) -> None:
        backend.update.return_value = BackendResponse(data={"id": "p1", "title": "y"})
        source = make_source(subject="u1")

        record = await source.update(
            NormalizedRecord(type="post", id="p1", attributes={"title": "y"})
        )

        backend.update.assert_awaited_once_with("posts", {"title": "y"}, {"id": "p1"})
        assert record.attributes == {"title": "y"}

    async def test_no_access_filter_by_default(self, backend: AsyncMock, make_source) -> None:
        source = make_source(subject=None)
        await source.update(NormalizedRecord(type="post", id="p1", attributes={"title": "y"}))
        assert backend.update.await_args.args[2] == {"id": "p1"}

    async def test_access_filter_when_filtering_writes(
        self, backend: AsyncMock, make_source
    ) -> None:
        source = make_source(subject="u1", filter_writes=True)
        await source.update(NormalizedRecord(type="post", id="p1", attributes={"title": "y"}))
        assert backend.update.await_args.args[2] == {"id": "p1", "user_id": "u1"}

    async def test_requires_id(self, backend: AsyncMock, make_source) -> None:
        source = make_source(subject="u1")
        with pytest.raises(RowSourceError, match="without an id"):
            await source.update(NormalizedRecord(type="post", attributes={"title": "y"}))
        backend.update.assert_not_awaited()

    async def test_update_error(self, backend: AsyncMock, make_source) -> None:
        backend.update.return_value = BackendResponse(
            error=BackendError(code="PGRST116", message="no rows")
        )
        source = make_source(subject="u1")
        with pytest.raises(BackendRequestError) as exc_info:
            await source.update(NormalizedRecord(type="post", id="p1"))
        assert exc_info.value.record_id == "p1"


class TestDelete:
    async def test_deletes_by_id(self, backend: AsyncMock, make_source) -> None:
        source = make_source(subject="u1")
        assert await source.delete(RecordIdentity("post", "p1")) is None
        backend.delete.assert_awaited_once_with("posts", {"id": "p1"})

    async def test_access_filter_when_filtering_writes(
        self, backend: AsyncMock, make_source
    ) -> None:
        source = make_source(subject="u1", filter_writes=True)
        await source.delete(RecordIdentity("post", "p1"))
        backend.delete.assert_awaited_once_with("posts", {"id": "p1", "user_id": "u1"})

    async def test_delete_error(self, backend: AsyncMock, make_source) -> None:
        backend.delete.return_value = BackendResponse(
            error=BackendError(code="23503", message="foreign key violation")
        )
        source = make_source(subject="u1")
        with pytest.raises(BackendRequestError, match="foreign key violation"):
            await source.delete(RecordIdentity("post", "p1"))


class TestPerformBatch:
    async def test_returns_created_and_updated_records(
        self, backend: AsyncMock, make_source
    ) -> None:
        backend.insert.return_value = BackendResponse(data={"id": "p1", "title": "a"})
        backend.update.return_value = BackendResponse(data={"id": "p2", "title": "b"})
        source = make_source(subject="u1")

        records = await source.perform(
            [
                AddRecord(NormalizedRecord(type="post", attributes={"title": "a"})),
                RemoveRecord(RecordIdentity("post", "p9")),
                UpdateRecord(NormalizedRecord(type="post", id="p2", attributes={"title": "b"})),
            ]
        )

        assert [r.id for r in records] == ["p1", "p2"]

    async def test_partial_failure_stops_the_batch(self, backend: AsyncMock, make_source) -> None:
        backend.insert.side_effect = [
            BackendResponse(data={"id": "p1"}),
            BackendResponse(error=BackendError(code="23505", message="duplicate")),
        ]
        source = make_source(subject="u1")

        with pytest.raises(BackendRequestError) as exc_info:
            await source.perform(
                [
                    AddRecord(NormalizedRecord(type="post", attributes={"title": "a"})),
                    AddRecord(NormalizedRecord(type="post", attributes={"title": "b"})),
                    RemoveRecord(RecordIdentity("post", "p1")),
                ]
            )

        assert exc_info.value.index == 1
        assert [r.id for r in exc_info.value.completed] == ["p1"]
        backend.delete.assert_not_awaited()

    async def test_cancellation_propagates(self, backend: AsyncMock, make_source) -> None:
        backend.delete.side_effect = asyncio.CancelledError()
        source = make_source(subject="u1")
        with pytest.raises(asyncio.CancelledError):
            await source.delete(RecordIdentity("post", "p1"))
