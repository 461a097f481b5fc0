"""Shared test fixtures."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

import pytest

from row_source.adapters.protocol import BackendResponse
from row_source.core.settings import SourceSettings
from row_source.mapping.schema import RecordSchema
from row_source.source import RecordSource


@pytest.fixture
def schema() -> RecordSchema:
    """Blog schema: posts with an author and comments."""
    return RecordSchema.from_dict(
        {
            "models": {
                "post": {
                    "attributes": {
                        "title": {"type": "string"},
                        "content": {"type": "string"},
                        "publishedAt": {"type": "datetime"},
                        "viewCount": {"type": "number"},
                    },
                    "relationships": {
                        "author": {"kind": "hasOne", "type": "user"},
                        "comments": {"kind": "hasMany", "type": "comment"},
                    },
                },
                "user": {
                    "attributes": {
                        "firstName": {"type": "string"},
                        "lastName": {"type": "string"},
                        "email": {"type": "string"},
                    },
                    "relationships": {
                        "posts": {"kind": "hasMany", "type": "post"},
                    },
                },
                "comment": {
                    "attributes": {"text": {"type": "string"}},
                    "relationships": {
                        "post": {"kind": "hasOne", "type": "post"},
                    },
                },
            },
        }
    )


@pytest.fixture
def backend() -> AsyncMock:
    """Backend double; every call succeeds with an empty result by default."""
    mock = AsyncMock()
    mock.select.return_value = BackendResponse(data=[])
    mock.insert.return_value = BackendResponse(data={"id": "new"})
    mock.update.return_value = BackendResponse(data={"id": "updated"})
    mock.delete.return_value = BackendResponse()
    return mock


@pytest.fixture
def make_source(backend: AsyncMock):
    """Build a RecordSource over the backend double.

    Usage:
        source = make_source(subject="user-123", case_transform="snake_case")
    """

    def _make(
        subject: Any = None,
        schema: RecordSchema | None = None,
        **settings: Any,
    ) -> RecordSource:
        return RecordSource(
            backend,
            SourceSettings(**settings),
            schema=schema,
            subject_accessor=lambda: subject,
        )

    return _make
