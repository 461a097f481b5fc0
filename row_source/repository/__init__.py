"""Repository layer - DDD repository pattern."""

from __future__ import annotations

from row_source.repository.base import Repository

__all__ = [
    "Repository",
]
