"""
Example 01: Quickstart

This example creates and reads back records through a RecordSource
backed by a SQLite database.
"""

import asyncio
import tempfile
from pathlib import Path

from row_source import ConnectionConfig, NormalizedRecord, RecordSource, SourceSettings


async def main():
    db_path = Path(tempfile.mkdtemp()) / "quickstart.db"
    config = ConnectionConfig(driver="sqlite", database=str(db_path))

    # The subject accessor stands in for "the logged-in user"
    source = RecordSource.from_config(
        config,
        SourceSettings(),
        subject_accessor=lambda: "user-123",
    )
    await source.backend.executescript("""
        CREATE TABLE posts (
            id INTEGER PRIMARY KEY,
            title TEXT NOT NULL,
            view_count INTEGER DEFAULT 0,
            user_id TEXT NOT NULL,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT
        )
    """)

    print("=== Create ===\n")
    post = await source.create(
        NormalizedRecord(type="post", attributes={"title": "Hello World", "viewCount": 42})
    )
    print(f"   {post.type} #{post.id}: {dict(post.attributes)}\n")

    print("=== Read ===\n")
    for record in await source.find_all("post"):
        print(f"   {record.id}: {record.attributes['title']}")
    print(f"   missing -> {await source.find_one('post', 999)}\n")

    print("=== Update and delete ===\n")
    updated = await source.update(
        NormalizedRecord(type="post", id=post.id, attributes={"title": "Edited"})
    )
    print(f"   title is now {updated.attributes['title']!r}")
    await source.delete(post.identity)
    print(f"   remaining posts: {len(await source.find_all('post'))}\n")

    await source.backend.close()
    db_path.unlink()


if __name__ == "__main__":
    asyncio.run(main())
