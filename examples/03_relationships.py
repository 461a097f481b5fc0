"""
Example 03: Relationships

This example links posts to an author (to-one) and to comments (to-many),
then reads the post back with its comments eager-loaded.
"""

import asyncio
import tempfile
from pathlib import Path

from row_source import (
    ConnectionConfig,
    NormalizedRecord,
    RecordIdentity,
    RecordSchema,
    RecordSource,
    SourceSettings,
    ToOne,
)

SCHEMA = RecordSchema.from_dict({
    "models": {
        "user": {
            "attributes": {"firstName": {"type": "string"}},
            "relationships": {"posts": {"kind": "hasMany", "type": "post"}},
        },
        "post": {
            "attributes": {"title": {"type": "string"}},
            "relationships": {
                "author": {"kind": "hasOne", "type": "user"},
                "comments": {"kind": "hasMany", "type": "comment"},
            },
        },
        "comment": {
            "attributes": {"text": {"type": "string"}},
            "relationships": {"post": {"kind": "hasOne", "type": "post"}},
        },
    },
})

SETTINGS = SourceSettings(
    type_map={
        "user": {"access_control": {"enabled": False}},
        "post": {
            "relationships": {"comments": {"kind": "hasMany", "inverse_type": "comment"}},
        },
    },
)


async def main():
    db_path = Path(tempfile.mkdtemp()) / "relationships.db"
    source = RecordSource.from_config(
        ConnectionConfig(driver="sqlite", database=str(db_path)),
        SETTINGS,
        schema=SCHEMA,
        subject_accessor=lambda: "user-123",
    )
    await source.backend.executescript("""
        CREATE TABLE users (id TEXT PRIMARY KEY, first_name TEXT);
        CREATE TABLE posts (
            id TEXT PRIMARY KEY, title TEXT, author_id TEXT, user_id TEXT,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP, updated_at TEXT
        );
        CREATE TABLE comments (id TEXT PRIMARY KEY, text TEXT, post_id TEXT, user_id TEXT);
    """)

    ada = RecordIdentity("user", "ada")
    post = RecordIdentity("post", "p1")
    comments = [RecordIdentity("comment", f"c{i}") for i in range(1, 4)]

    await source.create(NormalizedRecord(type="user", id="ada", attributes={"firstName": "Ada"}))
    await source.create(
        NormalizedRecord(
            type="post",
            id="p1",
            attributes={"title": "Notes"},
            relationships={"author": ToOne(ada)},
        )
    )
    for comment in comments:
        await source.create(
            NormalizedRecord(type="comment", id=comment.id, attributes={"text": f"#{comment.id}"})
        )

    print("=== Link comments ===\n")
    await source.set_many(post, "comments", comments)
    loaded = await source.find_one("post", "p1")
    print(f"   author:   {loaded.relationships['author'].data}")
    print(f"   comments: {sorted(c.id for c in loaded.relationships['comments'].data)}\n")

    print("=== Replace the comment set ===\n")
    await source.set_many(post, "comments", comments[:1], previous=comments)
    loaded = await source.find_one("post", "p1")
    print(f"   comments: {sorted(c.id for c in loaded.relationships['comments'].data)}\n")

    print("=== Clear the author ===\n")
    await source.set_one(post, "author", None)
    loaded = await source.find_one("post", "p1")
    print(f"   has author: {'author' in loaded.relationships}")

    await source.backend.close()
    db_path.unlink()


if __name__ == "__main__":
    asyncio.run(main())
