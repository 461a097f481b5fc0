"""
Example 04: Repository Pattern

This example wraps a RecordSource in a per-type Repository with
domain-specific methods.
"""

import asyncio
import tempfile
from pathlib import Path

from row_source import ConnectionConfig, NormalizedRecord, RecordSource, SourceSettings
from row_source.repository import Repository


class TaskRepository(Repository):
    """Repository for task records"""

    def __init__(self, source: RecordSource):
        super().__init__(source, "task")

    async def open_tasks(self):
        return [task for task in await self.all() if not task.attributes["done"]]

    async def complete(self, task_id):
        return await self.save(
            NormalizedRecord(type="task", id=task_id, attributes={"done": True})
        )


async def main():
    db_path = Path(tempfile.mkdtemp()) / "tasks.db"
    source = RecordSource.from_config(
        ConnectionConfig(driver="sqlite", database=str(db_path)),
        SourceSettings(),
        subject_accessor=lambda: "user-123",
    )
    await source.backend.executescript("""
        CREATE TABLE tasks (
            id INTEGER PRIMARY KEY,
            title TEXT NOT NULL,
            done BOOLEAN DEFAULT 0,
            user_id TEXT NOT NULL,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    """)

    tasks = TaskRepository(source)
    for title in ("Write docs", "Ship release", "Answer issues"):
        await tasks.add({"title": title, "done": False})

    first = (await tasks.all())[0]
    await tasks.complete(first.id)

    print("=== Open tasks ===\n")
    for task in await tasks.open_tasks():
        print(f"   [{task.id}] {task.attributes['title']}")

    await source.backend.close()
    db_path.unlink()


if __name__ == "__main__":
    asyncio.run(main())
