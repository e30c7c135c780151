"""SQLite database layer via aiosqlite."""

from __future__ import annotations

import json
import time
import uuid
from typing import Any

import aiosqlite

from sourcelens.models.library import LibraryKind

TABLE_SCHEMA = """
CREATE TABLE IF NOT EXISTS "{table}" (
    id TEXT PRIMARY KEY,
    userId TEXT NOT NULL,
    data TEXT NOT NULL DEFAULT '{{}}',
    dateAdded INTEGER NOT NULL,
    lastEdited INTEGER
);
CREATE INDEX IF NOT EXISTS "idx_{table}_user" ON "{table}" (userId);
"""

SCHEMA = "".join(TABLE_SCHEMA.format(table=kind.table) for kind in LibraryKind)

# Columns kept outside the JSON blob
_RESERVED = {"id", "userId", "dateAdded", "lastEdited"}


def now_ms() -> int:
    return int(time.time() * 1000)


class Database:
    """Async SQLite database holding per-user library items."""

    def __init__(self, path: str = "sourcelens.db") -> None:
        self.path = path
        self._db: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        self._db = await aiosqlite.connect(self.path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(SCHEMA)

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("Database not connected — call connect() first")
        return self._db

    # -- Library items --

    async def add_item(self, kind: LibraryKind, user_id: str, item: dict[str, Any]) -> dict[str, Any]:
        item_id = str(item.get("id") or uuid.uuid4())
        date_added = int(item.get("dateAdded") or now_ms())
        data = {k: v for k, v in item.items() if k not in _RESERVED}
        await self.db.execute(
            f'INSERT INTO "{kind.table}" (id, userId, data, dateAdded) VALUES (?, ?, ?, ?)',
            (item_id, user_id, json.dumps(data), date_added),
        )
        await self.db.commit()
        return {**data, "id": item_id, "userId": user_id, "dateAdded": date_added}

    async def get_items(
        self, kind: LibraryKind, user_id: str, item_id: str | None = None
    ) -> list[dict[str, Any]]:
        query = f'SELECT * FROM "{kind.table}" WHERE userId = ?'
        params: tuple = (user_id,)
        if item_id:
            query += " AND id = ?"
            params += (item_id,)
        cursor = await self.db.execute(query + " ORDER BY dateAdded", params)
        rows = await cursor.fetchall()
        return [_row_to_item(r) for r in rows]

    async def get_item(self, kind: LibraryKind, user_id: str, item_id: str) -> dict[str, Any] | None:
        items = await self.get_items(kind, user_id, item_id)
        return items[0] if items else None

    async def update_item(
        self, kind: LibraryKind, user_id: str, item_id: str, updates: dict[str, Any]
    ) -> dict[str, Any] | None:
        current = await self.get_item(kind, user_id, item_id)
        if current is None:
            return None
        data = {k: v for k, v in current.items() if k not in _RESERVED}
        data.update({k: v for k, v in updates.items() if k not in _RESERVED})
        edited = now_ms()
        await self.db.execute(
            f'UPDATE "{kind.table}" SET data = ?, lastEdited = ? WHERE id = ? AND userId = ?',
            (json.dumps(data), edited, item_id, user_id),
        )
        await self.db.commit()
        return {
            **data,
            "id": item_id,
            "userId": user_id,
            "dateAdded": current["dateAdded"],
            "lastEdited": edited,
        }

    async def delete_item(self, kind: LibraryKind, user_id: str, item_id: str) -> bool:
        cursor = await self.db.execute(
            f'DELETE FROM "{kind.table}" WHERE id = ? AND userId = ?',
            (item_id, user_id),
        )
        await self.db.commit()
        return cursor.rowcount > 0


def _row_to_item(row: aiosqlite.Row) -> dict[str, Any]:
    item = json.loads(row["data"])
    item.update(id=row["id"], userId=row["userId"], dateAdded=row["dateAdded"])
    if row["lastEdited"] is not None:
        item["lastEdited"] = row["lastEdited"]
    return item
