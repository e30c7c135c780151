"""Library storage adapter: one CRUD surface for both auth states."""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any

from sourcelens.db.database import Database, now_ms
from sourcelens.errors import NotFound
from sourcelens.models.library import LibraryKind
from sourcelens.storage.local import LocalStorage

logger = logging.getLogger(__name__)


class LibraryStorage:
    """Saves library items to the database when a user is known, else locally.

    Items saved while logged out are not migrated when the user later
    logs in.
    """

    def __init__(self, db: Database, local: LocalStorage, user_id: str | None = None) -> None:
        self.db = db
        self.local = local
        self.user_id = user_id

    @property
    def is_persistent(self) -> bool:
        return bool(self.user_id)

    async def save_item(self, kind: LibraryKind | str, item: dict[str, Any]) -> str:
        kind = _kind(kind)
        if self.is_persistent:
            saved = await self.db.add_item(kind, self.user_id, item)
            return saved["id"]

        new_item = {**item, "id": str(uuid.uuid4()), "dateAdded": now_ms()}
        items = self._read_local(kind)
        items.append(new_item)
        self._write_local(kind, items)
        logger.debug("Saved %s item %s to local storage", kind.value, new_item["id"])
        return new_item["id"]

    async def get_items(self, kind: LibraryKind | str) -> list[dict[str, Any]]:
        kind = _kind(kind)
        if self.is_persistent:
            return await self.db.get_items(kind, self.user_id)
        return self._read_local(kind)

    async def update_item(self, kind: LibraryKind | str, item_id: str, updates: dict[str, Any]) -> None:
        kind = _kind(kind)
        if self.is_persistent:
            if await self.db.update_item(kind, self.user_id, item_id, updates) is None:
                raise NotFound(f"Item not found (ID: {item_id})")
            return

        items = self._read_local(kind)
        matched = False
        for item in items:
            if item.get("id") == item_id:
                item.update(updates, id=item_id, lastEdited=now_ms())
                matched = True
        if not matched:
            raise NotFound(f"Item not found (ID: {item_id})")
        self._write_local(kind, items)

    async def delete_item(self, kind: LibraryKind | str, item_id: str) -> None:
        kind = _kind(kind)
        if self.is_persistent:
            await self.db.delete_item(kind, self.user_id, item_id)
            return
        items = [item for item in self._read_local(kind) if item.get("id") != item_id]
        self._write_local(kind, items)

    # -- Local storage --

    def _read_local(self, kind: LibraryKind) -> list[dict[str, Any]]:
        raw = self.local.get_item(kind.local_key) or "[]"
        try:
            items = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding corrupt local storage value for %s", kind.local_key)
            return []
        return items if isinstance(items, list) else []

    def _write_local(self, kind: LibraryKind, items: list[dict[str, Any]]) -> None:
        self.local.set_item(kind.local_key, json.dumps(items))


def _kind(kind: LibraryKind | str) -> LibraryKind:
    return kind if isinstance(kind, LibraryKind) else LibraryKind.parse(kind)
