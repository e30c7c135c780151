import json

import pytest

from sourcelens.db.database import Database
from sourcelens.errors import NotFound, RequestValidationFailed
from sourcelens.models.library import LibraryKind
from sourcelens.storage.library import LibraryStorage
from sourcelens.storage.local import LocalStorage


def test_local_storage_persists_to_file(tmp_path):
    path = tmp_path / "local.json"
    storage = LocalStorage(path)
    storage.set_item("sourceLens_savedSources", "[]")
    assert json.loads(path.read_text()) == {"sourceLens_savedSources": "[]"}

    reopened = LocalStorage(path)
    assert reopened.get_item("sourceLens_savedSources") == "[]"
    reopened.remove_item("sourceLens_savedSources")
    assert LocalStorage(path).get_item("sourceLens_savedSources") is None


def test_local_storage_ignores_corrupt_file(tmp_path):
    path = tmp_path / "local.json"
    path.write_text("{not json")
    assert LocalStorage(path).get_item("anything") is None


def test_library_kind_parse():
    assert LibraryKind.parse("drafts") is LibraryKind.DRAFTS
    assert LibraryKind.DRAFTS.local_key == "sourceLens_savedDrafts"
    with pytest.raises(RequestValidationFailed, match="Unknown storage key: notes"):
        LibraryKind.parse("notes")
    with pytest.raises(RequestValidationFailed):
        LibraryKind.parse(None)


@pytest.mark.asyncio
async def test_logged_out_items_go_to_local_storage(tmp_path):
    local = LocalStorage(tmp_path / "local.json")
    library = LibraryStorage(Database(str(tmp_path / "unused.db")), local)
    assert not library.is_persistent

    item_id = await library.save_item("references", {"citation": "Doe, J. (1851)"})
    items = await library.get_items(LibraryKind.REFERENCES)
    assert items[0]["id"] == item_id
    assert isinstance(items[0]["dateAdded"], int)
    assert json.loads(local.get_item("sourceLens_savedReferences"))[0]["citation"] == "Doe, J. (1851)"

    await library.update_item("references", item_id, {"citation": "Doe, Jane (1851)"})
    updated = (await library.get_items("references"))[0]
    assert updated["citation"] == "Doe, Jane (1851)"
    assert "lastEdited" in updated

    with pytest.raises(NotFound):
        await library.update_item("references", "no-such-id", {"citation": "x"})
    assert (await library.get_items("references"))[0]["citation"] == "Doe, Jane (1851)"

    await library.delete_item("references", item_id)
    assert await library.get_items("references") == []


@pytest.mark.asyncio
async def test_logged_in_items_go_to_database(tmp_path):
    db = Database(str(tmp_path / "sourcelens.db"))
    await db.connect()
    try:
        local = LocalStorage(tmp_path / "local.json")
        library = LibraryStorage(db, local, user_id="user-1")
        assert library.is_persistent

        item_id = await library.save_item("sources", {"content": "text", "metadata": {"title": "T"}})
        items = await library.get_items("sources")
        assert items[0]["id"] == item_id
        assert items[0]["metadata"] == {"title": "T"}
        assert local.get_item("sourceLens_savedSources") is None

        # rows are scoped to their owner
        assert await LibraryStorage(db, local, user_id="user-2").get_items("sources") == []

        with pytest.raises(NotFound):
            await library.update_item("sources", "missing-id", {"content": "x"})
    finally:
        await db.close()


@pytest.mark.asyncio
async def test_database_update_merges_and_delete_reports(tmp_path):
    db = Database(str(tmp_path / "sourcelens.db"))
    await db.connect()
    try:
        saved = await db.add_item(LibraryKind.DRAFTS, "u1", {"title": "Draft", "content": "one"})
        updated = await db.update_item(LibraryKind.DRAFTS, "u1", saved["id"], {"content": "two"})
        assert updated["title"] == "Draft"
        assert updated["content"] == "two"
        assert updated["lastEdited"] >= saved["dateAdded"]

        assert await db.delete_item(LibraryKind.DRAFTS, "u1", saved["id"]) is True
        assert await db.delete_item(LibraryKind.DRAFTS, "u1", saved["id"]) is False
        assert await db.get_item(LibraryKind.DRAFTS, "u1", saved["id"]) is None
    finally:
        await db.close()
