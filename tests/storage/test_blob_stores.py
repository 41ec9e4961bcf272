"""
Contract tests run against every local blob store backend.
"""

import pytest
import pytest_asyncio

from agent_memories.errors import StoreError
from agent_memories.storage.factory import create_blob_store
from agent_memories.storage.memory import MemoryBlobStore
from agent_memories.storage.sqlite import SQLiteBlobStore


@pytest_asyncio.fixture(params=["memory", "sqlite"])
async def store(request, tmp_path):
    if request.param == "memory":
        blobs = MemoryBlobStore()
    else:
        blobs = SQLiteBlobStore(str(tmp_path / "blobs" / "test.db"))
    await blobs.initialize()
    yield blobs
    await blobs.close()


@pytest.mark.asyncio
async def test_put_get_round_trip(store):
    await store.put("memories/a.json", b'{"a": 1}', metadata={"tags": "x,y"}, content_type="application/json")

    blob = await store.get("memories/a.json")

    assert blob.key == "memories/a.json"
    assert blob.data == b'{"a": 1}'
    assert blob.metadata == {"tags": "x,y"}
    assert blob.content_type == "application/json"


@pytest.mark.asyncio
async def test_put_replaces_existing(store):
    await store.put("k", b"one")
    await store.put("k", b"two")

    assert (await store.get("k")).data == b"two"


@pytest.mark.asyncio
async def test_get_missing(store):
    assert await store.get("missing") is None


@pytest.mark.asyncio
async def test_delete_is_idempotent(store):
    await store.put("k", b"data")

    await store.delete("k")
    await store.delete("k")

    assert await store.get("k") is None


@pytest.mark.asyncio
async def test_list_pages_in_key_order(store):
    for name in ["c", "a", "e", "b", "d"]:
        await store.put(f"memories/{name}.json", b"{}")
    await store.put("other/z.json", b"{}")

    first = await store.list("memories/", limit=2)
    second = await store.list("memories/", cursor=first.cursor, limit=2)
    third = await store.list("memories/", cursor=second.cursor, limit=2)

    assert first.keys == ["memories/a.json", "memories/b.json"]
    assert second.keys == ["memories/c.json", "memories/d.json"]
    assert third.keys == ["memories/e.json"]
    assert third.cursor is None


@pytest.mark.asyncio
async def test_list_exact_page_has_no_cursor(store):
    await store.put("memories/a.json", b"{}")
    await store.put("memories/b.json", b"{}")

    listing = await store.list("memories/", limit=2)

    assert len(listing.keys) == 2
    assert listing.cursor is None


@pytest.mark.asyncio
async def test_list_prefix_is_literal(store):
    await store.put("memories/a.json", b"{}")
    await store.put("memoriesX/b.json", b"{}")
    await store.put("memories_%/c.json", b"{}")

    listing = await store.list("memories/")

    assert listing.keys == ["memories/a.json"]


@pytest.mark.asyncio
async def test_list_invalid_cursor(store):
    with pytest.raises(StoreError):
        await store.list("memories/", cursor="abc")


@pytest.mark.asyncio
async def test_get_stats_counts_blobs(store):
    await store.put("a", b"123")
    await store.put("b", b"45")

    stats = await store.get_stats()

    assert stats["total_blobs"] == 2
    assert stats["total_bytes"] == 5


@pytest.mark.asyncio
async def test_sqlite_store_persists_across_connections(tmp_path):
    db_path = str(tmp_path / "persist.db")
    first = SQLiteBlobStore(db_path)
    await first.put("memories/a.json", b"kept")
    await first.close()

    second = SQLiteBlobStore(db_path)
    try:
        assert (await second.get("memories/a.json")).data == b"kept"
    finally:
        await second.close()


def test_factory_creates_backends(tmp_path):
    assert isinstance(create_blob_store("memory"), MemoryBlobStore)

    sqlite_store = create_blob_store("sqlite", db_path=str(tmp_path / "f.db"))
    assert isinstance(sqlite_store, SQLiteBlobStore)
    assert sqlite_store.db_path == str(tmp_path / "f.db")


def test_factory_rejects_unknown_backend():
    with pytest.raises(ValueError):
        create_blob_store("postgres")


def test_factory_r2_requires_settings(monkeypatch):
    from agent_memories import config
    monkeypatch.setattr(config, "CF_ACCOUNT_ID", None)
    monkeypatch.setattr(config, "R2_BUCKET", None)
    monkeypatch.setattr(config, "CF_API_TOKEN", None)

    with pytest.raises(ValueError):
        create_blob_store("r2")
