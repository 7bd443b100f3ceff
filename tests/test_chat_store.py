"""Persistent store tests"""

import sqlite3

import pytest

from src.chat_store import InMemoryStore, SqliteKeyValueStore, chat_key


def test_chat_key_format():
    assert chat_key("abc") == "chat_abc"


@pytest.mark.asyncio
async def test_in_memory_store_cycle():
    store = InMemoryStore()
    assert await store.get("k") is None
    assert await store.set("k", "v") is True
    assert await store.get("k") == "v"
    assert await store.remove("k") is True
    assert await store.get("k") is None
    # 存在しないキーの削除も成功扱い
    assert await store.remove("k") is True


@pytest.mark.asyncio
async def test_sqlite_store_cycle(tmp_path):
    store = SqliteKeyValueStore(db_path=tmp_path / "kv.db")

    assert await store.get("activeChatId") is None
    assert await store.set("activeChatId", "chat-1") is True
    assert await store.set("activeChatId", "chat-2") is True
    assert await store.get("activeChatId") == "chat-2"
    assert await store.get("chatHistory") is None
    # 上書きは同じ行を置き換える
    with sqlite3.connect(store.db_path) as conn:
        rows = conn.execute("SELECT key, value FROM kv_store").fetchall()
    assert rows == [("activeChatId", "chat-2")]

    assert await store.remove("activeChatId") is True
    assert await store.get("activeChatId") is None


@pytest.mark.asyncio
async def test_sqlite_store_persists_across_instances(tmp_path):
    db_path = tmp_path / "kv.db"
    await SqliteKeyValueStore(db_path=db_path).set("chatHistory", "[]")

    assert await SqliteKeyValueStore(db_path=db_path).get("chatHistory") == "[]"


def test_sqlite_store_uses_env_path(tmp_path, monkeypatch):
    db_path = tmp_path / "env" / "kv.db"
    monkeypatch.setenv("YOL_DOSTU_DB_PATH", str(db_path))

    store = SqliteKeyValueStore()
    assert store.db_path == db_path
    assert db_path.parent.exists()


@pytest.mark.asyncio
async def test_sqlite_store_failures_do_not_raise(tmp_path, monkeypatch):
    store = SqliteKeyValueStore(db_path=tmp_path / "kv.db")

    def broken(*args, **kwargs):
        raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr(store, "_get", broken)
    monkeypatch.setattr(store, "_set", broken)
    monkeypatch.setattr(store, "_remove", broken)

    assert await store.get("k") is None
    assert await store.set("k", "v") is False
    assert await store.remove("k") is False
