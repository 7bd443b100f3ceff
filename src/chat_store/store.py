"""Persistent Key-Value Store

チャットセッションを保存するための文字列キー・バリューストア。
上位層（ChatHistoryRepository）はこの契約だけに依存します。

- get(key) -> str | None
- set(key, value) -> bool
- remove(key) -> bool

どの操作も例外を呼び出し元へ送出しません。失敗時はログを出力し、
get は None、set / remove は False を返します。

Related Classes: ChatHistoryRepository (src/chat_history/repository.py)
"""

from __future__ import annotations

import asyncio
import logging
import os
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class PersistentStore:
    """非同期キー・バリューストアの基底クラス"""

    async def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    async def set(self, key: str, value: str) -> bool:
        raise NotImplementedError

    async def remove(self, key: str) -> bool:
        raise NotImplementedError


class InMemoryStore(PersistentStore):
    """dictベースのストア。テストや埋め込みホスト向け。"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> bool:
        self._data[key] = value
        return True

    async def remove(self, key: str) -> bool:
        self._data.pop(key, None)
        return True


class SqliteKeyValueStore(PersistentStore):
    """SQLiteベースのキー・バリューストア。

    1キー = 1行。set は INSERT OR REPLACE による単一行の置き換えなので、
    キー単位ではアトミックに書き込まれます（キー間のトランザクションはありません）。
    """

    def __init__(self, db_path: Optional[Path] = None):
        root = Path(__file__).resolve().parents[2]
        default_path = root / "data" / "yol_dostu.db"
        env_path = os.getenv("YOL_DOSTU_DB_PATH")
        if db_path:
            self.db_path = Path(db_path)
        elif env_path:
            self.db_path = Path(env_path)
        else:
            self.db_path = default_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _initialize(self) -> None:
        """kv_storeテーブルの初期化"""
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.commit()

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    def _get(self, key: str) -> Optional[str]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM kv_store WHERE key = ?", (key,)
            ).fetchone()
        return row["value"] if row else None

    def _set(self, key: str, value: str) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO kv_store (key, value, updated_at)
                VALUES (?, ?, ?)
                """,
                (key, value, self._now()),
            )
            conn.commit()

    def _remove(self, key: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            conn.commit()

    async def get(self, key: str) -> Optional[str]:
        try:
            return await asyncio.to_thread(self._get, key)
        except sqlite3.Error as exc:
            logger.error("Store read failed for %s: %s", key, exc)
            return None

    async def set(self, key: str, value: str) -> bool:
        try:
            await asyncio.to_thread(self._set, key, value)
            return True
        except sqlite3.Error as exc:
            logger.error("Store write failed for %s: %s", key, exc)
            return False

    async def remove(self, key: str) -> bool:
        try:
            await asyncio.to_thread(self._remove, key)
            return True
        except sqlite3.Error as exc:
            logger.error("Store remove failed for %s: %s", key, exc)
            return False
