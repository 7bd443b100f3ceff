"""Chat History Repository

チャットセッションの作成・読み込み・更新・削除・一覧を提供するリポジトリクラス。
PersistentStore 上に以下のキーで保存します。

- ``chat_<id>``: セッション本体（正規レコード）
- ``chatHistory``: 履歴インデックス（最新更新順、最大50件の非正規化コピー）
- ``activeChatId``: 現在開いているセッションID

破損・欠損したレコードは「存在しない」として扱い、例外は送出しません。

Related Classes: ChatSession (models.py), PersistentStore (src/chat_store/store.py)
"""

from __future__ import annotations

import json
import logging
from typing import Any, List, Optional

from src.chat_store import ACTIVE_CHAT_KEY, HISTORY_KEY, PersistentStore, chat_key

from .models import NEW_CHAT_TITLE, ChatSession, Message, MessageRole, new_id, utcnow

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 50

WELCOME_MESSAGE = (
    "Salam! Mən Yol Dostu botuyam. Azərbaycan Respublikasının yol hərəkəti qaydaları, "
    "cərimələr və digər yol məsələləri haqqında suallarınızı cavablandıra bilərəm. "
    "Sualınızı yazın!"
)

DECODE_ERRORS = (ValueError, KeyError, TypeError, AttributeError)


class ChatHistoryRepository:
    """PersistentStoreベースのチャット履歴管理"""

    def __init__(
        self,
        store: PersistentStore,
        history_limit: int = HISTORY_LIMIT,
        evict_orphans: bool = True,
    ):
        """
        Args:
            store: 永続化先のキー・バリューストア
            history_limit: 履歴インデックスの最大件数
            evict_orphans: インデックスから溢れたセッション本体も削除するか
        """
        self.store = store
        self.history_limit = history_limit
        self.evict_orphans = evict_orphans

    @staticmethod
    def _dumps(payload: Any) -> str:
        return json.dumps(payload, ensure_ascii=False)

    async def _write_session(self, session: ChatSession) -> bool:
        ok = await self.store.set(chat_key(session.id), self._dumps(session.to_dict()))
        if not ok:
            logger.warning("Failed to persist chat %s", session.id)
        return ok

    async def _read_history(self) -> List[ChatSession]:
        raw = await self.store.get(HISTORY_KEY)
        if not raw:
            return []
        try:
            items = json.loads(raw)
            if not isinstance(items, list):
                raise ValueError("history index must be a list")
            return [ChatSession.from_dict(item) for item in items]
        except DECODE_ERRORS as exc:
            logger.warning("Chat history index is corrupt, treating as empty: %s", exc)
            return []

    async def _write_history(self, history: List[ChatSession]) -> bool:
        payload = [session.to_dict() for session in history]
        ok = await self.store.set(HISTORY_KEY, self._dumps(payload))
        if not ok:
            logger.warning("Failed to persist chat history index")
        return ok

    async def create_session(self) -> ChatSession:
        """新規チャットセッションを作成し、アクティブに設定

        ウェルカムメッセージ1件を持つセッションを作成して保存、
        アクティブセッションとして設定し、履歴インデックスに追加します。

        Returns:
            作成されたChatSession（保存に失敗してもメモリ上のセッションを返す）
        """
        now = utcnow()
        welcome = Message(
            id=new_id(),
            role=MessageRole.ASSISTANT,
            content=WELCOME_MESSAGE,
            timestamp=now,
        )
        session = ChatSession(
            id=new_id(),
            title=NEW_CHAT_TITLE,
            messages=[welcome],
            created_at=now,
            updated_at=now,
        )

        await self._write_session(session)
        await self.set_active_session(session.id)
        await self.upsert_history(session)
        logger.info("Created chat %s", session.id)
        return session

    async def load_session(self, session_id: str) -> Optional[ChatSession]:
        """セッションIDでセッションを取得

        Returns:
            ChatSession、存在しない・破損している場合はNone
        """
        raw = await self.store.get(chat_key(session_id))
        if not raw:
            return None
        try:
            return ChatSession.from_dict(json.loads(raw))
        except DECODE_ERRORS as exc:
            logger.warning("Chat record %s is corrupt: %s", session_id, exc)
            return None

    async def get_active_session_id(self) -> Optional[str]:
        return await self.store.get(ACTIVE_CHAT_KEY) or None

    async def set_active_session(self, session_id: str) -> bool:
        """アクティブセッションポインタを書き換える（履歴からの選択など）"""
        ok = await self.store.set(ACTIVE_CHAT_KEY, session_id)
        if not ok:
            logger.warning("Failed to set active chat %s", session_id)
        return ok

    async def load_active_session(self) -> Optional[ChatSession]:
        """アクティブセッションを読み込む

        ポインタが未設定、またはポインタ先のレコードが無い場合はNone。
        後者は復旧可能な不整合として警告ログのみ出力します。
        """
        session_id = await self.get_active_session_id()
        if not session_id:
            return None
        session = await self.load_session(session_id)
        if session is None:
            logger.warning("Active chat %s has no record", session_id)
        return session

    async def save_messages(
        self, session_id: str, messages: List[Message]
    ) -> Optional[ChatSession]:
        """セッションのメッセージを置き換えて保存

        タイトルが初期値のままなら最初のユーザーメッセージから設定し、
        updated_at を更新して履歴インデックスにも反映します。

        Returns:
            更新後のChatSession、レコードが存在しない・保存失敗の場合はNone
        """
        session = await self.load_session(session_id)
        if session is None:
            logger.warning("Cannot save messages, chat %s not found", session_id)
            return None

        session.messages = list(messages)
        session.apply_title_rule()
        session.updated_at = utcnow()

        if not await self._write_session(session):
            return None
        await self.upsert_history(session)
        return session

    async def upsert_history(self, session: ChatSession) -> List[ChatSession]:
        """履歴インデックスにセッションを追加または置き換え

        同じIDの既存エントリは取り除き、最新のスナップショットを先頭に置きます。
        これによりインデックスは常に最新更新順となり、上限を超えた分
        （最も古く更新されたもの）を末尾から切り捨てます。

        Returns:
            保存後の履歴インデックス
        """
        history = [
            existing
            for existing in await self._read_history()
            if existing.id != session.id
        ]
        history.insert(0, session)

        evicted = history[self.history_limit:]
        history = history[: self.history_limit]
        await self._write_history(history)

        if evicted and self.evict_orphans:
            await self._evict(evicted)
        return history

    async def _evict(self, evicted: List[ChatSession]) -> None:
        active_id = await self.get_active_session_id()
        for session in evicted:
            if session.id == active_id:
                continue
            await self.store.remove(chat_key(session.id))
            logger.info("Evicted chat %s from storage", session.id)

    async def delete_session(self, session_id: str) -> bool:
        """セッションを削除

        セッション本体と履歴エントリを削除し、アクティブポインタが
        このセッションを指していればクリアします。

        Returns:
            ストア操作がすべて成功した場合True
        """
        ok = await self.store.remove(chat_key(session_id))

        history = await self._read_history()
        remaining = [session for session in history if session.id != session_id]
        if len(remaining) != len(history):
            ok = await self._write_history(remaining) and ok

        if await self.get_active_session_id() == session_id:
            ok = await self.store.remove(ACTIVE_CHAT_KEY) and ok

        logger.info("Deleted chat %s", session_id)
        return ok

    async def list_history(self) -> List[ChatSession]:
        """履歴インデックスを取得（最新更新順）"""
        return await self._read_history()

    async def search_history(self, query: str) -> List[ChatSession]:
        """タイトルまたはメッセージ内容で検索（大文字小文字を区別しない）"""
        needle = query.strip().casefold()
        history = await self._read_history()
        if not needle:
            return history
        return [
            session
            for session in history
            if needle in session.title.casefold()
            or any(needle in message.content.casefold() for message in session.messages)
        ]
