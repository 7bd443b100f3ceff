"""Session Coordinator

ChatHistoryRepository と ExchangeController を束ね、表示層に
読み取り・変更用のAPIを提供します。

- アクティブセッションIDとメモリ上のメッセージリストを SessionState として保持
- 画面復帰時（on_foreground_refresh / reconcile）に永続化されたポインタを再読込し、
  別画面で切り替えられていれば状態を丸ごと置き換える（後勝ち、マージなし）
- 公開メソッドは例外を送出せず、OperationResult で結果を返す

Related Classes:
  - ChatHistoryRepository (src/chat_history/repository.py)
  - ExchangeController (src/exchange/controller.py)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from src.chat_history import (
    ChatHistoryRepository,
    ChatSession,
    ChatSummary,
    Message,
    MessageRole,
)
from src.exchange.controller import ExchangeController, ExchangeState

logger = logging.getLogger(__name__)


@dataclass
class SessionState:
    """表示層と共有するセッション状態"""

    active_session_id: Optional[str] = None
    title: Optional[str] = None
    messages: List[Message] = field(default_factory=list)

    def replace(self, session: Optional[ChatSession]) -> None:
        if session is None:
            self.active_session_id = None
            self.title = None
            self.messages = []
            return
        self.active_session_id = session.id
        self.title = session.title
        self.messages = list(session.messages)


@dataclass
class OperationResult:
    """表示層に返す操作結果

    ok: 操作が反映されたか（入力拒否などのno-opはFalse、errorはNone）
    error: 失敗理由（表示用）
    """

    ok: bool
    state: SessionState
    error: Optional[str] = None


class SessionCoordinator:
    """チャット画面のセッションを管理するコーディネータ"""

    def __init__(self, repository: ChatHistoryRepository, controller: ExchangeController):
        self.repository = repository
        self.controller = controller
        self.state = SessionState()

    @property
    def busy(self) -> bool:
        return self.controller.busy

    @property
    def exchange_state(self) -> ExchangeState:
        return self.controller.state

    @property
    def failure_count(self) -> int:
        return self.controller.failure_count

    @property
    def attempt_label(self) -> Optional[str]:
        return self.controller.attempt_label

    def _result(self, ok: bool, error: Optional[str] = None) -> OperationResult:
        return OperationResult(ok=ok, state=self.state, error=error)

    def _open(self, session: Optional[ChatSession]) -> None:
        self.state.replace(session)
        self.controller.select(session.id if session is not None else None)

    async def initialize(self) -> OperationResult:
        """起動時の初期化。アクティブセッションが無ければ新規作成。"""
        try:
            session = await self.repository.load_active_session()
            if session is None:
                session = await self.repository.create_session()
            self._open(session)
            return self._result(True)
        except Exception as e:
            logger.exception(f"Error initializing chat: {e}")
            return self._result(False, "initialize_failed")

    async def reconcile(self) -> OperationResult:
        """永続化されたポインタとメモリ上の状態を突き合わせる

        ポインタが別のセッションを指していればそのセッションを読み込み、
        状態を丸ごと置き換えます。ポインタ先が存在しない場合は現状維持。
        """
        try:
            active_id = await self.repository.get_active_session_id()
            if not active_id or active_id == self.state.active_session_id:
                return self._result(False)
            session = await self.repository.load_session(active_id)
            if session is None:
                logger.warning(f"Active chat {active_id} could not be loaded")
                return self._result(False, "session_not_found")
            self._open(session)
            logger.info(f"Switched to chat {active_id}")
            return self._result(True)
        except Exception as e:
            logger.exception(f"Error reloading active chat: {e}")
            return self._result(False, "reconcile_failed")

    async def on_foreground_refresh(self) -> OperationResult:
        """画面が再表示されたときに呼ぶ"""
        return await self.reconcile()

    async def start_new_session(self) -> OperationResult:
        """新しいチャットを開始（確認はUI側で行う）"""
        try:
            session = await self.repository.create_session()
            self._open(session)
            return self._result(True)
        except Exception as e:
            logger.exception(f"Error creating chat: {e}")
            return self._result(False, "create_failed")

    async def send_message(self, text: str) -> OperationResult:
        """メッセージを送信"""
        return await self._run_exchange(text, is_retry=False)

    async def retry_last(self) -> OperationResult:
        """最後のユーザーメッセージを再送信

        ユーザーメッセージが無い、または送信中の場合は何もしません。
        """
        if self.busy:
            return self._result(False)
        last_user = next(
            (m for m in reversed(self.state.messages) if m.role is MessageRole.USER),
            None,
        )
        if last_user is None:
            return self._result(False)
        return await self._run_exchange(last_user.content, is_retry=True)

    async def _run_exchange(self, text: str, is_retry: bool) -> OperationResult:
        session_id = self.state.active_session_id
        if session_id is None:
            return self._result(False, "no_active_session")

        try:
            pending = self.controller.begin(
                text, self.state.messages, is_retry, session_id=session_id
            )
            if pending is None:
                return self._result(False)
            self.state.messages = list(pending.provisional)

            outcome = await self.controller.complete(pending)
            still_active = self.state.active_session_id == session_id
            if still_active:
                self.state.messages = list(outcome.messages)

            saved = await self.repository.save_messages(session_id, outcome.messages)
            if saved is not None and self.state.active_session_id == session_id:
                self.state.title = saved.title

            if not outcome.succeeded:
                return self._result(False, "exchange_failed")
            return self._result(True)
        except Exception as e:
            logger.exception(f"Error sending message: {e}")
            return self._result(False, "send_failed")

    async def list_history(self) -> List[ChatSession]:
        try:
            return await self.repository.list_history()
        except Exception as e:
            logger.exception(f"Error loading chat history: {e}")
            return []

    async def history_summaries(self) -> List[ChatSummary]:
        return [session.to_summary() for session in await self.list_history()]

    async def search_history(self, query: str) -> List[ChatSession]:
        try:
            return await self.repository.search_history(query)
        except Exception as e:
            logger.exception(f"Error searching chat history: {e}")
            return []

    async def load_session(self, session_id: str) -> OperationResult:
        """履歴からセッションを選択して開く（アクティブポインタも更新）"""
        try:
            session = await self.repository.load_session(session_id)
            if session is None:
                return self._result(False, "session_not_found")
            await self.repository.set_active_session(session.id)
            self._open(session)
            return self._result(True)
        except Exception as e:
            logger.exception(f"Error loading chat {session_id}: {e}")
            return self._result(False, "load_failed")

    async def delete_session(self, session_id: str) -> OperationResult:
        """セッションを削除。開いているセッションなら状態もクリア。"""
        try:
            ok = await self.repository.delete_session(session_id)
            if self.state.active_session_id == session_id:
                self._open(None)
            return self._result(ok, None if ok else "delete_failed")
        except Exception as e:
            logger.exception(f"Error deleting chat {session_id}: {e}")
            return self._result(False, "delete_failed")
