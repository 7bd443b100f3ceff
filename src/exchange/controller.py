"""Message Exchange Controller

リモートアシスタントとの1往復（Exchange）を制御します。

状態遷移: Idle -> Sending(for_message_id) -> Done(succeeded)

1. begin(): ユーザーメッセージを楽観的に追加した暫定リストを返す（同期）
2. complete(): リクエストを送信し、応答またはエラーメッセージを
   追加・置換した最終リストを返す（非同期）

状態と連続失敗カウンタはセッションIDごとに保持します。select() で
表示中のセッションを切り替えても、別セッションの送信中Exchangeは
そのセッションの状態だけを更新します。

リトライ時は末尾メッセージ（前回のエラーメッセージ）を置き換えます。
永続化は呼び出し元（SessionCoordinator）が行います。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Union

from src.chat_history.models import Message, MessageRole

from .exceptions import ExchangeError

logger = logging.getLogger(__name__)

CONTEXT_WINDOW = 6
MAX_DISPLAY_ATTEMPTS = 3

ERROR_MESSAGE = (
    "Üzr istəyirəm, hal-hazırda cavab verə bilmirəm. "
    "Zəhmət olmasa bir az sonra yenidən cəhd edin."
)


class ChatClient(Protocol):
    async def send_async(self, message: str, history: List[Dict[str, str]]) -> str:
        ...


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Sending:
    for_message_id: str


@dataclass(frozen=True)
class Done:
    succeeded: bool


ExchangeState = Union[Idle, Sending, Done]


@dataclass
class PendingExchange:
    """begin() で確定した送信内容"""

    user_message: Message
    is_retry: bool
    base_messages: List[Message]
    provisional: List[Message]
    context: List[Dict[str, str]] = field(default_factory=list)
    session_id: Optional[str] = None


@dataclass
class ExchangeOutcome:
    """complete() の結果"""

    messages: List[Message]
    succeeded: bool
    reply: Message


def build_context(messages: List[Message], limit: int = CONTEXT_WINDOW) -> List[Dict[str, str]]:
    """直近 limit 件のメッセージを {role, content} に射影（古いものは切り捨て）"""
    if limit <= 0:
        return []
    return [message.to_context() for message in messages[-limit:]]


class ExchangeController:
    """セッションごとにExchangeを直列に実行するコントローラ

    state / failure_count / busy は select() で選択中のセッションの値です。
    """

    def __init__(
        self,
        client: ChatClient,
        context_window: int = CONTEXT_WINDOW,
        max_display_attempts: int = MAX_DISPLAY_ATTEMPTS,
    ):
        self.client = client
        self.context_window = context_window
        self.max_display_attempts = max_display_attempts
        self.session_id: Optional[str] = None
        self._states: Dict[Optional[str], ExchangeState] = {}
        self._failures: Dict[Optional[str], int] = {}

    @property
    def state(self) -> ExchangeState:
        return self._states.get(self.session_id, Idle())

    @property
    def failure_count(self) -> int:
        return self._failures.get(self.session_id, 0)

    @property
    def busy(self) -> bool:
        return self.is_busy(self.session_id)

    def is_busy(self, session_id: Optional[str]) -> bool:
        return isinstance(self._states.get(session_id), Sending)

    @property
    def attempt_label(self) -> Optional[str]:
        """連続失敗中の表示用テキスト。上限としては扱わない。"""
        if self.failure_count == 0:
            return None
        return f"(attempt {self.failure_count + 1}/{self.max_display_attempts})"

    def select(self, session_id: Optional[str]) -> None:
        """表示するセッションを切り替える

        開いたセッションの失敗カウンタは0に戻します。送信中のExchangeがある
        セッションの状態はそのまま残します。
        """
        self.session_id = session_id
        if not self.is_busy(session_id):
            self._states.pop(session_id, None)
            self._failures.pop(session_id, None)

    def begin(
        self,
        text: str,
        messages: List[Message],
        is_retry: bool = False,
        session_id: Optional[str] = None,
    ) -> Optional[PendingExchange]:
        """
        Exchangeを開始する（フェーズ1）

        Args:
            text: 送信テキスト
            messages: 現在のメッセージリスト
            is_retry: リトライかどうか
            session_id: 対象セッション（省略時は選択中のセッション）

        Returns:
            PendingExchange、空テキストまたはそのセッションが送信中の場合はNone
        """
        if session_id is None:
            session_id = self.session_id
        content = text.strip()
        if not content:
            logger.debug("Ignoring empty message")
            return None
        if self.is_busy(session_id):
            logger.debug(f"Exchange already in flight for {session_id}, ignoring message")
            return None

        user_message = Message.create(MessageRole.USER, content)
        base = list(messages)
        provisional = base if is_retry else base + [user_message]

        self._states[session_id] = Sending(for_message_id=user_message.id)
        return PendingExchange(
            user_message=user_message,
            is_retry=is_retry,
            base_messages=base,
            provisional=provisional,
            context=build_context(base, self.context_window),
            session_id=session_id,
        )

    async def complete(self, pending: PendingExchange) -> ExchangeOutcome:
        """
        リクエストを送信して結果を反映する（フェーズ2）

        失敗は例外にせず、isError付きのエラーメッセージとして返します。
        """
        succeeded = False
        try:
            reply_text = await self.client.send_async(
                pending.user_message.content, pending.context
            )
            reply = Message.create(MessageRole.ASSISTANT, reply_text)
            succeeded = True
        except ExchangeError as e:
            logger.warning(f"Exchange failed: {e}")
            reply = Message.create(MessageRole.ASSISTANT, ERROR_MESSAGE, is_error=True)
        except Exception as e:
            logger.exception(f"Unexpected exchange error: {e}")
            reply = Message.create(MessageRole.ASSISTANT, ERROR_MESSAGE, is_error=True)
        finally:
            self._states[pending.session_id] = Done(succeeded=succeeded)

        if succeeded:
            self._failures.pop(pending.session_id, None)
        else:
            self._failures[pending.session_id] = (
                self._failures.get(pending.session_id, 0) + 1
            )

        if pending.is_retry:
            messages = pending.base_messages[:-1] + [reply]
        else:
            messages = pending.provisional + [reply]

        return ExchangeOutcome(messages=messages, succeeded=succeeded, reply=reply)

    async def exchange(
        self, text: str, messages: List[Message], is_retry: bool = False
    ) -> Optional[ExchangeOutcome]:
        """begin() と complete() をまとめて実行"""
        pending = self.begin(text, messages, is_retry)
        if pending is None:
            return None
        return await self.complete(pending)
