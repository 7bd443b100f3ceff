"""Chat History Models

チャットセッションとメッセージのデータモデル定義。
ストアにはモバイルクライアントと同じJSON形式（camelCaseキー）で保存します。

Related Classes: ChatHistoryRepository (repository.py)
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

NEW_CHAT_TITLE = "Yeni söhbət"
TITLE_MAX_LENGTH = 30
TITLE_ELLIPSIS = "..."


class MessageRole(str, Enum):
    """メッセージの発言者"""

    USER = "user"
    ASSISTANT = "assistant"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def format_timestamp(value: datetime) -> str:
    """datetimeをISO8601文字列に変換（マイクロ秒まで保持）"""
    return value.isoformat()


def parse_timestamp(value: str) -> datetime:
    """ISO8601文字列をdatetimeに変換

    JavaScriptの ``Date.toJSON()`` が出力する末尾 ``Z`` 形式も受け付けます。
    タイムゾーンなしの値はUTCとして扱います。

    Raises:
        ValueError: 不正な形式の場合
    """
    if not isinstance(value, str):
        raise ValueError(f"timestamp must be a string, got {type(value).__name__}")
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def derive_title(content: str) -> str:
    """最初のユーザーメッセージからタイトルを生成（30文字、超過時は "..."）"""
    if len(content) > TITLE_MAX_LENGTH:
        return content[:TITLE_MAX_LENGTH] + TITLE_ELLIPSIS
    return content


@dataclass(slots=True, frozen=True)
class Message:
    """1件のチャットメッセージ

    追加後は変更しません。リトライ時のみ末尾メッセージが置き換えられます。
    """

    id: str
    role: MessageRole
    content: str
    timestamp: datetime
    is_error: bool = False

    @classmethod
    def create(cls, role: MessageRole, content: str, is_error: bool = False) -> "Message":
        return cls(
            id=new_id(),
            role=role,
            content=content,
            timestamp=utcnow(),
            is_error=is_error,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "role": self.role.value,
            "content": self.content,
            "timestamp": format_timestamp(self.timestamp),
        }
        if self.is_error:
            data["isError"] = True
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        """
        Raises:
            ValueError: roleやtimestampが不正な場合
            KeyError: 必須キーが欠けている場合
        """
        if not isinstance(data, dict):
            raise ValueError(f"message must be an object, got {type(data).__name__}")
        return cls(
            id=str(data["id"]),
            role=MessageRole(data["role"]),
            content=str(data["content"]),
            timestamp=parse_timestamp(data["timestamp"]),
            is_error=bool(data.get("isError", False)),
        )

    def to_context(self) -> Dict[str, str]:
        """会話履歴として送信する形式 {role, content}"""
        return {"role": self.role.value, "content": self.content}


@dataclass(slots=True)
class ChatSummary:
    """履歴一覧表示用の要約"""

    id: str
    title: str
    message_count: int
    updated_at: datetime


@dataclass(slots=True)
class ChatSession:
    """チャットセッションの表現

    1セッション = 1つの会話スレッド。メッセージは時系列順に保持します。
    """

    id: str
    title: str
    messages: List[Message] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def has_default_title(self) -> bool:
        return self.title == NEW_CHAT_TITLE

    @property
    def user_message_count(self) -> int:
        return sum(1 for message in self.messages if message.role is MessageRole.USER)

    def first_user_message(self) -> Optional[Message]:
        for message in self.messages:
            if message.role is MessageRole.USER:
                return message
        return None

    def apply_title_rule(self) -> bool:
        """タイトルがまだ初期値なら最初のユーザーメッセージから設定する

        Returns:
            タイトルを書き換えた場合True
        """
        if not self.has_default_title:
            return False
        first = self.first_user_message()
        if first is None:
            return False
        self.title = derive_title(first.content)
        return True

    def to_summary(self) -> ChatSummary:
        return ChatSummary(
            id=self.id,
            title=self.title,
            message_count=self.user_message_count,
            updated_at=self.updated_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "messages": [message.to_dict() for message in self.messages],
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChatSession":
        """
        Raises:
            ValueError / KeyError / TypeError: 不正なレコードの場合
        """
        if not isinstance(data, dict):
            raise ValueError(f"chat record must be an object, got {type(data).__name__}")
        raw_messages = data.get("messages", [])
        if not isinstance(raw_messages, list):
            raise ValueError("messages must be a list")
        return cls(
            id=str(data["id"]),
            title=str(data["title"]),
            messages=[Message.from_dict(item) for item in raw_messages],
            created_at=parse_timestamp(data["createdAt"]),
            updated_at=parse_timestamp(data["updatedAt"]),
        )
