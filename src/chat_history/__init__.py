"""Chat History Management

チャットセッションの永続化と管理を提供します。
"""

from .models import NEW_CHAT_TITLE, ChatSession, ChatSummary, Message, MessageRole
from .repository import HISTORY_LIMIT, WELCOME_MESSAGE, ChatHistoryRepository

__all__ = [
    "NEW_CHAT_TITLE",
    "ChatSession",
    "ChatSummary",
    "Message",
    "MessageRole",
    "HISTORY_LIMIT",
    "WELCOME_MESSAGE",
    "ChatHistoryRepository",
]
