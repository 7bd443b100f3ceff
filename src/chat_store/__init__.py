"""Key-value storage used by the chat core."""

from .keys import ACTIVE_CHAT_KEY, HISTORY_KEY, chat_key
from .store import InMemoryStore, PersistentStore, SqliteKeyValueStore

__all__ = [
    "ACTIVE_CHAT_KEY",
    "HISTORY_KEY",
    "chat_key",
    "InMemoryStore",
    "PersistentStore",
    "SqliteKeyValueStore",
]
