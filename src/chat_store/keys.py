"""Storage keys shared by the mobile client and the chat core."""

ACTIVE_CHAT_KEY = "activeChatId"
HISTORY_KEY = "chatHistory"
CHAT_KEY_PREFIX = "chat_"


def chat_key(session_id: str) -> str:
    """Per-session record key (``chat_<id>``)."""
    return f"{CHAT_KEY_PREFIX}{session_id}"
