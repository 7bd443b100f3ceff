"""Component wiring for the chat core."""

from __future__ import annotations

from typing import Optional

from src.chat_history import ChatHistoryRepository
from src.chat_store import PersistentStore, SqliteKeyValueStore
from src.exchange import ExchangeController, YolDostuClient
from src.session import SessionCoordinator

from .config import Config


def build_coordinator(
    config: Config,
    store: Optional[PersistentStore] = None,
    client: Optional[YolDostuClient] = None,
) -> SessionCoordinator:
    """Build a SessionCoordinator from configuration.

    ``store`` and ``client`` can be injected (tests, embedding hosts); by
    default a SQLite store and the HTTP client are created.
    """
    if store is None:
        store = SqliteKeyValueStore(db_path=config.storage.db_path)
    if client is None:
        client = YolDostuClient(
            base_url=config.api.base_url,
            token=config.api.token,
            timeout=config.api.timeout_seconds,
        )

    repository = ChatHistoryRepository(
        store,
        history_limit=config.chat.history_limit,
        evict_orphans=config.storage.evict_orphans,
    )
    controller = ExchangeController(
        client,
        context_window=config.chat.context_window,
        max_display_attempts=config.chat.max_display_attempts,
    )
    return SessionCoordinator(repository, controller)
