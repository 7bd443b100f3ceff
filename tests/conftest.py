"""Shared fixtures for chat core tests."""

from typing import Dict, List

import pytest

from src.chat_history import ChatHistoryRepository
from src.chat_store import InMemoryStore
from src.exchange import ExchangeController, ExchangeTransportError
from src.session import SessionCoordinator


class FakeChatClient:
    """Scripted stand-in for YolDostuClient.

    Each call pops the next scripted reply; an Exception instance is raised
    instead of returned.
    """

    def __init__(self, replies=None):
        self.replies = list(replies or [])
        self.calls: List[Dict] = []

    async def send_async(self, message: str, history: List[Dict[str, str]]) -> str:
        self.calls.append({"message": message, "history": history})
        reply = self.replies.pop(0) if self.replies else "ok"
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def repo(store):
    return ChatHistoryRepository(store)


@pytest.fixture
def client():
    return FakeChatClient()


@pytest.fixture
def coordinator(repo, client):
    return SessionCoordinator(repo, ExchangeController(client))


@pytest.fixture
def failure():
    return ExchangeTransportError("connection refused")
