"""Config / wiring tests"""

import logging
from datetime import datetime, timedelta, timezone

import pytest

from src.chat_store import InMemoryStore
from src.session import SessionCoordinator
from src.yol_dostu import Config, build_coordinator, setup_logger
from src.yol_dostu.formatting import format_relative_date


def test_default_config():
    config = Config()
    assert config.chat.context_window == 6
    assert config.chat.history_limit == 50
    assert config.api.timeout_seconds == 30.0


def test_from_yaml(tmp_path, monkeypatch):
    monkeypatch.setenv("YOL_DOSTU_API_TOKEN", "from-env")
    config_path = tmp_path / "app_config.yaml"
    config_path.write_text(
        "api:\n"
        "  base_url: https://api.example.com\n"
        "  timeout_seconds: 10\n"
        "chat:\n"
        "  history_limit: 20\n"
        "log:\n"
        "  level: DEBUG\n",
        encoding="utf-8",
    )

    config = Config.from_yaml(config_path)

    assert config.api.base_url == "https://api.example.com"
    assert config.api.token == "from-env"
    assert config.api.timeout_seconds == 10.0
    assert config.chat.history_limit == 20
    assert config.chat.context_window == 6
    assert config.log_level == "DEBUG"


def test_bundled_yaml_loads():
    config = Config.from_yaml()
    assert config.chat.max_display_attempts == 3


def test_from_env(monkeypatch):
    monkeypatch.setenv("YOL_DOSTU_API_URL", "https://env.example.com")
    monkeypatch.setenv("YOL_DOSTU_HISTORY_LIMIT", "5")
    monkeypatch.setenv("YOL_DOSTU_EVICT_ORPHANS", "0")

    config = Config.from_env()

    assert config.api.base_url == "https://env.example.com"
    assert config.chat.history_limit == 5
    assert config.storage.evict_orphans is False


@pytest.mark.asyncio
async def test_build_coordinator_with_sqlite(tmp_path):
    config = Config()
    config.storage.db_path = str(tmp_path / "chat.db")

    coordinator = build_coordinator(config)

    assert isinstance(coordinator, SessionCoordinator)
    assert coordinator.controller.client.endpoint.endswith("/yoldostu/chat")
    result = await coordinator.initialize()
    assert result.ok is True

    # 同じDBから再構築すると同じセッションが開く
    reopened = build_coordinator(config)
    again = await reopened.initialize()
    assert again.state.active_session_id == result.state.active_session_id


def test_build_coordinator_uses_history_limit():
    config = Config()
    config.chat.history_limit = 7
    coordinator = build_coordinator(config, store=InMemoryStore())
    assert coordinator.repository.history_limit == 7


@pytest.mark.parametrize(
    "delta, expected",
    [
        (timedelta(hours=3), "Bugün"),
        (timedelta(seconds=0), "Bugün"),
        (timedelta(days=1, hours=2), "Dünən"),
        (timedelta(days=4, hours=1), "4 gün əvvəl"),
        (timedelta(days=30), "31.12.2023"),
    ],
)
def test_format_relative_date(delta, expected):
    now = datetime(2024, 1, 30, 12, 0, tzinfo=timezone.utc)
    assert format_relative_date(now - delta, now) == expected


@pytest.fixture
def urllib3_logger():
    noisy = logging.getLogger("urllib3")
    saved = noisy.level
    yield noisy
    noisy.setLevel(saved)


def test_setup_logger_quiets_urllib3(urllib3_logger):
    setup_logger(log_level="DEBUG", log_file=None)
    assert urllib3_logger.level == logging.WARNING

    setup_logger(log_level="error", log_file="")
    assert urllib3_logger.level == logging.ERROR


def test_setup_logger_rejects_unknown_level(urllib3_logger):
    with pytest.raises(ValueError):
        setup_logger(log_level="LOUD", log_file=None)
