"""ExchangeControllerのテスト"""

import pytest

from src.chat_history import Message, MessageRole
from src.exchange import (
    ERROR_MESSAGE,
    Done,
    ExchangeController,
    ExchangeHTTPError,
    Idle,
    Sending,
    build_context,
)


def make_messages(count: int) -> list[Message]:
    roles = [MessageRole.ASSISTANT, MessageRole.USER]
    return [Message.create(roles[i % 2], f"m{i}") for i in range(count)]


def test_build_context_keeps_last_six():
    messages = make_messages(9)
    context = build_context(messages)

    assert len(context) == 6
    assert [item["content"] for item in context] == [f"m{i}" for i in range(3, 9)]
    assert context[0] == {"role": "user", "content": "m3"}


def test_build_context_short_list():
    messages = make_messages(2)
    assert build_context(messages) == [
        {"role": "assistant", "content": "m0"},
        {"role": "user", "content": "m1"},
    ]


def test_begin_rejects_blank_text(client):
    controller = ExchangeController(client)
    assert controller.begin("   \n", make_messages(1)) is None
    assert isinstance(controller.state, Idle)


def test_begin_appends_user_message_optimistically(client):
    controller = ExchangeController(client)
    base = make_messages(1)

    pending = controller.begin("  Salam  ", base)

    assert pending is not None
    assert pending.user_message.content == "Salam"
    assert pending.provisional == base + [pending.user_message]
    assert controller.state == Sending(for_message_id=pending.user_message.id)
    assert controller.busy is True
    # 送信中は次のExchangeを開始できない
    assert controller.begin("again", pending.provisional) is None


def test_begin_retry_does_not_append(client):
    controller = ExchangeController(client)
    base = make_messages(3)

    pending = controller.begin("m1", base, is_retry=True)
    assert pending.provisional == base


@pytest.mark.asyncio
async def test_success_appends_reply(client):
    client.replies = ["Cavab"]
    controller = ExchangeController(client)
    base = make_messages(1)

    outcome = await controller.exchange("Salam", base)

    assert outcome.succeeded is True
    assert [m.content for m in outcome.messages] == ["m0", "Salam", "Cavab"]
    assert outcome.messages[-1].role is MessageRole.ASSISTANT
    assert controller.state == Done(succeeded=True)
    assert controller.failure_count == 0
    assert client.calls[0]["message"] == "Salam"
    assert client.calls[0]["history"] == [{"role": "assistant", "content": "m0"}]


@pytest.mark.asyncio
async def test_failure_appends_error_and_counts(client, failure):
    client.replies = [failure, ExchangeHTTPError(502, "Bad Gateway")]
    controller = ExchangeController(client)
    base = make_messages(1)

    outcome = await controller.exchange("x", base)

    assert outcome.succeeded is False
    assert [m.content for m in outcome.messages[:2]] == ["m0", "x"]
    assert outcome.messages[-1].content == ERROR_MESSAGE
    assert outcome.messages[-1].is_error is True
    assert controller.failure_count == 1
    assert controller.attempt_label == "(attempt 2/3)"

    retried = await controller.exchange("x", outcome.messages, is_retry=True)
    assert len(retried.messages) == len(outcome.messages)
    assert retried.messages[-1].is_error is True
    assert retried.messages[-1].id != outcome.messages[-1].id
    assert controller.failure_count == 2


@pytest.mark.asyncio
async def test_failure_counter_is_not_a_hard_cap(client, failure):
    client.replies = [failure] * 4 + ["finally"]
    controller = ExchangeController(client)
    messages = (await controller.exchange("x", make_messages(1))).messages

    for _ in range(3):
        messages = (await controller.exchange("x", messages, is_retry=True)).messages
    assert controller.failure_count == 4

    outcome = await controller.exchange("x", messages, is_retry=True)
    assert outcome.succeeded is True
    assert outcome.messages[-1].content == "finally"
    assert controller.failure_count == 0
    assert controller.attempt_label is None


@pytest.mark.asyncio
async def test_retry_success_replaces_error(client, failure):
    client.replies = [failure, "Cavab"]
    controller = ExchangeController(client)

    failed = await controller.exchange("x", make_messages(1))
    retried = await controller.exchange("x", failed.messages, is_retry=True)

    assert len(retried.messages) == len(failed.messages)
    assert retried.messages[:-1] == failed.messages[:-1]
    assert retried.messages[-1].content == "Cavab"
    assert retried.messages[-1].is_error is False


@pytest.mark.asyncio
async def test_unexpected_client_error_becomes_error_message(client):
    client.replies = [RuntimeError("boom")]
    controller = ExchangeController(client)

    outcome = await controller.exchange("x", [])

    assert outcome.succeeded is False
    assert outcome.messages[-1].is_error is True
    assert controller.busy is False


@pytest.mark.asyncio
async def test_state_is_tracked_per_session(client, failure):
    client.replies = [failure]
    controller = ExchangeController(client)
    controller.select("a")

    pending = controller.begin("x", make_messages(1))
    assert pending.session_id == "a"
    assert controller.busy is True

    controller.select("b")
    assert controller.busy is False
    assert isinstance(controller.state, Idle)
    other = controller.begin("y", make_messages(1))
    assert other is not None
    assert other.session_id == "b"

    await controller.complete(pending)
    assert controller.is_busy("a") is False
    assert controller.state == Sending(for_message_id=other.user_message.id)
    assert controller.failure_count == 0

    controller.select("a")
    assert controller.failure_count == 0


def test_select_keeps_in_flight_state(client):
    controller = ExchangeController(client)
    controller.select("a")
    pending = controller.begin("x", [])

    controller.select("b")
    controller.select("a")

    assert controller.busy is True
    assert controller.state == Sending(for_message_id=pending.user_message.id)
    assert controller.begin("again", pending.provisional) is None
