import asyncio
import itertools

import pytest

from app.core.exceptions import EmptyMessage, ExternalServiceFailure, NotFound
from app.domains.chats.entities import DEFAULT_CHAT_TITLE, Message
from app.domains.chats.services import ChatService, FALLBACK_REPLY, parse_chat_id
from app.infrastructure.storage import InMemoryStore

ALICE = 1
BOB = 2


@pytest.fixture
def ticking_clock(monkeypatch):
    """Strictly increasing creation timestamps"""
    counter = itertools.count()
    monkeypatch.setattr(
        "app.domains.chats.entities.utc_now_iso",
        lambda: f"2024-01-01T00:00:{next(counter):02d}.000Z",
    )


def send(chat_service, user_id, chat_id, content):
    return asyncio.run(chat_service.send_message(user_id, chat_id, content))


def test_create_chat_defaults_title(chat_service):
    assert chat_service.create_chat(ALICE).title == DEFAULT_CHAT_TITLE
    assert chat_service.create_chat(ALICE, "").title == DEFAULT_CHAT_TITLE
    assert chat_service.create_chat(ALICE, "Receitas").title == "Receitas"


def test_list_chats_is_scoped_and_newest_first(chat_service, ticking_clock):
    first = chat_service.create_chat(ALICE, "first")
    chat_service.create_chat(BOB, "bob's")
    second = chat_service.create_chat(ALICE, "second")

    assert [c.id for c in chat_service.list_chats(ALICE)] == [second.id, first.id]
    assert [c.title for c in chat_service.list_chats(BOB)] == ["bob's"]


def test_get_chat_returns_messages_in_append_order(chat_service):
    reply, chat_id = send(chat_service, ALICE, None, "oi")
    send(chat_service, ALICE, chat_id, "tudo bem?")

    chat, messages = chat_service.get_chat(ALICE, chat_id)

    assert chat.id == chat_id
    assert [(m.role, m.content) for m in messages] == [
        ("user", "oi"), ("assistant", reply), ("user", "tudo bem?"), ("assistant", reply),
    ]


def test_other_users_cannot_read_or_delete(chat_service, store):
    _, chat_id = send(chat_service, ALICE, None, "segredo")

    with pytest.raises(NotFound):
        chat_service.get_chat(BOB, chat_id)

    chat_service.delete_chat(BOB, chat_id)

    document = store.load()
    assert [c.id for c in document.chats] == [chat_id]
    assert len(document.messages) == 2


@pytest.mark.parametrize("chat_id", ["abc", None, 123456])
def test_get_unknown_chat(chat_service, chat_id):
    with pytest.raises(NotFound):
        chat_service.get_chat(ALICE, chat_id)


def test_delete_cascades_and_is_idempotent(chat_service, store):
    _, kept = send(chat_service, ALICE, None, "fica")
    _, removed = send(chat_service, ALICE, None, "sai")

    chat_service.delete_chat(ALICE, str(removed))
    chat_service.delete_chat(ALICE, removed)

    document = store.load()
    assert [c.id for c in document.chats] == [kept]
    assert {m.chat_id for m in document.messages} == {kept}
    with pytest.raises(NotFound):
        chat_service.get_chat(ALICE, removed)


def test_empty_message_stores_nothing(chat_service, store, gateway):
    with pytest.raises(EmptyMessage):
        send(chat_service, ALICE, None, "")

    document = store.load()
    assert document.chats == []
    assert document.messages == []
    assert gateway.calls == []


def test_send_without_chat_creates_one(chat_service, gateway):
    reply, chat_id = send(chat_service, ALICE, None, "hi")

    assert reply == gateway.reply
    chats = chat_service.list_chats(ALICE)
    assert [(c.id, c.title) for c in chats] == [(chat_id, DEFAULT_CHAT_TITLE)]


def test_send_to_foreign_or_unknown_chat(chat_service, store):
    _, chat_id = send(chat_service, ALICE, None, "oi")

    with pytest.raises(NotFound):
        send(chat_service, BOB, chat_id, "invasão")
    with pytest.raises(NotFound):
        send(chat_service, ALICE, "nope", "oi")

    assert len(store.load().messages) == 2


def test_prompt_has_system_instruction_and_bounded_history(chat_service, store, gateway, settings):
    chat = chat_service.create_chat(ALICE)
    with store.transaction() as document:
        for i in range(40):
            role = "assistant" if i % 2 else "tool"
            document.messages.append(Message(1000 + i, chat.id, role, f"m{i}", "t"))

    send(chat_service, ALICE, chat.id, "última")

    prompt, max_tokens = gateway.calls[-1]
    assert max_tokens == settings.completion_max_tokens
    assert prompt[0] == {"role": "system", "content": settings.system_prompt}
    history = prompt[1:]
    assert len(history) == settings.history_limit
    assert history[-1] == {"role": "user", "content": "última"}
    assert history[0] == {"role": "assistant", "content": "m11"}
    assert {m["role"] for m in history} == {"user", "assistant"}


@pytest.mark.parametrize("empty_reply", [None, ""])
def test_empty_completion_uses_fallback(chat_service, gateway, store, empty_reply):
    gateway.reply = empty_reply

    reply, _ = send(chat_service, ALICE, None, "oi")

    assert reply == FALLBACK_REPLY
    assert store.load().messages[-1].content == FALLBACK_REPLY


def test_completion_failure_keeps_user_message(chat_service, gateway, store):
    gateway.error = ExternalServiceFailure()

    with pytest.raises(ExternalServiceFailure):
        send(chat_service, ALICE, None, "oi")

    assert [(m.role, m.content) for m in store.load().messages] == [("user", "oi")]


def test_parse_chat_id():
    assert parse_chat_id(5) == 5
    assert parse_chat_id(" 42 ") == 42
    assert parse_chat_id("x") is None
    assert parse_chat_id(None) is None
    assert parse_chat_id(True) is None


def test_zero_history_limit_sends_only_system_instruction(store, gateway, settings):
    settings.history_limit = 0
    chat_service = ChatService.from_settings(store, gateway, settings)

    send(chat_service, ALICE, None, "oi")

    prompt, _ = gateway.calls[-1]
    assert prompt == [{"role": "system", "content": settings.system_prompt}]


class BrokenStore(InMemoryStore):
    def save(self, document):
        raise OSError("disk full")


def test_unexpected_failure_is_reported_as_conversation_error(gateway, settings):
    chat_service = ChatService.from_settings(BrokenStore(), gateway, settings)

    with pytest.raises(ExternalServiceFailure):
        send(chat_service, ALICE, None, "oi")
    assert gateway.calls == []
