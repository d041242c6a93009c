from __future__ import annotations

import asyncio

import pytest

from school_portal.core.enums import Role
from school_portal.core.exceptions import NotFoundError
from school_portal.messages.memory_store import InMemoryMessageStore
from school_portal.messages.thread import build_reply


def test_create_assigns_id_and_keeps_fields(teacher, new_message):
    store = InMemoryMessageStore()
    draft = new_message(sender=teacher, recipient_id="s1", recipient_role=Role.STUDENT)

    created = asyncio.run(store.create_message(draft))

    assert created.id == "1"
    assert created.subject == draft.subject
    assert store.get("1") == created


def test_append_reply_to_missing_parent_raises(teacher, student, new_message):
    store = InMemoryMessageStore()
    parent = new_message(sender=teacher, recipient_id="s1", recipient_role=Role.STUDENT, message_id="77")

    with pytest.raises(NotFoundError):
        asyncio.run(store.append_reply("77", build_reply(student, parent, "شكراً", timestamp=1)))


def test_append_reply_is_ordered(teacher, student, new_message):
    store = InMemoryMessageStore([new_message(sender=teacher, recipient_id="s1", recipient_role=Role.STUDENT)])
    parent = store.get("1")

    async def scenario():
        await store.append_reply("1", build_reply(student, parent, "أولاً", timestamp=2))
        await store.append_reply("1", build_reply(teacher, parent, "ثانياً", timestamp=3))

    asyncio.run(scenario())
    assert [r.content for r in store.get("1").replies] == ["أولاً", "ثانياً"]
    assert [r.id for r in store.get("1").replies] == ["1.1", "1.2"]


def test_delete_twice_raises_not_found(teacher, new_message):
    store = InMemoryMessageStore([new_message(sender=teacher, recipient_id="s1", recipient_role=Role.STUDENT)])

    asyncio.run(store.delete_message("1"))
    with pytest.raises(NotFoundError):
        asyncio.run(store.delete_message("1"))


def test_mark_read_is_idempotent(teacher, new_message):
    store = InMemoryMessageStore([new_message(sender=teacher, recipient_id="s1", recipient_role=Role.STUDENT)])

    asyncio.run(store.mark_read("1"))
    asyncio.run(store.mark_read("1"))
    asyncio.run(store.mark_read("missing"))

    assert store.get("1").read is True
