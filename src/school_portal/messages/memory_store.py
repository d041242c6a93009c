from __future__ import annotations

import asyncio
import itertools
from dataclasses import replace
from typing import Dict, List, Sequence

from ..core.enums import Folder, Role
from ..core.exceptions import NotFoundError
from .model import Message, Reply
from .repository import MessageStore
from .thread import in_folder, sort_newest_first


class InMemoryMessageStore(MessageStore):
    """Process-local store used by tests and ``MESSAGE_STORE=memory`` runs.

    Holds exactly one record per thread, so every folder view of a message
    reflects the same read flag and replies.
    """

    def __init__(self, messages: Sequence[Message] = ()):
        self._ids = itertools.count(1)
        self._messages: Dict[str, Message] = {}
        for m in messages:
            self._insert(m)

    def _insert(self, message: Message) -> Message:
        stored = message if message.id else replace(message, id=str(next(self._ids)))
        self._messages[stored.id] = stored
        return stored

    def _select(self, user_id: str, role: Role, folder: Folder) -> List[Message]:
        return sort_newest_first(
            m for m in self._messages.values() if in_folder(m, user_id=user_id, role=role, folder=folder)
        )

    async def fetch_inbox(self, user_id: str, role: Role) -> Sequence[Message]:
        await asyncio.sleep(0)
        return self._select(user_id, role, Folder.INBOX)

    async def fetch_sent(self, user_id: str, role: Role) -> Sequence[Message]:
        await asyncio.sleep(0)
        return self._select(user_id, role, Folder.SENT)

    async def create_message(self, message: Message) -> Message:
        await asyncio.sleep(0)
        return self._insert(message)

    async def append_reply(self, parent_id: str, reply: Reply) -> None:
        await asyncio.sleep(0)
        parent = self._messages.get(parent_id)
        if parent is None:
            raise NotFoundError(f"message {parent_id} not found")
        reply_id = f"{parent_id}.{len(parent.replies or ()) + 1}"
        self._messages[parent_id] = parent.with_reply(replace(reply, id=reply_id))

    async def delete_message(self, message_id: str) -> None:
        await asyncio.sleep(0)
        if self._messages.pop(message_id, None) is None:
            raise NotFoundError(f"message {message_id} not found")

    async def mark_read(self, message_id: str) -> None:
        await asyncio.sleep(0)
        m = self._messages.get(message_id)
        if m is not None:
            self._messages[message_id] = m.as_read()

    async def mark_reply_read(self, message_id: str, reply_id: str) -> None:
        await asyncio.sleep(0)
        m = self._messages.get(message_id)
        if m is not None:
            self._messages[message_id] = m.with_reply_read(reply_id)

    def get(self, message_id: str):
        return self._messages.get(message_id)

    def __len__(self) -> int:
        return len(self._messages)
