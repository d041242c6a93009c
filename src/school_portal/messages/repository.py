from __future__ import annotations

from typing import Protocol, Sequence

from ..core.enums import Role
from .model import Message, Reply


class MessageStore(Protocol):
    """Persistence contract consumed by the messaging engine.

    Every call is a single awaitable round trip. Infrastructure failures raise
    ``StoreUnavailableError``; a missing target raises ``NotFoundError``.
    """

    async def fetch_inbox(self, user_id: str, role: Role) -> Sequence[Message]:
        raise NotImplementedError

    async def fetch_sent(self, user_id: str, role: Role) -> Sequence[Message]:
        raise NotImplementedError

    async def create_message(self, message: Message) -> Message:
        """Persist a new thread root and return it with its assigned id."""

        raise NotImplementedError

    async def append_reply(self, parent_id: str, reply: Reply) -> None:
        raise NotImplementedError

    async def delete_message(self, message_id: str) -> None:
        raise NotImplementedError

    async def mark_read(self, message_id: str) -> None:
        """Idempotent."""

        raise NotImplementedError

    async def mark_reply_read(self, message_id: str, reply_id: str) -> None:
        """Idempotent. ``message_id`` is the thread root holding the reply."""

        raise NotImplementedError
