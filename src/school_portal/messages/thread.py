from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..core.constants import REPLY_SUBJECT_PREFIX
from ..core.context import UserContext
from ..core.enums import Folder, Role
from .model import ComposeDraft, Message, Reply


def build_message(ctx: UserContext, draft: ComposeDraft, *, recipient_role: Role, timestamp: int) -> Message:
    """New thread root authored by ``ctx``. Not yet persisted, so no id."""
    return Message(
        sender_id=ctx.user_id,
        sender_name=ctx.name,
        sender_role=ctx.role,
        recipient_id=draft.recipient_id.strip(),
        recipient_role=recipient_role,
        subject=draft.subject.strip(),
        content=draft.content.strip(),
        timestamp=int(timestamp),
        read=False,
        replies=None,
    )


def reply_subject(parent: Message) -> str:
    return f"{REPLY_SUBJECT_PREFIX}{parent.subject}"


def reply_target(ctx: UserContext, parent: Message) -> Tuple[str, Role]:
    """Who a reply from ``ctx`` goes to: the other party of the thread.

    Normally the parent's author. When ``ctx`` wrote the root, the reply goes
    to the latest reply author other than ``ctx``, else to the root's recipient.
    """
    if not parent.is_authored_by(ctx.user_id, ctx.role):
        return parent.sender_id, parent.sender_role
    for r in reversed(parent.replies or ()):
        if not r.is_authored_by(ctx.user_id, ctx.role):
            return r.sender_id, r.sender_role
    return parent.recipient_id, parent.recipient_role


def build_reply(ctx: UserContext, parent: Message, content: str, *, timestamp: int) -> Reply:
    recipient_id, recipient_role = reply_target(ctx, parent)
    return Reply(
        sender_id=ctx.user_id,
        sender_name=ctx.name,
        sender_role=ctx.role,
        recipient_id=recipient_id,
        recipient_role=recipient_role,
        subject=reply_subject(parent),
        content=content.strip(),
        timestamp=int(timestamp),
        read=False,
    )


def in_folder(message: Message, *, user_id: str, role: Role, folder: Folder) -> bool:
    """Whether the thread belongs to ``folder`` for the given user.

    A thread is in the inbox when its root or any reply is addressed to the
    user, and in the sent folder when its root or any reply was authored by them.
    """
    if folder == Folder.INBOX:
        return any(m.is_addressed_to(user_id, role) for m in message.thread)
    return any(m.is_authored_by(user_id, role) for m in message.thread)


def sort_newest_first(messages: Iterable[Message]) -> List[Message]:
    # sorted() is stable: equal timestamps keep the store's order.
    return sorted(messages, key=lambda m: m.timestamp, reverse=True)


class MessageCache:
    """The engine's single copy of the displayed list, keyed by message id.

    Every view of a message (list row, selected thread) is read back from here,
    so a read flip is visible everywhere at once.
    """

    def __init__(self):
        self._order: List[str] = []
        self._by_id: Dict[str, Message] = {}

    def replace_all(self, messages: Sequence[Message]) -> None:
        self._order = []
        self._by_id = {}
        for m in messages:
            if not m.id or m.id in self._by_id:
                continue
            self._order.append(m.id)
            self._by_id[m.id] = m

    def clear(self) -> None:
        self.replace_all(())

    def get(self, message_id: Optional[str]) -> Optional[Message]:
        if not message_id:
            return None
        return self._by_id.get(message_id)

    def mark_read(self, message_id: str) -> Optional[Message]:
        m = self._by_id.get(message_id)
        if m is None:
            return None
        updated = m.as_read()
        self._by_id[message_id] = updated
        return updated

    def mark_reply_read(self, message_id: str, reply_id: str) -> Optional[Message]:
        m = self._by_id.get(message_id)
        if m is None:
            return None
        updated = m.with_reply_read(reply_id)
        self._by_id[message_id] = updated
        return updated

    def snapshot(self) -> Tuple[Message, ...]:
        return tuple(self._by_id[i] for i in self._order)

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._by_id
