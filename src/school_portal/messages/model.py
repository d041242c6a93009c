from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Tuple

from ..core.enums import Role


@dataclass(frozen=True)
class BaseMessage:
    """Fields shared by a thread root and its replies."""

    sender_id: str
    sender_name: str
    sender_role: Role
    recipient_id: str
    recipient_role: Role
    subject: str
    content: str
    timestamp: int  # ms since epoch
    read: bool = False
    id: Optional[str] = None

    @property
    def is_persisted(self) -> bool:
        return bool(self.id)

    def is_addressed_to(self, user_id: str, role: Role) -> bool:
        return self.recipient_id == user_id and self.recipient_role == role

    def is_authored_by(self, user_id: str, role: Role) -> bool:
        return self.sender_id == user_id and self.sender_role == role


@dataclass(frozen=True)
class Reply(BaseMessage):
    """A message appended to a thread.

    Replies never carry replies of their own: threads are one level deep.
    """


@dataclass(frozen=True)
class Message(BaseMessage):
    """Root of a thread."""

    replies: Optional[Tuple[Reply, ...]] = None

    @property
    def thread(self) -> Tuple[BaseMessage, ...]:
        return (self,) + tuple(self.replies or ())

    def with_reply(self, reply: Reply) -> "Message":
        return replace(self, replies=tuple(self.replies or ()) + (reply,))

    def as_read(self) -> "Message":
        return self if self.read else replace(self, read=True)

    def with_reply_read(self, reply_id: str) -> "Message":
        if not any(r.id == reply_id and not r.read for r in self.replies or ()):
            return self
        return replace(
            self,
            replies=tuple(replace(r, read=True) if r.id == reply_id else r for r in self.replies),
        )

    def unread_for(self, user_id: str, role: Role) -> Tuple[BaseMessage, ...]:
        """Entries of the thread addressed to the user and not yet read."""
        return tuple(m for m in self.thread if not m.read and m.is_addressed_to(user_id, role))


@dataclass(frozen=True)
class ComposeDraft:
    subject: str = ""
    content: str = ""
    recipient_id: str = ""
    recipient_role: Optional[Role] = None


def _base_to_dict(m: BaseMessage) -> Dict[str, Any]:
    return {
        "id": m.id,
        "sender_id": m.sender_id,
        "sender_name": m.sender_name,
        "sender_role": m.sender_role.value,
        "recipient_id": m.recipient_id,
        "recipient_role": m.recipient_role.value,
        "subject": m.subject,
        "content": m.content,
        "timestamp": int(m.timestamp),
        "read": bool(m.read),
    }


def message_to_dict(m: Message) -> Dict[str, Any]:
    d = _base_to_dict(m)
    if m.replies is not None:
        d["replies"] = [_base_to_dict(r) for r in m.replies]
    return d


def _base_kwargs(d: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": d.get("id"),
        "sender_id": str(d["sender_id"]),
        "sender_name": str(d.get("sender_name") or ""),
        "sender_role": Role(d["sender_role"]),
        "recipient_id": str(d["recipient_id"]),
        "recipient_role": Role(d["recipient_role"]),
        "subject": str(d["subject"]),
        "content": str(d["content"]),
        "timestamp": int(d["timestamp"]),
        "read": bool(d.get("read", False)),
    }


def message_from_dict(d: Dict[str, Any]) -> Message:
    replies = d.get("replies")
    return Message(
        **_base_kwargs(d),
        replies=tuple(Reply(**_base_kwargs(r)) for r in replies) if replies is not None else None,
    )


def draft_to_dict(draft: Optional[ComposeDraft]) -> Optional[Dict[str, Any]]:
    if draft is None:
        return None
    return {
        "subject": draft.subject,
        "content": draft.content,
        "recipient_id": draft.recipient_id,
        "recipient_role": draft.recipient_role.value if draft.recipient_role else None,
    }
