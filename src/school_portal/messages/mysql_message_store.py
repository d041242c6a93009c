from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Dict, List, Sequence

from ..core.enums import Folder, Role
from ..core.exceptions import NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, placeholders
from .model import Message, Reply
from .repository import MessageStore

_COLUMN_NAMES = (
    "sender_id",
    "sender_name",
    "sender_role",
    "recipient_id",
    "recipient_role",
    "subject",
    "content",
    "sent_at_ms",
    "is_read",
)
_COLUMNS = ", ".join(_COLUMN_NAMES)
_ROOT_COLUMNS = ", ".join(f"m.{c}" for c in _COLUMN_NAMES)


def _db_id(message_id: str) -> int:
    try:
        return int(message_id)
    except (TypeError, ValueError):
        raise NotFoundError(f"message {message_id} not found")


def _row_kwargs(r: dict) -> dict:
    return {
        "sender_id": str(r["sender_id"]),
        "sender_name": r["sender_name"],
        "sender_role": Role(r["sender_role"]),
        "recipient_id": str(r["recipient_id"]),
        "recipient_role": Role(r["recipient_role"]),
        "subject": r["subject"],
        "content": r["content"],
        "timestamp": int(r["sent_at_ms"]),
        "read": bool(int(r.get("is_read") or 0)),
    }


def _values(m) -> tuple:
    return (
        m.sender_id,
        m.sender_name,
        m.sender_role.value,
        m.recipient_id,
        m.recipient_role.value,
        m.subject,
        m.content,
        int(m.timestamp),
        1 if m.read else 0,
    )


class MySQLMessageStore(MessageStore):
    """Messages live in ``messages``; replies in ``message_replies`` (ON DELETE CASCADE).

    mysql-connector is blocking, so each call runs in a worker thread.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # Reads
    def _fetch_folder(self, user_id: str, role: Role, folder: Folder) -> List[Message]:
        side = "recipient" if folder == Folder.INBOX else "sender"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT m.message_id, {_ROOT_COLUMNS}
                FROM messages m
                WHERE (m.{side}_id=%s AND m.{side}_role=%s)
                   OR EXISTS (
                        SELECT 1 FROM message_replies r
                        WHERE r.message_id = m.message_id AND r.{side}_id=%s AND r.{side}_role=%s
                   )
                ORDER BY m.sent_at_ms DESC, m.message_id ASC
                """,
                (user_id, role.value, user_id, role.value),
            )
            roots = fetchall(cur)
            if not roots:
                return []

            ids = [int(r["message_id"]) for r in roots]
            cur.execute(
                f"""
                SELECT reply_id, message_id, {_COLUMNS}
                FROM message_replies
                WHERE message_id IN ({placeholders(len(ids))})
                ORDER BY message_id ASC, reply_id ASC
                """,
                tuple(ids),
            )
            replies: Dict[int, List[Reply]] = {}
            for r in fetchall(cur):
                replies.setdefault(int(r["message_id"]), []).append(
                    Reply(id=str(r["reply_id"]), **_row_kwargs(r))
                )

            return [
                Message(
                    id=str(r["message_id"]),
                    replies=tuple(replies[int(r["message_id"])]) if int(r["message_id"]) in replies else None,
                    **_row_kwargs(r),
                )
                for r in roots
            ]

    async def fetch_inbox(self, user_id: str, role: Role) -> Sequence[Message]:
        return await asyncio.to_thread(self._fetch_folder, user_id, role, Folder.INBOX)

    async def fetch_sent(self, user_id: str, role: Role) -> Sequence[Message]:
        return await asyncio.to_thread(self._fetch_folder, user_id, role, Folder.SENT)

    # Writes
    def _create(self, message: Message) -> Message:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO messages({_COLUMNS}) VALUES({placeholders(len(_COLUMN_NAMES))})",
                _values(message),
            )
            new_id = str(cur.lastrowid)
        return replace(message, id=new_id)

    async def create_message(self, message: Message) -> Message:
        return await asyncio.to_thread(self._create, message)

    def _append_reply(self, parent_id: str, reply: Reply) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT message_id FROM messages WHERE message_id=%s", (_db_id(parent_id),))
            if not fetchone(cur):
                raise NotFoundError(f"message {parent_id} not found")
            cur.execute(
                f"INSERT INTO message_replies(message_id, {_COLUMNS}) VALUES(%s, {placeholders(len(_COLUMN_NAMES))})",
                (_db_id(parent_id),) + _values(reply),
            )

    async def append_reply(self, parent_id: str, reply: Reply) -> None:
        await asyncio.to_thread(self._append_reply, parent_id, reply)

    def _delete(self, message_id: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM messages WHERE message_id=%s", (_db_id(message_id),))
            if cur.rowcount <= 0:
                raise NotFoundError(f"message {message_id} not found")

    async def delete_message(self, message_id: str) -> None:
        await asyncio.to_thread(self._delete, message_id)

    def _mark_read(self, message_id: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE messages SET is_read=1 WHERE message_id=%s", (_db_id(message_id),))

    async def mark_read(self, message_id: str) -> None:
        await asyncio.to_thread(self._mark_read, message_id)

    def _mark_reply_read(self, message_id: str, reply_id: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE message_replies SET is_read=1 WHERE reply_id=%s AND message_id=%s",
                (_db_id(reply_id), _db_id(message_id)),
            )

    async def mark_reply_read(self, message_id: str, reply_id: str) -> None:
        await asyncio.to_thread(self._mark_reply_read, message_id, reply_id)
