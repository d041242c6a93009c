from __future__ import annotations

from datetime import datetime

import pytest

from school_portal.core.context import Recipient, UserContext
from school_portal.core.enums import Role
from school_portal.messages.model import Message


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 10, 19, 7, 45, 0)


@pytest.fixture
def teacher() -> UserContext:
    return UserContext(
        user_id="t1",
        name="أحمد",
        role=Role.TEACHER,
        recipients=(
            Recipient(id="admin", name="الإدارة", role=Role.ADMIN),
            Recipient(id="s1", name="سارة", role=Role.STUDENT),
            Recipient(id="s2", name="يوسف", role=Role.STUDENT),
        ),
    )


@pytest.fixture
def student() -> UserContext:
    return UserContext(
        user_id="s1",
        name="سارة",
        role=Role.STUDENT,
        recipients=(Recipient(id="t1", name="أحمد", role=Role.TEACHER),),
    )


@pytest.fixture
def admin() -> UserContext:
    return UserContext(user_id="admin", name="الإدارة", role=Role.ADMIN)


def make_message(
    *,
    sender: UserContext,
    recipient_id: str,
    recipient_role: Role,
    subject: str = "موضوع",
    content: str = "محتوى",
    timestamp: int = 1000,
    read: bool = False,
    message_id=None,
) -> Message:
    return Message(
        id=message_id,
        sender_id=sender.user_id,
        sender_name=sender.name,
        sender_role=sender.role,
        recipient_id=recipient_id,
        recipient_role=recipient_role,
        subject=subject,
        content=content,
        timestamp=timestamp,
        read=read,
    )


@pytest.fixture
def new_message():
    return make_message
