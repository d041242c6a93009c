from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles known to the portal."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"


class Folder(str, Enum):
    """Partitions of the same message store, computed by filter."""

    INBOX = "inbox"
    SENT = "sent"


class ViewMode(str, Enum):
    IDLE = "idle"
    COMPOSING = "composing"
    THREAD_SELECTED = "thread_selected"


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    STORE_UNAVAILABLE = "store_unavailable"
    NOT_FOUND = "not_found"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
