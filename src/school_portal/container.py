from __future__ import annotations

import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Tuple

from .attendance.memory_repository import InMemoryAttendanceRepository
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import MAX_CACHED_ENGINES
from .core.context import UserContext
from .core.logger import get_logger
from .database.connection import DBConfig, DatabaseConnection
from .messages.engine import MessagingEngine
from .messages.memory_store import InMemoryMessageStore
from .messages.mysql_message_store import MySQLMessageStore
from .messages.repository import MessageStore

log = get_logger("container")


@dataclass(frozen=True)
class Container:
    message_store: MessageStore
    attendance_repo: AttendanceRepository
    attendance_service: AttendanceService

    max_engines: int = MAX_CACHED_ENGINES

    # One engine per signed-in user, keyed by (role, user_id), least recently used evicted.
    # Engines live in this process only; run a single worker process.
    engines: "OrderedDict[Tuple[str, str], MessagingEngine]" = field(default_factory=OrderedDict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def engine_for(self, ctx: UserContext) -> MessagingEngine:
        key = (ctx.role.value, ctx.user_id)
        with self._lock:
            engine = self.engines.get(key)
            if engine is None:
                engine = MessagingEngine(self.message_store)
                self.engines[key] = engine
            self.engines.move_to_end(key)
            while len(self.engines) > max(1, self.max_engines):
                evicted, _ = self.engines.popitem(last=False)
                log.debug("evicting messaging engine for %s/%s", *evicted)
        return engine


def build_container(*, db_config: dict, message_store: str = "mysql") -> Container:
    if message_store == "memory":
        store: MessageStore = InMemoryMessageStore()
        attendance_repo: AttendanceRepository = InMemoryAttendanceRepository()
    elif message_store == "mysql":
        conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
        store = MySQLMessageStore(conn)
        attendance_repo = MySQLAttendanceRepository(conn)
    else:
        raise ValueError(f"Unknown MESSAGE_STORE: {message_store!r}")

    return Container(
        message_store=store,
        attendance_repo=attendance_repo,
        attendance_service=AttendanceService(attendance_repo),
    )
