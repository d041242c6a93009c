from __future__ import annotations

from typing import Protocol, Sequence

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def save_batch(self, records: Sequence[AttendanceRecord]) -> int:
        """Persist all records together; returns how many were written."""

        raise NotImplementedError

    def list_for_teacher(self, teacher_code: str, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
