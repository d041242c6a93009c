from __future__ import annotations

from typing import List, Sequence

from .model import AttendanceRecord
from .repository import AttendanceRepository


class InMemoryAttendanceRepository(AttendanceRepository):
    def __init__(self):
        self._records: List[AttendanceRecord] = []

    def save_batch(self, records: Sequence[AttendanceRecord]) -> int:
        self._records.extend(records)
        return len(records)

    def list_for_teacher(self, teacher_code: str, limit: int) -> Sequence[AttendanceRecord]:
        items = [r for r in self._records if r.teacher_code == teacher_code]
        items.sort(key=lambda r: r.work_date, reverse=True)
        return items[: int(limit)]
