from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Dict, Iterable, Iterator, Optional, Tuple

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """One student's status for one roster day, as saved by the teacher."""

    record_id: str
    work_date: date
    date_display: str
    teacher_code: str
    student_name: str
    status: AttendanceStatus
    notes: str = ""


@dataclass(frozen=True)
class SheetEntry:
    status: Optional[AttendanceStatus] = None
    notes: str = ""


@dataclass
class AttendanceSheet:
    """Unsaved roster marks for a single day, keyed by student name."""

    teacher_code: str
    entries: Dict[str, SheetEntry] = field(default_factory=dict)

    @classmethod
    def for_roster(cls, teacher_code: str, student_names: Iterable[str]) -> "AttendanceSheet":
        return cls(teacher_code=teacher_code, entries={name: SheetEntry() for name in student_names})

    def entry(self, student_name: str) -> SheetEntry:
        return self.entries.get(student_name, SheetEntry())

    def toggle_status(self, student_name: str, status: AttendanceStatus) -> Optional[AttendanceStatus]:
        """Set the status, or clear it when the same status is chosen again."""
        current = self.entry(student_name)
        new_status = None if current.status == status else AttendanceStatus(status)
        self.entries[student_name] = replace(current, status=new_status)
        return new_status

    def set_note(self, student_name: str, notes: str) -> None:
        self.entries[student_name] = replace(self.entry(student_name), notes=notes or "")

    def marked(self) -> Iterator[Tuple[str, SheetEntry]]:
        for name, e in self.entries.items():
            if e.status is not None:
                yield name, e
