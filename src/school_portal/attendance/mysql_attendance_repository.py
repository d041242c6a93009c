from __future__ import annotations

from typing import Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import AttendanceRecord
from .repository import AttendanceRepository


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def save_batch(self, records: Sequence[AttendanceRecord]) -> int:
        if not records:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                INSERT INTO attendance_records(record_id, work_date, date_display, teacher_code, student_name, status, notes)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                [
                    (r.record_id, r.work_date, r.date_display, r.teacher_code, r.student_name, r.status.value, r.notes)
                    for r in records
                ],
            )
            return len(records)

    def list_for_teacher(self, teacher_code: str, limit: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT record_id, work_date, date_display, teacher_code, student_name, status, notes
                FROM attendance_records
                WHERE teacher_code=%s
                ORDER BY work_date DESC, student_name ASC
                LIMIT %s
                """,
                (teacher_code, int(limit)),
            )
            return [
                AttendanceRecord(
                    record_id=r["record_id"],
                    work_date=r["work_date"],
                    date_display=r["date_display"],
                    teacher_code=r["teacher_code"],
                    student_name=r["student_name"],
                    status=AttendanceStatus(r["status"]),
                    notes=r.get("notes") or "",
                )
                for r in fetchall(cur)
            ]
