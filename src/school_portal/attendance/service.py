from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional, Sequence

from ..common.datetime_utils import arabic_date_label, now_local
from ..core.constants import DEFAULT_ATTENDANCE_HISTORY_LIMIT
from ..core.context import UserContext
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import AuthorizationError, ValidationError
from ..core.logger import get_logger
from .model import AttendanceRecord, AttendanceSheet
from .repository import AttendanceRepository

log = get_logger("attendance.service")


class AttendanceService:
    """Use case: a teacher saves the day's roster marks as one batch."""

    def __init__(self, attendance: AttendanceRepository):
        self._attendance = attendance

    def build_records(self, sheet: AttendanceSheet, *, now: datetime) -> List[AttendanceRecord]:
        work_date = now.date()
        display = arabic_date_label(work_date)
        return [
            AttendanceRecord(
                record_id=uuid.uuid4().hex,
                work_date=work_date,
                date_display=display,
                teacher_code=sheet.teacher_code,
                student_name=name,
                status=entry.status,
                notes=(entry.notes or "").strip(),
            )
            for name, entry in sheet.marked()
        ]

    def save_batch(
        self,
        ctx: UserContext,
        sheet: AttendanceSheet,
        *,
        now: Optional[datetime] = None,
    ) -> List[AttendanceRecord]:
        if ctx.role != Role.TEACHER:
            raise AuthorizationError("ليس لديك صلاحية")
        if sheet.teacher_code != ctx.user_id:
            raise AuthorizationError("لا يمكن حفظ حضور معلم آخر")

        records = self.build_records(sheet, now=now or now_local())
        if not records:
            raise ValidationError("حدد الحالة")

        self._attendance.save_batch(records)
        log.info("saved %d attendance records for teacher %s", len(records), ctx.user_id)
        return records

    def history(self, teacher_code: str, *, limit: int = DEFAULT_ATTENDANCE_HISTORY_LIMIT) -> Sequence[AttendanceRecord]:
        return self._attendance.list_for_teacher(teacher_code, max(1, int(limit)))

    @staticmethod
    def to_ui(r: AttendanceRecord) -> dict:
        label = {
            AttendanceStatus.PRESENT: "حاضر",
            AttendanceStatus.ABSENT: "غائب",
        }.get(r.status, r.status.value)
        return {
            "id": r.record_id,
            "date": r.work_date.strftime("%Y-%m-%d"),
            "date_display": r.date_display,
            "student_name": r.student_name,
            "status": r.status.value,
            "status_label": label,
            "notes": r.notes,
        }
