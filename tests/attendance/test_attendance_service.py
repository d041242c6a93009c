from __future__ import annotations

import pytest

from school_portal.attendance.memory_repository import InMemoryAttendanceRepository
from school_portal.attendance.model import AttendanceSheet
from school_portal.attendance.service import AttendanceService
from school_portal.core.enums import AttendanceStatus
from school_portal.core.exceptions import AuthorizationError, ValidationError


def test_toggling_same_status_clears_it():
    sheet = AttendanceSheet.for_roster("t1", ["سارة", "يوسف"])

    assert sheet.toggle_status("سارة", AttendanceStatus.PRESENT) == AttendanceStatus.PRESENT
    assert sheet.toggle_status("سارة", AttendanceStatus.PRESENT) is None
    assert sheet.toggle_status("سارة", AttendanceStatus.ABSENT) == AttendanceStatus.ABSENT
    assert sheet.entry("يوسف").status is None


def test_save_batch_skips_unmarked_students(teacher, fixed_now):
    repo = InMemoryAttendanceRepository()
    svc = AttendanceService(repo)
    sheet = AttendanceSheet.for_roster("t1", ["سارة", "يوسف", "مريم"])
    sheet.toggle_status("سارة", AttendanceStatus.PRESENT)
    sheet.toggle_status("يوسف", AttendanceStatus.ABSENT)
    sheet.set_note("يوسف", " مريض ")

    records = svc.save_batch(teacher, sheet, now=fixed_now)

    assert [(r.student_name, r.status) for r in records] == [
        ("سارة", AttendanceStatus.PRESENT),
        ("يوسف", AttendanceStatus.ABSENT),
    ]
    assert records[1].notes == "مريض"
    assert all(r.work_date == fixed_now.date() for r in records)
    assert records[0].date_display == "الاثنين، ١٩/١٠/٢٠٢٦"
    assert len({r.record_id for r in records}) == 2
    assert len(svc.history("t1")) == 2


def test_empty_sheet_is_rejected(teacher, fixed_now):
    repo = InMemoryAttendanceRepository()
    svc = AttendanceService(repo)

    with pytest.raises(ValidationError):
        svc.save_batch(teacher, AttendanceSheet.for_roster("t1", ["سارة"]), now=fixed_now)
    assert svc.history("t1") == []


def test_only_the_owning_teacher_can_save(teacher, student, fixed_now):
    svc = AttendanceService(InMemoryAttendanceRepository())
    sheet = AttendanceSheet.for_roster("t1", ["سارة"])
    sheet.toggle_status("سارة", AttendanceStatus.PRESENT)

    with pytest.raises(AuthorizationError):
        svc.save_batch(student, sheet, now=fixed_now)

    other = AttendanceSheet.for_roster("t2", ["سارة"])
    other.toggle_status("سارة", AttendanceStatus.PRESENT)
    with pytest.raises(AuthorizationError):
        svc.save_batch(teacher, other, now=fixed_now)


def test_to_ui_labels_status(teacher, fixed_now):
    svc = AttendanceService(InMemoryAttendanceRepository())
    sheet = AttendanceSheet.for_roster("t1", ["سارة"])
    sheet.toggle_status("سارة", AttendanceStatus.ABSENT)
    [record] = svc.save_batch(teacher, sheet, now=fixed_now)

    row = svc.to_ui(record)
    assert row["date"] == "2026-10-19"
    assert row["status_label"] == "غائب"
