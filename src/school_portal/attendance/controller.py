from __future__ import annotations

from functools import wraps

from flask import Flask, jsonify, request, session

from ..container import Container
from ..core.constants import DEFAULT_ATTENDANCE_HISTORY_LIMIT
from ..core.enums import AttendanceStatus
from ..core.exceptions import AuthorizationError, StoreUnavailableError, ValidationError
from ..common.session import current_context
from ..core.logger import get_logger
from .model import AttendanceSheet

log = get_logger("attendance.controller")

STORE_FAILURE = "حدث خطأ"


def register(app: Flask, container: Container) -> None:
    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"error": "يرجى تسجيل الدخول"}), 401
            return view(*args, **kwargs)

        return wrapper

    @app.route("/attendance/batch", methods=["POST"], endpoint="attendance_batch")
    @login_required
    def attendance_batch():
        ctx = current_context()
        data = request.get_json(silent=True) or {}
        sheet = AttendanceSheet(teacher_code=ctx.user_id)
        try:
            for row in data.get("students", []):
                name = str(row["name"])
                sheet.set_note(name, str(row.get("notes") or ""))
                if row.get("status"):
                    sheet.toggle_status(name, AttendanceStatus(row["status"]))
            records = container.attendance_service.save_batch(ctx, sheet)
        except (KeyError, ValueError):
            return jsonify({"error": "بيانات ناقصة"}), 400
        except AuthorizationError as e:
            return jsonify({"error": str(e)}), 403
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        except StoreUnavailableError:
            log.exception("saving attendance for %s failed", ctx.user_id)
            return jsonify({"error": STORE_FAILURE}), 503
        return jsonify({"saved": [container.attendance_service.to_ui(r) for r in records]})

    @app.route("/attendance/history", methods=["GET"], endpoint="attendance_history")
    @login_required
    def attendance_history():
        ctx = current_context()
        limit = request.args.get("limit", type=int)
        limit = DEFAULT_ATTENDANCE_HISTORY_LIMIT if limit is None else max(1, limit)
        try:
            rows = container.attendance_service.history(ctx.user_id, limit=limit)
        except StoreUnavailableError:
            log.exception("loading attendance history for %s failed", ctx.user_id)
            return jsonify({"error": STORE_FAILURE}), 503
        return jsonify({"records": [container.attendance_service.to_ui(r) for r in rows]})
