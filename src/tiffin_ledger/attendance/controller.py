from __future__ import annotations

from typing import Optional

from flask import Flask

from ..common.datetime_utils import parse_iso_date
from ..common.http import json_body, ok
from ..core.enums import EntryStatus
from ..core.exceptions import ValidationError
from ..container import Container
from ..users.controller import build_admin_required
from .model import AttendanceRecord, BulkEntry, BulkEntryResult


def record_json(r: Optional[AttendanceRecord]) -> Optional[dict]:
    if r is None:
        return None
    return {
        "id": r.attendance_id,
        "userId": r.member_id,
        "date": r.att_date,
        "lunch": r.lunch,
        "dinner": r.dinner,
    }


def entry_result_json(r: BulkEntryResult) -> dict:
    out = {"index": r.index, "userId": r.member_id, "status": r.status}
    if r.remaining_credits is not None:
        out["remainingCredits"] = r.remaining_credits
    if r.status == EntryStatus.ERROR:
        out["error"] = {"kind": r.error_kind, "message": r.message}
    return out


def register(app: Flask, container: Container) -> None:
    admin_required = build_admin_required(container)
    attendance = container.attendance_service

    @app.route("/api/attendance", methods=["POST"], endpoint="bulk_attendance")
    @admin_required
    def bulk_attendance():
        data = json_body()
        members = data.get("members")
        if not data.get("date") or not isinstance(members, list):
            raise ValidationError("Invalid input data")

        att_date = parse_iso_date(data["date"])
        entries = [
            BulkEntry(
                member_id=m.get("userId") if isinstance(m, dict) else None,
                lunch=m.get("lunch", False) if isinstance(m, dict) else False,
                dinner=m.get("dinner", False) if isinstance(m, dict) else False,
            )
            for m in members
        ]
        results = attendance.create_or_update_attendance(att_date, entries)
        failed = sum(1 for r in results if not r.ok)
        return ok(
            [entry_result_json(r) for r in results],
            updated=sum(1 for r in results if r.status == EntryStatus.UPDATED),
            failed=failed,
        )

    @app.route("/api/attendance/today/count", methods=["GET"], endpoint="today_attendance_count")
    @admin_required
    def today_attendance_count():
        return ok(None, count=attendance.count_present_on())

    @app.route("/api/attendance/member/<int:member_id>", methods=["GET"], endpoint="member_attendance")
    @admin_required
    def member_attendance(member_id: int):
        return ok([record_json(r) for r in attendance.list_for_member(member_id)])

    @app.route("/api/attendance/<date_s>", methods=["GET"], endpoint="attendance_by_date")
    @admin_required
    def attendance_by_date(date_s: str):
        rows = attendance.list_for_date(parse_iso_date(date_s))
        return ok(
            [
                {
                    "id": r.attendance_id,
                    "userId": r.member_id,
                    "name": r.member_name,
                    "date": r.att_date,
                    "lunch": r.lunch,
                    "dinner": r.dinner,
                }
                for r in rows
            ]
        )

    @app.route("/api/attendance/<int:member_id>/<date_s>/<meal>", methods=["PUT"], endpoint="set_meal_presence")
    @admin_required
    def set_meal_presence(member_id: int, date_s: str, meal: str):
        data = json_body()
        result = attendance.set_meal_presence(member_id, parse_iso_date(date_s), meal, data.get("status"))

        if result.changed:
            message = "Attendance updated."
        elif result.record is None:
            message = "No attendance record exists to unset."
        else:
            message = "Attendance status unchanged."
        return ok(
            {"record": record_json(result.record), "remainingCredits": result.remaining_credits},
            message=message,
        )
