from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone
from .model import AttendanceRecord, AttendanceRow
from .repository import AttendanceRepository


def _to_record(r: Dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        member_id=int(r["member_id"]),
        att_date=r["att_date"],
        lunch=as_bool(r["lunch"]),
        dinner=as_bool(r["dinner"]),
        created_at=r.get("created_at"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_member_and_date(self, member_id: int, att_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT attendance_id, member_id, att_date, lunch, dinner, created_at
                FROM attendance_records
                WHERE member_id=%s AND att_date=%s
                """,
                (int(member_id), att_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def create(self, *, member_id: int, att_date: date, lunch: bool, dinner: bool) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(member_id, att_date, lunch, dinner)
                VALUES(%s,%s,%s,%s)
                """,
                (int(member_id), att_date, int(bool(lunch)), int(bool(dinner))),
            )
            return int(cur.lastrowid)

    def update_meals(self, *, attendance_id: int, lunch: bool, dinner: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE attendance_records SET lunch=%s, dinner=%s WHERE attendance_id=%s",
                (int(bool(lunch)), int(bool(dinner)), int(attendance_id)),
            )
            return cur.rowcount > 0

    def list_for_date(self, att_date: date) -> Sequence[AttendanceRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT ar.attendance_id, ar.member_id, m.name AS member_name, ar.att_date, ar.lunch, ar.dinner
                FROM attendance_records ar
                JOIN members m ON m.member_id = ar.member_id
                WHERE ar.att_date=%s
                ORDER BY m.name ASC
                """,
                (att_date,),
            )
            return [
                AttendanceRow(
                    attendance_id=int(r["attendance_id"]),
                    member_id=int(r["member_id"]),
                    member_name=r["member_name"],
                    att_date=r["att_date"],
                    lunch=as_bool(r["lunch"]),
                    dinner=as_bool(r["dinner"]),
                )
                for r in fetchall(cur)
            ]

    def list_for_member(self, member_id: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT attendance_id, member_id, att_date, lunch, dinner, created_at
                FROM attendance_records
                WHERE member_id=%s
                ORDER BY att_date DESC
                """,
                (int(member_id),),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def count_present_on(self, att_date: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS total
                FROM attendance_records
                WHERE att_date=%s AND (lunch=1 OR dinner=1)
                """,
                (att_date,),
            )
            r = fetchone(cur)
            return int(r["total"]) if r else 0
