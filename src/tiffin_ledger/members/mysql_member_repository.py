from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_decimal, db_cursor, fetchall, fetchone
from .model import MemberAccount, NewMember, PaymentEntry
from .repository import MemberRepository

_MEMBER_COLUMNS = """
    member_id, name, hostel_name, college_name, whatsapp_number,
    subscription_amount, max_credits, remaining_credits, total_paid, created_at
"""

# Columns an update may touch; keys come from the service, never from the request.
_UPDATABLE = {
    "name",
    "hostel_name",
    "college_name",
    "whatsapp_number",
    "subscription_amount",
    "max_credits",
    "remaining_credits",
}


def _to_member(r: Dict[str, Any], payments: Sequence[PaymentEntry]) -> MemberAccount:
    return MemberAccount(
        member_id=int(r["member_id"]),
        name=r["name"],
        hostel_name=r["hostel_name"],
        college_name=r["college_name"],
        whatsapp_number=r["whatsapp_number"],
        subscription_amount=as_decimal(r["subscription_amount"]),
        max_credits=int(r["max_credits"]),
        remaining_credits=int(r["remaining_credits"]),
        total_paid=as_decimal(r["total_paid"]),
        payment_history=tuple(payments),
        created_at=r.get("created_at"),
    )


class MySQLMemberRepository(MemberRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _payments_for(self, cur, member_ids: Sequence[int]) -> Dict[int, List[PaymentEntry]]:
        out: Dict[int, List[PaymentEntry]] = defaultdict(list)
        if not member_ids:
            return out
        placeholders = ",".join(["%s"] * len(member_ids))
        cur.execute(
            f"""
            SELECT member_id, amount, description, paid_at
            FROM member_payments
            WHERE member_id IN ({placeholders})
            ORDER BY paid_at ASC, payment_id ASC
            """,
            tuple(member_ids),
        )
        for r in fetchall(cur):
            out[int(r["member_id"])].append(
                PaymentEntry(amount=as_decimal(r["amount"]), paid_at=r["paid_at"], description=r.get("description"))
            )
        return out

    def _list(self, where: str = "", params: tuple = ()) -> Sequence[MemberAccount]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_MEMBER_COLUMNS} FROM members {where} ORDER BY created_at DESC, member_id DESC",
                params,
            )
            rows = fetchall(cur)
            payments = self._payments_for(cur, [int(r["member_id"]) for r in rows])
            return [_to_member(r, payments.get(int(r["member_id"]), [])) for r in rows]

    def get_by_id(self, member_id: int, *, for_update: bool = False) -> Optional[MemberAccount]:
        lock = " FOR UPDATE" if for_update else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_MEMBER_COLUMNS} FROM members WHERE member_id=%s{lock}", (int(member_id),))
            r = fetchone(cur)
            if not r:
                return None
            payments = self._payments_for(cur, [int(member_id)])
            return _to_member(r, payments.get(int(member_id), []))

    def list_all(self) -> Sequence[MemberAccount]:
        return self._list()

    def list_exhausted(self) -> Sequence[MemberAccount]:
        return self._list("WHERE remaining_credits <= 0")

    def create(self, *, member: NewMember) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO members(
                    name, hostel_name, college_name, whatsapp_number,
                    subscription_amount, max_credits, remaining_credits, total_paid
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,0)
                """,
                (
                    member.name,
                    member.hostel_name,
                    member.college_name,
                    member.whatsapp_number,
                    member.subscription_amount,
                    int(member.max_credits),
                    int(member.max_credits),
                ),
            )
            return int(cur.lastrowid)

    def update_fields(self, *, member_id: int, fields: Mapping[str, Any]) -> bool:
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise ValueError(f"Unsupported member column(s): {sorted(unknown)}")
        if not fields:
            return True

        columns = sorted(fields)
        assignments = ", ".join(f"{col}=%s" for col in columns)
        params = tuple(fields[col] for col in columns) + (int(member_id),)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE members SET {assignments} WHERE member_id=%s", params)
            # rowcount is 0 when the values did not change; check existence instead.
            cur.execute("SELECT 1 AS found FROM members WHERE member_id=%s", (int(member_id),))
            return fetchone(cur) is not None

    def delete_by_id(self, member_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM members WHERE member_id=%s", (int(member_id),))
            return cur.rowcount > 0

    def set_remaining_credits(self, *, member_id: int, remaining_credits: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE members SET remaining_credits=%s WHERE member_id=%s",
                (int(remaining_credits), int(member_id)),
            )
            return cur.rowcount > 0

    def add_payment(self, *, member_id: int, amount: Decimal, description: Optional[str], paid_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE members SET total_paid = total_paid + %s WHERE member_id=%s",
                (amount, int(member_id)),
            )
            if cur.rowcount <= 0:
                return False
            cur.execute(
                "INSERT INTO member_payments(member_id, amount, description, paid_at) VALUES(%s,%s,%s,%s)",
                (int(member_id), amount, description, paid_at),
            )
            return True

    def reactivate(self, *, member_id: int, subscription_amount: Decimal, max_credits: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE members
                SET subscription_amount=%s, max_credits=%s, remaining_credits=%s, total_paid=0
                WHERE member_id=%s
                """,
                (subscription_amount, int(max_credits), int(max_credits), int(member_id)),
            )
            cur.execute("SELECT 1 AS found FROM members WHERE member_id=%s", (int(member_id),))
            if fetchone(cur) is None:
                return False
            cur.execute("DELETE FROM member_payments WHERE member_id=%s", (int(member_id),))
            return True

    def reset_all_credits(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE members SET remaining_credits = max_credits")
            return int(cur.rowcount)

    def total_subscription_amount(self) -> Decimal:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COALESCE(SUM(subscription_amount), 0) AS total FROM members")
            r = fetchone(cur)
            return as_decimal(r["total"] if r else 0)
