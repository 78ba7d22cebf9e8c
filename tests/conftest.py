from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pytest
from werkzeug.security import generate_password_hash

from tiffin_ledger.attendance.model import AttendanceRecord, AttendanceRow
from tiffin_ledger.attendance.service import AttendanceService
from tiffin_ledger.container import wire
from tiffin_ledger.main import create_app
from tiffin_ledger.members.model import MemberAccount, NewMember, PaymentEntry
from tiffin_ledger.members.service import MemberService
from tiffin_ledger.users.service import AuthService

TEST_SECRET = "test-secret"
ADMIN_PASSWORD = "admin123"
FIXED_NOW = datetime(2026, 3, 2, 12, 30)


class InMemoryMembers:
    def __init__(self):
        self._rows: Dict[int, MemberAccount] = {}
        self._next_id = 1
        self.locked: List[int] = []

    def add(self, **overrides: Any) -> MemberAccount:
        """Test helper: store a member directly, bypassing registration."""
        member_id = overrides.pop("member_id", self._next_id)
        self._next_id = max(self._next_id, member_id) + 1
        max_credits = overrides.pop("max_credits", 30)
        member = MemberAccount(
            member_id=member_id,
            name=overrides.pop("name", f"Member {member_id}"),
            hostel_name=overrides.pop("hostel_name", "Shivneri Hostel"),
            college_name=overrides.pop("college_name", "COEP"),
            whatsapp_number=overrides.pop("whatsapp_number", f"98000000{member_id:02d}"),
            subscription_amount=Decimal(str(overrides.pop("subscription_amount", "3000"))),
            max_credits=max_credits,
            remaining_credits=overrides.pop("remaining_credits", max_credits),
            total_paid=Decimal(str(overrides.pop("total_paid", "0"))),
            created_at=FIXED_NOW + timedelta(minutes=member_id),
            **overrides,
        )
        self._rows[member_id] = member
        return member

    def get_by_id(self, member_id: int, *, for_update: bool = False) -> Optional[MemberAccount]:
        if for_update:
            self.locked.append(int(member_id))
        return self._rows.get(int(member_id))

    def list_all(self):
        return sorted(self._rows.values(), key=lambda m: m.created_at, reverse=True)

    def list_exhausted(self):
        return [m for m in self.list_all() if m.remaining_credits <= 0]

    def create(self, *, member: NewMember) -> int:
        return self.add(
            name=member.name,
            hostel_name=member.hostel_name,
            college_name=member.college_name,
            whatsapp_number=member.whatsapp_number,
            subscription_amount=member.subscription_amount,
            max_credits=member.max_credits,
        ).member_id

    def update_fields(self, *, member_id: int, fields: Mapping[str, Any]) -> bool:
        member = self._rows.get(int(member_id))
        if not member:
            return False
        self._rows[int(member_id)] = replace(member, **dict(fields))
        return True

    def delete_by_id(self, member_id: int) -> bool:
        return self._rows.pop(int(member_id), None) is not None

    def set_remaining_credits(self, *, member_id: int, remaining_credits: int) -> bool:
        return self.update_fields(member_id=member_id, fields={"remaining_credits": int(remaining_credits)})

    def add_payment(self, *, member_id: int, amount: Decimal, description: Optional[str], paid_at: datetime) -> bool:
        member = self._rows.get(int(member_id))
        if not member:
            return False
        entry = PaymentEntry(amount=amount, paid_at=paid_at, description=description)
        self._rows[int(member_id)] = replace(
            member,
            total_paid=member.total_paid + amount,
            payment_history=member.payment_history + (entry,),
        )
        return True

    def reactivate(self, *, member_id: int, subscription_amount: Decimal, max_credits: int) -> bool:
        member = self._rows.get(int(member_id))
        if not member:
            return False
        self._rows[int(member_id)] = replace(
            member,
            subscription_amount=subscription_amount,
            max_credits=max_credits,
            remaining_credits=max_credits,
            total_paid=Decimal("0"),
            payment_history=(),
        )
        return True

    def reset_all_credits(self) -> int:
        for member_id, member in list(self._rows.items()):
            self._rows[member_id] = replace(member, remaining_credits=member.max_credits)
        return len(self._rows)

    def total_subscription_amount(self) -> Decimal:
        return sum((m.subscription_amount for m in self._rows.values()), Decimal("0"))


class InMemoryAttendance:
    def __init__(self, members: Optional[InMemoryMembers] = None):
        self._by_key: Dict[Tuple[int, date], AttendanceRecord] = {}
        self._next_id = 1
        self._members = members

    def get_for_member_and_date(self, member_id: int, att_date: date) -> Optional[AttendanceRecord]:
        return self._by_key.get((int(member_id), att_date))

    def create(self, *, member_id: int, att_date: date, lunch: bool, dinner: bool) -> int:
        key = (int(member_id), att_date)
        if key in self._by_key:
            raise RuntimeError("duplicate attendance record")
        record = AttendanceRecord(
            attendance_id=self._next_id,
            member_id=int(member_id),
            att_date=att_date,
            lunch=bool(lunch),
            dinner=bool(dinner),
        )
        self._next_id += 1
        self._by_key[key] = record
        return record.attendance_id

    def update_meals(self, *, attendance_id: int, lunch: bool, dinner: bool) -> bool:
        for key, record in self._by_key.items():
            if record.attendance_id == attendance_id:
                self._by_key[key] = replace(record, lunch=bool(lunch), dinner=bool(dinner))
                return True
        return False

    def list_for_date(self, att_date: date):
        rows = []
        for record in self._by_key.values():
            if record.att_date != att_date:
                continue
            member = self._members.get_by_id(record.member_id) if self._members else None
            rows.append(
                AttendanceRow(
                    attendance_id=record.attendance_id,
                    member_id=record.member_id,
                    member_name=member.name if member else "?",
                    att_date=record.att_date,
                    lunch=record.lunch,
                    dinner=record.dinner,
                )
            )
        return sorted(rows, key=lambda r: r.member_name)

    def list_for_member(self, member_id: int):
        items = [r for r in self._by_key.values() if r.member_id == int(member_id)]
        return sorted(items, key=lambda r: r.att_date, reverse=True)

    def count_present_on(self, att_date: date) -> int:
        return sum(1 for r in self._by_key.values() if r.att_date == att_date and (r.lunch or r.dinner))


@pytest.fixture
def members_repo() -> InMemoryMembers:
    return InMemoryMembers()


@pytest.fixture
def attendance_repo(members_repo) -> InMemoryAttendance:
    return InMemoryAttendance(members_repo)


@pytest.fixture
def member_service(members_repo) -> MemberService:
    return MemberService(members_repo, clock=lambda: FIXED_NOW)


@pytest.fixture
def attendance_service(attendance_repo, members_repo) -> AttendanceService:
    return AttendanceService(attendance_repo, members_repo, today=lambda: FIXED_NOW.date())


@pytest.fixture
def auth_service() -> AuthService:
    return AuthService(
        admin_username="admin",
        admin_password_hash=generate_password_hash(ADMIN_PASSWORD),
        secret_key=TEST_SECRET,
    )


@pytest.fixture
def app(members_repo, attendance_repo, auth_service):
    container = wire(
        members_repo=members_repo,
        attendance_repo=attendance_repo,
        auth_service=auth_service,
        today=lambda: FIXED_NOW.date(),
    )
    return create_app(container=container, settings_module="tiffin_ledger.config.testing")


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(auth_service) -> Dict[str, str]:
    issued = auth_service.authenticate("admin", ADMIN_PASSWORD)
    return {"Authorization": f"Bearer {issued.token}"}
