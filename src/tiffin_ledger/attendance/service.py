from __future__ import annotations

import logging
from contextlib import nullcontext
from datetime import date
from typing import Any, Callable, ContextManager, Iterable, List, Optional, Sequence, Tuple

from ..common.datetime_utils import today_local
from ..common.locks import KeyedLock
from ..common.validators import parse_member_id, require_bool, require_meal
from ..core.enums import EntryStatus, Meal
from ..core.exceptions import DomainError, NotFoundError
from ..members.model import MemberAccount
from ..members.repository import MemberRepository
from .credit_policy import CreditPolicy, FlooredDebitPolicy
from .model import AttendanceRecord, AttendanceRow, BulkEntry, BulkEntryResult, MealToggleResult
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def _safe_member_id(raw: Any) -> Optional[int]:
    try:
        return parse_member_id(raw)
    except DomainError:
        return None


class AttendanceService:
    """Keeps attendance records and members' tiffin credits consistent.

    Every read-modify-write runs under the member's lock and inside one
    transaction; the member row is read ``for_update`` first so concurrent
    writers for the same member queue up behind it.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        members: MemberRepository,
        *,
        transaction: Optional[Callable[[], ContextManager[Any]]] = None,
        locks: Optional[KeyedLock] = None,
        policy: Optional[CreditPolicy] = None,
        today: Callable[[], date] = today_local,
    ):
        self._attendance = attendance
        self._members = members
        self._transaction = transaction or nullcontext
        self._locks = locks or KeyedLock()
        self._policy = policy or FlooredDebitPolicy()
        self._today = today

    def _lock_member(self, member_id: int) -> MemberAccount:
        member = self._members.get_by_id(member_id, for_update=True)
        if not member:
            raise NotFoundError("Member not found")
        return member

    def _settle_credits(self, member: MemberAccount, flips: Iterable[Tuple[bool, bool]]) -> Tuple[int, bool]:
        balance = member.remaining_credits
        skipped = False
        for previous, desired in flips:
            decision = self._policy.decide(previous=previous, desired=desired, balance=balance)
            balance += decision.applied
            skipped = skipped or decision.skipped

        if skipped:
            logger.info(
                "Tiffin count for member %s (%s) already <= 0; attendance marked without deduction",
                member.member_id,
                member.name,
            )
        if balance != member.remaining_credits:
            self._members.set_remaining_credits(member_id=member.member_id, remaining_credits=balance)
        return balance, skipped

    def _reload(self, member_id: int, att_date: date) -> AttendanceRecord:
        record = self._attendance.get_for_member_and_date(member_id, att_date)
        if record is None:
            raise NotFoundError("Attendance record not found")
        return record

    def set_meal_presence(self, member_id: Any, att_date: date, meal: Any, status: Any) -> MealToggleResult:
        member_id = parse_member_id(member_id)
        meal = require_meal(meal)
        status = require_bool(status, "status")

        with self._locks.hold(member_id), self._transaction():
            member = self._lock_member(member_id)
            record = self._attendance.get_for_member_and_date(member_id, att_date)

            if record is None and not status:
                return MealToggleResult(record=None, remaining_credits=member.remaining_credits)
            if record is not None and record.is_present(meal) == status:
                return MealToggleResult(record=record, remaining_credits=member.remaining_credits)

            if record is None:
                previous = False
                self._attendance.create(
                    member_id=member_id,
                    att_date=att_date,
                    lunch=meal == Meal.LUNCH,
                    dinner=meal == Meal.DINNER,
                )
            else:
                previous = record.is_present(meal)
                updated = record.with_meal(meal, status)
                self._attendance.update_meals(
                    attendance_id=record.attendance_id,
                    lunch=updated.lunch,
                    dinner=updated.dinner,
                )

            balance, skipped = self._settle_credits(member, [(previous, status)])
            record = self._reload(member_id, att_date)

        return MealToggleResult(record=record, remaining_credits=balance, changed=True, debit_skipped=skipped)

    def _apply_entry(self, att_date: date, index: int, entry: BulkEntry) -> BulkEntryResult:
        member_id = parse_member_id(entry.member_id)
        lunch = require_bool(entry.lunch, "lunch")
        dinner = require_bool(entry.dinner, "dinner")

        with self._locks.hold(member_id), self._transaction():
            member = self._lock_member(member_id)
            record = self._attendance.get_for_member_and_date(member_id, att_date)
            previous = (record.lunch, record.dinner) if record else (False, False)

            if previous == (lunch, dinner):
                return BulkEntryResult(
                    index=index,
                    member_id=member_id,
                    status=EntryStatus.UNCHANGED,
                    remaining_credits=member.remaining_credits,
                )

            if record is None:
                self._attendance.create(member_id=member_id, att_date=att_date, lunch=lunch, dinner=dinner)
            else:
                self._attendance.update_meals(attendance_id=record.attendance_id, lunch=lunch, dinner=dinner)

            balance, _ = self._settle_credits(member, [(previous[0], lunch), (previous[1], dinner)])

        return BulkEntryResult(index=index, member_id=member_id, status=EntryStatus.UPDATED, remaining_credits=balance)

    def create_or_update_attendance(self, att_date: date, entries: Sequence[BulkEntry]) -> List[BulkEntryResult]:
        """Apply a day's sheet entry by entry.

        Each entry commits on its own; a failing entry is reported in the
        result list and the rest are still processed.
        """

        logger.info("Updating attendance for %s (%d entries)", att_date.isoformat(), len(entries))
        results: List[BulkEntryResult] = []
        for index, entry in enumerate(entries):
            if not entry.member_id:
                results.append(BulkEntryResult(index=index, member_id=None, status=EntryStatus.SKIPPED))
                continue

            try:
                results.append(self._apply_entry(att_date, index, entry))
            except DomainError as e:
                logger.warning("Attendance entry %d (member %r) rejected: %s", index, entry.member_id, e)
                results.append(
                    BulkEntryResult(
                        index=index,
                        member_id=_safe_member_id(entry.member_id),
                        status=EntryStatus.ERROR,
                        error_kind=e.kind,
                        message=str(e),
                    )
                )
            except Exception:
                logger.exception("Attendance entry %d (member %r) failed", index, entry.member_id)
                results.append(
                    BulkEntryResult(
                        index=index,
                        member_id=_safe_member_id(entry.member_id),
                        status=EntryStatus.ERROR,
                        error_kind="internal",
                        message="Server Error",
                    )
                )
        return results

    def list_for_date(self, att_date: date) -> Sequence[AttendanceRow]:
        return self._attendance.list_for_date(att_date)

    def list_for_member(self, member_id: Any) -> Sequence[AttendanceRecord]:
        return self._attendance.list_for_member(parse_member_id(member_id))

    def count_present_on(self, att_date: Optional[date] = None) -> int:
        return self._attendance.count_present_on(att_date or self._today())
