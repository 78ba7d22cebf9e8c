from __future__ import annotations

import threading
import time
from datetime import date, timedelta

import pytest

from tiffin_ledger.attendance.service import AttendanceService
from tiffin_ledger.common.locks import KeyedLock
from tiffin_ledger.core.exceptions import NotFoundError

from conftest import InMemoryAttendance, InMemoryMembers

START = date(2026, 3, 1)


class SlowMembers(InMemoryMembers):
    """Widens the window between reading a balance and writing it back."""

    def get_by_id(self, member_id, *, for_update=False):
        member = super().get_by_id(member_id, for_update=for_update)
        time.sleep(0.002)
        return member


def _run_together(count, target):
    barrier = threading.Barrier(count)
    errors = []

    def worker(i):
        try:
            barrier.wait()
            target(i)
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert errors == []


def test_parallel_toggles_for_one_member_are_serialized():
    members = SlowMembers()
    members.add(member_id=1, max_credits=100, remaining_credits=100)
    attendance_repo = InMemoryAttendance(members)
    service = AttendanceService(attendance_repo, members)

    # 20 threads over 10 dates, both meals: every toggle is a real change.
    def toggle(i):
        meal = "lunch" if i % 2 else "dinner"
        service.set_meal_presence(1, START + timedelta(days=i // 2), meal, True)

    _run_together(20, toggle)

    assert members.get_by_id(1).remaining_credits == 80
    assert attendance_repo.count_present_on(START) == 1


def test_parallel_toggles_of_the_same_meal_debit_once():
    members = SlowMembers()
    members.add(member_id=1, remaining_credits=10)
    attendance_repo = InMemoryAttendance(members)
    service = AttendanceService(attendance_repo, members)

    _run_together(8, lambda i: service.set_meal_presence(1, START, "lunch", True))

    assert members.get_by_id(1).remaining_credits == 9


def test_keyed_lock_serializes_holders_of_one_key():
    locks = KeyedLock()
    counter = {"a": 0}
    inside = []

    def bump(i):
        with locks.hold("a"):
            inside.append(i)
            assert len(inside) == 1
            value = counter["a"]
            time.sleep(0.001)
            counter["a"] = value + 1
            inside.remove(i)

    _run_together(16, bump)

    assert counter["a"] == 16
    assert len(locks) == 0
    with locks.hold("a"), locks.hold("a"):
        # re-entrant for the holding thread
        pass


def test_keyed_lock_drops_released_keys():
    locks = KeyedLock()

    with locks.hold(1):
        with locks.hold(1):
            assert len(locks) == 1
        assert len(locks) == 1
        with locks.hold(2):
            assert len(locks) == 2
    assert len(locks) == 0


def test_unknown_members_leave_no_locks_behind(members_repo, attendance_repo):
    locks = KeyedLock()
    service = AttendanceService(attendance_repo, members_repo, locks=locks)

    for member_id in range(100, 110):
        with pytest.raises(NotFoundError):
            service.set_meal_presence(member_id, START, "lunch", True)

    assert len(locks) == 0
