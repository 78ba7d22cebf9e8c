from __future__ import annotations

from datetime import date

import pytest

from tiffin_ledger.core.enums import Meal
from tiffin_ledger.core.exceptions import NotFoundError, ValidationError

DAY = date(2026, 3, 2)


def test_lunch_present_then_repeat_then_absent(attendance_service, members_repo):
    members_repo.add(member_id=1, max_credits=30, remaining_credits=30)

    first = attendance_service.set_meal_presence(1, DAY, "lunch", True)
    assert first.changed
    assert first.record.lunch is True
    assert first.record.dinner is False
    assert first.remaining_credits == 29

    again = attendance_service.set_meal_presence(1, DAY, "lunch", True)
    assert not again.changed
    assert again.record == first.record
    assert again.remaining_credits == 29

    reverted = attendance_service.set_meal_presence(1, DAY, "lunch", False)
    assert reverted.record.lunch is False
    assert reverted.remaining_credits == 30
    assert members_repo.get_by_id(1).remaining_credits == 30


def test_exhausted_member_is_marked_without_debit_and_refund_is_unbounded(attendance_service, members_repo):
    members_repo.add(member_id=1, max_credits=30, remaining_credits=0)

    marked = attendance_service.set_meal_presence(1, DAY, Meal.DINNER, True)
    assert marked.record.dinner is True
    assert marked.remaining_credits == 0
    assert marked.debit_skipped

    reverted = attendance_service.set_meal_presence(1, DAY, Meal.DINNER, False)
    assert reverted.record.dinner is False
    assert reverted.remaining_credits == 1


def test_refund_can_push_balance_above_max(attendance_service, members_repo):
    members_repo.add(member_id=1, max_credits=2, remaining_credits=0)

    for _ in range(3):
        balance = members_repo.get_by_id(1).remaining_credits
        members_repo.update_fields(member_id=1, fields={"remaining_credits": 0})
        marked = attendance_service.set_meal_presence(1, DAY, "lunch", True)
        assert marked.debit_skipped
        members_repo.update_fields(member_id=1, fields={"remaining_credits": balance})
        attendance_service.set_meal_presence(1, DAY, "lunch", False)

    # Present marks taken at zero are free; every revert still refunds one.
    assert members_repo.get_by_id(1).remaining_credits == 3


def test_unsetting_without_record_is_a_noop(attendance_service, members_repo, attendance_repo):
    members_repo.add(member_id=1, remaining_credits=7)

    result = attendance_service.set_meal_presence(1, DAY, "dinner", False)

    assert result.record is None
    assert result.remaining_credits == 7
    assert not result.changed
    assert attendance_repo.get_for_member_and_date(1, DAY) is None


def test_lunch_and_dinner_share_the_day_record(attendance_service, members_repo, attendance_repo):
    members_repo.add(member_id=1, remaining_credits=10)

    attendance_service.set_meal_presence(1, DAY, "lunch", True)
    result = attendance_service.set_meal_presence(1, DAY, "dinner", True)

    assert result.record.lunch is True
    assert result.record.dinner is True
    assert result.remaining_credits == 8
    assert len(attendance_repo.list_for_member(1)) == 1


def test_last_credit_is_consumed_then_floor_holds(attendance_service, members_repo):
    members_repo.add(member_id=1, remaining_credits=1)

    attendance_service.set_meal_presence(1, DAY, "lunch", True)
    result = attendance_service.set_meal_presence(1, DAY, "dinner", True)

    assert result.remaining_credits == 0
    assert result.record.lunch and result.record.dinner


def test_member_row_is_locked_for_update(attendance_service, members_repo):
    members_repo.add(member_id=4)

    attendance_service.set_meal_presence(4, DAY, "lunch", True)

    assert members_repo.locked == [4]


def test_unknown_member_raises_not_found(attendance_service):
    with pytest.raises(NotFoundError):
        attendance_service.set_meal_presence(99, DAY, "lunch", True)


@pytest.mark.parametrize("meal", ["breakfast", "", None])
def test_invalid_meal_is_rejected(attendance_service, members_repo, meal):
    members_repo.add(member_id=1)
    with pytest.raises(ValidationError):
        attendance_service.set_meal_presence(1, DAY, meal, True)


@pytest.mark.parametrize("status", ["true", 1, None])
def test_non_boolean_status_is_rejected(attendance_service, members_repo, status):
    members_repo.add(member_id=1)
    with pytest.raises(ValidationError):
        attendance_service.set_meal_presence(1, DAY, "lunch", status)
    assert members_repo.get_by_id(1).remaining_credits == 30


def test_count_and_listings(attendance_service, members_repo):
    members_repo.add(member_id=1, name="Aarav")
    members_repo.add(member_id=2, name="Diya")
    attendance_service.set_meal_presence(1, DAY, "lunch", True)
    attendance_service.set_meal_presence(2, DAY, "dinner", True)
    attendance_service.set_meal_presence(2, date(2026, 3, 1), "lunch", True)

    assert attendance_service.count_present_on(DAY) == 2
    assert [r.member_name for r in attendance_service.list_for_date(DAY)] == ["Aarav", "Diya"]
    assert [r.att_date for r in attendance_service.list_for_member(2)] == [DAY, date(2026, 3, 1)]


def test_count_defaults_to_today(attendance_service, members_repo):
    members_repo.add(member_id=1)
    attendance_service.set_meal_presence(1, DAY, "lunch", True)

    assert attendance_service.count_present_on() == 1
