from __future__ import annotations

from decimal import Decimal

import pytest

from tiffin_ledger.core.exceptions import LimitExceededError, NotFoundError, ValidationError

from conftest import FIXED_NOW


def test_register_starts_with_full_credits(member_service):
    member = member_service.register(
        name="  Aarav Patil ",
        hostel_name="Shivneri Hostel",
        college_name="COEP",
        whatsapp_number="9800000001",
        subscription_amount=3000,
        max_credits="60",
    )

    assert member.name == "Aarav Patil"
    assert member.max_credits == 60
    assert member.remaining_credits == 60
    assert member.total_paid == Decimal("0")
    assert member.payment_history == ()


def test_register_requires_profile_fields(member_service):
    with pytest.raises(ValidationError):
        member_service.register(
            name="",
            hostel_name="H",
            college_name="C",
            whatsapp_number="1",
            subscription_amount=100,
            max_credits=10,
        )


def test_record_payment_appends_history(member_service, members_repo):
    members_repo.add(member_id=1, subscription_amount="3000")

    member = member_service.record_payment(1, amount="1000.50", description="March, part 1")
    member = member_service.record_payment(1, amount=500)

    assert member.total_paid == Decimal("1500.50")
    assert [p.amount for p in member.payment_history] == [Decimal("1000.50"), Decimal("500")]
    assert member.payment_history[0].description == "March, part 1"
    assert member.payment_history[1].description == "Payment received"
    assert member.payment_history[1].paid_at == FIXED_NOW


def test_payment_over_subscription_is_rejected_and_state_kept(member_service, members_repo):
    members_repo.add(member_id=1, subscription_amount="3000", total_paid="2500")

    with pytest.raises(LimitExceededError):
        member_service.record_payment(1, amount=501)

    member = members_repo.get_by_id(1)
    assert member.total_paid == Decimal("2500")
    assert member.payment_history == ()


def test_payment_up_to_the_cap_is_accepted(member_service, members_repo):
    members_repo.add(member_id=1, subscription_amount="3000", total_paid="2500")

    member = member_service.record_payment(1, amount=500)

    assert member.total_paid == member.subscription_amount
    assert member.balance_due == Decimal("0")


@pytest.mark.parametrize("amount", [0, -5, "abc", None, "", True, "100.005", 0.001])
def test_payment_amount_must_be_positive(member_service, members_repo, amount):
    members_repo.add(member_id=1)
    with pytest.raises(ValidationError):
        member_service.record_payment(1, amount=amount)


def test_payment_for_unknown_member(member_service):
    with pytest.raises(NotFoundError):
        member_service.record_payment(42, amount=100)


def test_reactivate_resets_balance_and_history(member_service, members_repo):
    members_repo.add(member_id=1, max_credits=60, remaining_credits=0, subscription_amount="3000")
    member_service.record_payment(1, amount=1200)

    member = member_service.reactivate(1, subscription_amount=5000, max_credits=30)

    assert member.remaining_credits == 30
    assert member.max_credits == 30
    assert member.subscription_amount == Decimal("5000")
    assert member.total_paid == Decimal("0")
    assert member.payment_history == ()


@pytest.mark.parametrize(
    "amount, credits",
    [(0, 30), (5000, 0), (-1, 30), ("5000", 30), (5000, "30"), (5000, 2.5), (True, 30)],
)
def test_reactivate_rejects_invalid_terms(member_service, members_repo, amount, credits):
    members_repo.add(member_id=1)
    with pytest.raises(ValidationError):
        member_service.reactivate(1, subscription_amount=amount, max_credits=credits)


def test_reactivate_unknown_member(member_service):
    with pytest.raises(NotFoundError):
        member_service.reactivate(7, subscription_amount=5000, max_credits=30)


def test_list_exhausted(member_service, members_repo):
    members_repo.add(member_id=1, remaining_credits=0)
    members_repo.add(member_id=2, remaining_credits=3)
    members_repo.add(member_id=3, remaining_credits=-1)

    assert sorted(m.member_id for m in member_service.list_exhausted()) == [1, 3]


def test_reset_all_credits(member_service, members_repo):
    members_repo.add(member_id=1, max_credits=30, remaining_credits=0)
    members_repo.add(member_id=2, max_credits=60, remaining_credits=12)

    members = member_service.reset_all_credits()

    assert {m.member_id: m.remaining_credits for m in members} == {1: 30, 2: 60}


def test_update_validates_fields(member_service, members_repo):
    members_repo.add(member_id=1, total_paid="1000")

    member = member_service.update(1, {"hostel_name": "Sinhagad Hostel", "max_credits": 45})
    assert member.hostel_name == "Sinhagad Hostel"
    assert member.max_credits == 45

    with pytest.raises(ValidationError):
        member_service.update(1, {"subscription_amount": 500})
    with pytest.raises(ValidationError):
        member_service.update(1, {"total_paid": 0})


def test_delete(member_service, members_repo):
    members_repo.add(member_id=1)

    member_service.delete(1)

    with pytest.raises(NotFoundError):
        member_service.get(1)
    with pytest.raises(NotFoundError):
        member_service.delete(1)
