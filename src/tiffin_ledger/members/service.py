from __future__ import annotations

import logging
from contextlib import nullcontext
from datetime import datetime
from typing import Any, Callable, ContextManager, Dict, Mapping, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.locks import KeyedLock
from ..common.validators import (
    optional_text,
    parse_positive_amount,
    require_non_empty,
    require_non_negative_int,
    require_positive_int,
    require_positive_number,
)
from ..core.constants import DEFAULT_PAYMENT_DESCRIPTION
from ..core.exceptions import LimitExceededError, NotFoundError, ValidationError
from .model import MemberAccount, NewMember
from .repository import MemberRepository

logger = logging.getLogger(__name__)

TransactionFactory = Callable[[], ContextManager[Any]]

_PROFILE_FIELDS = {
    "name": "Name",
    "hostel_name": "Hostel name",
    "college_name": "College name",
    "whatsapp_number": "WhatsApp number",
}


def _whole_number(value: Any) -> Any:
    # Form posts send "30"; JSON clients send 30.
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return value


class MemberService:
    """Use cases around member accounts: registration, payments, reactivation."""

    def __init__(
        self,
        members: MemberRepository,
        *,
        transaction: Optional[TransactionFactory] = None,
        locks: Optional[KeyedLock] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._members = members
        self._transaction = transaction or nullcontext
        self._locks = locks or KeyedLock()
        self._clock = clock

    def _require(self, member_id: int, *, for_update: bool = False) -> MemberAccount:
        member = self._members.get_by_id(int(member_id), for_update=for_update)
        if not member:
            raise NotFoundError("Member not found")
        return member

    def register(
        self,
        *,
        name: Any,
        hostel_name: Any,
        college_name: Any,
        whatsapp_number: Any,
        subscription_amount: Any,
        max_credits: Any,
    ) -> MemberAccount:
        new = NewMember(
            name=require_non_empty(name, "Name"),
            hostel_name=require_non_empty(hostel_name, "Hostel name"),
            college_name=require_non_empty(college_name, "College name"),
            whatsapp_number=require_non_empty(whatsapp_number, "WhatsApp number"),
            subscription_amount=parse_positive_amount(subscription_amount, "subscription amount"),
            max_credits=require_positive_int(_whole_number(max_credits), "Maximum tiffin count"),
        )
        member_id = self._members.create(member=new)
        logger.info("Registered member %s (%s) with %d credits", member_id, new.name, new.max_credits)
        return self._require(member_id)

    def get(self, member_id: int) -> MemberAccount:
        return self._require(member_id)

    def list_members(self) -> Sequence[MemberAccount]:
        return self._members.list_all()

    def list_exhausted(self) -> Sequence[MemberAccount]:
        return self._members.list_exhausted()

    def update(self, member_id: int, changes: Mapping[str, Any]) -> MemberAccount:
        fields: Dict[str, Any] = {}
        for key, value in changes.items():
            if key in _PROFILE_FIELDS:
                fields[key] = require_non_empty(value, _PROFILE_FIELDS[key])
            elif key == "subscription_amount":
                fields[key] = parse_positive_amount(value, "subscription amount")
            elif key == "max_credits":
                fields[key] = require_positive_int(_whole_number(value), "Maximum tiffin count")
            elif key == "remaining_credits":
                fields[key] = require_non_negative_int(_whole_number(value), "Remaining tiffin count")
            else:
                raise ValidationError(f"Field {key!r} cannot be updated")

        with self._locks.hold(int(member_id)), self._transaction():
            member = self._require(member_id, for_update=True)
            new_amount = fields.get("subscription_amount", member.subscription_amount)
            if member.total_paid > new_amount:
                raise ValidationError("Subscription amount cannot be lower than the amount already paid")
            self._members.update_fields(member_id=member.member_id, fields=fields)

        return self._require(member_id)

    def delete(self, member_id: int) -> None:
        if not self._members.delete_by_id(int(member_id)):
            raise NotFoundError("Member not found")
        logger.info("Deleted member %s", member_id)

    def reactivate(self, member_id: int, *, subscription_amount: Any, max_credits: Any) -> MemberAccount:
        try:
            amount = require_positive_number(subscription_amount, "Subscription amount")
            credits = require_positive_int(max_credits, "Maximum tiffin count")
        except ValidationError:
            raise ValidationError("Invalid subscription amount or max tiffin count")

        with self._locks.hold(int(member_id)), self._transaction():
            if not self._members.reactivate(member_id=int(member_id), subscription_amount=amount, max_credits=credits):
                raise NotFoundError("Member not found")

        logger.info("Reactivated member %s: amount=%s credits=%d", member_id, amount, credits)
        return self._require(member_id)

    def record_payment(self, member_id: int, *, amount: Any, description: Optional[str] = None) -> MemberAccount:
        value = parse_positive_amount(amount, "payment amount")
        note = optional_text(description, "Description") or DEFAULT_PAYMENT_DESCRIPTION

        with self._locks.hold(int(member_id)), self._transaction():
            member = self._require(member_id, for_update=True)
            if member.total_paid + value > member.subscription_amount:
                raise LimitExceededError("Payment exceeds the subscription amount")
            self._members.add_payment(member_id=member.member_id, amount=value, description=note, paid_at=self._clock())

        logger.info("Recorded payment of %s for member %s", value, member_id)
        return self._require(member_id)

    def reset_all_credits(self) -> Sequence[MemberAccount]:
        with self._transaction():
            count = self._members.reset_all_credits()
        logger.info("Reset tiffin credits for %d member(s)", count)
        return self._members.list_all()
