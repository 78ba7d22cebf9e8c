from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional, Protocol, Sequence

from .model import MemberAccount, NewMember


class MemberRepository(Protocol):
    """Repository interface for member accounts.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, member_id: int, *, for_update: bool = False) -> Optional[MemberAccount]:
        """``for_update`` locks the row until the surrounding transaction ends."""

        raise NotImplementedError

    def list_all(self) -> Sequence[MemberAccount]:
        """Newest members first."""

        raise NotImplementedError

    def list_exhausted(self) -> Sequence[MemberAccount]:
        raise NotImplementedError

    def create(self, *, member: NewMember) -> int:
        raise NotImplementedError

    def update_fields(self, *, member_id: int, fields: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def delete_by_id(self, member_id: int) -> bool:
        raise NotImplementedError

    def set_remaining_credits(self, *, member_id: int, remaining_credits: int) -> bool:
        raise NotImplementedError

    def add_payment(self, *, member_id: int, amount: Decimal, description: Optional[str], paid_at: datetime) -> bool:
        """Append to the payment history and raise ``total_paid`` by ``amount``."""

        raise NotImplementedError

    def reactivate(self, *, member_id: int, subscription_amount: Decimal, max_credits: int) -> bool:
        """Reset credits to ``max_credits``, zero ``total_paid`` and clear the history."""

        raise NotImplementedError

    def reset_all_credits(self) -> int:
        raise NotImplementedError

    def total_subscription_amount(self) -> Decimal:
        raise NotImplementedError
